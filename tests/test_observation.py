from __future__ import annotations

import pytest

from praxis_engine.browser.observation import ObservationLayer
from praxis_engine.core.types import DetectedElement, UIState
from tests.fakes import FakeActuator, FakeCognition, RecordingSleep, analysis

SUBMIT = DetectedElement.model_validate({"description": "Submit", "type": "button", "coordinates": {"x": 1, "y": 2}})


@pytest.mark.asyncio
async def test_observe_combines_page_and_analysis() -> None:
    screen = analysis("Application form", UIState.FORM_PAGE).model_copy(update={"interactive_elements": [SUBMIT]})
    layer = ObservationLayer(FakeActuator(url="https://jobs.example.com/apply"), FakeCognition(analyses=[screen]))

    observation = await layer.observe()

    assert observation.url == "https://jobs.example.com/apply"
    assert observation.title == "Example"
    assert observation.state is UIState.FORM_PAGE
    assert observation.elements == [SUBMIT]
    assert observation.screenshot == b"\x89PNG fake"
    assert "screenshot" not in observation.model_dump()


@pytest.mark.asyncio
async def test_wait_for_state_polls() -> None:
    sleep = RecordingSleep()
    cognition = FakeCognition(analyses=[analysis(), analysis(state=UIState.SUBMITTED_PAGE)])
    layer = ObservationLayer(FakeActuator(), cognition, sleep_fn=sleep)

    assert await layer.wait_for_state(UIState.SUBMITTED_PAGE, timeout=5, poll=1) is True
    assert sleep.calls == [1]


@pytest.mark.asyncio
async def test_wait_for_element_times_out() -> None:
    sleep = RecordingSleep()
    layer = ObservationLayer(FakeActuator(), FakeCognition(), sleep_fn=sleep)

    assert await layer.wait_for_element("Submit", timeout=2, poll=1) is None
    assert sleep.calls == [1, 1]


@pytest.mark.asyncio
async def test_element_visibility() -> None:
    layer = ObservationLayer(FakeActuator(), FakeCognition(elements={"Submit": SUBMIT}))

    assert await layer.is_element_visible("Submit") is True
    assert await layer.is_element_visible("Cancel") is False
    assert await layer.detect_state() is UIState.UNKNOWN
