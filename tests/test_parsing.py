from __future__ import annotations

import pytest

from praxis_engine.cognition.parsing import extract_json, parse_screen_analysis, parse_subtasks, parse_thought
from praxis_engine.core.errors import CognitionProtocolError
from praxis_engine.core.types import UIState


def test_extract_json_unwraps_fences_and_prose() -> None:
    text = 'Sure! ```json\n{"a": 1, "nested": {"b": [1, 2]}}\n``` Anything else?'
    assert extract_json(text) == {"a": 1, "nested": {"b": [1, 2]}}
    assert extract_json('The answer is {"x": true} as requested') == {"x": True}
    assert extract_json('plan: [1, 2, 3]', "array") == [1, 2, 3]


@pytest.mark.parametrize("text", ["", "no json here", "{broken: json}", "} backwards {"])
def test_extract_json_errors(text: str) -> None:
    with pytest.raises(CognitionProtocolError):
        extract_json(text)


def test_parse_thought_accepts_camel_case_and_clamps_confidence() -> None:
    thought = parse_thought(
        '{"analysis": "login form", "reasoning": "fill email", "goalAchieved": false, "confidence": 1.7,'
        ' "nextAction": {"tool": "type", "params": {"fieldDescription": "Email", "text": "a@b.c"}}}'
    )

    assert thought.goal_achieved is False
    assert thought.confidence == 1.0
    assert thought.next_action is not None
    assert thought.next_action.tool == "type"
    assert thought.next_action.params["fieldDescription"] == "Email"


def test_parse_thought_null_action_and_bad_confidence() -> None:
    thought = parse_thought('{"analysis": "stuck", "nextAction": null, "confidence": "unknown"}')
    assert thought.next_action is None
    assert thought.confidence == 0.0


def test_parse_thought_rejects_malformed_action() -> None:
    with pytest.raises(CognitionProtocolError):
        parse_thought('{"nextAction": {"params": {}}}')


def test_parse_screen_analysis_normalises_state_and_elements() -> None:
    analysis = parse_screen_analysis(
        '{"description": "Checking your browser", "uiState": "cloudflare_challenge",'
        ' "interactiveElements": [{"description": "Verify", "type": "BUTTON", "coordinates": {"x": 10, "y": 90}},'
        ' {"description": "Logo", "type": "image"}]}'
    )

    assert analysis.ui_state is UIState.CHALLENGE_PAGE
    assert [element.kind for element in analysis.interactive_elements] == ["button", "text"]
    assert analysis.interactive_elements[0].coordinates.y == 90


def test_unknown_ui_state_falls_back() -> None:
    assert parse_screen_analysis('{"uiState": "spaceship"}').ui_state is UIState.UNKNOWN


def test_parse_subtasks_requires_objects() -> None:
    assert parse_subtasks('[{"id": "1"}]') == [{"id": "1"}]
    with pytest.raises(CognitionProtocolError):
        parse_subtasks("[1, 2]")
