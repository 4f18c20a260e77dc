from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

import pytest

from praxis_engine.agent import Agent, build_agent
from praxis_engine.config_loader import PraxisSettings
from praxis_engine.core.control_loop import DECLINED_MESSAGE, MAX_ITERATIONS_LEARNING, MAX_ITERATIONS_MESSAGE
from praxis_engine.core.errors import CognitionProtocolError
from praxis_engine.core.loop_state import LoopState
from praxis_engine.utils.logging_utils import ArtifactLogger
from tests.fakes import FakeActuator, FakeCognition, FakeHuman, RecordingSleep, analysis, thought


def _settings(tmp_path: Path, **loop: Any) -> PraxisSettings:
    loop_settings: Dict[str, Any] = {"max_iterations": 3, "settle_delay_secs": 0}
    loop_settings.update(loop)
    return PraxisSettings.model_validate(
        {
            "loop": loop_settings,
            "memory": {"data_dir": str(tmp_path / "memory")},
            "answers": {"reuse_dir": str(tmp_path / "reuse"), "profile_path": str(tmp_path / "profile.json")},
        }
    )


def _agent(
    tmp_path: Path,
    cognition: FakeCognition,
    human: FakeHuman | None = None,
    actuator: FakeActuator | None = None,
    **loop: Any,
) -> Agent:
    return build_agent(
        _settings(tmp_path, **loop),
        actuator or FakeActuator(),
        cognition,
        human or FakeHuman(),
        sleep_fn=RecordingSleep(),
    )


@pytest.mark.asyncio
async def test_goal_achieved_stops_without_acting(tmp_path: Path) -> None:
    actuator = FakeActuator()
    cognition = FakeCognition(thoughts=[thought(goal_achieved=True, analysis_text="Profile saved")])
    agent = _agent(tmp_path, cognition, actuator=actuator)

    result = await agent.loop.run("Save my profile")

    assert result.success is True
    assert result.result == "Profile saved"
    assert result.iterations == 1
    assert result.reason == "goal_achieved"
    assert set(actuator.names()) == {"screenshot"}
    assert agent.loop.state_machine.history()[-2:] == [LoopState.GOAL_ACHIEVED, LoopState.HALTED]
    episode = agent.memory.episodes[-1]
    assert episode.success is True
    assert episode.approach == "ReAct loop"
    assert episode.learnings == ["Achieved in 1 iterations"]


@pytest.mark.asyncio
async def test_no_action_and_declined_help_halts(tmp_path: Path) -> None:
    human = FakeHuman(confirms=[False])
    agent = _agent(tmp_path, FakeCognition(thoughts=[thought()]), human)

    result = await agent.loop.run("Find the careers page")

    assert result.success is False
    assert result.result == DECLINED_MESSAGE
    assert result.reason == "user_declined"
    assert human.questions == ["Would you like to provide guidance?"]
    assert agent.memory.episodes[-1].learnings == [DECLINED_MESSAGE]


@pytest.mark.asyncio
async def test_no_action_with_guidance_dispatches_ask_human(tmp_path: Path) -> None:
    human = FakeHuman(confirms=[True], asks=["Open the menu first", "Menu is open now"])
    cognition = FakeCognition(thoughts=[thought(), thought(goal_achieved=True)])
    agent = _agent(tmp_path, cognition, human)

    result = await agent.loop.run("Find the careers page")

    assert result.success is True
    assert result.iterations == 2
    entry = agent.loop.recent_actions[-1]
    assert entry.action.tool == "ask_human"
    assert entry.action.params["context"] == "Open the menu first"
    assert entry.result.result == {"answer": "Menu is open now"}
    assert "Context: Open the menu first" in human.notifications
    assert "Action: ask_human(" in cognition.prompts[1]


@pytest.mark.asyncio
async def test_low_confidence_skip_records_nothing(tmp_path: Path) -> None:
    actuator = FakeActuator()
    human = FakeHuman(confirms=[False], asks=["skip"])
    cognition = FakeCognition(
        thoughts=[
            thought(tool="navigate", params={"url": "https://example.com/jobs"}, confidence=0.2),
            thought(goal_achieved=True),
        ]
    )
    agent = _agent(tmp_path, cognition, human, actuator)

    result = await agent.loop.run("Browse jobs")

    assert result.success is True
    assert result.iterations == 2
    assert "navigate" not in actuator.names()
    assert agent.loop.recent_actions == []
    assert agent.memory.get_recent_actions() == []
    assert LoopState.ESCALATING_LOW_CONFIDENCE in agent.loop.state_machine.history()


@pytest.mark.asyncio
async def test_low_confidence_approved_runs_the_action(tmp_path: Path) -> None:
    actuator = FakeActuator()
    human = FakeHuman(confirms=[True])
    cognition = FakeCognition(
        thoughts=[
            thought(tool="navigate", params={"url": "https://example.com/jobs"}, confidence=0.3),
            thought(goal_achieved=True),
        ]
    )
    agent = _agent(tmp_path, cognition, human, actuator)

    await agent.loop.run("Browse jobs")

    assert ("navigate", "https://example.com/jobs") in actuator.calls
    assert human.questions == ["Should I proceed with this action?"]


@pytest.mark.asyncio
async def test_low_confidence_alternative_becomes_ask_human(tmp_path: Path) -> None:
    human = FakeHuman(confirms=[False], asks=["Use the search box instead", "done"])
    cognition = FakeCognition(
        thoughts=[
            thought(tool="click", params={"description": "Jobs link"}, confidence=0.1),
            thought(goal_achieved=True),
        ]
    )
    agent = _agent(tmp_path, cognition, human)

    await agent.loop.run("Browse jobs")

    action = agent.loop.recent_actions[-1].action
    assert action.tool == "ask_human"
    assert action.params["context"] == "Use the search box instead"


@pytest.mark.asyncio
async def test_iteration_ceiling_records_failed_episode(tmp_path: Path) -> None:
    cognition = FakeCognition(
        thoughts=[thought(tool="wait", params={"ms": 100}), thought(tool="wait", params={"ms": 200})]
    )
    agent = _agent(tmp_path, cognition, max_iterations=2)

    result = await agent.loop.run("Wait forever")

    assert result.success is False
    assert result.result == MAX_ITERATIONS_MESSAGE
    assert result.iterations == 2
    assert result.reason == "max_iterations"
    assert agent.memory.episodes[-1].learnings == [MAX_ITERATIONS_LEARNING]
    assert [entry.action.params["ms"] for entry in agent.memory.get_recent_actions()] == [100, 200]
    assert "Action: wait({'ms': 100}) -> success" in cognition.prompts[1]


@pytest.mark.asyncio
async def test_max_iterations_argument_overrides_settings(tmp_path: Path) -> None:
    cognition = FakeCognition(thoughts=[thought(tool="wait", params={"ms": 100})])
    agent = _agent(tmp_path, cognition, max_iterations=10)

    result = await agent.loop.run("Wait", max_iterations=1)

    assert result.iterations == 1
    assert result.reason == "max_iterations"


@pytest.mark.asyncio
async def test_unparseable_reasoning_propagates(tmp_path: Path) -> None:
    cognition = FakeCognition(thoughts=[CognitionProtocolError("No JSON object in response")])
    agent = _agent(tmp_path, cognition)

    with pytest.raises(CognitionProtocolError):
        await agent.loop.run("Anything")


@pytest.mark.asyncio
async def test_failed_action_is_handed_to_recovery(tmp_path: Path) -> None:
    actuator = FakeActuator()
    cognition = FakeCognition(
        thoughts=[thought(tool="click", params={"description": "Ghost button"}), thought(goal_achieved=True)]
    )
    agent = _agent(tmp_path, cognition, actuator=actuator)

    result = await agent.loop.run("Click the ghost")

    assert result.success is True
    assert agent.loop.recent_actions[0].result.error == "Element not found: Ghost button"
    assert ("scroll", ("down", 300)) in actuator.calls
    history = agent.loop.state_machine.history()
    reflecting = history.index(LoopState.REFLECTING)
    assert history[reflecting + 1] is LoopState.OBSERVING


@pytest.mark.asyncio
async def test_challenge_on_first_screen_is_waited_out(tmp_path: Path) -> None:
    cognition = FakeCognition(
        analyses=[
            analysis("Just a moment..."),
            analysis("Just a moment..."),
            analysis("Job board"),
            analysis("Job board"),
        ],
        thoughts=[thought(goal_achieved=True)],
    )
    agent = _agent(tmp_path, cognition)

    await agent.loop.run("Browse jobs")

    assert "Description: Job board" in cognition.prompts[0]


@pytest.mark.asyncio
async def test_steps_and_transitions_are_logged(tmp_path: Path) -> None:
    artifacts = ArtifactLogger(base_dir=tmp_path / "run", goal_name="Browse jobs")
    cognition = FakeCognition(thoughts=[thought(tool="wait", params={"ms": 100}), thought(goal_achieved=True)])
    agent = build_agent(
        _settings(tmp_path),
        FakeActuator(),
        cognition,
        FakeHuman(),
        artifact_logger=artifacts,
        sleep_fn=RecordingSleep(),
    )

    await agent.loop.run("Browse jobs")

    steps = [json.loads(line) for line in artifacts.steps_file.read_text(encoding="utf-8").splitlines()]
    events = [json.loads(line)["event"] for line in artifacts.trace_file.read_text(encoding="utf-8").splitlines()]
    assert [step["metadata"]["iteration"] for step in steps] == [1, 2]
    assert steps[0]["metadata"]["action"]["tool"] == "wait"
    assert steps[1]["metadata"]["action"] is None
    assert set(events) == {"transition"}
    assert (tmp_path / "run" / "step_001" / "screenshot.png").read_bytes() == b"\x89PNG fake"
