from __future__ import annotations

import pytest

from praxis_engine.core.errors import LoopTransitionError
from praxis_engine.core.loop_state import LoopState, LoopStateMachine


def test_full_iteration_path() -> None:
    seen = []
    machine = LoopStateMachine(listener=seen.append)
    for state in (
        LoopState.OBSERVING,
        LoopState.REASONING,
        LoopState.ESCALATING_NO_ACTION,
        LoopState.ESCALATING_LOW_CONFIDENCE,
        LoopState.ACTING,
        LoopState.OBSERVING,
        LoopState.REFLECTING,
        LoopState.OBSERVING,
        LoopState.HALTED,
    ):
        machine.next(state)

    assert machine.current_state is LoopState.HALTED
    assert len(seen) == 9
    assert seen[0].previous is LoopState.HALTED


@pytest.mark.parametrize(
    "path",
    [
        (LoopState.REASONING,),
        (LoopState.OBSERVING, LoopState.ACTING),
        (LoopState.OBSERVING, LoopState.REASONING, LoopState.GOAL_ACHIEVED, LoopState.OBSERVING),
    ],
)
def test_illegal_transitions_raise(path) -> None:
    machine = LoopStateMachine()
    *legal, illegal = path
    for state in legal:
        machine.next(state)
    with pytest.raises(LoopTransitionError):
        machine.next(illegal)


def test_reset_returns_to_halted() -> None:
    machine = LoopStateMachine()
    machine.next(LoopState.OBSERVING, {"note": "start"})
    machine.reset()

    assert machine.current_state is LoopState.HALTED
    assert machine.history() == []
