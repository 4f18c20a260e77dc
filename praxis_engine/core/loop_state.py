"""Finite-state machine guarding the control loop."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from .errors import LoopTransitionError


class LoopState(str, Enum):
    OBSERVING = "observing"
    REASONING = "reasoning"
    GOAL_ACHIEVED = "goal_achieved"
    ESCALATING_NO_ACTION = "escalating_no_action"
    ESCALATING_LOW_CONFIDENCE = "escalating_low_confidence"
    ACTING = "acting"
    REFLECTING = "reflecting"
    HALTED = "halted"


@dataclass(slots=True)
class LoopTransition:
    previous: LoopState
    next_state: LoopState
    context: Dict[str, Any]


TransitionListener = Callable[[LoopTransition], None]


class LoopStateMachine:
    _ALLOWED = {
        LoopState.HALTED: {LoopState.OBSERVING},
        LoopState.OBSERVING: {LoopState.REASONING, LoopState.REFLECTING, LoopState.HALTED},
        LoopState.REASONING: {
            LoopState.GOAL_ACHIEVED,
            LoopState.ESCALATING_NO_ACTION,
            LoopState.ESCALATING_LOW_CONFIDENCE,
            LoopState.ACTING,
            LoopState.HALTED,
        },
        LoopState.ESCALATING_NO_ACTION: {
            LoopState.ESCALATING_LOW_CONFIDENCE,
            LoopState.ACTING,
            LoopState.HALTED,
        },
        LoopState.ESCALATING_LOW_CONFIDENCE: {LoopState.ACTING, LoopState.REASONING, LoopState.HALTED},
        LoopState.ACTING: {LoopState.OBSERVING},
        LoopState.REFLECTING: {LoopState.OBSERVING, LoopState.REASONING, LoopState.HALTED},
        LoopState.GOAL_ACHIEVED: {LoopState.HALTED},
    }

    def __init__(self, listener: Optional[TransitionListener] = None) -> None:
        self.current_state = LoopState.HALTED
        self.transitions: List[LoopTransition] = []
        self._listener = listener

    def reset(self) -> None:
        self.current_state = LoopState.HALTED
        self.transitions = []

    def next(self, target: LoopState, context: Dict[str, Any] | None = None) -> LoopState:
        context = context or {}
        allowed_targets = self._ALLOWED.get(self.current_state, set())
        if target not in allowed_targets:
            raise LoopTransitionError(f"Illegal transition from {self.current_state.name} to {target.name}")
        transition = LoopTransition(self.current_state, target, context)
        self.transitions.append(transition)
        self.current_state = target
        if self._listener is not None:
            self._listener(transition)
        return self.current_state

    def history(self) -> List[LoopState]:
        return [transition.next_state for transition in self.transitions]


__all__ = ["LoopState", "LoopStateMachine", "LoopTransition"]
