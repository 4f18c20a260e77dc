"""Core engine components."""

from .errors import (
    ActuatorError,
    CognitionProtocolError,
    LoopTransitionError,
    PraxisError,
    ProfilePathError,
    ToolValidationError,
    ViewportUnavailableError,
)
from .loop_state import LoopState, LoopStateMachine

__all__ = [
    "PraxisError",
    "CognitionProtocolError",
    "ToolValidationError",
    "ActuatorError",
    "ViewportUnavailableError",
    "ProfilePathError",
    "LoopTransitionError",
    "LoopState",
    "LoopStateMachine",
]
