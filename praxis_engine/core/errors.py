"""Custom exception hierarchy for the engine."""

from __future__ import annotations


class PraxisError(RuntimeError):
    """Base exception for engine-specific failures."""


class CognitionProtocolError(PraxisError):
    """Raised when a cognition response carries no parseable structured payload."""


class ToolValidationError(PraxisError):
    """Raised when tool parameters fail validation at the dispatch boundary."""


class ActuatorError(PraxisError):
    """Raised when a browser primitive cannot be performed."""


class ViewportUnavailableError(ActuatorError):
    """Raised when percentage coordinates cannot be converted to pixels."""


class ProfilePathError(PraxisError):
    """Raised when a dotted profile path does not exist in the profile schema."""


class LoopTransitionError(PraxisError):
    """Raised on an illegal control-loop state transition."""
