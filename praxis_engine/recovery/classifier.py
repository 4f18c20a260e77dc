"""Error message classification used to pick recovery strategies."""

from __future__ import annotations

from enum import Enum
from typing import Sequence, Tuple


class ErrorType(str, Enum):
    TIMEOUT = "timeout"
    ELEMENT_NOT_FOUND = "element_not_found"
    NAVIGATION_FAILURE = "navigation_failure"
    CHALLENGE = "challenge"
    NETWORK_ERROR = "network_error"
    UNKNOWN = "unknown"


# evaluated in order, first hit wins
_RULES: Sequence[Tuple[ErrorType, Tuple[str, ...]]] = (
    (ErrorType.TIMEOUT, ("timeout", "timed out")),
    (ErrorType.ELEMENT_NOT_FOUND, ("not found", "no element")),
    (ErrorType.NAVIGATION_FAILURE, ("navigation",)),
    (ErrorType.CHALLENGE, ("cloudflare", "challenge")),
    (ErrorType.NETWORK_ERROR, ("network", "connection")),
)


def classify_error(message: str | None) -> ErrorType:
    """Map a free-text error message onto an ``ErrorType``.

    Matching is case-insensitive substring search. "Navigation timeout of
    30000ms exceeded" is a timeout because the timeout rule is checked first.
    """

    text = (message or "").lower()
    for error_type, needles in _RULES:
        if any(needle in text for needle in needles):
            return error_type
    return ErrorType.UNKNOWN


__all__ = ["ErrorType", "classify_error"]
