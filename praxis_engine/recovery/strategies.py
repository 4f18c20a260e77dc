"""Recovery strategy records and the per-error-class catalogue."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Tuple

from .classifier import ErrorType

StrategyFn = Callable[[Dict[str, Any]], Awaitable[bool]]


@dataclass(frozen=True)
class RecoveryStrategy:
    name: str
    description: str
    likelihood: float
    execute: StrategyFn


@dataclass
class RecoveryOutcome:
    recovered: bool
    error_type: ErrorType
    strategy: str | None = None
    error: str | None = None
    attempts: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "recovered": self.recovered,
            "error_type": self.error_type.value,
            "strategy": self.strategy,
            "error": self.error,
            "attempts": list(self.attempts),
        }


# (name, description, likelihood) in declaration order
STRATEGY_CATALOGUE: Mapping[ErrorType, Tuple[Tuple[str, str, float], ...]] = {
    ErrorType.TIMEOUT: (
        ("wait_longer", "Wait longer for the page to respond", 0.7),
        ("reload_page", "Reload the current page", 0.5),
    ),
    ErrorType.ELEMENT_NOT_FOUND: (
        ("scroll_and_retry", "Scroll the page to reveal the element", 0.6),
        ("wait_for_element", "Wait for the element to render", 0.5),
    ),
    ErrorType.CHALLENGE: (
        ("wait_for_challenge", "Wait for the browser challenge to clear", 0.8),
        ("reload_and_wait", "Reload and wait for the challenge to clear", 0.4),
    ),
    ErrorType.NAVIGATION_FAILURE: (
        ("retry_navigation", "Navigate to the target URL again", 0.6),
        ("go_back_and_forward", "Step back and forward in history", 0.3),
    ),
    ErrorType.NETWORK_ERROR: (
        ("wait_and_retry", "Wait, then probe the site before retrying", 0.5),
        ("reload_page", "Reload the current page", 0.7),
    ),
    ErrorType.UNKNOWN: (
        ("wait_and_observe", "Wait briefly and observe again", 0.3),
        ("reload_page", "Reload the current page", 0.4),
    ),
}


def order_strategies(strategies: List[RecoveryStrategy]) -> List[RecoveryStrategy]:
    """Most likely first; ties keep declaration order."""

    return sorted(strategies, key=lambda strategy: strategy.likelihood, reverse=True)


__all__ = ["RecoveryStrategy", "RecoveryOutcome", "STRATEGY_CATALOGUE", "StrategyFn", "order_strategies"]
