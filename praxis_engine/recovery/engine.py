"""Error recovery: classify a failure and run strategies until one succeeds."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx

from praxis_engine.browser.actuator import Actuator
from praxis_engine.cognition.service import CognitionService
from praxis_engine.config_loader import RecoverySettings
from praxis_engine.core.types import UIState
from praxis_engine.human.channel import HumanChannel
from praxis_engine.memory.memory_manager import MemoryManager
from praxis_engine.memory.models import Episode

from .classifier import ErrorType, classify_error
from .strategies import STRATEGY_CATALOGUE, RecoveryOutcome, RecoveryStrategy, StrategyFn, order_strategies

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[None]]

CHALLENGE_MARKERS = ("cloudflare", "checking your browser", "just a moment")
ERROR_PAGE_MARKERS = ("error", "not found", "404", "500")
EXHAUSTED_MESSAGE = "All recovery strategies exhausted"


class ErrorRecoveryEngine:
    """Runs the recovery strategies for a classified error, most likely first."""

    def __init__(
        self,
        actuator: Actuator,
        cognition: CognitionService,
        *,
        human: HumanChannel | None = None,
        memory: MemoryManager | None = None,
        settings: RecoverySettings | None = None,
        sleep_fn: SleepFn | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.actuator = actuator
        self.cognition = cognition
        self.human = human
        self.memory = memory
        self.settings = settings or RecoverySettings()
        self._sleep: SleepFn = sleep_fn or asyncio.sleep
        self._http_client = http_client
        self._handlers: Dict[str, StrategyFn] = {
            "wait_longer": self._wait_longer,
            "reload_page": self._reload_page,
            "scroll_and_retry": self._scroll_and_retry,
            "wait_for_element": self._wait_for_element,
            "wait_for_challenge": self._wait_for_challenge_strategy,
            "reload_and_wait": self._reload_and_wait,
            "retry_navigation": self._retry_navigation,
            "go_back_and_forward": self._go_back_and_forward,
            "wait_and_retry": self._wait_and_retry,
            "wait_and_observe": self._wait_and_observe,
        }

    def strategies_for(self, error_type: ErrorType) -> List[RecoveryStrategy]:
        strategies = [
            RecoveryStrategy(name=name, description=description, likelihood=likelihood, execute=self._handlers[name])
            for name, description, likelihood in STRATEGY_CATALOGUE[error_type]
        ]
        return order_strategies(strategies)

    async def handle_error(self, error: str, context: Dict[str, Any] | None = None) -> RecoveryOutcome:
        """Classify ``error`` and try each strategy in turn.

        A strategy that raises counts as not succeeded; the next one runs.
        """

        context = dict(context or {})
        error_type = classify_error(error)
        logger.info("Attempting recovery", extra={"error_type": error_type.value, "error_text": error})
        attempts: List[str] = []
        for strategy in self.strategies_for(error_type):
            attempts.append(strategy.name)
            try:
                succeeded = await strategy.execute(context)
            except Exception:  # noqa: BLE001 - a failing strategy must not abort recovery
                logger.warning("Recovery strategy raised", extra={"strategy": strategy.name}, exc_info=True)
                succeeded = False
            if succeeded:
                logger.info("Recovered", extra={"strategy": strategy.name, "error_type": error_type.value})
                return RecoveryOutcome(
                    recovered=True,
                    error_type=error_type,
                    strategy=strategy.name,
                    attempts=tuple(attempts),
                )
        logger.warning("Recovery exhausted", extra={"error_type": error_type.value, "attempts": attempts})
        return RecoveryOutcome(
            recovered=False,
            error_type=error_type,
            error=EXHAUSTED_MESSAGE,
            attempts=tuple(attempts),
        )

    # Screen checks ------------------------------------------------------
    async def detect_challenge(self) -> bool:
        try:
            screenshot = await self.actuator.screenshot()
            analysis = await self.cognition.analyze_screen(screenshot)
        except Exception:  # noqa: BLE001 - an unreadable screen is treated as no challenge
            logger.debug("Challenge detection failed", exc_info=True)
            return False
        description = analysis.description.lower()
        if any(marker in description for marker in CHALLENGE_MARKERS):
            return True
        return analysis.ui_state == UIState.CHALLENGE_PAGE

    async def wait_for_challenge(self, timeout: float | None = None, poll: float | None = None) -> bool:
        """Poll until the challenge clears or ``timeout`` seconds have elapsed."""

        timeout = self.settings.challenge_timeout_secs if timeout is None else timeout
        poll = self.settings.challenge_poll_secs if poll is None else poll
        elapsed = 0.0
        while True:
            if not await self.detect_challenge():
                logger.info("Challenge cleared", extra={"elapsed": elapsed})
                return True
            if elapsed >= timeout:
                logger.warning("Challenge did not clear", extra={"timeout": timeout})
                return False
            await self._sleep(poll)
            elapsed += poll

    async def is_error_page(self) -> bool:
        try:
            screenshot = await self.actuator.screenshot()
            analysis = await self.cognition.analyze_screen(screenshot)
        except Exception:  # noqa: BLE001
            logger.debug("Error page detection failed", exc_info=True)
            return False
        if analysis.ui_state == UIState.ERROR_PAGE:
            return True
        description = analysis.description.lower()
        return any(marker in description for marker in ERROR_PAGE_MARKERS)

    async def request_human_help(self, error: str, context: Dict[str, Any] | None = None) -> Optional[str]:
        """Hand control to the operator and remember how they fixed it."""

        if self.human is None:
            logger.warning("No human channel configured; cannot request help")
            return None
        context = context or {}
        lines = ["=" * 60, "HUMAN ASSISTANCE REQUIRED", f"Error: {error}"]
        for key, value in context.items():
            lines.append(f"{key}: {value}")
        lines.append("=" * 60)
        await self.human.notify("\n".join(lines))
        await self.human.wait_for_ready("Press Enter once the issue is resolved")
        solution = await self.human.ask("What did you do to resolve it?", default="")
        if self.memory is not None:
            self.memory.record_episode(
                Episode(
                    task=f"Recover from error: {error}",
                    success=True,
                    approach="human_intervention",
                    learnings=[solution] if solution else [],
                )
            )
        return solution

    # Strategies ---------------------------------------------------------
    async def _wait_longer(self, context: Dict[str, Any]) -> bool:
        await self._sleep(self.settings.timeout_wait_secs)
        return True

    async def _reload_page(self, context: Dict[str, Any]) -> bool:
        await self.actuator.reload()
        await self._sleep(self.settings.reload_settle_secs)
        return True

    async def _scroll_and_retry(self, context: Dict[str, Any]) -> bool:
        await self.actuator.scroll("down", 300)
        await self._sleep(self.settings.scroll_settle_secs)
        return True

    async def _wait_for_element(self, context: Dict[str, Any]) -> bool:
        await self._sleep(self.settings.element_wait_secs)
        return True

    async def _wait_for_challenge_strategy(self, context: Dict[str, Any]) -> bool:
        return await self.wait_for_challenge(timeout=self.settings.challenge_wait_secs)

    async def _reload_and_wait(self, context: Dict[str, Any]) -> bool:
        await self.actuator.reload()
        await self._sleep(self.settings.challenge_reload_wait_secs)
        return not await self.detect_challenge()

    async def _retry_navigation(self, context: Dict[str, Any]) -> bool:
        url = self._target_url(context) or await self.actuator.current_url()
        if not url:
            return False
        await self.actuator.navigate(url)
        return True

    async def _go_back_and_forward(self, context: Dict[str, Any]) -> bool:
        await self.actuator.go_back()
        await self._sleep(1)
        await self.actuator.go_forward()
        return True

    async def _wait_and_retry(self, context: Dict[str, Any]) -> bool:
        await self._sleep(self.settings.network_wait_secs)
        url = self._target_url(context) or await self.actuator.current_url()
        if not url or not url.startswith(("http://", "https://")):
            return True
        return await self._probe(url)

    async def _wait_and_observe(self, context: Dict[str, Any]) -> bool:
        await self._sleep(self.settings.generic_wait_secs)
        return True

    async def _probe(self, url: str) -> bool:
        try:
            if self._http_client is not None:
                response = await self._http_client.head(url, timeout=self.settings.probe_timeout_secs)
            else:
                async with httpx.AsyncClient(follow_redirects=True) as client:
                    response = await client.head(url, timeout=self.settings.probe_timeout_secs)
        except httpx.HTTPError:
            logger.debug("Reachability probe failed", extra={"url": url}, exc_info=True)
            return False
        return response.status_code < 500

    @staticmethod
    def _target_url(context: Dict[str, Any]) -> Optional[str]:
        params = context.get("params") or {}
        url = params.get("url") if isinstance(params, dict) else None
        return str(url) if url else None


__all__ = ["ErrorRecoveryEngine", "CHALLENGE_MARKERS", "EXHAUSTED_MESSAGE"]
