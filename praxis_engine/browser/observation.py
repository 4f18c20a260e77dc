"""Observation layer: turns the current screen into an ``Observation``."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from praxis_engine.cognition.service import CognitionService
from praxis_engine.core.types import DetectedElement, Observation, UIState

from .actuator import Actuator

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[None]]


class ObservationLayer:
    def __init__(
        self,
        actuator: Actuator,
        cognition: CognitionService,
        *,
        sleep_fn: SleepFn | None = None,
    ) -> None:
        self.actuator = actuator
        self.cognition = cognition
        self._sleep: SleepFn = sleep_fn or asyncio.sleep

    async def observe(self) -> Observation:
        """Capture and analyse the current screen."""

        screenshot = await self.actuator.screenshot()
        analysis = await self.cognition.analyze_screen(screenshot)
        observation = Observation(
            url=await self.actuator.current_url(),
            title=await self.actuator.title(),
            description=analysis.description,
            state=analysis.ui_state,
            elements=list(analysis.interactive_elements),
            screenshot=screenshot,
        )
        logger.debug(
            "Observed page",
            extra={"url": observation.url, "ui_state": observation.state.value, "elements": len(observation.elements)},
        )
        return observation

    async def detect_state(self) -> UIState:
        screenshot = await self.actuator.screenshot()
        analysis = await self.cognition.analyze_screen(screenshot)
        return analysis.ui_state

    async def find_element(self, description: str) -> Optional[DetectedElement]:
        screenshot = await self.actuator.screenshot()
        return await self.cognition.find_element(screenshot, description)

    async def is_element_visible(self, description: str) -> bool:
        return await self.find_element(description) is not None

    async def wait_for_state(self, expected: UIState, timeout: float = 10.0, poll: float = 1.0) -> bool:
        elapsed = 0.0
        while True:
            if await self.detect_state() == expected:
                return True
            if elapsed >= timeout:
                return False
            await self._sleep(poll)
            elapsed += poll

    async def wait_for_element(
        self,
        description: str,
        timeout: float = 10.0,
        poll: float = 1.0,
    ) -> Optional[DetectedElement]:
        elapsed = 0.0
        while True:
            element = await self.find_element(description)
            if element is not None:
                return element
            if elapsed >= timeout:
                logger.info("Element did not appear", extra={"description": description, "timeout": timeout})
                return None
            await self._sleep(poll)
            elapsed += poll


__all__ = ["ObservationLayer"]
