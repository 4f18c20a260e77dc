"""Browser actuation: the primitive operations the agent can perform on a page."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol, Tuple, runtime_checkable

from playwright.async_api import async_playwright

from praxis_engine.config_loader import BrowserSettings
from praxis_engine.core.errors import ActuatorError, ViewportUnavailableError

logger = logging.getLogger(__name__)

SCROLL_DIRECTIONS = ("up", "down", "top", "bottom")


@runtime_checkable
class Actuator(Protocol):
    async def navigate(self, url: str) -> None: ...

    async def click(self, x: float, y: float) -> None: ...

    async def type_text(self, text: str) -> None: ...

    async def scroll(self, direction: str, amount: int = 300) -> None: ...

    async def press_key(self, key: str) -> None: ...

    async def screenshot(self) -> bytes: ...

    async def viewport_size(self) -> Optional[Tuple[int, int]]: ...

    async def current_url(self) -> str: ...

    async def title(self) -> str: ...

    async def reload(self) -> None: ...

    async def go_back(self) -> None: ...

    async def go_forward(self) -> None: ...

    async def wait(self, seconds: float) -> None: ...


def to_pixels(x: float, y: float, viewport: Optional[Tuple[int, int]]) -> Tuple[int, int]:
    """Convert percentage coordinates to absolute pixels for ``viewport``."""

    if not viewport:
        raise ViewportUnavailableError("Viewport size unknown; cannot convert coordinates")
    width, height = viewport
    return round(x / 100 * width), round(y / 100 * height)


@dataclass
class BrowserSession:
    """Holds Playwright session objects for reuse."""

    playwright: Any
    browser: Any
    context: Any
    page: Any

    async def close(self) -> None:
        try:
            await self.page.close()
        finally:
            try:
                await self.context.close()
            finally:
                try:
                    await self.browser.close()
                finally:
                    await self.playwright.stop()


class PlaywrightActuator:
    """Actuator backed by a single Chromium page."""

    def __init__(self, settings: BrowserSettings | None = None) -> None:
        self.settings = settings or BrowserSettings()
        self._session: BrowserSession | None = None

    async def start(self) -> BrowserSession:
        if self._session:
            return self._session
        playwright = await async_playwright().start()
        browser = await playwright.chromium.launch(
            headless=self.settings.headless,
            slow_mo=self.settings.slow_mo,
            args=["--disable-dev-shm-usage"],
        )
        context = await browser.new_context(
            viewport={"width": self.settings.viewport_width, "height": self.settings.viewport_height}
        )
        page = await context.new_page()
        page.set_default_navigation_timeout(self.settings.navigation_timeout_ms)
        self._session = BrowserSession(playwright=playwright, browser=browser, context=context, page=page)
        logger.info("Browser session started", extra={"headless": self.settings.headless})
        return self._session

    async def close(self) -> None:
        if self._session is None:
            return
        try:
            await self._session.close()
        finally:
            self._session = None

    async def __aenter__(self) -> "PlaywrightActuator":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    @property
    def page(self) -> Any:
        if self._session is None:
            raise ActuatorError("Browser session not started")
        return self._session.page

    async def navigate(self, url: str) -> None:
        await self.page.goto(url, wait_until="domcontentloaded")

    async def click(self, x: float, y: float) -> None:
        px, py = to_pixels(x, y, await self.viewport_size())
        await self.page.mouse.click(px, py)

    async def type_text(self, text: str) -> None:
        await self.page.keyboard.type(text)

    async def scroll(self, direction: str, amount: int = 300) -> None:
        if direction not in SCROLL_DIRECTIONS:
            raise ActuatorError(f"Unsupported scroll direction: {direction}")
        if direction == "top":
            await self.page.evaluate("window.scrollTo(0, 0)")
            return
        if direction == "bottom":
            await self.page.evaluate("window.scrollTo(0, document.body.scrollHeight)")
            return
        delta = amount if direction == "down" else -amount
        await self.page.mouse.wheel(0, delta)

    async def press_key(self, key: str) -> None:
        await self.page.keyboard.press(key)

    async def screenshot(self) -> bytes:
        return await self.page.screenshot(type="png")

    async def viewport_size(self) -> Optional[Tuple[int, int]]:
        size = self.page.viewport_size
        if not size:
            return None
        return int(size["width"]), int(size["height"])

    async def current_url(self) -> str:
        return self.page.url

    async def title(self) -> str:
        return await self.page.title()

    async def reload(self) -> None:
        await self.page.reload(wait_until="domcontentloaded")

    async def go_back(self) -> None:
        await self.page.go_back()

    async def go_forward(self) -> None:
        await self.page.go_forward()

    async def wait(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


__all__ = ["Actuator", "PlaywrightActuator", "BrowserSession", "to_pixels", "SCROLL_DIRECTIONS"]
