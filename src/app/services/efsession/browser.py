"""
EF Session Bridge - Browser Sessions

The SSO bridge needs four capabilities from a browser: navigate and wait
for network idle, read the cookie jar, evaluate a script in the page, and
close. ``BrowserSession`` describes exactly that, so the bridge can run
against Playwright in production and a scripted fake in tests.

Each session is an isolated Chromium launch with its own context (cookie
jar). Sessions are never pooled or reused across logins.

Usage:
    factory = playwright_factory(settings)
    session = await factory()
    try:
        await session.navigate(url, timeout=120)
        cookies = await session.cookies()
    finally:
        await session.close()
"""

import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, Protocol

from .exceptions import BrowserLaunchError, NavigationTimeoutError

if TYPE_CHECKING:
    from ...core.config import BrowserSettings

logger = logging.getLogger(__name__)


class BrowserSession(Protocol):
    """Navigable, cookie-inspectable browser session owned by one login."""

    async def navigate(self, url: str, timeout: float) -> None:
        """Load ``url`` and return once the network is idle.

        Raises:
            NavigationTimeoutError: Network never went idle within ``timeout`` seconds
        """
        ...

    async def cookies(self) -> list[dict[str, Any]]:
        """Every cookie in the session's jar, as ``name``/``value``/... dicts."""
        ...

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        """Run a JavaScript function in the current page and return its result."""
        ...

    async def close(self) -> None:
        """Release every resource. Safe to call more than once."""
        ...


BrowserFactory = Callable[[], Awaitable[BrowserSession]]


class PlaywrightBrowserSession:
    """
    BrowserSession backed by Playwright's async Chromium driver.

    One instance owns one driver, one browser process, one context and one
    page. Use ``PlaywrightBrowserSession.launch(settings)`` to create it.
    """

    def __init__(self, settings: "BrowserSettings") -> None:
        self.settings = settings
        self._playwright = None
        self._browser = None
        self._context = None
        self._page = None

    @classmethod
    async def launch(cls, settings: "BrowserSettings") -> "PlaywrightBrowserSession":
        """Start a fresh browser. Partially started resources are released on failure."""
        session = cls(settings)
        try:
            await session._start()
        except BaseException:
            await session.close()
            raise
        return session

    async def _start(self) -> None:
        from playwright.async_api import Error as PlaywrightError
        from playwright.async_api import async_playwright

        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(
                headless=self.settings.BROWSER_HEADLESS,
                args=list(self.settings.BROWSER_ARGS),
                executable_path=self.settings.BROWSER_EXECUTABLE_PATH or None,
            )
            self._context = await self._browser.new_context()
            self._page = await self._context.new_page()
        except PlaywrightError as e:
            logger.error(f"[BROWSER] Launch failed: {e}")
            raise BrowserLaunchError(f"Não foi possível iniciar o navegador: {e}") from e

        logger.debug("[BROWSER] Chromium started")

    async def navigate(self, url: str, timeout: float) -> None:
        from playwright.async_api import TimeoutError as PlaywrightTimeoutError

        try:
            await self._page.goto(url, wait_until="networkidle", timeout=timeout * 1000)
        except PlaywrightTimeoutError as e:
            raise NavigationTimeoutError(
                f"Tempo esgotado aguardando o redirecionamento SSO ({timeout:.0f}s).",
                url=url,
                timeout_seconds=timeout,
            ) from e

    async def cookies(self) -> list[dict[str, Any]]:
        return [dict(cookie) for cookie in await self._context.cookies()]

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        return await self._page.evaluate(script, arg)

    async def close(self) -> None:
        for name in ("_page", "_context", "_browser"):
            resource = getattr(self, name)
            if resource is None:
                continue
            try:
                await resource.close()
            except Exception as e:
                logger.warning(f"[BROWSER] Error closing {name.lstrip('_')}: {e}")
            finally:
                setattr(self, name, None)

        if self._playwright is not None:
            try:
                await self._playwright.stop()
                logger.debug("[BROWSER] Chromium stopped")
            except Exception as e:
                logger.warning(f"[BROWSER] Error stopping playwright: {e}")
            finally:
                self._playwright = None


def playwright_factory(settings: "BrowserSettings") -> BrowserFactory:
    """Build the production factory: a new Chromium per call."""

    async def _factory() -> BrowserSession:
        return await PlaywrightBrowserSession.launch(settings)

    return _factory


__all__ = [
    "BrowserFactory",
    "BrowserSession",
    "PlaywrightBrowserSession",
    "playwright_factory",
]
