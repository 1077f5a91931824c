"""
EF Session Bridge - SSO Bridge

The EF platform has no API-level login. Its session cookie is only set as
a side effect of the browser following the OAuth2 initiate -> EduSP ->
callback redirect chain, so a real browser has to walk it.

Flow:
1. Fresh, isolated browser session (never shared between logins)
2. Navigate to the OAuth2 initiate URL with the card JWT as ``sso_token_hint``
3. Wait for network idle (hard timeout, default 120s)
4. Poll the cookie jar until ``efid_tokens`` appears or the settle window ends
5. Materialize the cookie into SessionTokens
6. Hand the still-open session to the caller for in-page requests
7. Close the browser on every exit path

Cookie setting can finish after the last network request, so step 4 keeps
looking for a short window instead of reading the jar once.

Usage:
    bridge = SsoBridge(settings, playwright_factory(settings))

    async with bridge.bridge(jwt_token) as bridged:
        levels = await platform.list_levels(bridged.browser, bridged.tokens)
"""

import asyncio
import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any
from urllib.parse import urlencode

from .browser import BrowserFactory, BrowserSession
from .exceptions import SsoCookieMissingError
from .session import SessionTokens, find_cookie, parse_sso_cookie

if TYPE_CHECKING:
    from ...core.config import BrowserSettings, PlatformSettings

logger = logging.getLogger(__name__)


@dataclass
class BridgedSession:
    """An authenticated browser session plus the tokens harvested from it."""

    browser: BrowserSession
    tokens: SessionTokens


class SsoBridge:
    """Drives a browser through the EF OAuth2/SSO redirect chain."""

    INITIATE_PATH = "/login/v1/login/oauth2/initiate"

    def __init__(
        self,
        settings: "PlatformSettings | BrowserSettings",
        browser_factory: BrowserFactory,
    ) -> None:
        """
        Initialize SSO bridge.

        Args:
            settings: Settings with EF_* and BROWSER_* fields
            browser_factory: Returns a new, open BrowserSession per call
        """
        self.settings = settings
        self.browser_factory = browser_factory

    def build_initiate_url(self, upgraded_token: str) -> str:
        """Build the OAuth2 initiate URL that carries the card JWT as a hint."""
        params = {
            "state": self.settings.EF_SSO_STATE,
            "initiator": self.settings.EF_SSO_INITIATOR,
            "prompt": self.settings.EF_SSO_PROMPT,
            "domain_hint": self.settings.EF_SSO_DOMAIN_HINT,
            "partnerCode": self.settings.EF_SSO_PARTNER_CODE,
            "sso_token_hint": upgraded_token,
        }
        query = urlencode(params, safe="/")
        return f"{self.settings.EF_BASE_URL}{self.INITIATE_PATH}?{query}"

    async def wait_for_cookie(self, browser: BrowserSession) -> dict[str, Any] | None:
        """
        Poll the cookie jar for the SSO cookie.

        Returns as soon as the cookie shows up. The jar is always read at
        least once and once more at the deadline.

        Returns:
            Cookie dict, or None if the settle window elapsed without it
        """
        name = self.settings.EF_SSO_COOKIE_NAME
        interval = self.settings.BROWSER_COOKIE_POLL_INTERVAL
        deadline = time.monotonic() + self.settings.BROWSER_SETTLE_TIMEOUT
        polls = 0

        while True:
            polls += 1
            cookie = find_cookie(await browser.cookies(), name)
            if cookie is not None:
                logger.debug(f"[SSO] Cookie '{name}' found after {polls} poll(s)")
                return cookie

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                logger.warning(f"[SSO] Cookie '{name}' not found after {polls} poll(s)")
                return None

            await asyncio.sleep(min(interval, remaining))

    async def harvest(self, browser: BrowserSession, upgraded_token: str) -> SessionTokens:
        """
        Walk the redirect chain in ``browser`` and materialize its session.

        Raises:
            NavigationTimeoutError: Network never went idle
            SsoCookieMissingError: Chain settled without the SSO cookie
            SessionParseError: Cookie payload unreadable
        """
        url = self.build_initiate_url(upgraded_token)
        timeout = self.settings.BROWSER_NAVIGATION_TIMEOUT

        start = time.monotonic()
        logger.info("[SSO] Navigating to OAuth2 initiate endpoint")
        await browser.navigate(url, timeout=timeout)
        logger.info(f"[SSO] Network idle after {time.monotonic() - start:.1f}s")

        cookie = await self.wait_for_cookie(browser)
        if cookie is None:
            name = self.settings.EF_SSO_COOKIE_NAME
            raise SsoCookieMissingError(f"Cookie '{name}' não encontrado. Login SSO falhou.", cookie_name=name)

        return parse_sso_cookie(cookie.get("value", ""))

    @asynccontextmanager
    async def bridge(self, upgraded_token: str) -> AsyncIterator[BridgedSession]:
        """
        Open a browser, complete SSO, and yield the authenticated session.

        The browser is closed when the block exits, whether it exits normally,
        because harvesting failed, or because the caller's code raised.
        """
        browser = await self.browser_factory()
        try:
            tokens = await self.harvest(browser, upgraded_token)
            yield BridgedSession(browser=browser, tokens=tokens)
        finally:
            await browser.close()
            logger.debug("[SSO] Browser session closed")


__all__ = [
    "BridgedSession",
    "SsoBridge",
]
