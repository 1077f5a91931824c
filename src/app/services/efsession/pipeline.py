"""
EF Session Bridge - Login Pipeline

Coordinates the one-shot login:

    Credential exchange -> Token upgrade -> SSO bridge -> Session -> Levels

Stages run strictly in order and each one gates the next. Nothing is
retried, nothing is cached, and the browser opened by the SSO bridge is
closed before any error leaves this module.
"""

import logging
import time
from typing import TYPE_CHECKING, Any

from .browser import BrowserFactory, playwright_factory
from .identity import IdentityClient, IdentityCredential
from .platform import PlatformClient
from .sso import SsoBridge

if TYPE_CHECKING:
    from ...core.config import Settings

logger = logging.getLogger(__name__)


def merge_login_payload(tokens_payload: dict[str, str], levels: Any) -> dict[str, Any]:
    """Token fields first, then the levels payload on top (object spread order)."""
    if isinstance(levels, dict):
        return {**tokens_payload, **levels}
    return {**tokens_payload, "levels": levels}


class LoginPipeline:
    """Stateless login orchestrator. Safe to share across concurrent requests."""

    def __init__(
        self,
        settings: "Settings",
        identity: IdentityClient,
        sso: SsoBridge,
        platform: PlatformClient,
    ) -> None:
        self.settings = settings
        self.identity = identity
        self.sso = sso
        self.platform = platform

    @classmethod
    def from_settings(
        cls,
        settings: "Settings",
        browser_factory: BrowserFactory | None = None,
    ) -> "LoginPipeline":
        """Wire the production stages from settings."""
        return cls(
            settings,
            identity=IdentityClient(settings),
            sso=SsoBridge(settings, browser_factory or playwright_factory(settings)),
            platform=PlatformClient(settings),
        )

    async def login(self, credential: IdentityCredential) -> dict[str, Any]:
        """
        Run the full login and return tokens merged with the levels payload.

        Raises:
            AuthExchangeError, TokenUpgradeError, BrowserLaunchError,
            NavigationTimeoutError, SsoCookieMissingError, SessionParseError,
            LevelsFetchError
        """
        start = time.monotonic()

        logger.info("[PIPELINE] Stage 1/4: credential exchange")
        auth_token = await self.identity.exchange_credentials(credential)

        logger.info("[PIPELINE] Stage 2/4: token upgrade")
        jwt_token = await self.identity.upgrade_token(auth_token)

        logger.info("[PIPELINE] Stage 3/4: SSO bridge")
        async with self.sso.bridge(jwt_token) as bridged:
            logger.info("[PIPELINE] Stage 4/4: levels query")
            levels = await self.platform.list_levels(bridged.browser, bridged.tokens)
            tokens = bridged.tokens

        logger.info(f"[PIPELINE] Login completed in {time.monotonic() - start:.1f}s")
        return merge_login_payload(tokens.to_response(), levels)

    async def aclose(self) -> None:
        await self.identity.aclose()
        await self.platform.aclose()


__all__ = [
    "LoginPipeline",
    "merge_login_payload",
]
