"""
Unit tests for the SSO bridge.

Runs against FakeBrowserSession, which stages cookies per poll and records
every close() so leaks show up as assertions.
"""

from urllib.parse import parse_qs, urlparse

import pytest

from src.app.core.config import Settings
from src.app.services.efsession.exceptions import (
    NavigationTimeoutError,
    SessionParseError,
    SsoCookieMissingError,
)
from src.app.services.efsession.session import SessionTokens
from src.app.services.efsession.sso import SsoBridge


# =============================================================================
# URL CONSTRUCTION
# =============================================================================
class TestBuildInitiateUrl:
    """Tests for SsoBridge.build_initiate_url."""

    def test_wire_format(self, test_settings: Settings, make_browser_factory) -> None:
        bridge = SsoBridge(test_settings, make_browser_factory())
        url = bridge.build_initiate_url("eyJhbGciOi.payload.sig")

        assert url == (
            "https://learn.corporate.ef.com/login/v1/login/oauth2/initiate"
            "?state=/&initiator=SCHOOL_WEB&prompt=login&domain_hint=saopaulo"
            "&partnerCode=SANP-J04NSMP9&sso_token_hint=eyJhbGciOi.payload.sig"
        )

    def test_token_is_encoded(self, test_settings: Settings, make_browser_factory) -> None:
        bridge = SsoBridge(test_settings, make_browser_factory())
        url = bridge.build_initiate_url("a&b=c")

        query = parse_qs(urlparse(url).query)
        assert query["sso_token_hint"] == ["a&b=c"]


# =============================================================================
# HARVEST / BRIDGE
# =============================================================================
class TestBridge:
    """Tests for SsoBridge.bridge."""

    @pytest.mark.asyncio
    async def test_success_yields_tokens(
        self,
        test_settings: Settings,
        make_browser_factory,
        sso_cookie: dict,
        session_tokens_payload: dict,
    ) -> None:
        factory = make_browser_factory(cookie_polls=[[sso_cookie]])
        bridge = SsoBridge(test_settings, factory)

        async with bridge.bridge("jwt-token") as bridged:
            assert bridged.tokens == SessionTokens(**session_tokens_payload)
            assert bridged.browser is factory.sessions[0]
            assert not factory.sessions[0].closed

        browser = factory.sessions[0]
        assert browser.closed
        assert browser.visited == [bridge.build_initiate_url("jwt-token")]
        assert browser.navigate_timeouts == [120.0]

    @pytest.mark.asyncio
    async def test_cookie_found_after_polling(
        self,
        make_browser_factory,
        sso_cookie: dict,
    ) -> None:
        settings = Settings(BROWSER_SETTLE_TIMEOUT=2.0, BROWSER_COOKIE_POLL_INTERVAL=0.01)
        other = {"name": "session_id", "value": "x"}
        factory = make_browser_factory(cookie_polls=[[], [other], [other, sso_cookie]])
        bridge = SsoBridge(settings, factory)

        async with bridge.bridge("jwt-token") as bridged:
            assert bridged.tokens.access

        # Returned as soon as the cookie appeared, not after the full window
        assert factory.sessions[0].cookie_reads == 3

    @pytest.mark.asyncio
    async def test_cookie_missing_closes_browser(self, test_settings: Settings, make_browser_factory) -> None:
        factory = make_browser_factory(cookie_polls=[[{"name": "other", "value": "x"}]])
        bridge = SsoBridge(test_settings, factory)

        with pytest.raises(SsoCookieMissingError) as exc_info:
            async with bridge.bridge("jwt-token"):
                pytest.fail("bridge must not yield without the SSO cookie")

        assert exc_info.value.cookie_name == "efid_tokens"
        assert "efid_tokens" in exc_info.value.message
        assert factory.sessions[0].closed
        assert factory.sessions[0].cookie_reads >= 2

    @pytest.mark.asyncio
    async def test_repeated_failures_leak_nothing(self, test_settings: Settings, make_browser_factory) -> None:
        factory = make_browser_factory(cookie_polls=[[]])
        bridge = SsoBridge(test_settings, factory)

        for _ in range(5):
            with pytest.raises(SsoCookieMissingError):
                async with bridge.bridge("jwt-token"):
                    pass

        assert len(factory.sessions) == 5
        assert all(session.close_calls == 1 for session in factory.sessions)

    @pytest.mark.asyncio
    async def test_navigation_timeout_closes_browser(self, test_settings: Settings, make_browser_factory) -> None:
        factory = make_browser_factory(navigate_error=NavigationTimeoutError("timeout", timeout_seconds=120))
        bridge = SsoBridge(test_settings, factory)

        with pytest.raises(NavigationTimeoutError):
            async with bridge.bridge("jwt-token"):
                pass

        assert factory.sessions[0].closed
        assert factory.sessions[0].cookie_reads == 0

    @pytest.mark.asyncio
    async def test_malformed_cookie_closes_browser(self, test_settings: Settings, make_browser_factory) -> None:
        factory = make_browser_factory(cookie_polls=[[{"name": "efid_tokens", "value": "%7Bbroken"}]])
        bridge = SsoBridge(test_settings, factory)

        with pytest.raises(SessionParseError):
            async with bridge.bridge("jwt-token"):
                pass

        assert factory.sessions[0].closed

    @pytest.mark.asyncio
    async def test_caller_error_closes_browser(
        self, test_settings: Settings, make_browser_factory, sso_cookie: dict
    ) -> None:
        factory = make_browser_factory(cookie_polls=[[sso_cookie]])
        bridge = SsoBridge(test_settings, factory)

        with pytest.raises(RuntimeError):
            async with bridge.bridge("jwt-token"):
                raise RuntimeError("levels query exploded")

        assert factory.sessions[0].close_calls == 1

    @pytest.mark.asyncio
    async def test_fresh_session_per_login(
        self, test_settings: Settings, make_browser_factory, sso_cookie: dict
    ) -> None:
        factory = make_browser_factory(cookie_polls=[[sso_cookie]])
        bridge = SsoBridge(test_settings, factory)

        async with bridge.bridge("jwt-1") as first:
            pass
        async with bridge.bridge("jwt-2") as second:
            pass

        assert first.browser is not second.browser
        assert len(factory.sessions) == 2
