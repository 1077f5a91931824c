# ============================================
# EF SESSION BRIDGE
# ============================================
#
# Turns EduSP (RA + password) credentials into an authenticated
# EF learning platform session.
#
# Pipeline:
#   1. IdentityClient.exchange_credentials  -> auth_token
#   2. IdentityClient.upgrade_token         -> card JWT
#   3. SsoBridge.bridge                     -> browser walks OAuth2/SSO
#   4. parse_sso_cookie                     -> SessionTokens(access, account)
#   5. PlatformClient                       -> levels / change level / tasks
# ============================================

from .browser import BrowserFactory, BrowserSession, PlaywrightBrowserSession, playwright_factory
from .exceptions import (
    AuthExchangeError,
    BrowserLaunchError,
    DownstreamApiError,
    EFSessionException,
    LevelsFetchError,
    NavigationTimeoutError,
    SessionParseError,
    SsoCookieMissingError,
    TokenUpgradeError,
    ValidationError,
)
from .identity import IdentityClient, IdentityCredential
from .pipeline import LoginPipeline
from .platform import PlatformClient
from .session import SessionTokens, find_cookie, parse_sso_cookie
from .sso import BridgedSession, SsoBridge

__all__ = [
    # Pipeline
    "LoginPipeline",
    # Stages
    "IdentityClient",
    "IdentityCredential",
    "SsoBridge",
    "BridgedSession",
    "PlatformClient",
    "SessionTokens",
    "find_cookie",
    "parse_sso_cookie",
    # Browser
    "BrowserFactory",
    "BrowserSession",
    "PlaywrightBrowserSession",
    "playwright_factory",
    # Exceptions
    "EFSessionException",
    "ValidationError",
    "AuthExchangeError",
    "TokenUpgradeError",
    "BrowserLaunchError",
    "NavigationTimeoutError",
    "SsoCookieMissingError",
    "SessionParseError",
    "DownstreamApiError",
    "LevelsFetchError",
]
