"""EF Session Bridge - Custom Exceptions

Hierarchy:
    EFSessionException (base)
    ├── ValidationError          - Caller omitted required fields (400)
    ├── AuthExchangeError        - EduSP rejected the credential exchange
    ├── TokenUpgradeError        - EduSP refused to issue the card token
    ├── BrowserLaunchError       - Browser runtime could not be started
    ├── NavigationTimeoutError   - SSO redirect chain never reached network idle
    ├── SsoCookieMissingError    - Redirect chain settled without the SSO cookie
    ├── SessionParseError        - SSO cookie payload unreadable or incomplete
    └── DownstreamApiError       - EF REST API returned an error
        └── LevelsFetchError     - In-browser levels query failed

Every pipeline error collapses to HTTP 500 on the wire, but keeps its own
type and ``stage`` tag so logs and tests can tell the failures apart.
"""

from typing import Any


class EFSessionException(Exception):
    """Base exception for all session bridge errors."""

    stage: str = "unknown"
    status_code: int = 500

    def __init__(self, message: str, details: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ValidationError(EFSessionException):
    """Required request fields are missing. Raised before any network call."""

    stage = "validation"
    status_code = 400

    def __init__(self, message: str, missing: list[str] | None = None) -> None:
        super().__init__(message, {"missing": missing} if missing else None)
        self.missing = missing or []


class AuthExchangeError(EFSessionException):
    """Identity provider rejected the RA/password exchange."""

    stage = "auth_exchange"

    def __init__(self, message: str, upstream_status: int | None = None) -> None:
        super().__init__(message, {"upstream_status": upstream_status} if upstream_status else None)
        self.upstream_status = upstream_status


class TokenUpgradeError(EFSessionException):
    """Identity provider did not upgrade the auth token to a card token."""

    stage = "token_upgrade"

    def __init__(self, message: str, upstream_status: int | None = None) -> None:
        super().__init__(message, {"upstream_status": upstream_status} if upstream_status else None)
        self.upstream_status = upstream_status


class BrowserLaunchError(EFSessionException):
    """Browser process or context could not be created."""

    stage = "browser"


class NavigationTimeoutError(EFSessionException):
    """SSO initiation did not reach network idle within the hard timeout.

    This is the dominant latency and failure source of a login.
    """

    stage = "sso_navigation"

    def __init__(
        self,
        message: str,
        url: str | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        super().__init__(message, {"timeout_seconds": timeout_seconds} if timeout_seconds else None)
        self.url = url
        self.timeout_seconds = timeout_seconds


class SsoCookieMissingError(EFSessionException):
    """The redirect chain settled but the SSO cookie never appeared."""

    stage = "sso_cookie"

    def __init__(self, message: str, cookie_name: str | None = None) -> None:
        super().__init__(message)
        self.cookie_name = cookie_name


class SessionParseError(EFSessionException):
    """SSO cookie value is not URL-encoded JSON with access and account."""

    stage = "session_parse"


class DownstreamApiError(EFSessionException):
    """EF platform API call failed.

    ``status_code`` is the upstream HTTP status when one was received, so the
    route can propagate it to the caller unchanged.
    """

    stage = "downstream"

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        payload: Any = None,
    ) -> None:
        super().__init__(message, {"status_code": status_code} if status_code else None)
        self.status_code = status_code or 500
        self.payload = payload


class LevelsFetchError(DownstreamApiError):
    """Levels query executed inside the browser page failed."""

    stage = "levels"


__all__ = [
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
