"""
EF Session Bridge - Session Materializer

Turns the raw ``efid_tokens`` cookie left behind by the SSO redirect chain
into the access/account pair every authenticated EF call needs.

The cookie value is URL-encoded JSON, e.g.::

    %7B%22access%22%3A%22eyJ...%22%2C%22account%22%3A%22eyJ...%22%7D

A pair is either complete or the login fails; there is no partial mode.
"""

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any
from urllib.parse import unquote

from .exceptions import SessionParseError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionTokens:
    """Materialized EF session. Owned by the caller once returned."""

    access: str
    account: str

    def __repr__(self) -> str:
        return "SessionTokens(access=***, account=***)"

    def to_response(self) -> dict[str, str]:
        """Wire names used by the HTTP API."""
        return {"efAccessToken": self.access, "efAccessAccount": self.account}

    @classmethod
    def from_request(cls, access: str | int, account: str | int) -> "SessionTokens":
        """Tokens echoed back by a caller; header values are always strings."""
        return cls(access=str(access), account=str(account))


def find_cookie(cookies: Iterable[dict[str, Any]], name: str) -> dict[str, Any] | None:
    """Return the first cookie whose name matches exactly."""
    for cookie in cookies:
        if cookie.get("name") == name:
            return cookie
    return None


def parse_sso_cookie(raw_value: str) -> SessionTokens:
    """
    Decode and validate an SSO cookie payload.

    Args:
        raw_value: Cookie value exactly as stored in the browser jar

    Returns:
        SessionTokens with non-empty access and account

    Raises:
        SessionParseError: Value is not JSON, not an object, or lacks either field
    """
    decoded = unquote(raw_value or "")

    try:
        payload = json.loads(decoded)
    except json.JSONDecodeError as e:
        logger.warning(f"[SESSION] SSO cookie is not valid JSON ({len(decoded)} chars)")
        raise SessionParseError(f"Cookie de sessão EF inválido: {e.msg}") from e

    if not isinstance(payload, dict):
        raise SessionParseError("Cookie de sessão EF inválido: esperado um objeto JSON.")

    access = payload.get("access")
    account = payload.get("account")

    if not access or not account or not isinstance(access, str) or not isinstance(account, str):
        logger.warning(f"[SESSION] SSO cookie missing fields, keys={sorted(payload.keys())}")
        raise SessionParseError("Não foi possível obter tokens EF.")

    return SessionTokens(access=access, account=account)


__all__ = [
    "SessionTokens",
    "find_cookie",
    "parse_sso_cookie",
]
