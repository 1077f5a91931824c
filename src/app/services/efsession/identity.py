"""
EF Session Bridge - EduSP Identity Client

Two single-shot REST exchanges against the EduSP identity provider:

1. Credential exchange: RA + password -> short-lived ``auth_token``
2. Token upgrade: ``auth_token`` -> card-scoped JWT used as the SSO hint

Neither call is retried; a failure surfaces to the caller immediately.

Usage:
    async with IdentityClient(settings) as identity:
        auth_token = await identity.exchange_credentials(credential)
        jwt_token = await identity.upgrade_token(auth_token)
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import httpx

from .exceptions import AuthExchangeError, TokenUpgradeError

if TYPE_CHECKING:
    from ...core.config import IdentitySettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IdentityCredential:
    """Student RA and password. Input only, never stored or logged."""

    id: str
    secret: str

    def __repr__(self) -> str:
        return "IdentityCredential(id=***, secret=***)"


def _json_or_empty(response: httpx.Response) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


class IdentityClient:
    """Async client for the EduSP registration and token endpoints."""

    def __init__(
        self,
        settings: "IdentitySettings",
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize identity client.

        Args:
            settings: Identity provider configuration
            http_client: Optional shared client; created (and owned) when omitted
        """
        self.settings = settings
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=settings.EDUSP_TIMEOUT)

    @property
    def _platform_headers(self) -> dict[str, str]:
        return {
            "x-api-platform": self.settings.EDUSP_PLATFORM,
            "x-api-realm": self.settings.EDUSP_REALM,
        }

    async def exchange_credentials(self, credential: IdentityCredential) -> str:
        """
        Exchange RA and password for an identity auth token.

        Raises:
            AuthExchangeError: Non-2xx response, transport failure, or no ``auth_token``
        """
        url = f"{self.settings.EDUSP_API_URL}/registration/edusp"
        body = {
            "realm": self.settings.EDUSP_REALM,
            "platform": self.settings.EDUSP_PLATFORM,
            "id": credential.id,
            "password": credential.secret,
        }

        logger.debug("[IDENTITY] Exchanging credentials")

        try:
            response = await self._client.post(
                url,
                json=body,
                headers={"Content-Type": "application/json", **self._platform_headers},
            )
        except httpx.HTTPError as e:
            logger.error(f"[IDENTITY] Credential exchange transport error: {e}")
            raise AuthExchangeError(f"Falha de comunicação com o provedor de identidade: {e}") from e

        data = _json_or_empty(response)

        if not response.is_success:
            logger.warning(f"[IDENTITY] Credential exchange rejected: status={response.status_code}")
            raise AuthExchangeError(
                data.get("message") or response.reason_phrase or f"HTTP {response.status_code}",
                upstream_status=response.status_code,
            )

        auth_token = data.get("auth_token")
        if not auth_token:
            raise AuthExchangeError(data.get("message") or "Token de autenticação não encontrado.")

        return str(auth_token)

    async def upgrade_token(self, auth_token: str) -> str:
        """
        Exchange an identity auth token for the card-scoped JWT.

        Raises:
            TokenUpgradeError: Non-2xx response, transport failure, or no ``token``
        """
        url = f"{self.settings.EDUSP_API_URL}/mas/external-auth/seducsp_token/generate"

        try:
            response = await self._client.get(
                url,
                params={"card_label": self.settings.EDUSP_CARD_LABEL},
                headers={
                    "Accept": "application/json",
                    "x-api-key": auth_token,
                    **self._platform_headers,
                },
            )
        except httpx.HTTPError as e:
            logger.error(f"[IDENTITY] Token upgrade transport error: {e}")
            raise TokenUpgradeError(f"Falha de comunicação com o provedor de identidade: {e}") from e

        data = _json_or_empty(response)

        if not response.is_success:
            logger.warning(f"[IDENTITY] Token upgrade rejected: status={response.status_code}")
            raise TokenUpgradeError(
                data.get("message") or response.reason_phrase or f"HTTP {response.status_code}",
                upstream_status=response.status_code,
            )

        token = data.get("token")
        if not token:
            raise TokenUpgradeError(data.get("message") or "Token JWT não encontrado.")

        return str(token)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "IdentityClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()


__all__ = [
    "IdentityClient",
    "IdentityCredential",
]
