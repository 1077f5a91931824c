"""
EF Session Bridge - Platform API Client

Authenticated calls against the EF learning platform once a session has
been materialized:

- list_levels: runs inside the open SSO browser page (same origin, same cookies)
- change_level: direct PUT to the study plan
- fetch_tasks: direct GET of the study plan, returns its ``children``

Upstream HTTP errors keep their status code so the API layer can pass it
through; transport failures become status 500.
"""

import json
import logging
from typing import TYPE_CHECKING, Any

import httpx

from .exceptions import DownstreamApiError, LevelsFetchError
from .session import SessionTokens

if TYPE_CHECKING:
    from ...core.config import PlatformSettings
    from .browser import BrowserSession

logger = logging.getLogger(__name__)

# Executed in the page with a single argument object.
# Resolves instead of throwing so the status code survives the JS -> Python hop.
LEVELS_FETCH_SCRIPT = """
async ({ url, token, account, correlationId }) => {
  const r = await fetch(url, {
    method: 'GET',
    headers: {
      accept: 'application/json',
      authorization: `Bearer ${token}`,
      'x-ef-access': account,
      'x-ef-correlation-id': correlationId
    }
  });
  return { ok: r.ok, status: r.status, body: await r.text() };
}
"""


def _error_message(payload: Any, status_code: int) -> str:
    """Prefer the provider's ``error`` field, else a generic status message."""
    if isinstance(payload, dict) and payload.get("error"):
        error = payload["error"]
        return error if isinstance(error, str) else json.dumps(error)
    return f"Request failed with status code {status_code}"


class PlatformClient:
    """Async client for the EF ``/wl/api`` surface."""

    def __init__(
        self,
        settings: "PlatformSettings",
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = settings
        self._owns_client = http_client is None
        self._client = http_client

    @property
    def client(self) -> httpx.AsyncClient:
        # Created on first REST call; list_levels alone never opens one
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.settings.EF_TIMEOUT)
        return self._client

    @property
    def levels_url(self) -> str:
        return f"{self.settings.EF_BASE_URL}/wl/api/change-level/levels?locale={self.settings.EF_LOCALE}"

    @property
    def study_plan_url(self) -> str:
        return f"{self.settings.EF_BASE_URL}/wl/api/study-plan/study-plan"

    def _auth_headers(self, tokens: SessionTokens) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {tokens.access}",
            "x-ef-access": tokens.account,
        }

    async def list_levels(self, browser: "BrowserSession", tokens: SessionTokens) -> Any:
        """
        Query available levels from inside the authenticated browser page.

        Returns:
            Provider JSON, unchanged

        Raises:
            LevelsFetchError: Non-OK response or non-JSON body
        """
        result = await browser.evaluate(
            LEVELS_FETCH_SCRIPT,
            {
                "url": self.levels_url,
                "token": tokens.access,
                "account": tokens.account,
                "correlationId": self.settings.EF_LEVELS_CORRELATION_ID,
            },
        )

        result = result or {}
        status = int(result.get("status") or 500)
        body = result.get("body") or ""

        if not result.get("ok"):
            logger.error(f"[PLATFORM] Levels query failed: status={status} body={body[:500]}")
            raise LevelsFetchError(f"Falha ao buscar níveis: {status} - {body}", status_code=status, payload=body)

        try:
            return json.loads(body)
        except json.JSONDecodeError as e:
            raise LevelsFetchError(f"Falha ao buscar níveis: resposta inválida ({e.msg})", status_code=status) from e

    async def _send(self, operation: str, request: httpx.Request) -> Any:
        try:
            response = await self.client.send(request)
        except httpx.HTTPError as e:
            logger.error(f"[PLATFORM] {operation} transport error: {e}")
            raise DownstreamApiError(str(e) or type(e).__name__) from e

        try:
            payload = response.json()
        except ValueError:
            payload = response.text

        if response.is_error:
            logger.error(f"[PLATFORM] {operation} error data: {payload}")
            logger.error(f"[PLATFORM] {operation} status: {response.status_code}")
            raise DownstreamApiError(
                _error_message(payload, response.status_code),
                status_code=response.status_code,
                payload=payload,
            )

        return payload

    async def change_level(self, tokens: SessionTokens, level_id: Any, course_id: Any) -> Any:
        """PUT the new level on the study plan. Returns provider JSON verbatim."""
        request = self.client.build_request(
            "PUT",
            self.study_plan_url,
            json={"courseId": course_id, "levelId": level_id},
            headers={**self._auth_headers(tokens), "Content-Type": "application/json"},
        )
        return await self._send("setLevel", request)

    async def fetch_tasks(self, tokens: SessionTokens, level_id: Any, course_id: Any) -> Any:
        """GET the study plan for a level and return its ``children`` (None when absent)."""
        request = self.client.build_request(
            "GET",
            self.study_plan_url,
            params={
                "locale": self.settings.EF_LOCALE,
                "clientTimezone": self.settings.EF_CLIENT_TIMEZONE,
                "courseId": course_id,
                "levelId": level_id,
            },
            headers={
                "accept": "application/json",
                **self._auth_headers(tokens),
                "x-ef-correlation-id": self.settings.EF_TASKS_CORRELATION_ID,
            },
        )
        data = await self._send("tasks", request)
        return data.get("children") if isinstance(data, dict) else None

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "PlatformClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()


__all__ = [
    "LEVELS_FETCH_SCRIPT",
    "PlatformClient",
]
