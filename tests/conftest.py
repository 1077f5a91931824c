import json
from collections.abc import Callable, Generator
from typing import Any
from urllib.parse import quote

import pytest
from faker import Faker
from fastapi.testclient import TestClient

from src.app.core.config import Settings
from src.app.main import app
from src.app.services.efsession import IdentityCredential

fake = Faker()


def encode_sso_cookie(payload: Any) -> str:
    """URL-encode a payload the way the EF redirect chain stores efid_tokens."""
    return quote(json.dumps(payload), safe="")


class FakeBrowserSession:
    """Scripted BrowserSession.

    ``cookie_polls`` is consumed one entry per ``cookies()`` call; the last
    entry repeats once the script runs out.
    """

    def __init__(
        self,
        cookie_polls: list[list[dict[str, Any]]] | None = None,
        navigate_error: Exception | None = None,
        evaluate_result: Any = None,
        evaluate_error: Exception | None = None,
    ) -> None:
        self.cookie_polls = cookie_polls or [[]]
        self.navigate_error = navigate_error
        self.evaluate_result = evaluate_result
        self.evaluate_error = evaluate_error

        self.visited: list[str] = []
        self.navigate_timeouts: list[float] = []
        self.evaluated: list[tuple[str, Any]] = []
        self.cookie_reads = 0
        self.close_calls = 0

    @property
    def closed(self) -> bool:
        return self.close_calls > 0

    async def navigate(self, url: str, timeout: float) -> None:
        self.visited.append(url)
        self.navigate_timeouts.append(timeout)
        if self.navigate_error is not None:
            raise self.navigate_error

    async def cookies(self) -> list[dict[str, Any]]:
        index = min(self.cookie_reads, len(self.cookie_polls) - 1)
        self.cookie_reads += 1
        return list(self.cookie_polls[index])

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        self.evaluated.append((script, arg))
        if self.evaluate_error is not None:
            raise self.evaluate_error
        return self.evaluate_result

    async def close(self) -> None:
        self.close_calls += 1


class FakeBrowserFactory:
    """Hands out pre-built sessions and remembers every one it created."""

    def __init__(self, build: Callable[[], FakeBrowserSession]) -> None:
        self.build = build
        self.sessions: list[FakeBrowserSession] = []

    async def __call__(self) -> FakeBrowserSession:
        session = self.build()
        self.sessions.append(session)
        return session


@pytest.fixture
def test_settings() -> Settings:
    """Real settings with a short settle window so polling tests stay fast."""
    return Settings(
        BROWSER_SETTLE_TIMEOUT=0.05,
        BROWSER_COOKIE_POLL_INTERVAL=0.01,
        BROWSER_NAVIGATION_TIMEOUT=120.0,
    )


@pytest.fixture
def credential() -> IdentityCredential:
    return IdentityCredential(id=fake.numerify("0001########sp"), secret=fake.password())


@pytest.fixture
def session_tokens_payload() -> dict[str, str]:
    return {"access": fake.sha256(), "account": fake.sha1()}


@pytest.fixture
def sso_cookie(session_tokens_payload: dict[str, str]) -> dict[str, Any]:
    return {
        "name": "efid_tokens",
        "value": encode_sso_cookie(session_tokens_payload),
        "domain": "learn.corporate.ef.com",
        "path": "/",
    }


@pytest.fixture
def levels_payload() -> dict[str, Any]:
    return {
        "levels": [
            {"id": "lvl-1", "courseId": "course-1", "title": "Beginner"},
            {"id": "lvl-2", "courseId": "course-1", "title": "Elementary"},
        ]
    }


@pytest.fixture
def client() -> Generator[TestClient, Any, None]:
    with TestClient(app) as _client:
        yield _client
    app.dependency_overrides = {}


@pytest.fixture
def override_dependency() -> Callable[[Callable[..., Any], Any], None]:
    """Swap a FastAPI dependency for a fixed object; cleared with the client fixture."""

    def _override(dependency: Callable[..., Any], mocked_response: Any) -> None:
        app.dependency_overrides[dependency] = lambda: mocked_response

    return _override


@pytest.fixture
def make_browser_factory() -> Callable[..., FakeBrowserFactory]:
    """Build a FakeBrowserFactory whose sessions share the given script."""

    def _make(**session_kwargs: Any) -> FakeBrowserFactory:
        return FakeBrowserFactory(lambda: FakeBrowserSession(**session_kwargs))

    return _make


@pytest.fixture
def encode_cookie() -> Callable[[Any], str]:
    return encode_sso_cookie
