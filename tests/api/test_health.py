from fastapi.testclient import TestClient

from src.app.api.dependencies import get_settings
from src.app.core.config import Settings


def test_health(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert isinstance(response.json()["port"], int)


def test_health_reports_selected_port(client: TestClient, override_dependency) -> None:
    override_dependency(get_settings, Settings(SERVER_PORT=None, PORT=8080))

    response = client.get("/health")

    assert response.json() == {"status": "ok", "port": 8080}


class TestPortSelection:
    def test_server_port_wins(self) -> None:
        assert Settings(SERVER_PORT=25565, PORT=8080).HTTP_PORT == 25565

    def test_port_fallback(self) -> None:
        assert Settings(SERVER_PORT=None, PORT=8080).HTTP_PORT == 8080

    def test_default_3000(self) -> None:
        assert Settings(SERVER_PORT=None, PORT=None).HTTP_PORT == 3000


def test_cors_allows_any_origin(client: TestClient) -> None:
    response = client.options(
        "/api/login",
        headers={"Origin": "https://app.example.com", "Access-Control-Request-Method": "POST"},
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] in ("*", "https://app.example.com")
