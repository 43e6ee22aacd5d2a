"""Basic app health endpoint tests."""

from __future__ import annotations

from fastapi.testclient import TestClient


def test_health_endpoint(client: TestClient) -> None:
    """Health endpoint should return status, version and timing header."""
    response = client.get("/health")
    assert response.status_code == 200
    assert "X-Process-Time-Ms" in response.headers

    payload = response.json()
    assert payload["status"] == "ok"
    assert isinstance(payload["version"], str)


def test_unknown_route_is_not_found(client: TestClient) -> None:
    """Unregistered paths return 404."""
    assert client.get("/communities").status_code == 404
