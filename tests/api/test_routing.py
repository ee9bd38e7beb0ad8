from __future__ import annotations

from fastapi.testclient import TestClient

# ---- 404: undefined routes ----


def test_undefined_route_returns_404(client: TestClient) -> None:
    resp = client.get("/nonexistent")
    assert resp.status_code == 404
    assert resp.json() == {"detail": "Not Found"}


def test_non_integer_credential_id_is_422(client: TestClient) -> None:
    resp = client.get("/v1/credentials/abc")
    assert resp.status_code == 422


# ---- 405: wrong HTTP method on existing routes ----


def test_put_health_returns_405(client: TestClient) -> None:
    resp = client.put("/health", json={"status": "bad"})
    assert resp.status_code == 405


def test_get_revoke_returns_405(client: TestClient) -> None:
    resp = client.get("/v1/credentials/1/revoke")
    assert resp.status_code == 405


def test_delete_credential_returns_405(client: TestClient, admin_headers: dict) -> None:
    resp = client.delete("/v1/credentials/1", headers=admin_headers)
    assert resp.status_code == 405
