"""Tests covering security and hardening features."""

from __future__ import annotations

from conftest import build_app, create_user


def test_cors_allows_configured_origin(tmp_path):
    app = build_app(tmp_path, CORS_ORIGINS=["https://client.example"])
    client = app.test_client()

    response = client.get("/health", headers={"Origin": "https://client.example"})

    assert response.status_code == 200
    assert response.headers.get("Access-Control-Allow-Origin") == "https://client.example"
    assert response.headers.get("X-Request-ID")


def test_rate_limit_exceeded_returns_json(tmp_path):
    app = build_app(tmp_path, RATE_LIMIT="2 per minute")
    client = app.test_client()

    client.get("/health")
    client.get("/health")
    response = client.get("/health")

    assert response.status_code == 429
    payload = response.get_json()
    assert payload["error"] == "Too Many Requests"
    assert "request_id" in payload


def test_login_has_stricter_rate_limit(tmp_path):
    app = build_app(tmp_path, AUTH_RATE_LIMIT="2 per minute")
    client = app.test_client()
    body = {"email": "nobody@example.com", "password": "Whatever1!"}

    assert client.post("/auth/login", json=body).status_code == 401
    assert client.post("/auth/login", json=body).status_code == 401
    assert client.post("/auth/login", json=body).status_code == 429


def test_json_error_shape_for_invalid_request(tmp_path):
    app = build_app(tmp_path)
    client = app.test_client()

    response = client.post(
        "/auth/register",
        data="not-json",
        content_type="text/plain",
    )

    assert response.status_code == 400
    payload = response.get_json()
    assert payload["error"] == "Bad Request"
    assert "Request content type" in payload["detail"]
    assert payload["request_id"]


def test_request_id_is_echoed(tmp_path):
    app = build_app(tmp_path)
    client = app.test_client()

    response = client.get("/auth/me", headers={"X-Request-ID": "abc-123"})

    assert response.status_code == 401
    assert response.headers["X-Request-ID"] == "abc-123"


def test_non_admin_cannot_reach_admin_routes(tmp_path):
    app = build_app(tmp_path)
    client = app.test_client()
    create_user(app, "worker@example.com")
    token = client.post(
        "/auth/login", json={"email": "worker@example.com", "password": "Passw0rd!"}
    ).get_json()["access_token"]

    response = client.get(
        "/admin/users", headers={"Authorization": f"Bearer {token}"}
    )

    assert response.status_code == 403
    assert response.get_json()["detail"] == "Admin privileges required."
