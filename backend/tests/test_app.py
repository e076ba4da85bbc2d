"""
Tests for the app-level endpoints and request middleware.
"""

import pytest
from httpx import ASGITransport, AsyncClient

from booknest.core.config import get_settings
from booknest.core.logging import REDACTED, redact_sensitive
from booknest.main import create_app


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["database"] == "connected"
    assert data["cache"]["status"] == "disabled"


@pytest.mark.asyncio
async def test_root(client: AsyncClient):
    response = await client.get("/")
    assert response.status_code == 200
    assert response.json()["docs"] == "/docs"


@pytest.mark.asyncio
async def test_metrics_exposed(client: AsyncClient, test_event, auth_headers):
    await client.post(
        "/api/v1/reservations/",
        json={"event_id": test_event.id, "number_of_seats": 1},
        headers=auth_headers,
    )
    response = await client.get("/metrics")
    assert response.status_code == 200
    assert "booknest_reservation_transitions_total" in response.text


@pytest.mark.asyncio
async def test_request_id_generated(client: AsyncClient):
    response = await client.get("/health")
    assert response.headers["X-Request-ID"]
    assert response.headers["X-Response-Time"].endswith("ms")


@pytest.mark.asyncio
async def test_request_id_propagated(client: AsyncClient):
    response = await client.get("/health", headers={"X-Request-ID": "trace-abc"})
    assert response.headers["X-Request-ID"] == "trace-abc"


@pytest.mark.asyncio
async def test_unknown_route(client: AsyncClient):
    response = await client.get("/api/v1/nowhere")
    assert response.status_code == 404


def test_log_redaction():
    event = redact_sensitive(None, "info", {"event": "login_failed", "email": "a@example.com", "password": "Secret123"})
    assert event["password"] == REDACTED
    assert event["email"] == "a@example.com"


@pytest.mark.asyncio
async def test_create_app_reads_shared_settings(monkeypatch):
    settings = get_settings()
    monkeypatch.setattr(settings, "CORS_ORIGINS", ["https://booknest.example"])
    built = create_app()
    assert built.title == settings.APP_NAME

    preflight = {"Access-Control-Request-Method": "GET"}
    async with AsyncClient(transport=ASGITransport(app=built), base_url="http://test") as ac:
        allowed = await ac.options("/api/v1/events/", headers={**preflight, "Origin": "https://booknest.example"})
        refused = await ac.options("/api/v1/events/", headers={**preflight, "Origin": "https://elsewhere.example"})

    assert allowed.status_code == 200
    assert allowed.headers["access-control-allow-origin"] == "https://booknest.example"
    assert refused.status_code == 400
    assert "access-control-allow-origin" not in refused.headers
