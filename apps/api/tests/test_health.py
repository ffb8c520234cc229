from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from main import app


@pytest.mark.asyncio
async def test_liveness(api_client):
    response = await api_client.get("/health/live")

    assert response.status_code == 200
    assert response.json() == {"alive": True}


@pytest.mark.asyncio
async def test_health_reports_degraded_without_event_bus(api_client):
    app.state.event_bus = None
    with patch("routers.health._check_database", new=AsyncMock(return_value="up")):
        response = await api_client.get("/health")

    data = response.json()
    assert data["database"] == "up"
    assert data["event_bus"] == "disconnected"
    assert data["status"] == "degraded"


@pytest.mark.asyncio
async def test_health_is_healthy_when_dependencies_respond(api_client):
    bus = MagicMock()
    bus.ping = AsyncMock(return_value=True)
    app.state.event_bus = bus
    try:
        with patch("routers.health._check_database", new=AsyncMock(return_value="up")):
            response = await api_client.get("/health")
    finally:
        app.state.event_bus = None

    assert response.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_readiness_fails_when_database_is_down(api_client):
    with patch("routers.health._check_database", new=AsyncMock(return_value="down: refused")):
        response = await api_client.get("/health/ready")

    assert response.status_code == 503
    assert response.json()["ready"] is False
