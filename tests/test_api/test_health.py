"""Tests for GET /api/health endpoint."""

from unittest.mock import AsyncMock


class TestHealthEndpoint:
    async def test_store_up(self, client):
        response = await client.get("/api/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "services": {"dynamodb": "up"}}

    async def test_store_down(self, client, event_store):
        event_store.healthy = False

        response = await client.get("/api/health")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "unhealthy"
        assert data["services"]["dynamodb"] == "down"

    async def test_store_exception(self, app, client):
        store = AsyncMock()
        store.health_check = AsyncMock(side_effect=ConnectionError("refused"))
        app.state.event_store = store

        response = await client.get("/api/health")

        assert response.status_code == 503
        assert response.json()["services"]["dynamodb"] == "down"

    async def test_store_not_configured(self, app, client):
        app.state.event_store = None

        response = await client.get("/api/health")

        assert response.status_code == 503
        assert response.json()["services"]["dynamodb"] == "down"
