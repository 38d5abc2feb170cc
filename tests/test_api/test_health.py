"""Tests for GET /health endpoint."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from dzdoc_ai.api import health
from dzdoc_ai.main import app


async def _get_health():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        return await client.get("/health")


@pytest.fixture
def wired_health():
    firestore = AsyncMock()
    firestore.health_check.return_value = True
    generator = MagicMock()
    generator.provider_names = ["ollama", "claude"]
    health.set_dependencies(firestore, generator)
    yield firestore, generator
    health.set_dependencies(None, None)


class TestHealthEndpoint:
    @pytest.mark.asyncio
    async def test_health_returns_200(self):
        response = await _get_health()

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["version"] == "0.1.0"
        assert "timestamp" in data

    @pytest.mark.asyncio
    async def test_reports_providers(self, wired_health):
        data = (await _get_health()).json()

        assert data["status"] == "healthy"
        assert data["checks"] == {"firestore": "ok", "providers": "ollama,claude"}

    @pytest.mark.asyncio
    async def test_no_provider_is_unhealthy(self, wired_health):
        _, generator = wired_health
        generator.provider_names = []

        data = (await _get_health()).json()

        assert data["status"] == "unhealthy"
        assert data["checks"]["providers"] == "none"

    @pytest.mark.asyncio
    async def test_firestore_failure_degrades(self, wired_health):
        firestore, _ = wired_health
        firestore.health_check.side_effect = RuntimeError("unreachable")

        data = (await _get_health()).json()

        assert data["status"] == "degraded"
        assert data["checks"]["firestore"] == "fail"
