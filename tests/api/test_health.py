"""Tests for health endpoints."""

import pytest
from httpx import ASGITransport, AsyncClient

import src.infrastructure.remote as remote_module
from src.api.main import app
from src.infrastructure.storage.sqlite import close_pool


@pytest.fixture
async def health_client(remote_store, monkeypatch):
    monkeypatch.setattr(remote_module, "get_remote_store", lambda: remote_store)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    await close_pool()


async def test_root_health_check(health_client: AsyncClient):
    """Test root health endpoint."""
    response = await health_client.get("/health")
    assert response.status_code == 200

    data = response.json()
    assert data["status"] == "healthy"
    assert "version" in data


async def test_api_health_check(health_client: AsyncClient):
    response = await health_client.get("/api/health")
    assert response.status_code == 200

    data = response.json()
    assert data["status"] == "healthy"
    assert "uptime_seconds" in data


async def test_db_health(health_client: AsyncClient):
    response = await health_client.get("/api/health/db")

    data = response.json()
    assert data["status"] == "healthy"
    assert data["database"]["name"] == "sqlite"
    assert data["database"]["available"] is True


async def test_full_health(health_client: AsyncClient):
    response = await health_client.get("/api/health/full")

    data = response.json()
    assert data["status"] == "healthy"
    assert data["remote"]["available"] is True


async def test_full_health_degraded_when_remote_down(health_client: AsyncClient, remote_store):
    """Local writes keep working, so an unreachable remote only degrades."""
    remote_store.reachable = False

    response = await health_client.get("/api/health/full")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "degraded"
    assert data["remote"]["error"] == "remote store unreachable"
