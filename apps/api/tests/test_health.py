"""
Tests for Health Endpoints
==========================

Tests for:
- GET /health
- GET /ready
- GET /live
"""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient):
    """Test health check endpoint."""
    response = await client.get("/health")
    assert response.status_code == 200

    data = response.json()
    assert data["status"] == "healthy"
    assert data["database"] == "healthy"
    assert "version" in data
    assert "timestamp" in data
    assert "environment" in data


@pytest.mark.asyncio
async def test_ready_check(client: AsyncClient):
    """Test readiness probe endpoint."""
    response = await client.get("/ready")
    assert response.status_code == 200
    assert response.json() == {"ready": True, "checks": {"database": True}}


@pytest.mark.asyncio
async def test_live_check(client: AsyncClient):
    """Test liveness probe endpoint."""
    response = await client.get("/live")
    assert response.status_code == 200
    assert response.json()["alive"] is True


@pytest.mark.asyncio
async def test_root_endpoint(client: AsyncClient):
    """Test root endpoint returns API info."""
    response = await client.get("/")
    assert response.status_code == 200

    data = response.json()
    assert data["name"] == "Pitchside API"
    assert "version" in data
    assert "docs" in data
    assert "standings" in data["api"]


@pytest.mark.asyncio
async def test_request_id_header(client: AsyncClient):
    response = await client.get("/live", headers={"X-Request-ID": "abc-123"})
    assert response.headers["X-Request-ID"] == "abc-123"
