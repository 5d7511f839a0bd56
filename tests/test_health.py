"""Health endpoint tests."""

import pytest
from httpx import AsyncClient

from app.enums import HealthStatus


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient) -> None:
    response = await client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == HealthStatus.HEALTHY.value
    assert data["storage"] == HealthStatus.HEALTHY.value
    assert data["mappings"] == 0


@pytest.mark.asyncio
async def test_health_counts_mappings(client: AsyncClient) -> None:
    await client.post("/api/shorten", json={"url": "https://www.google.com"})
    data = (await client.get("/health")).json()
    assert data["mappings"] == 1
