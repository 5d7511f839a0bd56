"""Stats endpoint behavior tests."""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_stats_valid_code(client: AsyncClient) -> None:
    create_resp = await client.post("/api/shorten", json={"url": "https://www.google.com"})
    short_code = create_resp.json()["short_code"]

    response = await client.get(f"/api/stats/{short_code}")
    assert response.status_code == 200
    data = response.json()
    assert data["short_code"] == short_code
    assert data["original_url"] == "https://www.google.com"
    assert data["total_clicks"] == 0
    assert data["clicks"] == []
    assert data["analytics"] == {"by_source": {}, "by_location": {}, "by_hour": {}}
    assert "short_url" in data
    assert "created_at" in data


@pytest.mark.asyncio
async def test_stats_invalid_code(client: AsyncClient) -> None:
    response = await client.get("/api/stats/nonexistent")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_stats_after_clicks(client: AsyncClient) -> None:
    create_resp = await client.post("/api/shorten", json={"url": "https://www.example.com"})
    short_code = create_resp.json()["short_code"]

    for _ in range(4):
        await client.get(f"/{short_code}", follow_redirects=False)
    await client.get(f"/{short_code}?source=email", follow_redirects=False)

    response = await client.get(f"/api/stats/{short_code}")
    assert response.status_code == 200
    data = response.json()
    assert data["total_clicks"] == 5
    assert len(data["clicks"]) == 5
    assert data["analytics"]["by_source"] == {"direct": 4, "email": 1}
    assert data["analytics"]["by_location"] == {"Unknown": 5}
    # FakeClock sits at 12:00 UTC
    assert data["analytics"]["by_hour"] == {"12:00": 5}
