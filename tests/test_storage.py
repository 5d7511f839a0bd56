"""Snapshot store tests with a mocked Redis client."""

import json
from unittest.mock import AsyncMock

import pytest
import redis.asyncio as redis

from app.config import Settings
from app.storage import InMemorySnapshotStore, RedisSnapshotStore, build_snapshot_store


@pytest.fixture
def mock_redis() -> AsyncMock:
    """Mock Redis client."""
    redis_client = AsyncMock(spec=redis.Redis)
    redis_client.get = AsyncMock(return_value=None)
    redis_client.set = AsyncMock(return_value=True)
    redis_client.delete = AsyncMock(return_value=1)
    redis_client.ping = AsyncMock(return_value=True)
    redis_client.aclose = AsyncMock(return_value=None)
    return redis_client


@pytest.mark.asyncio
async def test_redis_load_missing_snapshot(mock_redis: AsyncMock) -> None:
    store = RedisSnapshotStore(mock_redis, "snap")

    assert await store.load() is None
    mock_redis.get.assert_awaited_once_with("snap")


@pytest.mark.asyncio
async def test_redis_save_writes_id_mapping_pairs(mock_redis: AsyncMock) -> None:
    store = RedisSnapshotStore(mock_redis, "snap")

    await store.save([("id1", {"short_code": "abc123", "clicks": []})])

    key, raw = mock_redis.set.await_args.args
    assert key == "snap"
    assert json.loads(raw) == [["id1", {"short_code": "abc123", "clicks": []}]]


@pytest.mark.asyncio
async def test_redis_load_decodes_pairs(mock_redis: AsyncMock) -> None:
    mock_redis.get.return_value = json.dumps([["id1", {"short_code": "abc123"}], ["id2", {"short_code": "xyz"}]])
    store = RedisSnapshotStore(mock_redis, "snap")

    assert await store.load() == [("id1", {"short_code": "abc123"}), ("id2", {"short_code": "xyz"})]


@pytest.mark.asyncio
async def test_redis_load_rejects_non_array(mock_redis: AsyncMock) -> None:
    mock_redis.get.return_value = json.dumps({"id1": {}})
    store = RedisSnapshotStore(mock_redis, "snap")

    with pytest.raises(ValueError, match="JSON array"):
        await store.load()


@pytest.mark.asyncio
async def test_redis_erase_ping_and_close(mock_redis: AsyncMock) -> None:
    store = RedisSnapshotStore(mock_redis, "snap")

    await store.erase()
    assert await store.ping() is True
    await store.close()

    mock_redis.delete.assert_awaited_once_with("snap")
    mock_redis.aclose.assert_awaited_once()


@pytest.mark.asyncio
async def test_in_memory_store_round_trip() -> None:
    store = InMemorySnapshotStore()
    assert await store.load() is None

    await store.save([("a", {"n": 1})])
    assert await store.load() == [("a", {"n": 1})]
    assert store.save_count == 1

    await store.erase()
    assert await store.load() is None


def test_build_snapshot_store_memory_backend() -> None:
    store = build_snapshot_store(Settings(STORAGE_BACKEND="memory"))
    assert isinstance(store, InMemorySnapshotStore)


def test_build_snapshot_store_redis_backend() -> None:
    store = build_snapshot_store(Settings(STORAGE_BACKEND="redis", SNAPSHOT_KEY="custom:key"))
    assert isinstance(store, RedisSnapshotStore)
    assert store.key == "custom:key"
