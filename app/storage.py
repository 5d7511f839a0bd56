"""Snapshot persistence for the URL registry.

The registry needs only a key-value contract: load the previously saved
snapshot at startup, overwrite the whole snapshot after every mutation, and
erase it on a bulk clear. This module provides that contract and two
implementations.

Flow Diagram — Snapshot Save
============================
::
    ┌─────────────┐
    │ Registry    │
    │ mutation    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ [(id, dict)]│
    │ entries     │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ json.dumps  │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ SET key     │
    │ (Redis)     │
    └─────────────┘

Snapshot Format
===============
A JSON array of ``[id, mapping]`` pairs. Each mapping is the
``Mapping.model_dump(mode="json")`` object, including the full click history.

How to Use
===========
**Step 1 — Build a store**::
    store = RedisSnapshotStore.from_url(settings.REDIS_URL, settings.SNAPSHOT_KEY)

**Step 2 — Hand it to the registry**::
    registry = URLRegistry(store=store, logger=logger)
    await registry.restore()

**Step 3 — Close on shutdown**::
    await store.close()

Key Behaviours
===============
- ``load()`` returns ``None`` when no snapshot has been written yet.
- ``save()`` always replaces the full snapshot; there are no partial writes.
- Stores raise on I/O failure; the registry decides how to recover.

Classes:
    SnapshotStore:  Base class describing the contract.
    RedisSnapshotStore:  Snapshot kept under a single Redis key.
    InMemorySnapshotStore:  Process-local store for tests and local runs.
"""

import json
from typing import Any

import redis.asyncio as redis

from app.config import Settings
from app.enums import StorageBackend

__all__ = [
    "SnapshotEntries",
    "SnapshotStore",
    "RedisSnapshotStore",
    "InMemorySnapshotStore",
    "build_snapshot_store",
]

SnapshotEntries = list[tuple[str, dict[str, Any]]]


def _encode(entries: SnapshotEntries) -> str:
    return json.dumps([[entry_id, payload] for entry_id, payload in entries])


def _decode(raw: str) -> SnapshotEntries:
    data = json.loads(raw)
    if not isinstance(data, list):
        raise ValueError(f"snapshot must be a JSON array, got {type(data).__name__}")
    return [(str(entry_id), payload) for entry_id, payload in data]


class SnapshotStore:
    """Key-value contract the registry persists through."""

    async def load(self) -> SnapshotEntries | None:
        raise NotImplementedError

    async def save(self, entries: SnapshotEntries) -> None:
        raise NotImplementedError

    async def erase(self) -> None:
        raise NotImplementedError

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        return None


class RedisSnapshotStore(SnapshotStore):
    def __init__(self, client: redis.Redis, key: str):
        assert key, "snapshot key must be non-empty"
        self._client = client
        self._key = key

    @classmethod
    def from_url(cls, url: str, key: str) -> "RedisSnapshotStore":
        client = redis.from_url(url, encoding="utf-8", decode_responses=True)
        return cls(client, key)

    @property
    def key(self) -> str:
        return self._key

    async def load(self) -> SnapshotEntries | None:
        raw = await self._client.get(self._key)
        if raw is None:
            return None
        return _decode(raw)

    async def save(self, entries: SnapshotEntries) -> None:
        await self._client.set(self._key, _encode(entries))

    async def erase(self) -> None:
        await self._client.delete(self._key)

    async def ping(self) -> bool:
        return bool(await self._client.ping())

    async def close(self) -> None:
        await self._client.aclose()


class InMemorySnapshotStore(SnapshotStore):
    """Keeps the encoded snapshot in process memory.

    The snapshot is stored as the same JSON text Redis would receive, so a
    registry restored from this store goes through the full decode path.
    """

    def __init__(self, raw: str | None = None):
        self._raw = raw
        self.save_count = 0

    @property
    def raw(self) -> str | None:
        return self._raw

    async def load(self) -> SnapshotEntries | None:
        if self._raw is None:
            return None
        return _decode(self._raw)

    async def save(self, entries: SnapshotEntries) -> None:
        self._raw = _encode(entries)
        self.save_count += 1

    async def erase(self) -> None:
        self._raw = None


def build_snapshot_store(settings: Settings) -> SnapshotStore:
    if settings.STORAGE_BACKEND is StorageBackend.MEMORY:
        return InMemorySnapshotStore()
    return RedisSnapshotStore.from_url(settings.REDIS_URL, settings.SNAPSHOT_KEY)
