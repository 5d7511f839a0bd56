"""Shared pytest fixtures for registry and API tests."""

import datetime
import logging
from typing import AsyncGenerator, Generator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.dependencies import get_recent_logs, get_registry
from app.logger import LOGGER_NAME, RecentLogHandler
from app.main import app
from app.registry import URLRegistry
from app.storage import InMemorySnapshotStore


class FakeClock:
    """Callable clock that only moves when a test advances it."""

    def __init__(self, start: datetime.datetime | None = None):
        self.now = start or datetime.datetime(2026, 1, 1, 12, 0, tzinfo=datetime.timezone.utc)

    def __call__(self) -> datetime.datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += datetime.timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemorySnapshotStore:
    return InMemorySnapshotStore()


@pytest.fixture
def recent_logs() -> Generator[RecentLogHandler, None, None]:
    logger = logging.getLogger(LOGGER_NAME)
    handler = RecentLogHandler(capacity=500)
    previous_level = logger.level
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    yield handler
    logger.removeHandler(handler)
    logger.setLevel(previous_level)


@pytest.fixture
def registry(store: InMemorySnapshotStore, clock: FakeClock, recent_logs: RecentLogHandler) -> URLRegistry:
    return URLRegistry(store=store, logger=logging.getLogger(LOGGER_NAME), clock=clock)


@pytest_asyncio.fixture(scope="function")
async def client(registry: URLRegistry, recent_logs: RecentLogHandler) -> AsyncGenerator[AsyncClient, None]:
    app.dependency_overrides[get_registry] = lambda: registry
    app.dependency_overrides[get_recent_logs] = lambda: recent_logs

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
