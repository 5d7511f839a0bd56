"""Settings for the URL registry service, read from the environment or ``.env``.

Settings Groups
===============
::
    Settings
    ├─ service:       APP_NAME, APP_ENV, BASE_URL (prefix for short_url)
    ├─ logging:       LOG_LEVEL, LOG_BUFFER_SIZE (entries kept for /api/logs)
    ├─ persistence:   STORAGE_BACKEND ─┬─ "redis"  → RedisSnapshotStore(REDIS_URL, SNAPSHOT_KEY)
    │                                  └─ "memory" → InMemorySnapshotStore (lost on restart)
    ├─ validity:      DEFAULT_VALIDITY_MINUTES, MIN/MAX bounds checked by the API only
    ├─ code budget:   SHORT_CODE_LENGTH × MAX_CODE_GENERATION_ATTEMPTS draws,
    │                 then one FALLBACK_SHORT_CODE_LENGTH draw
    └─ batch:         MAX_BATCH_SIZE items per /api/shorten/batch

Example::
    STORAGE_BACKEND=memory SHORT_CODE_LENGTH=7 uvicorn app.main:app

``get_settings()`` is cached, so tests that need other values build a
``Settings(...)`` directly and pass it to the registry.
"""

__all__ = ["Settings", "get_settings"]

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from app.enums import StorageBackend


class Settings(BaseSettings):
    APP_NAME: str = "url-shortener"
    APP_ENV: str = "development"
    BASE_URL: str = "http://localhost:8080"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_BUFFER_SIZE: int = 1000

    # Snapshot persistence
    STORAGE_BACKEND: StorageBackend = StorageBackend.REDIS
    REDIS_URL: str = "redis://redis:6379/0"
    SNAPSHOT_KEY: str = "url_registry:snapshot"

    # Validity window (minutes). Bounds are enforced by the HTTP layer only.
    DEFAULT_VALIDITY_MINUTES: int = 30
    MIN_VALIDITY_MINUTES: int = 1
    MAX_VALIDITY_MINUTES: int = 525600

    # Short code generation
    SHORT_CODE_LENGTH: int = 6
    FALLBACK_SHORT_CODE_LENGTH: int = 8
    MAX_CODE_GENERATION_ATTEMPTS: int = 100

    # Batch creation
    MAX_BATCH_SIZE: int = 5

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
