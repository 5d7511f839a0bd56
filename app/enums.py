"""Shared enums for the URL shortener application.

This module defines all status and state enums used across the codebase.
Using enums instead of string literals provides type safety and prevents typos.
"""

from enum import StrEnum

__all__ = ["HealthStatus", "RequestStatus", "RegistryErrorKind", "StorageBackend"]


class HealthStatus(StrEnum):
    """Health check status values."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class RequestStatus(StrEnum):
    """Outcome labels for registry metrics and logging."""

    SUCCESS = "success"
    VALIDATION_ERROR = "validation_error"
    NOT_FOUND = "not_found"
    EXPIRED = "expired"


class RegistryErrorKind(StrEnum):
    """Every failure a registry caller has to handle."""

    INVALID_URL = "invalid_url"
    INVALID_SHORT_CODE = "invalid_short_code"
    SHORT_CODE_TAKEN = "short_code_taken"
    NOT_FOUND = "not_found"


class StorageBackend(StrEnum):
    """Snapshot store implementations selectable through settings."""

    REDIS = "redis"
    MEMORY = "memory"
