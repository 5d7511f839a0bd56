"""Pydantic schemas for request/response validation in the URL shortener.

This module defines Pydantic models for API input validation and output serialization.
URL syntax and short-code format are deliberately *not* validated here: the
registry owns those checks so that every caller gets the same error kinds in
the same order.

Schema Hierarchy
=================
::
    URLCreate (Input)
    ├─ url: str
    ├─ validity_minutes: int | None (1-525600)
    └─ custom_code: str | None

    BatchURLCreate (Input)
    └─ items: list[URLCreate] (1-5)

    MappingResponse (Output)
    ├─ id, short_code, original_url, short_url
    ├─ custom_code, created_at, expires_at
    └─ is_expired, total_clicks

    StatsResponse (Output)
    ├─ MappingResponse fields
    ├─ clicks: list[ClickResponse]
    └─ analytics: ClickAnalytics

    ErrorResponse (Output)
    ├─ detail: str
    ├─ error: RegistryErrorKind
    └─ field: str | None

How to Use
===========
**Step 1 — Input validation**::
    @router.post("/api/shorten")
    async def shorten_url(payload: URLCreate):
        ...

**Step 2 — Response serialization**::
    return MappingResponse.from_mapping(mapping, settings.BASE_URL)

Key Behaviours
===============
- ``validity_minutes`` bounds are applied here; the registry accepts any duration.
- Blank custom codes are treated as absent.
- All datetime fields are timezone-aware (UTC).

Classes:
    URLCreate:  Input schema for one shortening request.
    BatchURLCreate:  Input schema for several requests at once.
    MappingResponse:  Output schema for a mapping.
    ClickResponse:  Output schema for one click.
    ClickAnalytics:  Per-source, per-location and per-hour click counts.
    StatsResponse:  Output schema for mapping statistics.
    ErrorResponse:  Output schema for registry errors.
    BatchItemResult, BatchCreateResponse:  Output schemas for batch creation.
    HealthResponse:  Output schema for health checks.
"""

import datetime

from pydantic import BaseModel, Field, field_validator

from app.config import get_settings
from app.enums import HealthStatus, RegistryErrorKind
from app.models import Click, Mapping

__all__ = [
    "URLCreate",
    "BatchURLCreate",
    "MappingResponse",
    "ClickResponse",
    "ClickAnalytics",
    "StatsResponse",
    "ErrorResponse",
    "BatchItemResult",
    "BatchCreateResponse",
    "HealthResponse",
]

settings = get_settings()


class URLCreate(BaseModel):
    url: str
    validity_minutes: int | None = Field(
        None,
        ge=settings.MIN_VALIDITY_MINUTES,
        le=settings.MAX_VALIDITY_MINUTES,
        description="Minutes until the short link expires (default 30)",
    )
    custom_code: str | None = Field(None, description="Caller-chosen short code, 1-20 alphanumerics")

    @field_validator("custom_code")
    @classmethod
    def blank_custom_code_is_absent(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        return v or None


class BatchURLCreate(BaseModel):
    items: list[URLCreate] = Field(..., min_length=1, max_length=settings.MAX_BATCH_SIZE)


class MappingResponse(BaseModel):
    id: str
    short_code: str
    original_url: str
    short_url: str
    custom_code: str | None
    created_at: datetime.datetime
    expires_at: datetime.datetime
    is_expired: bool
    total_clicks: int

    @classmethod
    def from_mapping(cls, mapping: Mapping, base_url: str) -> "MappingResponse":
        return cls(
            id=mapping.id,
            short_code=mapping.short_code,
            original_url=mapping.original_url,
            short_url=f"{base_url.rstrip('/')}/{mapping.short_code}",
            custom_code=mapping.custom_code,
            created_at=mapping.created_at,
            expires_at=mapping.expires_at,
            is_expired=mapping.is_expired,
            total_clicks=mapping.total_clicks,
        )


class ClickResponse(BaseModel):
    id: str
    timestamp: datetime.datetime
    source: str
    location: str
    user_agent: str | None

    @classmethod
    def from_click(cls, click: Click) -> "ClickResponse":
        return cls(**click.model_dump())


class ClickAnalytics(BaseModel):
    by_source: dict[str, int] = Field(default_factory=dict)
    by_location: dict[str, int] = Field(default_factory=dict)
    by_hour: dict[str, int] = Field(default_factory=dict)


class StatsResponse(MappingResponse):
    clicks: list[ClickResponse]
    analytics: ClickAnalytics


class ErrorResponse(BaseModel):
    detail: str
    error: RegistryErrorKind
    field: str | None = None


class BatchItemResult(BaseModel):
    index: int
    mapping: MappingResponse | None = None
    error: ErrorResponse | None = None


class BatchCreateResponse(BaseModel):
    created: int
    failed: int
    results: list[BatchItemResult]


class HealthResponse(BaseModel):
    status: HealthStatus
    storage: HealthStatus
    mappings: int
