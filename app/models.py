"""Domain models held by the URL registry.

This module defines the two records the registry owns: a ``Mapping`` from a
short code to a destination URL, and the ``Click`` events recorded against it.
Both are Pydantic models so the same classes serve as the in-memory state and
as the snapshot encoding written to the persistence store.

Data Model Layout
=================
::
    Mapping
    ├─ id: str (nanoid, immutable)
    ├─ original_url: str
    ├─ short_code: str (1-20 alphanumeric, unique)
    ├─ custom_code: str | None
    ├─ created_at: datetime (UTC)
    ├─ expires_at: datetime (UTC, created_at + validity)
    ├─ is_expired: bool (cached, recomputed on read)
    ├─ clicks: list[Click] (append-only)
    └─ total_clicks: int (computed, len(clicks))

    Click
    ├─ id: str
    ├─ timestamp: datetime (UTC)
    ├─ source: str ("direct" by default)
    ├─ location: str ("Unknown" without a geolocation provider)
    └─ user_agent: str | None

Key Behaviours
===============
- ``total_clicks`` is derived and cannot be set; it always equals ``len(clicks)``.
- ``is_expired`` is only a cache. ``expired_at(now)`` is the authoritative check.
- Snapshot dumps include ``total_clicks``; it is ignored again on load.

Classes:
    Click:  One recorded access to a live mapping.
    Mapping:  A short code to URL association with its click history.
"""

import datetime

from pydantic import BaseModel, Field, computed_field

__all__ = ["Click", "Mapping", "DEFAULT_CLICK_SOURCE", "UNKNOWN_LOCATION"]

DEFAULT_CLICK_SOURCE = "direct"
UNKNOWN_LOCATION = "Unknown"


class Click(BaseModel):
    id: str
    timestamp: datetime.datetime
    source: str = DEFAULT_CLICK_SOURCE
    location: str = UNKNOWN_LOCATION
    user_agent: str | None = None


class Mapping(BaseModel):
    id: str
    original_url: str
    short_code: str
    custom_code: str | None = None
    created_at: datetime.datetime
    expires_at: datetime.datetime
    is_expired: bool = False
    clicks: list[Click] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_clicks(self) -> int:
        return len(self.clicks)

    def expired_at(self, now: datetime.datetime) -> bool:
        """Return whether the validity window has closed at ``now``."""
        return now > self.expires_at

    def refresh_expiry(self, now: datetime.datetime) -> bool:
        """Recompute the cached ``is_expired`` flag and return it."""
        self.is_expired = self.expired_at(now)
        return self.is_expired

    def record_click(self, click: Click) -> None:
        self.clicks.append(click)

    def __repr__(self) -> str:
        return f"<Mapping(id={self.id}, short_code='{self.short_code}', clicks={self.total_clicks})>"
