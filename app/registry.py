"""URL Registry - Core Business Logic

The registry owns every short-code mapping in the process. It assigns and
validates codes, computes expiry, records clicks and writes the snapshot
after every mutation. It is the sole source of truth and the sole writer to
persisted state.

Architecture Overview
=====================
::
    ┌─────────────────────────────────────────────────────────────┐
    │                       URLRegistry                           │
    │  ┌─────────────────┐  ┌─────────────────┐  ┌──────────────┐ │
    │  │  Code Assignment│  │  Expiry          │  │ Click Ledger │ │
    │  │                 │  │                  │  │              │ │
    │  │ • Custom codes  │  │ • Lazy per read  │  │ • Append-only│ │
    │  │ • 6-char draws  │  │ • Cached flag    │  │ • Geolocator │ │
    │  │ • 8-char valve  │  │ • No sweeper     │  │ • Counters   │ │
    │  └─────────────────┘  └─────────────────┘  └──────────────┘ │
    └─────────────────────────────────────────────────────────────┘
                │                    │                    │
                ▼                    ▼                    ▼
    ┌─────────────────┐  ┌─────────────────┐  ┌─────────────────┐
    │  SnapshotStore  │  │     Logger      │  │   Prometheus    │
    │  (Redis/memory) │  │ (recent buffer) │  │   (counters)    │
    └─────────────────┘  └─────────────────┘  └─────────────────┘

Short Code Assignment
=====================
::
    ┌─────────────┐
    │ custom code?│
    └──────┬──────┘
    YES ┌──┴────────────────┐ NO
        ▼                   ▼
    ┌─────────────┐   ┌─────────────┐
    │ pattern +   │   │ draw 6 chars│◄──┐
    │ uniqueness  │   └──────┬──────┘   │ collision,
    └─────────────┘          ▼          │ < 100 draws
                      ┌─────────────┐   │
                      │   taken?    ├───┘
                      └──────┬──────┘
                             │ 100 collisions
                             ▼
                      ┌─────────────┐
                      │ draw 8 chars│
                      │ (accepted)  │
                      └─────────────┘

Key Behaviours
===============
- Every public operation runs under one ``asyncio.Lock`` that covers the
  in-memory change and the snapshot write.
- Expired mappings are hidden from ``lookup`` but keep their code reserved.
  Deleted mappings free their code.
- A failed snapshot write is logged and counted; the in-memory state stays
  as it is and the caller never sees the failure.
- Callers always receive deep copies; only the registry mutates mappings.

Classes:
    URLRegistry:  The mapping registry.
"""

import asyncio
import datetime
import logging
from collections.abc import Callable
from typing import Any

from prometheus_client import Counter, Gauge

from app.config import Settings, get_settings
from app.enums import RequestStatus
from app.errors import InvalidShortCodeError, InvalidUrlError, RegistryError, ShortCodeTakenError
from app.geolocation import UnknownGeolocator
from app.logger import LOGGER_NAME
from app.models import DEFAULT_CLICK_SOURCE, Click, Mapping
from app.shortcodes import generate_id, generate_short_code, is_valid_short_code, is_valid_url
from app.storage import SnapshotEntries, SnapshotStore

__all__ = ["URLRegistry", "utcnow"]

LOG_SOURCE = "URLRegistry"


# ============================================================================
# PROMETHEUS METRICS
# ============================================================================

REGISTRY_OPERATIONS_TOTAL = Counter(
    "url_registry_operations_total",
    "Registry operations by outcome",
    ["operation", "status"],
)
CLICKS_RECORDED_TOTAL = Counter(
    "url_registry_clicks_recorded_total",
    "Clicks appended to live mappings",
)
PERSISTENCE_FAILURES_TOTAL = Counter(
    "url_registry_persistence_failures_total",
    "Snapshot store calls that raised",
    ["action"],
)
MAPPINGS_GAUGE = Gauge(
    "url_registry_mappings",
    "Mappings currently held by the registry",
)


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class URLRegistry:
    """Single-writer registry of short-code mappings.

    Example:
        >>> registry = URLRegistry(store=InMemorySnapshotStore())
        >>> mapping = await registry.create("https://example.com/a", validity_minutes=1)
        >>> await registry.record_access_and_resolve(mapping.short_code)
        'https://example.com/a'
    """

    def __init__(
        self,
        store: SnapshotStore,
        logger: logging.Logger | None = None,
        *,
        settings: Settings | None = None,
        geolocator: UnknownGeolocator | None = None,
        clock: Callable[[], datetime.datetime] = utcnow,
        code_generator: Callable[[int], str] = generate_short_code,
        id_generator: Callable[[], str] = generate_id,
    ):
        self._store = store
        self._logger = logger or logging.getLogger(LOGGER_NAME)
        self._settings = settings or get_settings()
        self._geolocator = geolocator or UnknownGeolocator()
        self._clock = clock
        self._generate_code = code_generator
        self._generate_id = id_generator
        self._mappings: dict[str, Mapping] = {}
        self._lock = asyncio.Lock()

    @property
    def store(self) -> SnapshotStore:
        return self._store

    def __len__(self) -> int:
        return len(self._mappings)

    # ========================================================================
    # PUBLIC API METHODS
    # ========================================================================

    async def restore(self) -> None:
        """Load the persisted snapshot, starting empty if it is missing or unreadable."""
        async with self._lock:
            try:
                entries = await self._store.load()
                if entries is None:
                    self._log(logging.INFO, "No stored snapshot, starting empty")
                    return
                restored = {entry_id: Mapping.model_validate(payload) for entry_id, payload in entries}
            except Exception as exc:
                PERSISTENCE_FAILURES_TOTAL.labels(action="load").inc()
                self._log(logging.ERROR, "Failed to load from storage", error=str(exc))
                return

            self._mappings = restored
            MAPPINGS_GAUGE.set(len(self._mappings))
            self._log(logging.INFO, "Data loaded from storage", url_count=len(self._mappings))

    async def create(
        self,
        original_url: str,
        validity_minutes: float | None = None,
        custom_short_code: str | None = None,
    ) -> Mapping:
        """Create a mapping and return a copy of it.

        ``validity_minutes`` of ``None`` or ``0`` means the configured default.
        Any other duration is accepted; one beyond the ``datetime`` range is
        clamped to the earliest or latest representable instant.

        Raises:
            InvalidUrlError: ``original_url`` is not an absolute URL.
            InvalidShortCodeError: ``custom_short_code`` is not 1-20 alphanumerics.
            ShortCodeTakenError: ``custom_short_code`` is held by a stored mapping.
        """
        async with self._lock:
            self._log(
                logging.INFO,
                "Creating shortened URL",
                original_url=original_url,
                validity_minutes=validity_minutes,
                custom_short_code=custom_short_code,
            )
            try:
                self._validate_url(original_url)
                short_code = self._assign_short_code(custom_short_code)
            except RegistryError as exc:
                REGISTRY_OPERATIONS_TOTAL.labels(operation="create", status=RequestStatus.VALIDATION_ERROR).inc()
                self._log(logging.WARNING, exc.message, kind=exc.kind.value, field=exc.field)
                raise

            if not validity_minutes:
                validity_minutes = self._settings.DEFAULT_VALIDITY_MINUTES
            now = self._clock()
            mapping = Mapping(
                id=self._generate_id(),
                original_url=original_url,
                short_code=short_code,
                custom_code=custom_short_code or None,
                created_at=now,
                expires_at=self._expiry(now, validity_minutes),
            )
            self._mappings[mapping.id] = mapping
            MAPPINGS_GAUGE.set(len(self._mappings))
            await self._persist("create")

            REGISTRY_OPERATIONS_TOTAL.labels(operation="create", status=RequestStatus.SUCCESS).inc()
            self._log(
                logging.INFO,
                "Shortened URL created successfully",
                id=mapping.id,
                short_code=short_code,
                expires_at=mapping.expires_at.isoformat(),
            )
            return mapping.model_copy(deep=True)

    async def lookup(self, short_code: str) -> Mapping | None:
        """Return the live mapping for ``short_code``, or ``None`` if missing or expired."""
        async with self._lock:
            mapping = await self._find_live(short_code, "lookup")
            if mapping is None:
                return None
            REGISTRY_OPERATIONS_TOTAL.labels(operation="lookup", status=RequestStatus.SUCCESS).inc()
            return mapping.model_copy(deep=True)

    async def record_access_and_resolve(
        self,
        short_code: str,
        source: str = DEFAULT_CLICK_SOURCE,
        user_agent: str | None = None,
        client_ip: str | None = None,
    ) -> str | None:
        """Record one click on a live mapping and return its destination URL.

        Returns ``None`` without recording anything when the code is unknown
        or its mapping has expired.
        """
        async with self._lock:
            mapping = await self._find_live(short_code, "resolve")
            if mapping is None:
                return None

            location = self._geolocator.locate(client_ip)
            click = Click(
                id=self._generate_id(),
                timestamp=self._clock(),
                source=source or DEFAULT_CLICK_SOURCE,
                location=location.country,
                user_agent=user_agent,
            )
            mapping.record_click(click)
            await self._persist("record_click")

            CLICKS_RECORDED_TOTAL.inc()
            REGISTRY_OPERATIONS_TOTAL.labels(operation="resolve", status=RequestStatus.SUCCESS).inc()
            self._log(
                logging.INFO,
                "Click recorded",
                short_code=short_code,
                click_id=click.id,
                total_clicks=mapping.total_clicks,
            )
            return mapping.original_url

    async def list_all(self) -> list[Mapping]:
        """Every mapping, expiry refreshed, most recently created first."""
        async with self._lock:
            now = self._clock()
            for mapping in self._mappings.values():
                mapping.refresh_expiry(now)
            await self._persist("list_all")

            ordered = sorted(self._mappings.values(), key=lambda m: m.created_at, reverse=True)
            REGISTRY_OPERATIONS_TOTAL.labels(operation="list_all", status=RequestStatus.SUCCESS).inc()
            self._log(logging.DEBUG, "Listed mappings", count=len(ordered))
            return [m.model_copy(deep=True) for m in ordered]

    async def find_by_code(self, short_code: str) -> Mapping | None:
        """Return the mapping holding ``short_code`` whether live or expired.

        Unlike ``lookup`` this lets callers tell an expired code apart from
        one that never existed. No click is recorded.
        """
        async with self._lock:
            mapping = self._by_code(short_code)
            if mapping is None:
                REGISTRY_OPERATIONS_TOTAL.labels(operation="find", status=RequestStatus.NOT_FOUND).inc()
                self._log(logging.WARNING, "Short code not found", short_code=short_code)
                return None

            was_expired = mapping.is_expired
            if mapping.refresh_expiry(self._clock()) != was_expired:
                await self._persist("find")
            REGISTRY_OPERATIONS_TOTAL.labels(operation="find", status=RequestStatus.SUCCESS).inc()
            return mapping.model_copy(deep=True)

    async def delete(self, mapping_id: str) -> bool:
        """Remove the mapping with ``mapping_id``; its short code becomes free again."""
        async with self._lock:
            mapping = self._mappings.pop(mapping_id, None)
            if mapping is None:
                REGISTRY_OPERATIONS_TOTAL.labels(operation="delete", status=RequestStatus.NOT_FOUND).inc()
                self._log(logging.WARNING, "Delete requested for unknown id", id=mapping_id)
                return False

            MAPPINGS_GAUGE.set(len(self._mappings))
            await self._persist("delete")
            REGISTRY_OPERATIONS_TOTAL.labels(operation="delete", status=RequestStatus.SUCCESS).inc()
            self._log(logging.INFO, "URL deleted", id=mapping_id, short_code=mapping.short_code)
            return True

    async def clear(self) -> None:
        async with self._lock:
            self._mappings.clear()
            MAPPINGS_GAUGE.set(0)
            try:
                await self._store.erase()
            except Exception as exc:
                PERSISTENCE_FAILURES_TOTAL.labels(action="clear").inc()
                self._log(logging.ERROR, "Failed to erase storage", error=str(exc))
            REGISTRY_OPERATIONS_TOTAL.labels(operation="clear", status=RequestStatus.SUCCESS).inc()
            self._log(logging.INFO, "All data cleared")

    # ========================================================================
    # PRIVATE HELPER METHODS
    # ========================================================================

    def _validate_url(self, original_url: str) -> None:
        if not is_valid_url(original_url):
            raise InvalidUrlError("Invalid URL format", field="original_url")

    def _assign_short_code(self, custom_short_code: str | None) -> str:
        if not custom_short_code:
            return self._generate_unique_short_code()

        if not is_valid_short_code(custom_short_code):
            raise InvalidShortCodeError(
                "Invalid short code format. Use only alphanumeric characters (1-20 chars)",
                field="custom_short_code",
            )
        if self._code_taken(custom_short_code):
            raise ShortCodeTakenError(
                "Short code already exists. Please choose a different one.",
                field="custom_short_code",
            )
        return custom_short_code

    def _expiry(self, now: datetime.datetime, validity_minutes: float) -> datetime.datetime:
        try:
            return now + datetime.timedelta(minutes=validity_minutes)
        except OverflowError:
            bound = datetime.datetime.max if validity_minutes > 0 else datetime.datetime.min
            expires_at = bound.replace(tzinfo=datetime.timezone.utc)
            self._log(
                logging.WARNING,
                "Validity out of range, clamping expiry",
                validity_minutes=validity_minutes,
                expires_at=expires_at.isoformat(),
            )
            return expires_at

    def _generate_unique_short_code(self) -> str:
        for _ in range(self._settings.MAX_CODE_GENERATION_ATTEMPTS):
            code = self._generate_code(self._settings.SHORT_CODE_LENGTH)
            if not self._code_taken(code):
                return code

        # Accepted without a uniqueness check.
        code = self._generate_code(self._settings.FALLBACK_SHORT_CODE_LENGTH)
        self._log(
            logging.WARNING,
            "Short code space congested, using fallback length",
            attempts=self._settings.MAX_CODE_GENERATION_ATTEMPTS,
            short_code=code,
        )
        return code

    def _code_taken(self, short_code: str) -> bool:
        return self._by_code(short_code) is not None

    def _by_code(self, short_code: str) -> Mapping | None:
        return next((m for m in self._mappings.values() if m.short_code == short_code), None)

    async def _find_live(self, short_code: str, operation: str) -> Mapping | None:
        mapping = self._by_code(short_code)
        if mapping is None:
            REGISTRY_OPERATIONS_TOTAL.labels(operation=operation, status=RequestStatus.NOT_FOUND).inc()
            self._log(logging.WARNING, "Short code not found", short_code=short_code)
            return None

        if mapping.refresh_expiry(self._clock()):
            await self._persist(operation)
            REGISTRY_OPERATIONS_TOTAL.labels(operation=operation, status=RequestStatus.EXPIRED).inc()
            self._log(
                logging.WARNING,
                "Attempted to access expired URL",
                short_code=short_code,
                expires_at=mapping.expires_at.isoformat(),
            )
            return None

        return mapping

    def _snapshot(self) -> SnapshotEntries:
        return [(mapping_id, m.model_dump(mode="json")) for mapping_id, m in self._mappings.items()]

    async def _persist(self, action: str) -> None:
        try:
            await self._store.save(self._snapshot())
        except Exception as exc:
            PERSISTENCE_FAILURES_TOTAL.labels(action=action).inc()
            self._log(logging.ERROR, "Failed to save to storage", action=action, error=str(exc))

    def _log(self, level: int, message: str, **data: Any) -> None:
        self._logger.log(level, message, extra={"source": LOG_SOURCE, "data": data})
