"""Logger setup and the in-process buffer of recent log entries.

Every registry operation logs its outcome with a ``source`` tag and a
``data`` dict passed through ``extra``. Besides the usual stream handler,
the application logger carries a ``RecentLogHandler`` that keeps the most
recent entries in memory so they can be served over HTTP.

How to Use
===========
**Step 1 — Configure once at startup**::
    logger, recent = setup_logger(level="INFO", buffer_size=1000)

**Step 2 — Log with context**::
    logger.info("Click recorded", extra={"source": "URLRegistry", "data": {"short_code": "abc123"}})

**Step 3 — Read back**::
    for entry in recent.entries():
        print(entry.level, entry.message)

Key Behaviours
===============
- Entries are returned newest first.
- The buffer drops the oldest entry once ``buffer_size`` is reached.
- ``setup_logger`` is idempotent; calling it twice does not duplicate handlers.
"""

import datetime
import logging
from collections import deque
from typing import Any

from pydantic import BaseModel

__all__ = ["LOGGER_NAME", "LogEntry", "RecentLogHandler", "setup_logger"]

LOGGER_NAME = "urlshortener"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class LogEntry(BaseModel):
    timestamp: datetime.datetime
    level: str
    message: str
    data: Any = None
    source: str | None = None


class RecentLogHandler(logging.Handler):
    def __init__(self, capacity: int = 1000):
        assert capacity > 0, f"capacity must be positive, got {capacity!r}"
        super().__init__()
        self._entries: deque[LogEntry] = deque(maxlen=capacity)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            entry = LogEntry(
                timestamp=datetime.datetime.fromtimestamp(record.created, tz=datetime.timezone.utc),
                level=record.levelname,
                message=record.getMessage(),
                data=getattr(record, "data", None),
                source=getattr(record, "source", None) or record.name,
            )
        except Exception:
            self.handleError(record)
            return
        self._entries.appendleft(entry)

    def entries(self) -> list[LogEntry]:
        with self.lock:
            return list(self._entries)

    def clear(self) -> None:
        with self.lock:
            self._entries.clear()


def setup_logger(level: str = "INFO", buffer_size: int = 1000) -> tuple[logging.Logger, RecentLogHandler]:
    """Configure the application logger and return it with its recent-entry buffer."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level.upper())

    if not any(type(h) is logging.StreamHandler for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    recent = next((h for h in logger.handlers if isinstance(h, RecentLogHandler)), None)
    if recent is None:
        recent = RecentLogHandler(buffer_size)
        logger.addHandler(recent)

    return logger, recent
