"""Request-scoped dependencies for the API layer.

The registry is built exactly once in the application lifespan and kept on
``app.state``. Handlers reach it through ``get_registry`` so the instance is
always the one the application owns, and tests can swap it with
``app.dependency_overrides``.
"""

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Optional

from fastapi import Depends, Request

from app.config import Settings, get_settings
from app.logger import LOGGER_NAME, RecentLogHandler
from app.registry import URLRegistry

__all__ = [
    "ContextLoggerAdapter",
    "RequestContext",
    "get_registry",
    "get_recent_logs",
    "get_request_context",
]


class ContextLoggerAdapter(logging.LoggerAdapter):
    """Merges request context and per-call ``extra`` into the record's ``data``."""

    def process(self, msg: Any, kwargs: Any) -> tuple[Any, Any]:
        call_extra = kwargs.get("extra") or {}
        kwargs["extra"] = {
            "source": self.extra.get("source", "api"),
            "data": {**self.extra.get("data", {}), **call_extra},
        }
        return msg, kwargs


@dataclass
class RequestContext:
    """Per-request tracking data plus access to the shared registry.

    Attributes:
        registry: The application's single registry instance
        settings: Cached application settings
        request_id: Unique identifier for this request
        user_agent: Client user agent string
        client_ip: Client IP address
        start_time: Request start timestamp
        tags: Request tags for categorization
    """

    registry: URLRegistry
    settings: Settings
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    user_agent: Optional[str] = None
    client_ip: Optional[str] = None
    start_time: float = field(default_factory=lambda: time.time())
    tags: list[str] = field(default_factory=list)

    @property
    def logger(self) -> ContextLoggerAdapter:
        return ContextLoggerAdapter(
            logging.getLogger(LOGGER_NAME),
            {
                "source": "api",
                "data": {
                    "request_id": self.request_id,
                    "client_ip": self.client_ip,
                    "user_agent": self.user_agent,
                    "tags": ",".join(self.tags),
                },
            },
        )

    def add_tag(self, tag: str) -> None:
        if tag not in self.tags:
            self.tags.append(tag)

    def get_duration(self) -> float:
        """Get request duration in milliseconds."""
        return (time.time() - self.start_time) * 1000


def get_registry(request: Request) -> URLRegistry:
    return request.app.state.registry


def get_recent_logs(request: Request) -> RecentLogHandler:
    return request.app.state.recent_logs


async def get_request_context(
    request: Request,
    registry: URLRegistry = Depends(get_registry),
) -> RequestContext:
    client_ip = request.client.host if request.client else None
    return RequestContext(
        registry=registry,
        settings=get_settings(),
        request_id=request.headers.get("x-request-id") or str(uuid.uuid4()),
        user_agent=request.headers.get("user-agent"),
        client_ip=client_ip,
    )
