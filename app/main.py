"""FastAPI application entry point for the URL shortener service.

Application Lifecycle Diagram
===========================
::
    ┌─────────────┐
    │  uvicorn    │
    │  startup    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ lifespan()  │
    │ startup:    │
    │ logger,     │
    │ store,      │
    │ registry    │
    │ .restore()  │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Serve HTTP  │
    │ requests    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ lifespan()  │
    │ shutdown:   │
    │ store.close │
    └─────────────┘

How to Use
===========
**Step 1 — Run with uvicorn**::
    uvicorn app.main:app --host 0.0.0.0 --port 8000 --reload

**Step 2 — Shorten a URL**::
    curl -X POST http://localhost:8000/api/shorten \
         -H "Content-Type: application/json" \
         -d '{"url": "https://example.com", "validity_minutes": 60}'

Key Behaviours
===============
- One ``URLRegistry`` is created per process and kept on ``app.state``.
- ``STORAGE_BACKEND=memory`` runs without Redis; state is lost on restart.
- Registry validation errors become JSON ``ErrorResponse`` bodies.
- Prometheus metrics are exposed at ``/metrics``.
"""

__all__ = ["app"]

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator

from app.config import get_settings
from app.enums import RegistryErrorKind
from app.errors import RegistryError
from app.logger import setup_logger
from app.registry import URLRegistry
from app.routes import router
from app.schemas import ErrorResponse
from app.storage import build_snapshot_store

settings = get_settings()

ERROR_STATUS_CODES = {
    RegistryErrorKind.INVALID_URL: 422,
    RegistryErrorKind.INVALID_SHORT_CODE: 422,
    RegistryErrorKind.SHORT_CODE_TAKEN: 409,
    RegistryErrorKind.NOT_FOUND: 404,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # Startup
    logger, recent_logs = setup_logger(settings.LOG_LEVEL, settings.LOG_BUFFER_SIZE)
    store = build_snapshot_store(settings)
    registry = URLRegistry(store=store, logger=logger, settings=settings)
    await registry.restore()
    app.state.registry = registry
    app.state.recent_logs = recent_logs
    logger.info("URL registry initialized", extra={"source": "app", "data": {"url_count": len(registry)}})
    yield
    # Shutdown
    await store.close()


app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    description="URL shortener with expiring links and click tracking",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RegistryError)
async def registry_error_handler(request: Request, exc: RegistryError) -> JSONResponse:
    body = ErrorResponse(detail=exc.message, error=exc.kind, field=exc.field)
    return JSONResponse(status_code=ERROR_STATUS_CODES[exc.kind], content=body.model_dump(mode="json"))


Instrumentator(
    should_group_status_codes=True,
    should_ignore_untemplated=False,
    should_respect_env_var=False,
).instrument(app).expose(app)

app.include_router(router)
