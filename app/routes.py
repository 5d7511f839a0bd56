"""FastAPI route definitions for the URL shortener REST API.

Every handler is a thin translation from HTTP to one ``URLRegistry`` call.
Registry errors propagate to the ``RegistryError`` handler installed in
``app.main``; a missing or expired code is turned into 404 / 410 here.

API Endpoint Overview
=====================
::
    GET    /health
        └─ HealthResponse (200)

    POST   /api/shorten
        ├─ URLCreate (request body)
        └─ MappingResponse (201) or 409/422

    POST   /api/shorten/batch
        ├─ BatchURLCreate (request body)
        └─ BatchCreateResponse (200), one result per item

    GET    /api/urls
        └─ list[MappingResponse] (200), newest first

    DELETE /api/urls
        └─ 204

    DELETE /api/urls/:mapping_id
        └─ 204 or 404

    GET    /api/stats/:short_code
        └─ StatsResponse (200) or 404

    GET    /api/logs
        └─ list[LogEntry] (200), newest first

    DELETE /api/logs
        └─ 204

    GET    /:short_code
        └─ 307 Redirect, 410 if expired, 404 otherwise

Key Behaviours
===============
- The redirect route is registered last so it never shadows the API paths.
- Expired links answer 410 so a client can tell them apart from unknown codes.
- 307 redirects preserve the HTTP method.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from fastapi.responses import RedirectResponse

from app.analytics import summarize_clicks
from app.dependencies import RequestContext, get_recent_logs, get_request_context
from app.enums import HealthStatus
from app.errors import RegistryError
from app.logger import LogEntry, RecentLogHandler
from app.models import DEFAULT_CLICK_SOURCE
from app.schemas import (
    BatchCreateResponse,
    BatchItemResult,
    BatchURLCreate,
    ClickResponse,
    ErrorResponse,
    HealthResponse,
    MappingResponse,
    StatsResponse,
    URLCreate,
)

__all__ = ["router"]

router = APIRouter()


@router.get("/health", response_model=HealthResponse, tags=["health"])
async def health_check(ctx: RequestContext = Depends(get_request_context)) -> HealthResponse:
    storage_status = HealthStatus.HEALTHY
    try:
        if not await ctx.registry.store.ping():
            storage_status = HealthStatus.UNHEALTHY
    except Exception as e:
        ctx.logger.error(f"Storage health check failed: {e}")
        storage_status = HealthStatus.UNHEALTHY

    return HealthResponse(status=storage_status, storage=storage_status, mappings=len(ctx.registry))


@router.post("/api/shorten", response_model=MappingResponse, status_code=201, tags=["urls"])
async def shorten_url(
    payload: URLCreate,
    ctx: RequestContext = Depends(get_request_context),
) -> MappingResponse:
    ctx.add_tag("url_creation")
    ctx.logger.info(
        f"URL shortening requested: {payload.url}",
        extra={"target_url": payload.url, "custom_code": payload.custom_code},
    )

    mapping = await ctx.registry.create(
        payload.url,
        validity_minutes=payload.validity_minutes,
        custom_short_code=payload.custom_code,
    )

    ctx.logger.info(
        f"URL shortened successfully: {mapping.short_code}",
        extra={"short_code": mapping.short_code, "duration_ms": ctx.get_duration()},
    )
    return MappingResponse.from_mapping(mapping, ctx.settings.BASE_URL)


@router.post("/api/shorten/batch", response_model=BatchCreateResponse, tags=["urls"])
async def shorten_urls_batch(
    payload: BatchURLCreate,
    ctx: RequestContext = Depends(get_request_context),
) -> BatchCreateResponse:
    ctx.add_tag("batch_creation")
    ctx.logger.info("Submitting multiple URLs", extra={"count": len(payload.items)})

    results: list[BatchItemResult] = []
    for index, item in enumerate(payload.items):
        try:
            mapping = await ctx.registry.create(
                item.url,
                validity_minutes=item.validity_minutes,
                custom_short_code=item.custom_code,
            )
        except RegistryError as exc:
            results.append(
                BatchItemResult(
                    index=index,
                    error=ErrorResponse(detail=exc.message, error=exc.kind, field=exc.field),
                )
            )
            continue
        results.append(BatchItemResult(index=index, mapping=MappingResponse.from_mapping(mapping, ctx.settings.BASE_URL)))

    created = sum(1 for r in results if r.mapping is not None)
    return BatchCreateResponse(created=created, failed=len(results) - created, results=results)


@router.get("/api/urls", response_model=list[MappingResponse], tags=["urls"])
async def list_urls(ctx: RequestContext = Depends(get_request_context)) -> list[MappingResponse]:
    mappings = await ctx.registry.list_all()
    ctx.logger.info("URLs loaded for statistics", extra={"count": len(mappings)})
    return [MappingResponse.from_mapping(m, ctx.settings.BASE_URL) for m in mappings]


@router.delete("/api/urls", status_code=204, tags=["urls"])
async def clear_urls(ctx: RequestContext = Depends(get_request_context)) -> Response:
    await ctx.registry.clear()
    ctx.logger.warning("All URLs cleared")
    return Response(status_code=204)


@router.delete("/api/urls/{mapping_id}", status_code=204, tags=["urls"])
async def delete_url(mapping_id: str, ctx: RequestContext = Depends(get_request_context)) -> Response:
    if not await ctx.registry.delete(mapping_id):
        raise HTTPException(status_code=404, detail="Short URL not found")
    return Response(status_code=204)


@router.get("/api/stats/{short_code}", response_model=StatsResponse, tags=["urls"])
async def get_stats(short_code: str, ctx: RequestContext = Depends(get_request_context)) -> StatsResponse:
    ctx.logger.info(f"Stats requested for short code: {short_code}")
    mapping = await ctx.registry.find_by_code(short_code)
    if mapping is None:
        ctx.logger.warning(f"Stats not found for short code: {short_code}")
        raise HTTPException(status_code=404, detail="Short URL not found")

    base = MappingResponse.from_mapping(mapping, ctx.settings.BASE_URL)
    return StatsResponse(
        **base.model_dump(),
        clicks=[ClickResponse.from_click(c) for c in mapping.clicks],
        analytics=summarize_clicks(mapping.clicks),
    )


@router.get("/api/logs", response_model=list[LogEntry], tags=["logs"])
async def get_logs(
    limit: int = Query(100, ge=1, le=1000),
    recent: RecentLogHandler = Depends(get_recent_logs),
) -> list[LogEntry]:
    return recent.entries()[:limit]


@router.delete("/api/logs", status_code=204, tags=["logs"])
async def clear_logs(recent: RecentLogHandler = Depends(get_recent_logs)) -> Response:
    recent.clear()
    return Response(status_code=204)


@router.get("/{short_code}", tags=["redirect"])
async def redirect_to_url(
    short_code: str,
    source: str = Query(DEFAULT_CLICK_SOURCE, max_length=200),
    ctx: RequestContext = Depends(get_request_context),
) -> RedirectResponse:
    ctx.add_tag("redirect")
    ctx.logger.info(f"Redirect requested for short code: {short_code}", extra={"short_code": short_code})

    original_url = await ctx.registry.record_access_and_resolve(
        short_code,
        source=source,
        user_agent=ctx.user_agent,
        client_ip=ctx.client_ip,
    )
    if original_url is None:
        existing = await ctx.registry.find_by_code(short_code)
        if existing is not None and existing.is_expired:
            ctx.logger.warning(f"Redirect failed - short code expired: {short_code}")
            raise HTTPException(status_code=410, detail="Short URL has expired")
        ctx.logger.warning(f"Redirect failed - short code not found: {short_code}")
        raise HTTPException(status_code=404, detail="Short URL not found")

    ctx.logger.info(
        f"Redirect successful: {short_code} -> {original_url}",
        extra={"target_url": original_url, "duration_ms": ctx.get_duration()},
    )
    return RedirectResponse(url=original_url, status_code=307)
