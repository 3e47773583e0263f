"""Administrative settings and diagnostics endpoints (admin API key required).

GET    /api/v1/admin/settings                 -- current schema settings
GET    /api/v1/admin/settings/schema-types    -- schema types the form offers
PUT    /api/v1/admin/settings                 -- update schema settings
GET    /api/v1/admin/content/{id}/preview     -- schema preview as JSON text
GET    /api/v1/admin/test-report              -- schema test over recent content
GET    /api/v1/admin/connection               -- review store connectivity test
DELETE /api/v1/admin/cache/{id}               -- drop one cached aggregate
DELETE /api/v1/admin/cache                    -- drop every cached aggregate
GET    /api/v1/admin/debug                    -- grouped debug information
"""

import structlog
from fastapi import APIRouter, HTTPException, Query
from redis.exceptions import RedisError

from app.database import engine
from app.dependencies import RenderCtx, RequireAdmin, SchemaServiceDep
from app.schemas.common import ErrorResponse
from app.schemas.diagnostics import (
    CacheClearResult,
    ConnectionReport,
    DebugInfo,
    SchemaPreview,
    SchemaTestReport,
)
from app.schemas.settings import SCHEMA_TYPE_OPTIONS, SchemaSettings, SchemaSettingsUpdate
from app.services.diagnostics import (
    TEST_REPORT_SAMPLE_SIZE,
    InvalidContentIdError,
    PreviewUnavailableError,
    build_test_report,
    connection_report,
    debug_info,
    preview_schema,
)

log = structlog.get_logger()

router = APIRouter(prefix="/api/v1/admin", tags=["admin"])


@router.get("/settings", response_model=SchemaSettings)
async def get_settings(admin: RequireAdmin, service: SchemaServiceDep) -> SchemaSettings:
    return await service.settings_store.load()


@router.get("/settings/schema-types")
async def get_schema_type_options(admin: RequireAdmin) -> dict[str, str]:
    return SCHEMA_TYPE_OPTIONS


@router.put("/settings", response_model=SchemaSettings)
async def update_settings(
    body: SchemaSettingsUpdate,
    admin: RequireAdmin,
    service: SchemaServiceDep,
) -> SchemaSettings:
    """Save the settings form.

    Text fields are sanitized by the request schema; unknown schema types are
    rejected with 422 before anything is written.
    """
    saved = await service.settings_store.save(body)
    log.info("admin_settings_updated", user_id=str(admin.id))
    return saved


@router.get(
    "/content/{content_id}/preview",
    response_model=SchemaPreview,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def get_schema_preview(
    content_id: int,
    admin: RequireAdmin,
    service: SchemaServiceDep,
    context: RenderCtx,
) -> SchemaPreview:
    try:
        return await preview_schema(service, content_id, context)
    except InvalidContentIdError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PreviewUnavailableError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/test-report", response_model=SchemaTestReport)
async def get_test_report(
    admin: RequireAdmin,
    service: SchemaServiceDep,
    limit: int = Query(TEST_REPORT_SAMPLE_SIZE, ge=1, le=50),
) -> SchemaTestReport:
    """Generate and validate the schema for the most recently published content."""
    return await build_test_report(service, sample_size=limit)


@router.get("/connection", response_model=ConnectionReport)
async def test_connection(admin: RequireAdmin, service: SchemaServiceDep) -> ConnectionReport:
    return await connection_report(service, engine)


@router.delete("/cache/{content_id}", response_model=CacheClearResult)
async def clear_content_cache(
    content_id: int,
    admin: RequireAdmin,
    service: SchemaServiceDep,
) -> CacheClearResult:
    await service.fetcher.invalidate(content_id)
    return CacheClearResult(cleared=1)


@router.delete(
    "/cache",
    response_model=CacheClearResult,
    responses={503: {"model": ErrorResponse}},
)
async def clear_all_caches(admin: RequireAdmin, service: SchemaServiceDep) -> CacheClearResult:
    try:
        removed = await service.fetcher.clear_all()
    except RedisError:
        log.warning("cache_clear_failed", exc_info=True)
        raise HTTPException(status_code=503, detail="Cache unavailable")
    return CacheClearResult(cleared=removed)


@router.get("/debug", response_model=DebugInfo)
async def get_debug_info(admin: RequireAdmin, service: SchemaServiceDep) -> DebugInfo:
    return await debug_info(service, engine)
