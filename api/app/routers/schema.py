"""Schema markup endpoints for content pages.

GET  /api/v1/content/{content_id}/schema     -- schema.org record as JSON
GET  /api/v1/content/{content_id}/head       -- rendered JSON-LD head block
POST /api/v1/content/{content_id}/seo-schema -- SEO toolkit output filter

These are read by page renderers, so they are unauthenticated and never fail
loudly: missing data is a 404 (JSON) or an empty 204 (head block).
"""

from typing import Any

from fastapi import APIRouter, HTTPException, Response
from fastapi.responses import HTMLResponse

from app.dependencies import RenderCtx, SchemaServiceDep
from app.schemas.common import ErrorResponse

router = APIRouter(prefix="/api/v1", tags=["schema"])


@router.get(
    "/content/{content_id}/schema",
    responses={404: {"model": ErrorResponse}},
)
async def get_content_schema(
    content_id: int,
    service: SchemaServiceDep,
    context: RenderCtx,
) -> dict[str, Any]:
    """Return the standalone schema record for a content item.

    The record shape follows the schema type mapped to the content's type:
    a full entity with a nested aggregateRating, or a bare AggregateRating
    when the type is mapped to "ratings only".
    """
    record = await service.schema(content_id, context)
    if record is None:
        raise HTTPException(status_code=404, detail="No aggregate review data found")
    return record


@router.get(
    "/content/{content_id}/head",
    response_class=HTMLResponse,
    responses={204: {"description": "No markup for this page"}},
)
async def get_head_markup(
    content_id: int,
    service: SchemaServiceDep,
    context: RenderCtx,
) -> Response:
    """Render the JSON-LD block to embed in the page head.

    204 No Content when the page is not eligible, has no qualifying reviews,
    or the SEO toolkit will carry the rating in its own output.
    """
    markup = await service.render_head(content_id, context)
    if markup is None:
        return Response(status_code=204)
    return HTMLResponse(content=markup)


@router.post("/content/{content_id}/seo-schema")
async def filter_seo_schema(
    content_id: int,
    schemas: list[dict[str, Any]],
    service: SchemaServiceDep,
    context: RenderCtx,
) -> list[dict[str, Any]]:
    """Output filter for the SEO toolkit's schema list.

    The toolkit posts the schema entries it is about to print for a page and
    prints whatever comes back. Allow-listed entries gain aggregateRating when
    integration applies to this page; otherwise the list is returned as posted.
    """
    return await service.filter_external(content_id, schemas, context)
