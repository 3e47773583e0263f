"""Aggregate rating read endpoints.

GET /api/v1/content/{content_id}/rating        -- aggregate + formatted values
GET /api/v1/content/{content_id}/rating/badge  -- HTML rating badge
"""

from typing import Literal

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import HTMLResponse

from app.dependencies import SchemaServiceDep
from app.schemas.common import ErrorResponse
from app.schemas.rating import FormattedRating, RatingSummary
from app.services.display import DEFAULT_BADGE_CLASS, format_rating, render_badge

router = APIRouter(prefix="/api/v1", tags=["ratings"])


@router.get(
    "/content/{content_id}/rating",
    response_model=RatingSummary,
    responses={404: {"model": ErrorResponse}},
)
async def get_rating(content_id: int, service: SchemaServiceDep) -> RatingSummary:
    record = await service.aggregate(content_id)
    if record is None:
        raise HTTPException(status_code=404, detail="No aggregate review data found")
    return RatingSummary(
        content_id=content_id,
        aggregate=record,
        formatted=FormattedRating(
            percentage=format_rating(record, "percentage"),
            decimal=format_rating(record, "decimal"),
            stars=format_rating(record, "stars"),
        ),
    )


@router.get("/content/{content_id}/rating/badge", response_class=HTMLResponse)
async def get_rating_badge(
    content_id: int,
    service: SchemaServiceDep,
    show: Literal["all", "rating", "count", "stars"] = "all",
    css_class: str = Query(DEFAULT_BADGE_CLASS, max_length=100),
) -> HTMLResponse:
    """Embeddable rating badge for templates and sidebars.

    Returns an empty body (200) when the content has no rating data, so the
    caller can inline the response unconditionally.
    """
    record = await service.aggregate(content_id)
    return HTMLResponse(content=render_badge(record, show=show, css_class=css_class))
