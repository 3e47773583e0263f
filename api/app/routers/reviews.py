"""Review store change notifications.

POST /api/v1/content/{content_id}/reviews/events -- a review was created,
updated or deleted for this content item. Observers run before the response
is sent, so the next read recomputes the aggregate.
"""

from fastapi import APIRouter

from app.dependencies import CurrentUser, SchemaServiceDep
from app.schemas.rating import ReviewEventAccepted, ReviewEventNotification

router = APIRouter(prefix="/api/v1", tags=["reviews"])


@router.post(
    "/content/{content_id}/reviews/events",
    response_model=ReviewEventAccepted,
    status_code=202,
)
async def notify_review_event(
    content_id: int,
    body: ReviewEventNotification,
    user: CurrentUser,
    service: SchemaServiceDep,
) -> ReviewEventAccepted:
    await service.review_store.notify(content_id, body.event)
    return ReviewEventAccepted(content_id=content_id, event=body.event)
