"""Pydantic schemas for aggregate ratings.

AggregateRecord is both the cached value (serialized with model_dump_json)
and the payload of the rating read endpoint. It is never built with a zero
review count: "no reviews" is represented by the absence of a record.
"""

import enum
from decimal import ROUND_HALF_UP, Decimal

from pydantic import BaseModel, Field

BEST_RATING = 100
WORST_RATING = 1


def round_rating(value: float, places: int = 1) -> float:
    """Round half away from zero: 76.25 -> 76.3, 4.5 -> 5.0.

    Built-in round() rounds halves to even, which would publish 76.2.
    """
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


class AggregateRecord(BaseModel):
    review_count: int = Field(ge=1)
    # Percentage scale; store values outside [1, 100] are passed through as-is
    average_rating: float
    best_rating: int = BEST_RATING
    worst_rating: int = WORST_RATING


class FormattedRating(BaseModel):
    percentage: str
    decimal: float
    stars: float


class RatingSummary(BaseModel):
    """Response for GET /api/v1/content/{content_id}/rating."""

    content_id: int
    aggregate: AggregateRecord
    formatted: FormattedRating


class ReviewEvent(str, enum.Enum):
    created = "created"
    updated = "updated"
    deleted = "deleted"


class ReviewEventNotification(BaseModel):
    """Change notification posted by the review store."""

    event: ReviewEvent


class ReviewEventAccepted(BaseModel):
    content_id: int
    event: ReviewEvent
    cache_invalidated: bool = True
