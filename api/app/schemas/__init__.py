"""RatingSchema Pydantic schemas package.

Re-exports the request and response schemas for convenient importing:

    from app.schemas import AggregateRecord, SchemaSettings, ...
"""

from app.schemas.auth import APIKeyCreate, APIKeyResponse
from app.schemas.common import ErrorResponse
from app.schemas.diagnostics import (
    CacheClearResult,
    ConnectionReport,
    DebugInfo,
    SampleReview,
    SchemaPreview,
    SchemaTestReport,
    SchemaTestResult,
    SchemaValidation,
)
from app.schemas.rating import (
    AggregateRecord,
    FormattedRating,
    RatingSummary,
    ReviewEvent,
    ReviewEventAccepted,
    ReviewEventNotification,
)
from app.schemas.settings import SCHEMA_TYPE_OPTIONS, SchemaSettings, SchemaSettingsUpdate

__all__ = [
    # Rating
    "AggregateRecord",
    "FormattedRating",
    "RatingSummary",
    "ReviewEvent",
    "ReviewEventAccepted",
    "ReviewEventNotification",
    # Settings
    "SCHEMA_TYPE_OPTIONS",
    "SchemaSettings",
    "SchemaSettingsUpdate",
    # Diagnostics
    "CacheClearResult",
    "ConnectionReport",
    "DebugInfo",
    "SampleReview",
    "SchemaPreview",
    "SchemaTestReport",
    "SchemaTestResult",
    "SchemaValidation",
    # Auth
    "APIKeyCreate",
    "APIKeyResponse",
    # Common
    "ErrorResponse",
]
