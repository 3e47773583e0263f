"""Pydantic schemas for the admin diagnostic endpoints."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from app.schemas.rating import AggregateRecord


class SampleReview(BaseModel):
    content_id: int
    rating: float
    title: Optional[str] = None


class ConnectionReport(BaseModel):
    """Result of GET /api/v1/admin/connection."""

    review_store_active: bool
    tables_exist: bool
    review_count: int = 0
    sample_data: Optional[SampleReview] = None


class SchemaValidation(BaseModel):
    """Structural check of a generated record; warnings do not make it invalid."""

    valid: bool = True
    warnings: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)


class SchemaPreview(BaseModel):
    content_id: int
    schema_text: str
    validation: SchemaValidation


class SchemaTestResult(BaseModel):
    """Outcome of generating the schema for one content item."""

    content_id: int
    title: str
    content_type: str
    aggregate: Optional[AggregateRecord] = None
    schema_generated: bool = False
    schema_data: Optional[dict[str, Any]] = None
    validation: Optional[SchemaValidation] = None
    errors: list[str] = Field(default_factory=list)


class SchemaTestReport(BaseModel):
    """Result of GET /api/v1/admin/test-report."""

    generated_at: datetime
    version: str
    review_store_active: bool
    tests: list[SchemaTestResult]


class CacheClearResult(BaseModel):
    cleared: int
    message: str = "Cache cleared successfully"


class DebugInfo(BaseModel):
    """Grouped diagnostic facts, one mapping per section."""

    plugin: dict[str, Any]
    review_store: dict[str, Any]
    database: dict[str, Any]
    cache: dict[str, Any]
    settings: dict[str, Any]
