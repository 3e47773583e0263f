"""Administrative diagnostics: schema preview and validation, the per-content
test report, store connectivity, debug facts.

These are thin wrappers over the pipeline for the admin screens. Unlike the
render path they report what went wrong, as text, instead of staying silent.
"""

from datetime import datetime, timezone
from typing import Optional

import structlog
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from app.config import Settings, settings
from app.database import table_exists
from app.schemas.diagnostics import (
    ConnectionReport,
    DebugInfo,
    SampleReview,
    SchemaPreview,
    SchemaTestReport,
    SchemaTestResult,
    SchemaValidation,
)
from app.services.content import ContentSnapshot
from app.services.context import RenderContext
from app.services.pipeline import SchemaService
from app.services.renderer import to_json

log = structlog.get_logger()

REQUIRED_FIELDS = ("@context", "@type", "name", "aggregateRating")
REQUIRED_RATING_FIELDS = ("@type", "ratingValue", "ratingCount")

# Content items sampled by the test report
TEST_REPORT_SAMPLE_SIZE = 5


class PreviewUnavailableError(Exception):
    """Raised when no schema preview can be produced for a content id."""


class InvalidContentIdError(PreviewUnavailableError):
    """The content id is missing or not a positive integer."""


def validate_schema(record: dict) -> SchemaValidation:
    """Check a generated record for the fields search engines require.

    Entity records need @context, @type, name and a nested aggregateRating.
    Ratings-only records carry the rating fields at the top level and the
    name on itemReviewed. A ratingValue outside the 1-100 scale is a warning;
    a ratingCount below 1 is an error.
    """
    result = SchemaValidation()

    if record.get("@type") == "AggregateRating":
        for field in ("@context", "itemReviewed"):
            if record.get(field) is None:
                result.errors.append(f"Missing required field: {field}")
        item = record.get("itemReviewed")
        if isinstance(item, dict) and item.get("name") is None:
            result.errors.append("Missing required field: itemReviewed.name")
        rating = record
    else:
        for field in REQUIRED_FIELDS:
            if record.get(field) is None:
                result.errors.append(f"Missing required field: {field}")
        rating = record.get("aggregateRating")

    if isinstance(rating, dict):
        for field in REQUIRED_RATING_FIELDS:
            if rating.get(field) is None:
                result.errors.append(f"Missing required aggregateRating field: {field}")

        rating_value = rating.get("ratingValue")
        if rating_value is not None:
            try:
                value = float(rating_value)
            except (TypeError, ValueError):
                result.errors.append("ratingValue must be a number")
            else:
                if value < 1 or value > 100:
                    result.warnings.append(
                        "Rating value should be between 1-100 for percentage scale"
                    )

        rating_count = rating.get("ratingCount")
        if isinstance(rating_count, (int, float)) and rating_count < 1:
            result.errors.append("Rating count must be at least 1")

    result.valid = not result.errors
    return result


async def preview_schema(
    service: SchemaService,
    content_id: Optional[int],
    context: RenderContext,
) -> SchemaPreview:
    if content_id is None or content_id <= 0:
        raise InvalidContentIdError("Invalid content ID")
    record = await service.schema(content_id, context)
    if record is None:
        raise PreviewUnavailableError("No aggregate review data found")
    return SchemaPreview(
        content_id=content_id,
        schema_text=to_json(record),
        validation=validate_schema(record),
    )


async def run_schema_test(
    service: SchemaService,
    content: ContentSnapshot,
    context: RenderContext,
) -> SchemaTestResult:
    """Fetch the aggregate and build the schema for one item, recording what failed."""
    result = SchemaTestResult(
        content_id=content.id,
        title=content.title,
        content_type=content.content_type,
    )
    result.aggregate = await service.aggregate(content.id)
    if result.aggregate is None:
        result.errors.append("No aggregate review data found for this content")
        return result

    record = await service.schema(content.id, context)
    if record is None:
        result.errors.append("Schema generation failed despite having aggregate data")
        return result

    result.schema_generated = True
    result.schema_data = record
    result.validation = validate_schema(record)
    return result


async def build_test_report(
    service: SchemaService,
    sample_size: int = TEST_REPORT_SAMPLE_SIZE,
    app_settings: Settings = settings,
) -> SchemaTestReport:
    """Run the schema test over a sample of recently published content."""
    try:
        items = await service.content_repository.sample_published(sample_size)
    except (SQLAlchemyError, OSError):
        log.warning("test_report_sample_failed", exc_info=True)
        items = []

    context = service.new_context()
    tests = [await run_schema_test(service, item, context) for item in items]
    log.info(
        "schema_test_report_generated",
        tested=len(tests),
        generated=sum(1 for test in tests if test.schema_generated),
    )
    return SchemaTestReport(
        generated_at=datetime.now(timezone.utc),
        version=app_settings.app_version,
        review_store_active=service.capabilities.review_store_available,
        tests=tests,
    )


async def _probe_table(db_engine: AsyncEngine, table_name: str) -> bool:
    try:
        return await table_exists(db_engine, table_name)
    except (SQLAlchemyError, OSError):
        log.warning("review_table_probe_failed", table=table_name, exc_info=True)
        return False


async def connection_report(
    service: SchemaService,
    db_engine: AsyncEngine,
    app_settings: Settings = settings,
) -> ConnectionReport:
    """Live check of the review store: table presence, approved count, one sample."""
    report = ConnectionReport(
        review_store_active=service.capabilities.review_store_available,
        tables_exist=await _probe_table(db_engine, app_settings.reviews_table),
    )
    if not report.tables_exist:
        return report

    try:
        _, approved = await service.review_store.review_counts()
        report.review_count = approved
        if approved > 0:
            sample = await service.review_store.sample_rated_review()
            if sample is not None:
                content = await service.content_repository.get(sample.post_id)
                report.sample_data = SampleReview(
                    content_id=sample.post_id,
                    rating=sample.rating,
                    title=content.title if content is not None else None,
                )
    except (SQLAlchemyError, OSError):
        log.warning("review_store_check_failed", exc_info=True)
        report.tables_exist = False
    return report


async def debug_info(
    service: SchemaService,
    db_engine: AsyncEngine,
    app_settings: Settings = settings,
) -> DebugInfo:
    tables_exist = await _probe_table(db_engine, app_settings.reviews_table)

    database: dict = {
        "reviews_table": app_settings.reviews_table,
        "reviews_table_exists": tables_exist,
    }
    if tables_exist:
        try:
            total, approved = await service.review_store.review_counts()
            database["total_reviews"] = total
            database["approved_reviews"] = approved
        except (SQLAlchemyError, OSError):
            log.warning("review_store_check_failed", exc_info=True)

    try:
        cache_reachable = await service.cache.ping()
    except (RedisError, OSError):
        cache_reachable = False

    try:
        schema_settings = (await service.settings_store.load()).model_dump()
    except (SQLAlchemyError, OSError):
        log.warning("schema_settings_unavailable", exc_info=True)
        schema_settings = {}

    return DebugInfo(
        plugin={
            "name": app_settings.app_name,
            "version": app_settings.app_version,
            "site_url": app_settings.site_url,
        },
        review_store={
            "active": service.capabilities.review_store_available,
            "seo_integration_available": service.capabilities.seo_integration_available,
        },
        database=database,
        cache={
            "backend": "redis",
            "reachable": cache_reachable,
            "key_prefix": app_settings.cache_key_prefix,
            "ttl_seconds": service.fetcher.ttl_seconds,
            "negative_ttl_seconds": service.fetcher.negative_ttl_seconds,
        },
        settings=schema_settings,
    )
