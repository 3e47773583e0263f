"""Startup capability resolution.

Whether the review store is reachable and whether the third-party SEO toolkit
is installed are facts about the deployment, not about a request. They are
resolved once in the application lifespan and handed to the services that
need them, instead of being re-probed on every render.
"""

from dataclasses import dataclass

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from app.config import Settings
from app.database import table_exists

log = structlog.get_logger()


@dataclass(frozen=True)
class Capabilities:
    review_store_available: bool
    seo_integration_available: bool


async def resolve_capabilities(db_engine: AsyncEngine, app_settings: Settings) -> Capabilities:
    """Probe the review store table and read the SEO toolkit flag.

    A database that cannot be reached at startup counts as "review store
    unavailable": every render then produces no markup rather than failing.
    """
    try:
        store_available = await table_exists(db_engine, app_settings.reviews_table)
    except (SQLAlchemyError, OSError):
        log.warning("review_store_probe_failed", table=app_settings.reviews_table, exc_info=True)
        store_available = False

    capabilities = Capabilities(
        review_store_available=store_available,
        seo_integration_available=app_settings.seo_integration_available,
    )
    log.info(
        "capabilities_resolved",
        review_store_available=capabilities.review_store_available,
        seo_integration_available=capabilities.seo_integration_available,
    )
    return capabilities
