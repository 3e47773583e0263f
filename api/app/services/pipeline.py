"""SchemaService: the explicitly constructed rating-schema pipeline.

Built once in the application lifespan from the shared resources (session
factory, Redis cache, startup capabilities) and stored on app.state. Routers
receive it through a dependency and open one RenderContext per request.

Head rendering for a content id:
1. Eligibility gate: content exists and is published, has at least one
   qualifying review (request-memoized probe), and its content type is
   enabled in the settings.
2. Fetch the aggregate; no data -> Suppressed.
3. Dispatch (merge into the SEO toolkit, splice into a stored list, or build
   a standalone record).
4. Render Standalone plans to the JSON-LD block.

Every failure on this path is logged and turned into "no output".
"""

from typing import Optional

import structlog
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config import Settings, settings
from app.metrics import schema_renders
from app.schemas.rating import AggregateRecord
from app.services.aggregate import AggregateFetcher
from app.services.capabilities import Capabilities
from app.services.content import ContentRepository
from app.services.context import RenderContext
from app.services.integration import (
    IntegrationDispatcher,
    MergeIntoExternal,
    RenderPlan,
    Standalone,
    Suppressed,
)
from app.services.renderer import render
from app.services.review_store import ReviewStore
from app.services.schema_builder import SchemaBuilder, build_rating_fragment
from app.services.settings_store import SettingsStore

log = structlog.get_logger()

_FAIL_OPEN_ERRORS = (SQLAlchemyError, RedisError, OSError)


class SchemaService:
    def __init__(
        self,
        review_store: ReviewStore,
        cache,
        content_repository: ContentRepository,
        settings_store: SettingsStore,
        capabilities: Capabilities,
        app_settings: Settings = settings,
    ) -> None:
        self.review_store = review_store
        self.cache = cache
        self.content_repository = content_repository
        self.settings_store = settings_store
        self.capabilities = capabilities

        self.fetcher = AggregateFetcher(
            review_store,
            cache,
            capabilities,
            key_prefix=app_settings.cache_key_prefix,
            ttl_seconds=app_settings.aggregate_cache_ttl_seconds,
            negative_ttl_seconds=app_settings.negative_cache_ttl_seconds,
        )
        self.builder = SchemaBuilder(self.fetcher)
        self.dispatcher = IntegrationDispatcher(self.builder, self.fetcher, capabilities)

        # Review writes invalidate the cached aggregate of their content item
        review_store.add_observer(self.fetcher.invalidate)

    @classmethod
    def from_resources(
        cls,
        session_factory: async_sessionmaker[AsyncSession],
        cache,
        capabilities: Capabilities,
        app_settings: Settings = settings,
    ) -> "SchemaService":
        return cls(
            review_store=ReviewStore(session_factory),
            cache=cache,
            content_repository=ContentRepository(session_factory, app_settings.site_url),
            settings_store=SettingsStore(session_factory, app_settings.site_name),
            capabilities=capabilities,
            app_settings=app_settings,
        )

    def new_context(self) -> RenderContext:
        return RenderContext(
            self.settings_store,
            self.content_repository,
            self.review_store,
            self.capabilities,
        )

    async def aggregate(self, content_id: Optional[int]) -> Optional[AggregateRecord]:
        return await self.fetcher.fetch(content_id)

    async def schema(self, content_id: Optional[int], context: RenderContext) -> Optional[dict]:
        """The builder's record for a content item, ignoring integration settings."""
        try:
            return await self.builder.build(content_id, context)
        except _FAIL_OPEN_ERRORS:
            log.warning("schema_build_failed", content_id=content_id, exc_info=True)
            return None

    async def is_eligible(self, content_id: int, context: RenderContext) -> bool:
        content = await context.content(content_id)
        if content is None or not content.is_published:
            return False
        if not await context.has_reviews(content_id):
            return False
        config = await context.schema_settings()
        return config.is_enabled_for(content.content_type)

    async def plan(self, content_id: int, context: RenderContext) -> RenderPlan:
        aggregate = await self.fetcher.fetch(content_id)
        if aggregate is None:
            return Suppressed()
        return await self.dispatcher.dispatch(
            content_id, build_rating_fragment(aggregate), context
        )

    async def render_head(self, content_id: int, context: RenderContext) -> Optional[str]:
        """JSON-LD block for the page head, or None when nothing is emitted."""
        try:
            if not await self.is_eligible(content_id, context):
                schema_renders.labels(outcome="ineligible").inc()
                return None
            plan = await self.plan(content_id, context)
        except _FAIL_OPEN_ERRORS:
            log.warning("schema_render_failed", content_id=content_id, exc_info=True)
            schema_renders.labels(outcome="suppressed").inc()
            return None

        outcome = _plan_outcome(plan)
        schema_renders.labels(outcome=outcome).inc()
        log.debug("schema_render_planned", content_id=content_id, outcome=outcome)
        return render(plan)

    async def filter_external(
        self,
        content_id: int,
        schemas: list,
        context: RenderContext,
    ) -> list:
        """Run the SEO toolkit's output filter for a content item.

        Plans the page first, which registers the merge handler when
        integration applies, then applies the request's extension point to the
        toolkit's schema list. Without a handler the list comes back unchanged.
        """
        try:
            if await self.is_eligible(content_id, context):
                await self.plan(content_id, context)
            return await context.seo_schema_output.apply(schemas, content_id)
        except _FAIL_OPEN_ERRORS:
            log.warning("seo_filter_failed", content_id=content_id, exc_info=True)
            return schemas


def _plan_outcome(plan: RenderPlan) -> str:
    if isinstance(plan, Standalone):
        return "standalone"
    if isinstance(plan, MergeIntoExternal):
        return "merged"
    return "suppressed"
