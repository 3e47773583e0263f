"""Integration with a third-party SEO toolkit's schema graph.

The dispatcher decides how a content item's rating reaches the page:

- MergeIntoExternal: integration is enabled and the toolkit is installed.
  A merge handler is registered on the request's "seo_schema_output"
  extension point; the toolkit runs it over its own schema list and renders
  the result itself, so nothing is emitted here.
- Standalone(list): integration is enabled, the toolkit is not running, but
  it left a pre-computed schema list on the content item. The rating is
  spliced into that list directly.
- Standalone(record): the schema builder's record.
- Suppressed: none of the above produced anything.

Only entries whose "@type" is in an allow-list receive aggregateRating;
everything else passes through untouched.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Awaitable, Callable, Optional, Union

import structlog

from app.services.aggregate import AggregateFetcher
from app.services.capabilities import Capabilities
from app.services.schema_builder import SchemaBuilder, build_rating_fragment

if TYPE_CHECKING:
    from app.services.context import RenderContext

log = structlog.get_logger()

SEO_SCHEMA_OUTPUT = "seo_schema_output"

# Types the toolkit's output filter may carry a rating on
INTEGRATION_SCHEMA_TYPES = frozenset(
    {"Movie", "TVSeries", "Book", "CreativeWork", "Product", "LocalBusiness"}
)
# Types eligible in a schema list stored on the content item
STORED_SCHEMA_TYPES = frozenset({"Movie", "TVSeries", "Book", "CreativeWork", "Product"})

SchemaFilter = Callable[[list, Optional[int]], Awaitable[list]]


def merge_rating(
    schemas: list,
    fragment: dict,
    allowed_types: frozenset = INTEGRATION_SCHEMA_TYPES,
) -> list:
    """Set aggregateRating on every allow-listed entry.

    Returns a new list with copies of the matching entries; the input list is
    returned as-is when nothing matches.
    """
    merged = []
    matched = False
    for entry in schemas:
        schema_type = entry.get("@type") if isinstance(entry, dict) else None
        if isinstance(schema_type, str) and schema_type in allowed_types:
            entry = {**entry, "aggregateRating": dict(fragment)}
            matched = True
        merged.append(entry)
    return merged if matched else schemas


@dataclass(frozen=True)
class HandlerRegistration:
    extension_point: str
    content_id: int


class ExtensionPoint:
    """A named output filter that holds at most one handler.

    Registering again replaces the previous handler. Without a handler,
    apply() passes the schema list through unchanged.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._handler: Optional[SchemaFilter] = None

    @property
    def has_handler(self) -> bool:
        return self._handler is not None

    def register(self, handler: SchemaFilter, content_id: int) -> HandlerRegistration:
        self._handler = handler
        return HandlerRegistration(extension_point=self.name, content_id=content_id)

    def clear(self) -> None:
        self._handler = None

    async def apply(self, schemas: list, content_id: Optional[int]) -> list:
        if self._handler is None:
            return schemas
        return await self._handler(schemas, content_id)


@dataclass(frozen=True)
class Standalone:
    record: Union[dict, list]


@dataclass(frozen=True)
class MergeIntoExternal:
    registration: HandlerRegistration


@dataclass(frozen=True)
class Suppressed:
    pass


RenderPlan = Union[Standalone, MergeIntoExternal, Suppressed]


class IntegrationDispatcher:
    def __init__(
        self,
        builder: SchemaBuilder,
        fetcher: AggregateFetcher,
        capabilities: Capabilities,
    ) -> None:
        self._builder = builder
        self._fetcher = fetcher
        self._capabilities = capabilities

    async def dispatch(
        self,
        content_id: int,
        fragment: dict,
        context: "RenderContext",
    ) -> RenderPlan:
        config = await context.schema_settings()

        if config.integration_enabled and self._capabilities.seo_integration_available:
            registration = context.seo_schema_output.register(
                self._merge_handler(content_id, fragment), content_id
            )
            log.debug("seo_merge_handler_registered", content_id=content_id)
            return MergeIntoExternal(registration)

        if config.integration_enabled:
            content = await context.content(content_id)
            if content is not None and content.seo_schemas:
                return Standalone(
                    merge_rating(content.seo_schemas, fragment, STORED_SCHEMA_TYPES)
                )

        record = await self._builder.build(content_id, context)
        if record is None:
            return Suppressed()
        return Standalone(record)

    def _merge_handler(self, content_id: int, fragment: dict) -> SchemaFilter:
        async def merge_aggregate_rating(schemas: list, filtered_id: Optional[int]) -> list:
            if not isinstance(schemas, list):
                return schemas
            if filtered_id is None or filtered_id == content_id:
                return merge_rating(schemas, fragment)

            aggregate = await self._fetcher.fetch(filtered_id)
            if aggregate is None:
                return schemas
            return merge_rating(schemas, build_rating_fragment(aggregate))

        return merge_aggregate_rating
