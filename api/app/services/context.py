"""Request-scoped render context.

One RenderContext is created per incoming request and dropped with it. It
memoizes what the pipeline would otherwise look up several times while
rendering one page: the settings row, content snapshots, and the quick "does
this item have any qualifying reviews" probe. It also owns the request's
seo_schema_output extension point, so a merge handler registered while
rendering one request can never leak into another.
"""

from typing import Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError

from app.schemas.settings import SchemaSettings
from app.services.capabilities import Capabilities
from app.services.content import ContentRepository, ContentSnapshot
from app.services.integration import SEO_SCHEMA_OUTPUT, ExtensionPoint
from app.services.review_store import ReviewStore
from app.services.settings_store import SettingsStore

log = structlog.get_logger()


class RenderContext:
    def __init__(
        self,
        settings_store: SettingsStore,
        content_repository: ContentRepository,
        review_store: ReviewStore,
        capabilities: Capabilities,
    ) -> None:
        self._settings_store = settings_store
        self._content_repository = content_repository
        self._review_store = review_store
        self._capabilities = capabilities

        self._settings: Optional[SchemaSettings] = None
        self._content: dict[int, Optional[ContentSnapshot]] = {}
        self._has_reviews: dict[int, bool] = {}
        self.seo_schema_output = ExtensionPoint(SEO_SCHEMA_OUTPUT)

    async def schema_settings(self) -> SchemaSettings:
        if self._settings is None:
            self._settings = await self._settings_store.load()
        return self._settings

    async def content(self, content_id: Optional[int]) -> Optional[ContentSnapshot]:
        if content_id is None or content_id <= 0:
            return None
        if content_id not in self._content:
            self._content[content_id] = await self._content_repository.get(content_id)
        return self._content[content_id]

    async def has_reviews(self, content_id: int) -> bool:
        if not self._capabilities.review_store_available:
            return False
        if content_id not in self._has_reviews:
            try:
                found = await self._review_store.has_rated_reviews(content_id)
            except (SQLAlchemyError, OSError):
                log.warning("review_probe_failed", content_id=content_id, exc_info=True)
                found = False
            self._has_reviews[content_id] = found
        return self._has_reviews[content_id]
