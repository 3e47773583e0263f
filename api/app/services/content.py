"""Read access to the host content layer.

The schema builder works on ContentSnapshot, a detached, immutable copy of the
fields it needs, so that building a schema never touches an ORM session and
can be exercised without a database.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import selectinload
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config import settings
from app.models.content import ContentItem

PUBLISHED = "publish"


@dataclass(frozen=True)
class ContentSnapshot:
    id: int
    content_type: str
    title: str
    url: str
    status: str = PUBLISHED
    excerpt: Optional[str] = None
    thumbnail_url: Optional[str] = None
    published_at: Optional[datetime] = None
    # taxonomy -> term names, in display order
    terms: dict[str, list[str]] = field(default_factory=dict)
    seo_schemas: Optional[list[dict]] = None

    @property
    def is_published(self) -> bool:
        return self.status == PUBLISHED


def build_permalink(slug: str, site_url: str = settings.site_url) -> str:
    return f"{site_url.rstrip('/')}/{slug.strip('/')}/"


def snapshot_from_item(item: ContentItem, site_url: str = settings.site_url) -> ContentSnapshot:
    terms: dict[str, list[str]] = {}
    for term in item.terms:
        terms.setdefault(term.taxonomy, []).append(term.name)

    seo_schemas = item.seo_schemas if isinstance(item.seo_schemas, list) else None

    return ContentSnapshot(
        id=item.id,
        content_type=item.content_type,
        title=item.title,
        url=build_permalink(item.slug, site_url),
        status=item.status,
        excerpt=item.excerpt,
        thumbnail_url=item.thumbnail_url,
        published_at=item.published_at,
        terms=terms,
        seo_schemas=seo_schemas,
    )


class ContentRepository:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        site_url: str = settings.site_url,
    ) -> None:
        self._session_factory = session_factory
        self._site_url = site_url

    async def get(self, content_id: Optional[int]) -> Optional[ContentSnapshot]:
        """Load a content item with its taxonomy terms, or None if it does not exist."""
        if content_id is None or content_id <= 0:
            return None
        async with self._session_factory() as session:
            result = await session.execute(
                select(ContentItem)
                .where(ContentItem.id == content_id)
                .options(selectinload(ContentItem.terms))
            )
            item = result.scalar_one_or_none()
            if item is None:
                return None
            return snapshot_from_item(item, self._site_url)

    async def sample_published(self, limit: int = 5) -> list[ContentSnapshot]:
        """Most recently published items, newest first, for diagnostics reports."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(ContentItem)
                .where(ContentItem.status == PUBLISHED)
                .options(selectinload(ContentItem.terms))
                .order_by(ContentItem.published_at.desc().nulls_last(), ContentItem.id.desc())
                .limit(limit)
            )
            return [snapshot_from_item(item, self._site_url) for item in result.scalars()]
