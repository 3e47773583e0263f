"""Shared fixtures: in-memory stand-ins for Redis, the review store, the content
layer and the settings row, wired into a real SchemaService.
"""

import fnmatch
import json
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Optional

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy.exc import OperationalError

from app.config import settings
from app.schemas.settings import SchemaSettings, SchemaSettingsUpdate
from app.services.cache import MISS
from app.services.capabilities import Capabilities
from app.services.content import ContentSnapshot, build_permalink
from app.services.pipeline import SchemaService


class InMemoryCache:
    """RedisCache double. Values go through JSON, like the real one."""

    def __init__(self) -> None:
        self.values: dict[str, str] = {}
        self.ttls: dict[str, int] = {}
        self.fail = False

    def _check(self) -> None:
        if self.fail:
            raise RedisConnectionError("redis down")

    async def get(self, key):
        self._check()
        if key not in self.values:
            return MISS
        return json.loads(self.values[key])

    async def set(self, key, value, ttl_seconds):
        self._check()
        self.values[key] = json.dumps(value)
        self.ttls[key] = ttl_seconds

    async def delete(self, key):
        self._check()
        self.values.pop(key, None)
        self.ttls.pop(key, None)

    async def delete_matching(self, pattern):
        self._check()
        keys = [key for key in self.values if fnmatch.fnmatchcase(key, pattern)]
        for key in keys:
            await self.delete(key)
        return len(keys)

    async def ping(self):
        self._check()
        return True


class FakeReviewStore:
    """ReviewStore double holding (content_id, rating, approved) rows in a list."""

    def __init__(self) -> None:
        self.reviews: list[SimpleNamespace] = []
        self.aggregate_calls = 0
        self.exists_calls = 0
        self.fail = False
        self._observers = []

    def _check(self) -> None:
        if self.fail:
            raise OperationalError("SELECT 1", {}, Exception("database down"))

    def _qualifying(self, content_id):
        return [
            r for r in self.reviews
            if r.post_id == content_id and r.approved and r.rating > 0
        ]

    def add(self, content_id, *ratings, approved=True):
        for rating in ratings:
            self.reviews.append(
                SimpleNamespace(
                    id=len(self.reviews) + 1,
                    post_id=content_id,
                    rating=float(rating),
                    approved=approved,
                )
            )

    def add_observer(self, observer):
        self._observers.append(observer)

    async def notify(self, content_id, event):
        for observer in self._observers:
            await observer(content_id, event)

    async def aggregate(self, content_id):
        self.aggregate_calls += 1
        self._check()
        rows = self._qualifying(content_id)
        if not rows:
            return 0, None
        return len(rows), sum(r.rating for r in rows) / len(rows)

    async def has_rated_reviews(self, content_id):
        self.exists_calls += 1
        self._check()
        return bool(self._qualifying(content_id))

    async def review_counts(self):
        self._check()
        return len(self.reviews), len([r for r in self.reviews if r.approved])

    async def sample_rated_review(self):
        self._check()
        rated = [r for r in self.reviews if r.approved and r.rating > 0]
        return rated[0] if rated else None


class FakeContentRepository:
    def __init__(self) -> None:
        self.items: dict[int, ContentSnapshot] = {}
        self.get_calls = 0

    def put(self, snapshot: ContentSnapshot) -> ContentSnapshot:
        self.items[snapshot.id] = snapshot
        return snapshot

    async def get(self, content_id):
        self.get_calls += 1
        return self.items.get(content_id)

    async def sample_published(self, limit=5):
        published = [item for item in self.items.values() if item.is_published]
        published.sort(key=lambda item: item.id, reverse=True)
        return published[:limit]


class FakeSettingsStore:
    def __init__(self, current: SchemaSettings) -> None:
        self.current = current
        self.load_calls = 0

    async def load(self) -> SchemaSettings:
        self.load_calls += 1
        return self.current

    async def save(self, update: SchemaSettingsUpdate) -> SchemaSettings:
        changes = update.model_dump(exclude_none=True)
        self.current = self.current.model_copy(update=changes)
        return self.current


def make_content(
    content_id: int,
    content_type: str = "anime",
    title: str = "Cowboy Bebop",
    status: str = "publish",
    excerpt: Optional[str] = None,
    thumbnail_url: Optional[str] = None,
    published_at: Optional[datetime] = datetime(2024, 1, 15, 9, 30, tzinfo=timezone.utc),
    terms: Optional[dict] = None,
    seo_schemas: Optional[list] = None,
) -> ContentSnapshot:
    slug = title.lower().replace(" ", "-")
    return ContentSnapshot(
        id=content_id,
        content_type=content_type,
        title=title,
        url=build_permalink(slug, "https://example.com"),
        status=status,
        excerpt=excerpt,
        thumbnail_url=thumbnail_url,
        published_at=published_at,
        terms=terms or {},
        seo_schemas=seo_schemas,
    )


def make_settings(**overrides) -> SchemaSettings:
    values = {
        "type_mappings": {"anime": "Movie"},
        "organization_name": "Example Reviews",
        "integration_enabled": True,
        "enabled_types": ["post"],
    }
    values.update(overrides)
    return SchemaSettings(**values)


@pytest.fixture
def cache():
    return InMemoryCache()


@pytest.fixture
def review_store():
    return FakeReviewStore()


@pytest.fixture
def content_repository():
    return FakeContentRepository()


@pytest.fixture
def settings_store():
    return FakeSettingsStore(make_settings())


@pytest.fixture
def capabilities():
    return Capabilities(review_store_available=True, seo_integration_available=False)


@pytest.fixture
def service(review_store, cache, content_repository, settings_store, capabilities):
    return SchemaService(
        review_store=review_store,
        cache=cache,
        content_repository=content_repository,
        settings_store=settings_store,
        capabilities=capabilities,
        app_settings=settings,
    )


@pytest.fixture
def context(service):
    return service.new_context()
