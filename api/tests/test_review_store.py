"""Tests for ReviewStore over a real SQLite database (aiosqlite).

Only the review table is created; the other models use PostgreSQL types.
"""

import fakeredis
import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from app.models.base import Base
from app.models.review import Review
from app.schemas.rating import AggregateRecord, ReviewEvent
from app.services.aggregate import AggregateFetcher
from app.services.cache import RedisCache
from app.services.review_store import ReviewStore


@pytest.fixture
async def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'reviews.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(
            lambda sync_conn: Base.metadata.create_all(sync_conn, tables=[Review.__table__])
        )
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def store(session_factory):
    return ReviewStore(session_factory)


@pytest.fixture
async def redis_client():
    client = fakeredis.FakeAsyncRedis(decode_responses=True)
    yield client
    await client.aclose()


@pytest.fixture
def fetcher(store, redis_client, capabilities):
    fetcher = AggregateFetcher(
        store,
        RedisCache(redis_client),
        capabilities,
        key_prefix="rating:",
        ttl_seconds=300,
        negative_ttl_seconds=60,
    )
    store.add_observer(fetcher.invalidate)
    return fetcher


class TestAggregate:
    async def test_count_and_mean(self, store):
        for rating in (80, 90, 100):
            await store.create_review(42, rating)

        assert await store.aggregate(42) == (3, 90.0)
        assert await store.count_approved_rated_reviews(42) == 3
        assert await store.average_rating(42) == 90.0

    async def test_only_approved_rated_reviews_count(self, store):
        await store.create_review(42, 80)
        await store.create_review(42, 20, approved=False)
        await store.create_review(42, 0)
        await store.create_review(43, 10)

        assert await store.aggregate(42) == (1, 80.0)

    async def test_no_reviews(self, store):
        assert await store.aggregate(42) == (0, None)
        assert await store.average_rating(42) is None

    async def test_has_rated_reviews(self, store):
        await store.create_review(42, 0)
        await store.create_review(43, 50, approved=False)
        await store.create_review(44, 50)

        assert not await store.has_rated_reviews(42)
        assert not await store.has_rated_reviews(43)
        assert await store.has_rated_reviews(44)

    async def test_review_counts_and_sample(self, store):
        await store.create_review(42, 0)
        await store.create_review(43, 50, approved=False)
        await store.create_review(44, 70)

        assert await store.review_counts() == (3, 2)
        sample = await store.sample_rated_review()
        assert sample.post_id == 44
        assert sample.rating == 70.0


class TestWrites:
    async def test_update_and_delete(self, store):
        review = await store.create_review(42, 40, approved=False)

        updated = await store.update_review(review.id, rating=60, approved=True)
        assert updated.rating == 60.0
        assert await store.aggregate(42) == (1, 60.0)

        assert await store.delete_review(review.id)
        assert await store.aggregate(42) == (0, None)

    async def test_missing_review(self, store):
        assert await store.update_review(999, rating=50) is None
        assert not await store.delete_review(999)

    async def test_observers_receive_each_event(self, store):
        events = []

        async def _record(content_id, event):
            events.append((content_id, event))

        store.add_observer(_record)
        review = await store.create_review(42, 80)
        await store.update_review(review.id, rating=90)
        await store.delete_review(review.id)
        await store.delete_review(review.id)

        assert events == [
            (42, ReviewEvent.created),
            (42, ReviewEvent.updated),
            (42, ReviewEvent.deleted),
        ]

    async def test_failing_observer_does_not_stop_others(self, store):
        events = []

        async def _broken(content_id, event):
            raise RuntimeError("observer failed")

        async def _record(content_id, event):
            events.append(event)

        store.add_observer(_broken)
        store.add_observer(_record)

        review = await store.create_review(42, 80)

        assert review.id is not None
        assert events == [ReviewEvent.created]


class TestInvalidation:
    async def test_negative_entry_dropped_on_create(self, fetcher, store, redis_client):
        assert await fetcher.fetch(42) is None
        assert await redis_client.get("rating:42") == "null"

        await store.create_review(42, 75)

        assert await redis_client.get("rating:42") is None
        assert await fetcher.fetch(42) == AggregateRecord(review_count=1, average_rating=75.0)

    async def test_update_refreshes_cached_average(self, fetcher, store):
        review = await store.create_review(42, 80)
        await store.create_review(42, 100)
        assert (await fetcher.fetch(42)).average_rating == 90.0

        await store.update_review(review.id, rating=60)

        assert (await fetcher.fetch(42)).average_rating == 80.0

    async def test_delete_of_last_review_clears_aggregate(self, fetcher, store, redis_client):
        review = await store.create_review(42, 80)
        assert (await fetcher.fetch(42)).review_count == 1

        await store.delete_review(review.id)

        assert await redis_client.get("rating:42") is None
        assert await fetcher.fetch(42) is None
        assert await redis_client.get("rating:42") == "null"
