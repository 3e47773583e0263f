"""Aggregate data fetcher: review count and mean rating per content item.

Lookup order for fetch(content_id):
1. Review store unavailable (resolved at startup) or invalid id -> None
2. Cache hit on rating:{content_id} -> the cached record, or None when a
   negative result was cached
3. Cache miss -> one COUNT/AVG query over approved reviews rated above zero.
   Zero reviews caches a negative result (short TTL) and returns None;
   otherwise the record is cached (longer TTL) and returned.

Design notes:
- Fail-open: store and cache errors are logged and behave like "no data".
  A broken review store must never break page rendering.
- No stampede protection. Concurrent misses for the same id both query;
  the query is idempotent and the TTL short.
- invalidate() is registered as a review store observer, so a review write
  drops the cached aggregate for its content item.
"""

import time
from typing import Optional

import structlog
from pydantic import ValidationError
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError

from app.config import settings
from app.metrics import aggregate_cache_lookups, aggregate_query_duration
from app.schemas.rating import AggregateRecord, ReviewEvent
from app.services.cache import MISS
from app.services.capabilities import Capabilities
from app.services.review_store import ReviewStore

log = structlog.get_logger()


class AggregateFetcher:
    def __init__(
        self,
        store: ReviewStore,
        cache,
        capabilities: Capabilities,
        key_prefix: str = settings.cache_key_prefix,
        ttl_seconds: int = settings.aggregate_cache_ttl_seconds,
        negative_ttl_seconds: int = settings.negative_cache_ttl_seconds,
    ) -> None:
        self._store = store
        self._cache = cache
        self._capabilities = capabilities
        self._key_prefix = key_prefix
        self.ttl_seconds = ttl_seconds
        self.negative_ttl_seconds = negative_ttl_seconds

    def cache_key(self, content_id: int) -> str:
        return f"{self._key_prefix}{content_id}"

    async def fetch(self, content_id: Optional[int]) -> Optional[AggregateRecord]:
        """Return the aggregate for content_id, or None when there is no data."""
        if not self._capabilities.review_store_available:
            return None
        if content_id is None or content_id <= 0:
            return None

        key = self.cache_key(content_id)
        cached = await self._cache_get(key)
        if cached is not MISS:
            if cached is None:
                aggregate_cache_lookups.labels(result="hit").inc()
                return None
            try:
                record = AggregateRecord.model_validate(cached)
            except ValidationError:
                # Unreadable entry (older payload shape): recompute below
                log.warning("aggregate_cache_entry_invalid", content_id=content_id)
            else:
                aggregate_cache_lookups.labels(result="hit").inc()
                return record

        aggregate_cache_lookups.labels(result="miss").inc()

        start = time.monotonic()
        try:
            count, average = await self._store.aggregate(content_id)
        except (SQLAlchemyError, OSError):
            log.warning("aggregate_fetch_failed", content_id=content_id, exc_info=True)
            return None
        duration = time.monotonic() - start
        aggregate_query_duration.observe(duration)
        log.debug(
            "aggregate_query",
            content_id=content_id,
            review_count=count,
            duration_ms=round(duration * 1000, 2),
        )

        if count == 0 or average is None:
            await self._cache_set(key, None, self.negative_ttl_seconds)
            return None

        record = AggregateRecord(review_count=count, average_rating=average)
        await self._cache_set(key, record.model_dump(), self.ttl_seconds)
        return record

    async def invalidate(self, content_id: int, event: Optional[ReviewEvent] = None) -> None:
        """Drop the cached aggregate for one content item. Safe to repeat."""
        try:
            await self._cache.delete(self.cache_key(content_id))
        except (RedisError, OSError):
            log.warning("review_cache_invalidation_failed", content_id=content_id, exc_info=True)
            return
        log.info(
            "review_cache_invalidated",
            content_id=content_id,
            review_event=event.value if event is not None else None,
        )

    async def clear_all(self) -> int:
        """Drop every cached aggregate. Returns the number of entries removed."""
        removed = await self._cache.delete_matching(f"{self._key_prefix}*")
        log.info("review_cache_cleared", removed=removed)
        return removed

    async def _cache_get(self, key: str):
        try:
            return await self._cache.get(key)
        except (RedisError, OSError):
            log.warning("aggregate_cache_unavailable", key=key, exc_info=True)
            return MISS

    async def _cache_set(self, key: str, value, ttl_seconds: int) -> None:
        try:
            await self._cache.set(key, value, ttl_seconds)
        except (RedisError, OSError):
            log.warning("aggregate_cache_unavailable", key=key, exc_info=True)
