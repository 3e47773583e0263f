"""Short-lived key/value cache for aggregate records, backed by Redis.

Values are JSON text written with SET ... EX, so every entry carries its own
TTL and expires without a sweeper. A stored JSON ``null`` is a cached
negative result and must not be confused with a missing key: ``get`` returns
the MISS sentinel for the latter.

Key format: rating:{content_id}
"""

import json
from typing import Any

import redis.asyncio as aioredis
import structlog

log = structlog.get_logger()

MISS = object()

# SCAN page size when clearing every aggregate entry
_SCAN_BATCH = 500


class RedisCache:
    def __init__(self, redis_client: aioredis.Redis) -> None:
        self._redis = redis_client

    async def get(self, key: str) -> Any:
        """Return the decoded value, or MISS when the key is absent, expired or unreadable."""
        raw = await self._redis.get(key)
        if raw is None:
            return MISS
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            log.warning("cache_entry_unreadable", key=key)
            return MISS

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        await self._redis.set(key, json.dumps(value), ex=ttl_seconds)

    async def delete(self, key: str) -> None:
        # DEL on a missing key is a no-op, so invalidation is idempotent
        await self._redis.delete(key)

    async def delete_matching(self, pattern: str) -> int:
        """Delete every key matching a glob pattern. Returns the number removed."""
        removed = 0
        batch: list[str] = []
        async for key in self._redis.scan_iter(match=pattern, count=_SCAN_BATCH):
            batch.append(key)
            if len(batch) >= _SCAN_BATCH:
                removed += await self._redis.delete(*batch)
                batch = []
        if batch:
            removed += await self._redis.delete(*batch)
        return removed

    async def ping(self) -> bool:
        return bool(await self._redis.ping())
