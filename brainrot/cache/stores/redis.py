"""Redis cache adapter.

Values are stored as JSON under ``<prefix><key>`` with native ``PX``
expiry, so Redis handles eviction and ``keys`` never sees stale entries.
"""

from typing import Any

from redis.asyncio import Redis

from brainrot.cache import serialization
from brainrot.cache.adapter import CacheAdapter
from brainrot.observability.logging import get_logger

logger = get_logger(__name__)


class RedisCacheAdapter(CacheAdapter):
    """Shared durable cache backed by Redis."""

    def __init__(
        self,
        redis: Redis,
        key_prefix: str = "cache:",
        default_ttl_ms: int | None = None,
        scan_count: int = 500,
    ) -> None:
        """Initialize Redis cache adapter.

        Args:
            redis: Redis client instance
            key_prefix: Prefix for every Redis key owned by this adapter
            default_ttl_ms: TTL applied when a caller passes none
            scan_count: COUNT hint for SCAN iterations
        """
        self._redis = redis
        self._key_prefix = key_prefix
        self._default_ttl_ms = default_ttl_ms
        self._scan_count = scan_count

    def _make_key(self, key: str) -> str:
        return f"{self._key_prefix}{key}"

    def _strip_prefix(self, redis_key: str | bytes) -> str:
        key = redis_key.decode() if isinstance(redis_key, bytes) else redis_key
        return key[len(self._key_prefix):]

    async def set(self, key: str, value: Any, ttl_ms: int | None = None) -> None:
        ttl = ttl_ms or self._default_ttl_ms
        await self._redis.set(
            self._make_key(key),
            serialization.dumps(value),
            px=ttl if ttl else None,
        )

    async def get(self, key: str) -> Any | None:
        raw = await self._redis.get(self._make_key(key))
        if raw is None:
            return None
        try:
            return serialization.loads(raw)
        except ValueError:
            logger.warning("redis_cache_corrupted_value", key=key)
            return None

    async def delete(self, key: str) -> bool:
        removed = await self._redis.delete(self._make_key(key))
        return bool(removed)

    async def flush(self) -> None:
        batch: list[str | bytes] = []
        async for redis_key in self._redis.scan_iter(
            match=f"{self._key_prefix}*", count=self._scan_count
        ):
            batch.append(redis_key)
            if len(batch) >= self._scan_count:
                await self._redis.delete(*batch)
                batch = []
        if batch:
            await self._redis.delete(*batch)

    async def keys(self, pattern: str = "*") -> list[str]:
        match = f"{self._key_prefix}{pattern or '*'}"
        found = {
            self._strip_prefix(redis_key)
            async for redis_key in self._redis.scan_iter(match=match, count=self._scan_count)
        }
        return sorted(found)
