"""Dual-layer cache adapter.

A fast in-process layer in front of a durable layer. Writes go to both
concurrently and tolerate a single failing layer. Reads try the fast layer
first and promote durable hits into it.
"""

import asyncio
from typing import Any

from brainrot.cache.adapter import CacheAdapter
from brainrot.exceptions import CacheLayerError
from brainrot.observability.logging import get_logger
from brainrot.observability.metrics import CACHE_LAYER_FAILURES, CACHE_PROMOTIONS
from brainrot.utils.time import HOUR_MS, MINUTE_MS

logger = get_logger(__name__)

DEFAULT_MEMORY_TTL_MS = 30 * MINUTE_MS
DEFAULT_PERSISTENT_TTL_MS = 24 * HOUR_MS
RATE_LIMIT_PROMOTION_TTL_MS = 4 * HOUR_MS
RATE_LIMIT_KEY_MARKER = "rate_limit:"


class DualLayerCacheAdapter(CacheAdapter):
    """Composite of a memory layer and a persistent layer.

    An explicit TTL applies to both layers. Without one, each layer gets its
    own default (30 minutes fast, 24 hours durable).
    """

    def __init__(
        self,
        memory: CacheAdapter,
        persistent: CacheAdapter,
        memory_ttl_ms: int = DEFAULT_MEMORY_TTL_MS,
        persistent_ttl_ms: int = DEFAULT_PERSISTENT_TTL_MS,
        rate_limit_promotion_ttl_ms: int = RATE_LIMIT_PROMOTION_TTL_MS,
    ) -> None:
        self._memory = memory
        self._persistent = persistent
        self._memory_ttl_ms = memory_ttl_ms
        self._persistent_ttl_ms = persistent_ttl_ms
        self._rate_limit_promotion_ttl_ms = rate_limit_promotion_ttl_ms

    def _promotion_ttl(self, key: str) -> int:
        # Rate-limit counters get a longer floor in the fast layer
        if RATE_LIMIT_KEY_MARKER in key:
            return max(self._memory_ttl_ms, self._rate_limit_promotion_ttl_ms)
        return self._memory_ttl_ms

    async def set(self, key: str, value: Any, ttl_ms: int | None = None) -> None:
        persistent_result, memory_result = await asyncio.gather(
            self._persistent.set(key, value, ttl_ms or self._persistent_ttl_ms),
            self._memory.set(key, value, ttl_ms or self._memory_ttl_ms),
            return_exceptions=True,
        )

        errors: dict[str, BaseException] = {}
        if isinstance(persistent_result, BaseException):
            errors["Persistent"] = persistent_result
            CACHE_LAYER_FAILURES.labels(layer="persistent", operation="set").inc()
        if isinstance(memory_result, BaseException):
            errors["Memory"] = memory_result
            CACHE_LAYER_FAILURES.labels(layer="memory", operation="set").inc()

        if len(errors) == 2:
            logger.error("cache_set_failed_all_layers", key=key)
            raise CacheLayerError("set", errors)
        for layer, error in errors.items():
            logger.warning("cache_set_layer_failed", key=key, layer=layer, error=str(error))

    async def get(self, key: str) -> Any | None:
        try:
            value = await self._memory.get(key)
            if value is not None:
                return value
        except Exception as e:
            CACHE_LAYER_FAILURES.labels(layer="memory", operation="get").inc()
            logger.warning("cache_memory_get_failed", key=key, error=str(e))

        try:
            value = await self._persistent.get(key)
        except Exception as e:
            CACHE_LAYER_FAILURES.labels(layer="persistent", operation="get").inc()
            logger.warning("cache_persistent_get_failed", key=key, error=str(e))
            return None

        if value is None:
            return None

        try:
            await self._memory.set(key, value, self._promotion_ttl(key))
            CACHE_PROMOTIONS.inc()
        except Exception as e:
            logger.warning("cache_promotion_failed", key=key, error=str(e))

        return value

    async def delete(self, key: str) -> bool:
        results = await asyncio.gather(
            self._persistent.delete(key),
            self._memory.delete(key),
            return_exceptions=True,
        )
        for layer, result in zip(("persistent", "memory"), results, strict=True):
            if isinstance(result, BaseException):
                CACHE_LAYER_FAILURES.labels(layer=layer, operation="delete").inc()
                logger.warning("cache_delete_layer_failed", key=key, layer=layer, error=str(result))
        return any(result is True for result in results)

    async def flush(self) -> None:
        persistent_result, memory_result = await asyncio.gather(
            self._persistent.flush(),
            self._memory.flush(),
            return_exceptions=True,
        )

        errors: dict[str, BaseException] = {}
        if isinstance(persistent_result, BaseException):
            errors["Persistent"] = persistent_result
        if isinstance(memory_result, BaseException):
            errors["Memory"] = memory_result

        if len(errors) == 2:
            raise CacheLayerError("flush", errors)
        for layer, error in errors.items():
            CACHE_LAYER_FAILURES.labels(layer=layer.lower(), operation="flush").inc()
            logger.warning("cache_flush_layer_failed", layer=layer, error=str(error))

    async def keys(self, pattern: str = "*") -> list[str]:
        persistent_keys, memory_keys = await asyncio.gather(
            self._persistent.keys(pattern),
            self._memory.keys(pattern),
            return_exceptions=True,
        )

        merged: dict[str, None] = {}
        for layer, result in (("persistent", persistent_keys), ("memory", memory_keys)):
            if isinstance(result, BaseException):
                CACHE_LAYER_FAILURES.labels(layer=layer, operation="keys").inc()
                logger.warning("cache_keys_layer_failed", layer=layer, error=str(result))
                continue
            for key in result:
                merged[key] = None
        return list(merged)
