"""Cache facade over a single adapter."""

from typing import Any

from brainrot.cache.adapter import CacheAdapter


class Cache:
    """Thin facade that forwards to an adapter and adds ``has``.

    Services depend on this type rather than on a specific backend.
    """

    def __init__(self, adapter: CacheAdapter) -> None:
        self._adapter = adapter

    @property
    def adapter(self) -> CacheAdapter:
        return self._adapter

    async def set(self, key: str, value: Any, ttl_ms: int | None = None) -> None:
        await self._adapter.set(key, value, ttl_ms)

    async def get(self, key: str) -> Any | None:
        return await self._adapter.get(key)

    async def delete(self, key: str) -> bool:
        return await self._adapter.delete(key)

    async def flush(self) -> None:
        await self._adapter.flush()

    async def keys(self, pattern: str = "*") -> list[str]:
        return await self._adapter.keys(pattern)

    async def has(self, key: str) -> bool:
        """True when a key scan for ``key`` returns anything.

        Glob metacharacters in ``key`` are interpreted as a pattern.
        """
        return len(await self._adapter.keys(key)) > 0
