"""In-memory cache adapter."""

from dataclasses import dataclass
from typing import Any

from brainrot.cache.adapter import CacheAdapter, matches_pattern
from brainrot.utils.time import Clock, now_ms


@dataclass
class CacheEntry:
    """A stored value with its absolute expiry (epoch ms)."""

    value: Any
    expires_at: int | None = None

    def is_expired(self, now: int) -> bool:
        return self.expires_at is not None and now > self.expires_at


class InMemoryCacheAdapter(CacheAdapter):
    """Process-local cache backed by a dict.

    Expiry is lazy: an expired entry is dropped when read, and skipped when
    listing keys. Values are stored by reference.
    """

    def __init__(self, clock: Clock = now_ms) -> None:
        self._entries: dict[str, CacheEntry] = {}
        self._clock = clock

    async def set(self, key: str, value: Any, ttl_ms: int | None = None) -> None:
        expires_at = self._clock() + ttl_ms if ttl_ms else None
        self._entries[key] = CacheEntry(value=value, expires_at=expires_at)

    async def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            del self._entries[key]
            return None
        return entry.value

    async def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    async def flush(self) -> None:
        self._entries.clear()

    async def keys(self, pattern: str = "*") -> list[str]:
        now = self._clock()
        return [
            key
            for key, entry in self._entries.items()
            if not entry.is_expired(now) and matches_pattern(key, pattern)
        ]
