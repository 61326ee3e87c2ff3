"""Cache adapter interface.

Every backend implements the same five async operations. Values are
arbitrary JSON-compatible data (bytes allowed); ``ttl_ms`` is a lifetime in
milliseconds, and ``None`` means the backend default or no expiry.
"""

from abc import ABC, abstractmethod
from fnmatch import fnmatchcase
from typing import Any


class CacheAdapter(ABC):
    """Abstract interface for cache backends."""

    @abstractmethod
    async def set(self, key: str, value: Any, ttl_ms: int | None = None) -> None:
        """Store a value, replacing any existing entry.

        Args:
            key: Cache key
            value: Value to store
            ttl_ms: Lifetime in milliseconds
        """
        pass

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the stored value, or None when absent or expired."""
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Remove a key. Returns True only if an entry was removed."""
        pass

    @abstractmethod
    async def flush(self) -> None:
        """Remove every entry owned by this adapter."""
        pass

    @abstractmethod
    async def keys(self, pattern: str = "*") -> list[str]:
        """List live keys matching a glob pattern.

        An empty pattern or ``*`` matches every key.
        """
        pass


def matches_pattern(key: str, pattern: str) -> bool:
    """Case-sensitive whole-key glob match; '' and '*' match everything."""
    if pattern in ("", "*"):
        return True
    return fnmatchcase(key, pattern)
