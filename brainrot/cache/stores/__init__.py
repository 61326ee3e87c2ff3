"""Cache adapter implementations."""

from brainrot.cache.stores.filesystem import FilesystemCacheAdapter
from brainrot.cache.stores.inmemory import InMemoryCacheAdapter
from brainrot.cache.stores.redis import RedisCacheAdapter

__all__ = ["FilesystemCacheAdapter", "InMemoryCacheAdapter", "RedisCacheAdapter"]
