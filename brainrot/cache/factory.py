"""Build the backend cache from settings."""

from redis.asyncio import Redis

from brainrot.cache.adapter import CacheAdapter
from brainrot.cache.cache import Cache
from brainrot.cache.dual_layer import DualLayerCacheAdapter
from brainrot.cache.stores.filesystem import FilesystemCacheAdapter
from brainrot.cache.stores.inmemory import InMemoryCacheAdapter
from brainrot.cache.stores.redis import RedisCacheAdapter
from brainrot.config.environment import get_cache_dir
from brainrot.config.settings import Settings
from brainrot.observability.logging import get_logger

logger = get_logger(__name__)


def create_persistent_adapter(
    settings: Settings,
    redis: Redis | None = None,
) -> CacheAdapter:
    """Create the durable adapter selected by ``cache.persistent_backend``.

    Raises:
        ValueError: If the redis backend is selected without a client
    """
    config = settings.cache
    backend = config.persistent_backend

    if backend == "redis":
        if redis is None:
            raise ValueError("Redis backend selected but no Redis client provided")
        return RedisCacheAdapter(
            redis,
            key_prefix=config.redis_key_prefix,
            default_ttl_ms=config.persistent_ttl_seconds * 1000,
        )
    if backend == "filesystem":
        return FilesystemCacheAdapter(get_cache_dir(settings))
    return InMemoryCacheAdapter()


def create_cache(settings: Settings, redis: Redis | None = None) -> Cache:
    """Create the application cache.

    With ``cache.dual_layer`` the durable adapter is fronted by a memory
    layer; otherwise the durable adapter is used alone.
    """
    config = settings.cache
    persistent = create_persistent_adapter(settings, redis)

    if not config.dual_layer:
        logger.info("cache_created", backend=config.persistent_backend, dual_layer=False)
        return Cache(persistent)

    adapter = DualLayerCacheAdapter(
        memory=InMemoryCacheAdapter(),
        persistent=persistent,
        memory_ttl_ms=config.memory_ttl_seconds * 1000,
        persistent_ttl_ms=config.persistent_ttl_seconds * 1000,
        rate_limit_promotion_ttl_ms=config.rate_limit_promotion_ttl_seconds * 1000,
    )
    logger.info("cache_created", backend=config.persistent_backend, dual_layer=True)
    return Cache(adapter)
