"""Cache backend configuration models."""

from typing import Literal

from pydantic import BaseModel, Field

CacheBackend = Literal["memory", "filesystem", "redis"]


class CacheConfig(BaseModel):
    """Dual-layer cache configuration.

    The fast layer is always process memory. The durable layer is chosen by
    ``persistent_backend``. Setting ``dual_layer`` to false uses the durable
    backend alone.
    """

    dual_layer: bool = Field(
        default=True,
        description="Front the durable backend with an in-memory layer",
    )
    persistent_backend: CacheBackend = Field(
        default="filesystem",
        description="Durable layer backend",
    )
    memory_ttl_seconds: int = Field(
        default=30 * 60,
        gt=0,
        description="Default fast-layer TTL",
    )
    persistent_ttl_seconds: int = Field(
        default=24 * 60 * 60,
        gt=0,
        description="Default durable-layer TTL",
    )
    rate_limit_promotion_ttl_seconds: int = Field(
        default=4 * 60 * 60,
        gt=0,
        description="Minimum fast-layer TTL for promoted rate_limit: keys",
    )
    directory: str | None = Field(
        default=None,
        description="Filesystem cache directory (defaults to <DATA_DIR>/cache)",
    )
    redis_key_prefix: str = Field(
        default="cache:",
        description="Prefix applied to every Redis key",
    )
