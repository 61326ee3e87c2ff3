"""Rate limiting configuration models."""

from pydantic import BaseModel, Field


class BurstWindowConfig(BaseModel):
    """A single sliding burst window."""

    window_seconds: int = Field(gt=0, description="Window length")
    max_requests: int = Field(gt=0, description="Requests allowed in the window")


class BurstConfig(BaseModel):
    """Burst limiter configuration."""

    enabled: bool = Field(default=True, description="Apply burst limits on consume")
    short: BurstWindowConfig = Field(
        default_factory=lambda: BurstWindowConfig(window_seconds=10, max_requests=5),
    )
    medium: BurstWindowConfig = Field(
        default_factory=lambda: BurstWindowConfig(window_seconds=60, max_requests=15),
    )
    long: BurstWindowConfig = Field(
        default_factory=lambda: BurstWindowConfig(window_seconds=300, max_requests=40),
    )
    cleanup_interval_seconds: int = Field(
        default=60,
        gt=0,
        description="Extra TTL kept after the long window",
    )


class RateLimitConfig(BaseModel):
    """Rate limiter configuration."""

    ip_limit: int = Field(default=3, gt=0, description="Anonymous per-IP limit")
    fingerprint_limit: int = Field(
        default=3, gt=0, description="Anonymous per-fingerprint limit"
    )
    user_daily_limit: int = Field(
        default=10, gt=0, description="Authenticated per-user daily limit"
    )
    window_hours: int = Field(default=24, gt=0, description="Counter reset window")
    high_confidence_threshold: float = Field(
        default=0.8,
        ge=0.0,
        le=1.0,
        description="Confidence above which the combined key is used",
    )
    medium_confidence_threshold: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Confidence above which the fingerprint key is used",
    )
    suspicious_flags_threshold: int = Field(
        default=2,
        ge=0,
        description="Flag count at which a client is treated as suspicious",
    )
    debit_bonus_credits: bool = Field(
        default=True,
        description="Spend a bonus credit instead of incrementing the counter",
    )
    bonus_credit_ttl_seconds: int = Field(
        default=24 * 60 * 60,
        gt=0,
        description="Lifetime of a granted bonus credit balance",
    )
    ip_hash_salt: str = Field(
        default="brainrot",
        description="Salt mixed into hashed IP identities",
    )
    burst: BurstConfig = Field(default_factory=BurstConfig)
