"""Configuration models for each settings section."""

from brainrot.config.models.api import APIConfig
from brainrot.config.models.cache import CacheConfig
from brainrot.config.models.observability import LoggingConfig, ObservabilityConfig
from brainrot.config.models.rate_limit import BurstConfig, BurstWindowConfig, RateLimitConfig
from brainrot.config.models.rewards import RewardsConfig
from brainrot.config.models.tts import TTSConfig

__all__ = [
    "APIConfig",
    "BurstConfig",
    "BurstWindowConfig",
    "CacheConfig",
    "LoggingConfig",
    "ObservabilityConfig",
    "RateLimitConfig",
    "RewardsConfig",
    "TTSConfig",
]
