"""Values that only ever come from the process environment.

Secrets and the historical feature-flag variables are read here rather
than from TOML.
"""

import os
import tempfile
from pathlib import Path

from brainrot.config.settings import Settings


def rewards_enabled(settings: Settings) -> bool:
    """Whether the rewarded-ad system is on.

    ENABLE_REWARDS, when present, wins over ``rewards.enabled``; only the
    literal "true" (any case) turns it on.
    """
    flag = os.environ.get("ENABLE_REWARDS")
    if flag is not None:
        return flag.strip().lower() == "true"
    return settings.rewards.enabled


def get_ad_token_secret() -> str | None:
    """AD_TOKEN_SECRET, falling back to AUTH_SECRET."""
    return os.environ.get("AD_TOKEN_SECRET") or os.environ.get("AUTH_SECRET") or None


def get_auth_secret() -> str | None:
    """Secret used to verify session bearer tokens."""
    return os.environ.get("AUTH_SECRET") or None


def get_redis_url() -> str:
    return os.environ.get("REDIS_URL", "redis://localhost:6379")


def get_data_dir() -> Path:
    """DATA_DIR, defaulting to ~/.brainrot-factory."""
    data_dir = os.environ.get("DATA_DIR")
    if data_dir:
        return Path(data_dir)
    try:
        return Path.home() / ".brainrot-factory"
    except RuntimeError:
        return Path(tempfile.gettempdir()) / "brainrot-factory"


def get_cache_dir(settings: Settings) -> Path:
    """Filesystem cache directory: ``cache.directory`` or <DATA_DIR>/cache."""
    if settings.cache.directory:
        return Path(settings.cache.directory)
    return get_data_dir() / "cache"
