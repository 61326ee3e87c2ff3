"""Process-wide configuration.

    from brainrot.config import get_settings

    limit = get_settings().rate_limit.ip_limit
"""

from functools import lru_cache

from brainrot.config.loader import load_config
from brainrot.config.settings import Settings, set_toml_config
from brainrot.observability.logging import get_logger

logger = get_logger(__name__)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Read the TOML layers once and build the cached Settings.

    Without a config directory the service still starts on model
    defaults plus BRAINROT_* variables.
    """
    try:
        layered = load_config()
    except FileNotFoundError as exc:
        logger.warning("config_defaults_used", reason=str(exc))
        layered = {}
    set_toml_config(layered)
    return Settings()


def reload_settings() -> Settings:
    get_settings.cache_clear()
    return get_settings()


__all__ = ["Settings", "get_settings", "reload_settings"]
