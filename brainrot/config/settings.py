"""Top-level Settings model.

Values resolve from, lowest to highest priority: field defaults, the merged
TOML layers, BRAINROT_* environment variables, then constructor keywords.
Nested sections use a double underscore in env names, for example
BRAINROT_REWARDS__MAX_ADS_PER_HOUR=3.
"""

from typing import Any, Literal

from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    InitSettingsSource,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from brainrot.config.models.api import APIConfig
from brainrot.config.models.cache import CacheConfig
from brainrot.config.models.observability import ObservabilityConfig
from brainrot.config.models.rate_limit import RateLimitConfig
from brainrot.config.models.rewards import RewardsConfig
from brainrot.config.models.tts import TTSConfig

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

_loaded_toml: dict[str, Any] = {}


def set_toml_config(config: dict[str, Any]) -> None:
    """Install the merged TOML document read by subsequent Settings() calls."""
    global _loaded_toml
    _loaded_toml = dict(config)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="BRAINROT_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "brainrot"
    debug: bool = False
    log_level: LogLevel = "INFO"

    api: APIConfig = Field(default_factory=APIConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    rewards: RewardsConfig = Field(default_factory=RewardsConfig)
    tts: TTSConfig = Field(default_factory=TTSConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        toml_settings = InitSettingsSource(settings_cls, init_kwargs=dict(_loaded_toml))
        return init_settings, env_settings, toml_settings
