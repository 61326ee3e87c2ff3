"""Rewarded-ad configuration models."""

from pydantic import BaseModel, Field


class RewardsConfig(BaseModel):
    """Rewarded-ad credits and ad token configuration.

    The signing secret is never read from TOML. It comes from the
    AD_TOKEN_SECRET (or AUTH_SECRET) environment variable.
    """

    enabled: bool = Field(
        default=False,
        description="Feature flag; ENABLE_REWARDS overrides it",
    )
    token_expiry_seconds: int = Field(
        default=300,
        gt=0,
        description="Ad token lifetime",
    )
    used_token_ttl_seconds: int = Field(
        default=24 * 60 * 60,
        gt=0,
        description="How long the used and blacklist markers live",
    )
    max_ads_per_hour: int = Field(default=3, gt=0, description="Hourly ad watch quota")
    max_ads_per_day: int = Field(default=10, gt=0, description="Daily ad watch quota")
    credits_per_ad: int = Field(default=1, gt=0, description="Credits granted per ad")
