"""Rewarded-ad request and response models."""

from typing import Literal

from pydantic import Field

from brainrot.ratelimit.models import CamelModel


class GenerateAdTokenRequest(CamelModel):
    fingerprint_data: str | None = Field(
        default=None,
        max_length=16_384,
        description="JSON-encoded browser fingerprint components",
    )


class GenerateAdTokenResponse(CamelModel):
    success: Literal[True] = True
    ad_token: str
    expires_in: int
    message: str = "Ad token generated successfully"


class GrantCreditRequest(CamelModel):
    ad_token: str = Field(..., min_length=1, max_length=4096)
    fingerprint_data: str | None = Field(default=None, max_length=16_384)


class GrantCreditResponse(CamelModel):
    success: Literal[True] = True
    remaining: int
    reset_time: int
    message: str = "Credit granted successfully! You can now send 1 more message."
