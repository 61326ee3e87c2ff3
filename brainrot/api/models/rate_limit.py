"""Rate-limit status and admin models."""

from typing import Literal

from pydantic import Field

from brainrot.ratelimit.models import CamelModel, RateLimitMethod, ResetType


class RateLimitStatusResponse(CamelModel):
    """Public view of a rate-limit decision; limits stay internal."""

    allowed: bool
    remaining: int
    reset_time: int
    requires_auth: bool
    is_logged_in: bool
    method: RateLimitMethod


class RateLimitKeysResponse(CamelModel):
    ip_keys: list[str]
    user_keys: list[str]
    fingerprint_keys: list[str]
    total_ip_entries: int
    total_user_entries: int
    total_fingerprint_entries: int


class ResetRateLimitRequest(CamelModel):
    type: ResetType
    target: str = Field(..., min_length=1, max_length=512)


class ResetRateLimitResponse(CamelModel):
    success: Literal[True] = True
    message: str
    removed_keys: list[str] = Field(default_factory=list)
