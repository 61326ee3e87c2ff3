"""Rate limiting models.

Records and results are camelCase on the wire and in the cache, matching
what the web client and existing cache entries use.
"""

from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from brainrot.ratelimit.fingerprint import ProcessedFingerprint

RateLimitMethod = Literal["ip", "fingerprint", "combined", "user"]
BurstLevel = Literal["none", "low", "medium", "high", "critical"]
BurstWindowName = Literal["short", "medium", "long"]
ResetType = Literal["ip", "user", "fingerprint"]


class CamelModel(BaseModel):
    """Base model serialized with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


@dataclass(frozen=True)
class RequestIdentity:
    """Who is making a request, as far as rate limiting is concerned.

    ``ip`` is the hashed client address. ``fingerprint`` is the processed
    browser fingerprint, when the client sent a usable one.
    """

    ip: str
    user_id: str | None = None
    fingerprint: ProcessedFingerprint | None = None

    @property
    def is_logged_in(self) -> bool:
        return bool(self.user_id)

    @property
    def fingerprint_hash(self) -> str | None:
        return self.fingerprint.fingerprint if self.fingerprint else None


class RateLimitRecord(CamelModel):
    """Stored counter for one identity within one reset window."""

    count: int = Field(default=0, ge=0)
    reset_time: int = Field(description="Epoch ms when the counter resets")
    last_seen: int = Field(description="Epoch ms of the last request")
    confidence: float | None = None
    suspicious_flags: list[str] = Field(default_factory=list)
    fingerprint_history: list[str] = Field(default_factory=list)

    def is_active(self, now: int) -> bool:
        return self.reset_time > now


class BurstRequestCounts(CamelModel):
    short: int = 0
    medium: int = 0
    long: int = 0


class BurstLimitResult(CamelModel):
    """Outcome of a burst check."""

    allowed: bool = True
    burst_level: BurstLevel = "none"
    windows_violated: list[BurstWindowName] = Field(default_factory=list)
    next_allowed_time: int | None = None
    requests_in_windows: BurstRequestCounts = Field(default_factory=BurstRequestCounts)
    suspicious_activity: bool = False


class BurstTrackingData(CamelModel):
    """Stored request timestamps for burst detection."""

    timestamps: list[int] = Field(default_factory=list)
    last_cleanup: int
    suspicious_flags: list[str] = Field(default_factory=list)
    consecutive_violations: int = 0


class RateLimitResult(CamelModel):
    """Rate limit decision for a request."""

    allowed: bool
    limit: int
    remaining: int = Field(ge=0)
    reset_time: int
    requires_auth: bool
    is_logged_in: bool
    method: RateLimitMethod
    confidence: float | None = None
    fingerprint: str | None = Field(
        default=None,
        description="First 8 characters of the fingerprint, for logging",
    )
    suspicious_flags: list[str] | None = None
    burst_limit: BurstLimitResult | None = None


class RateLimitDebugInfo(CamelModel):
    """Rate-limit keys currently in the cache, grouped by dimension."""

    ip_keys: list[str] = Field(default_factory=list)
    user_keys: list[str] = Field(default_factory=list)
    fingerprint_keys: list[str] = Field(default_factory=list)
