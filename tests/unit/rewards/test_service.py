"""Unit tests for RewardService.

Ad tokens are real signed JWTs, so the clock here starts at the current
time rather than the fixed test epoch.
"""

from unittest.mock import AsyncMock

import pytest

from brainrot.cache.cache import Cache
from brainrot.cache.keys import bonus_credits_key
from brainrot.cache.stores.inmemory import InMemoryCacheAdapter
from brainrot.config.models.rate_limit import RateLimitConfig
from brainrot.exceptions import (
    AdLimitExceededError,
    CreditGrantError,
    InvalidAdTokenError,
    RewardsDisabledError,
)
from brainrot.ratelimit.fingerprint import ProcessedFingerprint
from brainrot.ratelimit.limiter import RateLimiter
from brainrot.ratelimit.models import RequestIdentity
from brainrot.rewards.ad_limits import AdWatchLimiter
from brainrot.rewards.service import RewardService
from brainrot.tokens.ad_token import AdTokenService
from brainrot.utils.time import DAY_MS, ManualClock

SECRET = "test-ad-secret"


def _identity(user_id: str | None = None, fingerprint: str = "fp0123456789abcd") -> RequestIdentity:
    return RequestIdentity(
        ip="iphash",
        user_id=user_id,
        fingerprint=ProcessedFingerprint(
            fingerprint=fingerprint, confidence=0.9, entropy=4.0, suspicious_flags=[]
        ),
    )


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def cache(clock: ManualClock) -> Cache:
    return Cache(InMemoryCacheAdapter(clock=clock))


@pytest.fixture
def rate_limiter(cache, clock) -> RateLimiter:
    return RateLimiter(cache, RateLimitConfig(), clock=clock)


def _service(cache, clock, rate_limiter, enabled: bool = True, credits_per_ad: int = 1) -> RewardService:
    return RewardService(
        AdTokenService(cache, SECRET, enabled=enabled, clock=clock),
        AdWatchLimiter(cache, max_per_hour=3, max_per_day=10),
        rate_limiter,
        credits_per_ad=credits_per_ad,
        clock=clock,
    )


@pytest.fixture
def service(cache, clock, rate_limiter) -> RewardService:
    return _service(cache, clock, rate_limiter)


class TestGenerateToken:
    async def test_issues_token_for_fingerprint(self, service) -> None:
        issued = await service.generate_token(_identity())
        claims = AdTokenService.decode_ad_token_unsafe(issued.token)
        assert claims["fingerprint"] == "fp0123456789abcd"
        assert issued.expires_in == 300

    async def test_disabled(self, cache, clock, rate_limiter) -> None:
        service = _service(cache, clock, rate_limiter, enabled=False)
        assert service.enabled is False
        with pytest.raises(RewardsDisabledError):
            await service.generate_token(_identity())


class TestGrantCredit:
    """Tests for redeeming ad tokens."""

    async def test_grant_adds_bonus_credit(self, service, cache, clock) -> None:
        identity = _identity()
        issued = await service.generate_token(identity)

        granted = await service.grant_credit(identity, issued.token)

        assert granted.bonus_credits == 1
        assert granted.remaining == 4
        assert granted.reset_time == clock() + DAY_MS
        assert await cache.get(bonus_credits_key("ip", "iphash")) == 1

    async def test_logged_in_credit_goes_to_user(self, service, cache) -> None:
        identity = _identity(user_id="user-1")
        issued = await service.generate_token(identity)
        granted = await service.grant_credit(identity, issued.token)
        assert await cache.get(bonus_credits_key("user", "user-1")) == 1
        assert granted.remaining == 11

    async def test_credits_per_ad(self, cache, clock, rate_limiter) -> None:
        service = _service(cache, clock, rate_limiter, credits_per_ad=2)
        identity = _identity()
        issued = await service.generate_token(identity)
        granted = await service.grant_credit(identity, issued.token)
        assert granted.bonus_credits == 2

    async def test_token_cannot_be_redeemed_twice(self, service) -> None:
        identity = _identity()
        issued = await service.generate_token(identity)
        await service.grant_credit(identity, issued.token)

        with pytest.raises(InvalidAdTokenError) as exc_info:
            await service.grant_credit(identity, issued.token)
        assert exc_info.value.reason == "Token already used"

    async def test_other_fingerprint_rejected(self, service) -> None:
        issued = await service.generate_token(_identity())
        with pytest.raises(InvalidAdTokenError) as exc_info:
            await service.grant_credit(_identity(fingerprint="fpother"), issued.token)
        assert exc_info.value.reason == "Fingerprint mismatch"

    async def test_missing_fingerprint_rejected(self, service) -> None:
        issued = await service.generate_token(_identity())
        with pytest.raises(InvalidAdTokenError) as exc_info:
            await service.grant_credit(RequestIdentity(ip="iphash"), issued.token)
        assert exc_info.value.reason == "Invalid fingerprint"

    async def test_hourly_ad_quota(self, service) -> None:
        identity = _identity()
        for _ in range(3):
            issued = await service.generate_token(identity)
            await service.grant_credit(identity, issued.token)

        issued = await service.generate_token(identity)
        with pytest.raises(AdLimitExceededError) as exc_info:
            await service.grant_credit(identity, issued.token)
        assert "per hour" in str(exc_info.value)

    async def test_disabled(self, cache, clock, rate_limiter) -> None:
        service = _service(cache, clock, rate_limiter, enabled=False)
        with pytest.raises(RewardsDisabledError):
            await service.grant_credit(_identity(), "token")

    async def test_storage_failure(self, cache, clock) -> None:
        rate_limiter = AsyncMock(spec=RateLimiter)
        rate_limiter.add_bonus_credits.side_effect = RuntimeError("down")
        service = _service(cache, clock, rate_limiter)
        identity = _identity()
        issued = await service.generate_token(identity)

        with pytest.raises(CreditGrantError) as exc_info:
            await service.grant_credit(identity, issued.token)
        assert isinstance(exc_info.value.__cause__, RuntimeError)
