"""Rewarded-ad orchestration.

Ties together the ad token service, the ad watch quotas and the rate
limiter's bonus credits. Errors are domain exceptions; the HTTP layer maps
them onto status codes.
"""

from dataclasses import dataclass

from brainrot.exceptions import (
    AdLimitExceededError,
    CreditGrantError,
    InvalidAdTokenError,
    RewardsDisabledError,
)
from brainrot.observability.logging import get_logger, truncate
from brainrot.observability.metrics import BONUS_CREDITS_GRANTED
from brainrot.ratelimit.limiter import RateLimiter
from brainrot.ratelimit.models import RequestIdentity
from brainrot.rewards.ad_limits import AdWatchLimiter
from brainrot.tokens.ad_token import AdTokenService
from brainrot.utils.time import DAY_MS, Clock, now_ms

logger = get_logger(__name__)


@dataclass(frozen=True)
class IssuedAdToken:
    token: str
    expires_in: int


@dataclass(frozen=True)
class GrantedCredit:
    remaining: int
    reset_time: int
    bonus_credits: int


class RewardService:
    """Issue ad tokens and turn redeemed ones into bonus credits."""

    def __init__(
        self,
        tokens: AdTokenService,
        ad_limits: AdWatchLimiter,
        rate_limiter: RateLimiter,
        credits_per_ad: int = 1,
        clock: Clock = now_ms,
    ) -> None:
        self._tokens = tokens
        self._ad_limits = ad_limits
        self._rate_limiter = rate_limiter
        self._credits_per_ad = credits_per_ad
        self._clock = clock

    @property
    def enabled(self) -> bool:
        return self._tokens.enabled

    async def generate_token(self, identity: RequestIdentity) -> IssuedAdToken:
        """Mint an ad token bound to the caller's fingerprint.

        Raises:
            RewardsDisabledError: The rewards feature is off
        """
        if not self.enabled:
            raise RewardsDisabledError()
        token = await self._tokens.generate_ad_token(identity.fingerprint_hash or "")
        return IssuedAdToken(token=token, expires_in=self._tokens.expiry_seconds)

    async def grant_credit(self, identity: RequestIdentity, ad_token: str) -> GrantedCredit:
        """Redeem an ad token for bonus credits (one by default).

        Raises:
            RewardsDisabledError: The rewards feature is off
            InvalidAdTokenError: The token did not validate
            AdLimitExceededError: Too many ads this hour or today
            CreditGrantError: The credit could not be stored
        """
        if not self.enabled:
            raise RewardsDisabledError()

        validation = await self._tokens.validate_ad_token(ad_token, identity.fingerprint_hash or "")
        if not validation.valid:
            logger.warning(
                "ad_credit_rejected",
                reason=validation.reason,
                fingerprint=truncate(identity.fingerprint_hash),
            )
            raise InvalidAdTokenError(validation.reason)

        quota = await self._ad_limits.check(identity)
        if not quota.allowed:
            logger.info("ad_limit_exceeded", user_id=identity.user_id)
            raise AdLimitExceededError(quota.message)

        try:
            balance = await self._rate_limiter.add_bonus_credits(identity, self._credits_per_ad)
        except Exception as e:
            logger.error("ad_credit_grant_failed", error=str(e))
            raise CreditGrantError("Failed to grant credit") from e

        await self._ad_limits.record(identity)
        BONUS_CREDITS_GRANTED.inc(self._credits_per_ad)

        status = await self._rate_limiter.check_rate_limit(identity)
        logger.info(
            "ad_credit_granted",
            user_id=identity.user_id,
            bonus_credits=balance,
            remaining=status.remaining,
        )
        return GrantedCredit(
            remaining=status.remaining,
            reset_time=self._clock() + DAY_MS,
            bonus_credits=balance,
        )
