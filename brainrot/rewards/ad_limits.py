"""Ad watch quotas.

Counts completed ads per hour and per day for the most specific identity
available: user id, then fingerprint, then hashed IP.
"""

from dataclasses import dataclass

from brainrot.cache.cache import Cache
from brainrot.cache.keys import AdLimitMethod, ad_limit_key
from brainrot.observability.logging import get_logger
from brainrot.ratelimit.models import RequestIdentity
from brainrot.utils.time import DAY_MS, HOUR_MS

logger = get_logger(__name__)


@dataclass(frozen=True)
class AdLimitCheck:
    allowed: bool
    message: str | None = None


class AdWatchLimiter:
    """Hourly and daily ceilings on rewarded-ad completions."""

    def __init__(self, cache: Cache, max_per_hour: int = 3, max_per_day: int = 10) -> None:
        self._cache = cache
        self._max_per_hour = max_per_hour
        self._max_per_day = max_per_day

    @staticmethod
    def _identity(identity: RequestIdentity) -> tuple[AdLimitMethod, str]:
        if identity.user_id:
            return "user", identity.user_id
        if identity.fingerprint_hash:
            return "fingerprint", identity.fingerprint_hash
        return "ip", identity.ip

    def _keys(self, identity: RequestIdentity) -> tuple[str, str]:
        method, value = self._identity(identity)
        return ad_limit_key(method, "hourly", value), ad_limit_key(method, "daily", value)

    async def check(self, identity: RequestIdentity) -> AdLimitCheck:
        """Whether another ad may be rewarded. Cache errors propagate."""
        hourly_key, daily_key = self._keys(identity)

        hourly = int(await self._cache.get(hourly_key) or 0)
        if hourly >= self._max_per_hour:
            return AdLimitCheck(
                allowed=False,
                message=(
                    f"You can only watch {self._max_per_hour} ads per hour. "
                    "Please try again later."
                ),
            )

        daily = int(await self._cache.get(daily_key) or 0)
        if daily >= self._max_per_day:
            return AdLimitCheck(
                allowed=False,
                message=(
                    f"You've reached the daily limit of {self._max_per_day} ads. "
                    "Come back tomorrow!"
                ),
            )

        return AdLimitCheck(allowed=True)

    async def record(self, identity: RequestIdentity) -> None:
        """Count one completed ad in both windows.

        Failures are logged; the credit has already been granted by then.
        """
        hourly_key, daily_key = self._keys(identity)
        try:
            hourly = int(await self._cache.get(hourly_key) or 0)
            daily = int(await self._cache.get(daily_key) or 0)
            await self._cache.set(hourly_key, hourly + 1, HOUR_MS)
            await self._cache.set(daily_key, daily + 1, DAY_MS)
        except Exception as e:
            logger.warning("ad_watch_record_failed", error=str(e))
