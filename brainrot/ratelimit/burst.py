"""Burst rate limiting.

Sliding windows over recent request timestamps catch rapid bursts that the
daily counters would let through. Bursts also feed pattern analysis that
flags automation-like traffic.
"""

import statistics

from brainrot.cache.cache import Cache
from brainrot.cache.keys import burst_key
from brainrot.config.models.rate_limit import BurstConfig, BurstWindowConfig
from brainrot.observability.logging import get_logger, truncate
from brainrot.observability.metrics import BURST_BLOCKS
from brainrot.ratelimit.models import (
    BurstLevel,
    BurstLimitResult,
    BurstRequestCounts,
    BurstTrackingData,
    BurstWindowName,
)
from brainrot.utils.time import Clock, now_ms

logger = get_logger(__name__)

RAPID_INTERVAL_MS = 500
EXTREME_BURST_WINDOW_MS = 5000
EXTREME_BURST_REQUESTS = 8
PERSISTENT_VIOLATIONS = 3
# Interval variance below this (100ms squared) looks scripted
REGULAR_INTERVAL_VARIANCE = 10_000


def count_in_window(timestamps: list[int], window_ms: int, now: int) -> int:
    start = now - window_ms
    return sum(1 for ts in timestamps if ts > start)


class BurstRateLimiter:
    """Multi-window burst limiter backed by the shared cache."""

    def __init__(self, cache: Cache, config: BurstConfig | None = None, clock: Clock = now_ms) -> None:
        self._cache = cache
        self._config = config or BurstConfig()
        self._clock = clock

    @property
    def _windows(self) -> dict[BurstWindowName, BurstWindowConfig]:
        return {
            "short": self._config.short,
            "medium": self._config.medium,
            "long": self._config.long,
        }

    @property
    def _long_ms(self) -> int:
        return self._config.long.window_seconds * 1000

    @property
    def _cleanup_ms(self) -> int:
        return self._config.cleanup_interval_seconds * 1000

    def _cleanup(self, data: BurstTrackingData, now: int) -> BurstTrackingData:
        """Drop timestamps older than the long window."""
        latest = max(data.timestamps, default=None)
        cleaned = data.model_copy(
            update={
                "timestamps": [ts for ts in data.timestamps if ts > now - self._long_ms],
                "last_cleanup": now,
            }
        )
        medium_ms = self._config.medium.window_seconds * 1000
        if latest is None or now - latest > medium_ms:
            cleaned.consecutive_violations = 0
            cleaned.suspicious_flags = []
        return cleaned

    def _counts(self, timestamps: list[int], now: int) -> BurstRequestCounts:
        return BurstRequestCounts(
            **{
                name: count_in_window(timestamps, window.window_seconds * 1000, now)
                for name, window in self._windows.items()
            }
        )

    def _violations(self, counts: BurstRequestCounts) -> list[BurstWindowName]:
        return [
            name
            for name, window in self._windows.items()
            if getattr(counts, name) >= window.max_requests
        ]

    def _analyze(self, data: BurstTrackingData, now: int) -> tuple[bool, BurstLevel, list[str]]:
        """Look for automation-like patterns in recent traffic."""
        recent = [ts for ts in data.timestamps if ts > now - self._long_ms]
        level: BurstLevel = "none"
        flags: list[str] = []

        if any(b - a < RAPID_INTERVAL_MS for a, b in zip(recent, recent[1:])):
            flags.append("rapid-succession-requests")
            level = "medium"

        if data.consecutive_violations > PERSISTENT_VIOLATIONS:
            flags.append("persistent-burst-attempts")
            level = "high"

        if count_in_window(recent, EXTREME_BURST_WINDOW_MS, now) > EXTREME_BURST_REQUESTS:
            flags.append("extreme-burst-pattern")
            level = "critical"

        if len(recent) >= 3:
            intervals = [b - a for a, b in zip(recent, recent[1:])]
            if statistics.pvariance(intervals) < REGULAR_INTERVAL_VARIANCE:
                flags.append("automated-regular-intervals")
                if level == "none":
                    level = "low"

        return bool(flags), level, flags

    def _next_allowed_time(self, timestamps: list[int], now: int) -> int | None:
        """Latest moment at which every violated window has room again."""
        next_allowed: int | None = None
        for window in self._windows.values():
            window_ms = window.window_seconds * 1000
            in_window = sorted(ts for ts in timestamps if ts > now - window_ms)
            if len(in_window) < window.max_requests:
                continue
            oldest_blocking = in_window[len(in_window) - window.max_requests]
            candidate = oldest_blocking + window_ms + 1
            if next_allowed is None or candidate > next_allowed:
                next_allowed = candidate
        return next_allowed

    async def _load(self, key: str, now: int) -> BurstTrackingData:
        raw = await self._cache.get(key)
        if raw is None:
            return BurstTrackingData(last_cleanup=now)
        return BurstTrackingData.model_validate(raw)

    async def check(self, identifier: str, method: str = "ip") -> BurstLimitResult:
        """Evaluate and record a request. Errors allow the request."""
        if not self._config.enabled:
            return BurstLimitResult()

        now = self._clock()
        key = burst_key(method, identifier)
        try:
            data = await self._load(key, now)
            if now - data.last_cleanup > self._cleanup_ms:
                data = self._cleanup(data, now)

            counts = self._counts(data.timestamps, now)
            violated = self._violations(counts)
            allowed = not violated
            suspicious, level, new_flags = self._analyze(data, now)
            next_allowed = None if allowed else self._next_allowed_time(data.timestamps, now)

            if allowed:
                data.timestamps.append(now)
                data.consecutive_violations = 0
            else:
                data.consecutive_violations += 1

            for flag in new_flags:
                if flag not in data.suspicious_flags:
                    data.suspicious_flags.append(flag)

            await self._cache.set(key, data.model_dump(by_alias=True), self._long_ms + self._cleanup_ms)
        except Exception as e:
            logger.warning("burst_check_failed", method=method, error=str(e))
            return BurstLimitResult()

        if not allowed:
            BURST_BLOCKS.labels(level=level).inc()
        if suspicious or violated:
            logger.warning(
                "burst_activity_detected",
                method=method,
                identifier=truncate(identifier),
                burst_level=level,
                windows_violated=violated,
                suspicious_flags=data.suspicious_flags,
                consecutive_violations=data.consecutive_violations,
            )

        return BurstLimitResult(
            allowed=allowed,
            burst_level=level,
            windows_violated=violated,
            next_allowed_time=next_allowed,
            requests_in_windows=counts,
            suspicious_activity=suspicious,
        )

    async def status(self, identifier: str, method: str = "ip") -> BurstLimitResult:
        """Report whether the next request would pass, without recording it."""
        if not self._config.enabled:
            return BurstLimitResult()

        now = self._clock()
        try:
            raw = await self._cache.get(burst_key(method, identifier))
            if raw is None:
                return BurstLimitResult()
            data = BurstTrackingData.model_validate(raw)
        except Exception as e:
            logger.warning("burst_status_failed", method=method, error=str(e))
            return BurstLimitResult()

        counts = self._counts(data.timestamps, now)
        violated = self._violations(counts)
        suspicious, level, _ = self._analyze(data, now)
        return BurstLimitResult(
            allowed=not violated,
            burst_level=level,
            windows_violated=violated,
            next_allowed_time=self._next_allowed_time(data.timestamps, now) if violated else None,
            requests_in_windows=counts,
            suspicious_activity=suspicious,
        )

    async def reset(self, identifier: str, method: str = "ip") -> bool:
        try:
            await self._cache.delete(burst_key(method, identifier))
        except Exception as e:
            logger.error("burst_reset_failed", method=method, error=str(e))
            return False
        logger.info("burst_reset", method=method, identifier=truncate(identifier))
        return True
