"""Multi-dimensional rate limiter.

Anonymous callers are counted per hashed IP, per fingerprint, or per
IP+fingerprint pair depending on how trustworthy their fingerprint is.
Signed-in users get their own daily quota. Bonus credits earned from
rewarded ads sit on top of either.

Counters live in the shared cache. Consumption of a single key is
serialized inside this process only; two processes consuming the same key
at the same moment can still both succeed.
"""

from brainrot.cache.cache import Cache
from brainrot.cache.keys import (
    RATE_LIMIT_PREFIX,
    BonusMethod,
    bonus_credits_key,
    combined_identity,
    combined_pattern_for_fingerprint,
    rate_limit_key,
)
from brainrot.config.models.rate_limit import RateLimitConfig
from brainrot.observability.logging import get_logger, truncate
from brainrot.observability.metrics import BONUS_CREDITS_SPENT, RATE_LIMIT_DECISIONS
from brainrot.ratelimit.burst import BurstRateLimiter
from brainrot.ratelimit.ip import hash_ip, is_valid_ip
from brainrot.ratelimit.models import (
    BurstLimitResult,
    RateLimitDebugInfo,
    RateLimitMethod,
    RateLimitRecord,
    RateLimitResult,
    RequestIdentity,
    ResetType,
)
from brainrot.utils.locks import KeyedLock
from brainrot.utils.time import HOUR_MS, Clock, now_ms

logger = get_logger(__name__)

FINGERPRINT_HISTORY_SIZE = 5
RAPID_REQUEST_MS = 1000

# Confidence penalties for signals that suggest automation or evasion
SUSPICIOUS_PENALTIES: dict[str, float] = {
    "webdriver-detected": 0.4,
    "headless-browser": 0.3,
    "server-grade-hardware": 0.2,
}
FINGERPRINT_SWITCHING_PENALTY = 0.2
RAPID_REQUEST_PENALTY = 0.1


class RateLimiter:
    """Check and consume request quotas against the shared cache."""

    def __init__(
        self,
        cache: Cache,
        config: RateLimitConfig | None = None,
        burst_limiter: BurstRateLimiter | None = None,
        clock: Clock = now_ms,
    ) -> None:
        self._cache = cache
        self._config = config or RateLimitConfig()
        self._burst = burst_limiter
        self._clock = clock
        self._locks = KeyedLock()

    @property
    def config(self) -> RateLimitConfig:
        return self._config

    @property
    def window_ms(self) -> int:
        return self._config.window_hours * HOUR_MS

    def limit_for(self, method: RateLimitMethod) -> int:
        if method == "user":
            return self._config.user_daily_limit
        if method in ("fingerprint", "combined"):
            return self._config.fingerprint_limit
        return self._config.ip_limit

    def _fresh_record(self, now: int) -> RateLimitRecord:
        return RateLimitRecord(count=0, reset_time=now + self.window_ms, last_seen=now)

    async def _load_record(self, key: str) -> RateLimitRecord | None:
        raw = await self._cache.get(key)
        if raw is None:
            return None
        return RateLimitRecord.model_validate(raw)

    # Bonus credits

    def _bonus_key(self, identity: RequestIdentity) -> str:
        method: BonusMethod = "user" if identity.is_logged_in else "ip"
        return bonus_credits_key(method, identity.user_id or identity.ip)

    async def get_bonus_credits(self, identity: RequestIdentity) -> int:
        """Current bonus balance; cache errors read as zero."""
        try:
            value = await self._cache.get(self._bonus_key(identity))
        except Exception as e:
            logger.warning("bonus_credits_read_failed", error=str(e))
            return 0
        return max(0, int(value or 0))

    async def add_bonus_credits(self, identity: RequestIdentity, amount: int = 1) -> int:
        """Add credits and refresh the balance TTL. Cache errors propagate.

        Returns:
            The new balance
        """
        key = self._bonus_key(identity)
        current = max(0, int(await self._cache.get(key) or 0))
        total = current + amount
        await self._cache.set(key, total, self._config.bonus_credit_ttl_seconds * 1000)
        logger.info("bonus_credits_added", amount=amount, balance=total)
        return total

    async def _spend_bonus_credit(self, identity: RequestIdentity) -> bool:
        """Debit one credit if any are available."""
        key = self._bonus_key(identity)
        current = max(0, int(await self._cache.get(key) or 0))
        if current <= 0:
            return False
        if current > 1:
            await self._cache.set(key, current - 1, self._config.bonus_credit_ttl_seconds * 1000)
        else:
            await self._cache.delete(key)
        BONUS_CREDITS_SPENT.inc()
        return True

    # Anonymous identity resolution

    def _method_for_confidence(self, identity: RequestIdentity, confidence: float) -> RateLimitMethod:
        if identity.fingerprint is None:
            return "ip"
        if confidence > self._config.high_confidence_threshold:
            return "combined"
        if confidence > self._config.medium_confidence_threshold:
            return "fingerprint"
        return "ip"

    def _key_for(self, identity: RequestIdentity, method: RateLimitMethod) -> str:
        fingerprint = identity.fingerprint_hash
        if method == "combined" and fingerprint:
            return rate_limit_key("combined", combined_identity(identity.ip, fingerprint))
        if method == "fingerprint" and fingerprint:
            return rate_limit_key("fingerprint", fingerprint)
        if method == "user" and identity.user_id:
            return rate_limit_key("user", identity.user_id)
        return rate_limit_key("ip", identity.ip)

    def _burst_identifier(self, identity: RequestIdentity, method: RateLimitMethod) -> str:
        fingerprint = identity.fingerprint_hash
        if method == "user" and identity.user_id:
            return identity.user_id
        if method == "combined" and fingerprint:
            return combined_identity(identity.ip, fingerprint)
        if method == "fingerprint" and fingerprint:
            return fingerprint
        return identity.ip

    def analyze_suspicious_behavior(
        self,
        identity: RequestIdentity,
        existing: RateLimitRecord | None,
        now: int,
    ) -> tuple[float, list[str]]:
        """Adjust fingerprint confidence for automation and evasion signals.

        Returns:
            (adjusted confidence in [0, 1], suspicious flags)
        """
        fingerprint = identity.fingerprint
        flags: list[str] = list(fingerprint.suspicious_flags) if fingerprint else []
        adjustment = 0.0

        if fingerprint:
            for flag, penalty in SUSPICIOUS_PENALTIES.items():
                if flag in fingerprint.suspicious_flags:
                    adjustment -= penalty

        if existing and fingerprint and existing.fingerprint_history:
            if fingerprint.fingerprint not in existing.fingerprint_history:
                flags.append("fingerprint-switching")
                adjustment -= FINGERPRINT_SWITCHING_PENALTY

        if existing and now - existing.last_seen < RAPID_REQUEST_MS:
            flags.append("rapid-requests")
            adjustment -= RAPID_REQUEST_PENALTY

        base = fingerprint.confidence if fingerprint else 0.0
        return max(0.0, min(1.0, base + adjustment)), flags

    async def _resolve_anonymous(
        self, identity: RequestIdentity, now: int
    ) -> tuple[RateLimitRecord, RateLimitMethod]:
        """Find the active counter for an anonymous caller.

        The richest dimension the fingerprint supports is tried first, then
        the IP record. With nothing active, a fresh record is returned for
        the method the adjusted confidence selects. Nothing is persisted.
        """
        fingerprint = identity.fingerprint
        existing: RateLimitRecord | None = None
        method: RateLimitMethod = "ip"

        try:
            if fingerprint and fingerprint.confidence > self._config.high_confidence_threshold:
                existing = await self._load_record(self._key_for(identity, "combined"))
                if existing and existing.is_active(now):
                    method = "combined"
                else:
                    existing = await self._load_record(self._key_for(identity, "fingerprint"))
                    if existing and existing.is_active(now):
                        method = "fingerprint"
            elif fingerprint and fingerprint.confidence > self._config.medium_confidence_threshold:
                existing = await self._load_record(self._key_for(identity, "fingerprint"))
                if existing and existing.is_active(now):
                    method = "fingerprint"

            if not (existing and existing.is_active(now)):
                existing = await self._load_record(self._key_for(identity, "ip"))
                method = "ip"
        except Exception as e:
            logger.warning("rate_limit_lookup_failed", error=str(e))
            existing = None
            method = "ip"

        active = existing if existing and existing.is_active(now) else None
        confidence, flags = self.analyze_suspicious_behavior(identity, active, now)

        if active is None:
            record = self._fresh_record(now)
            record.suspicious_flags = flags
            if fingerprint:
                record.confidence = confidence
                record.fingerprint_history = [fingerprint.fingerprint]
            return record, self._method_for_confidence(identity, confidence)

        if fingerprint:
            active.confidence = confidence
            if fingerprint.fingerprint not in active.fingerprint_history:
                history = active.fingerprint_history[-(FINGERPRINT_HISTORY_SIZE - 1):]
                active.fingerprint_history = [*history, fingerprint.fingerprint]
        active.suspicious_flags = flags
        return active, method

    async def _resolve_user(self, identity: RequestIdentity, now: int) -> RateLimitRecord:
        record = await self._load_record(self._key_for(identity, "user"))
        if record and record.is_active(now):
            return record
        return self._fresh_record(now)

    async def _save(
        self,
        identity: RequestIdentity,
        record: RateLimitRecord,
        method: RateLimitMethod,
        now: int,
    ) -> None:
        ttl = record.reset_time - now
        if ttl <= 0:
            return

        payload = record.model_dump(by_alias=True)
        try:
            await self._cache.set(self._key_for(identity, method), payload, ttl)
            if method == "combined":
                # The fingerprint record backs the combined one when confidence drops
                await self._cache.set(self._key_for(identity, "fingerprint"), payload, ttl)
        except Exception as e:
            logger.warning("rate_limit_persist_failed", method=method, error=str(e))
            return

        if len(record.suspicious_flags) >= self._config.suspicious_flags_threshold:
            logger.warning(
                "rate_limit_suspicious_activity",
                method=method,
                fingerprint=truncate(identity.fingerprint_hash),
                flags=record.suspicious_flags,
            )

    # Public operations

    def _build_result(
        self,
        identity: RequestIdentity,
        method: RateLimitMethod,
        record: RateLimitRecord,
        *,
        allowed: bool,
        remaining: int,
        requires_auth: bool,
        burst: BurstLimitResult | None = None,
    ) -> RateLimitResult:
        if identity.is_logged_in:
            return RateLimitResult(
                allowed=allowed,
                limit=self.limit_for("user"),
                remaining=remaining,
                reset_time=record.reset_time,
                requires_auth=False,
                is_logged_in=True,
                method="user",
                burst_limit=burst,
            )
        return RateLimitResult(
            allowed=allowed,
            limit=self.limit_for(method),
            remaining=remaining,
            reset_time=record.reset_time,
            requires_auth=requires_auth,
            is_logged_in=False,
            method=method,
            confidence=record.confidence,
            fingerprint=identity.fingerprint_hash[:8] if identity.fingerprint_hash else None,
            suspicious_flags=record.suspicious_flags,
            burst_limit=burst,
        )

    def _fail_open(self, identity: RequestIdentity, now: int) -> RateLimitResult:
        method: RateLimitMethod = "user" if identity.is_logged_in else "ip"
        limit = self.limit_for(method)
        return RateLimitResult(
            allowed=True,
            limit=limit,
            remaining=limit,
            reset_time=now + self.window_ms,
            requires_auth=False,
            is_logged_in=identity.is_logged_in,
            method=method,
        )

    def _standing(self, count: int, limit: int, bonus: int) -> tuple[bool, int]:
        """(allowed, remaining) for a counter and bonus balance under the configured mode."""
        if self._config.debit_bonus_credits:
            return count < limit or bonus > 0, max(0, limit - count) + bonus
        return count < limit + bonus, max(0, limit + bonus - count)

    async def check_rate_limit(self, identity: RequestIdentity) -> RateLimitResult:
        """Report the caller's current standing without consuming anything.

        Cache failures allow the request.
        """
        now = self._clock()
        try:
            if identity.is_logged_in:
                method: RateLimitMethod = "user"
                record = await self._resolve_user(identity, now)
            else:
                record, method = await self._resolve_anonymous(identity, now)

            limit = self.limit_for(method)
            bonus = await self.get_bonus_credits(identity)
            allowed, remaining = self._standing(record.count, limit, bonus)
            requires_auth = not identity.is_logged_in and not allowed

            burst = None
            if self._burst is not None:
                burst = await self._burst.status(self._burst_identifier(identity, method), method)
                allowed = allowed and burst.allowed
        except Exception as e:
            logger.warning("rate_limit_check_failed", error=str(e))
            RATE_LIMIT_DECISIONS.labels(method="unknown", operation="check", outcome="fail_open").inc()
            return self._fail_open(identity, now)

        RATE_LIMIT_DECISIONS.labels(
            method=method, operation="check", outcome="allowed" if allowed else "denied"
        ).inc()
        logger.debug(
            "rate_limit_checked",
            method=method,
            count=record.count,
            limit=limit,
            remaining=remaining,
            allowed=allowed,
        )
        return self._build_result(
            identity,
            method,
            record,
            allowed=allowed,
            remaining=remaining,
            requires_auth=requires_auth,
            burst=burst,
        )

    async def consume_rate_limit(self, identity: RequestIdentity) -> RateLimitResult:
        """Spend one request from the caller's quota.

        A bonus credit is debited first when available (and debiting is
        enabled), leaving the counter untouched. Otherwise the counter is
        incremented, unless the caller is already at the limit.
        """
        if identity.is_logged_in:
            lock_method: RateLimitMethod = "user"
        else:
            confidence = identity.fingerprint.confidence if identity.fingerprint else 0.0
            lock_method = self._method_for_confidence(identity, confidence)

        async with self._locks.hold(self._key_for(identity, lock_method)):
            now = self._clock()
            try:
                result = await self._consume_locked(identity, now)
            except Exception as e:
                logger.warning("rate_limit_consume_failed", error=str(e))
                RATE_LIMIT_DECISIONS.labels(
                    method="unknown", operation="consume", outcome="fail_open"
                ).inc()
                return self._fail_open(identity, now)

        RATE_LIMIT_DECISIONS.labels(
            method=result.method,
            operation="consume",
            outcome="allowed" if result.allowed else "denied",
        ).inc()
        return result

    async def _consume_locked(self, identity: RequestIdentity, now: int) -> RateLimitResult:
        if identity.is_logged_in:
            method: RateLimitMethod = "user"
            record = await self._resolve_user(identity, now)
        else:
            record, method = await self._resolve_anonymous(identity, now)
        limit = self.limit_for(method)

        burst = None
        if self._burst is not None:
            burst = await self._burst.check(self._burst_identifier(identity, method), method)
            if not burst.allowed:
                _, remaining = self._standing(
                    record.count, limit, await self.get_bonus_credits(identity)
                )
                return self._build_result(
                    identity, method, record,
                    allowed=False, remaining=remaining, requires_auth=False, burst=burst,
                )

        if self._config.debit_bonus_credits:
            if await self._spend_bonus_credit(identity):
                bonus = await self.get_bonus_credits(identity)
                logger.info("rate_limit_bonus_credit_spent", method=method, bonus_left=bonus)
                return self._build_result(
                    identity, method, record,
                    allowed=True,
                    remaining=max(0, limit - record.count) + bonus,
                    requires_auth=False,
                    burst=burst,
                )
            effective_limit = limit
            bonus = 0
        else:
            bonus = await self.get_bonus_credits(identity)
            effective_limit = limit + bonus

        if record.count >= effective_limit:
            logger.info("rate_limit_exceeded", method=method, count=record.count, limit=limit)
            return self._build_result(
                identity, method, record,
                allowed=False, remaining=0, requires_auth=True, burst=burst,
            )

        record.count += 1
        record.last_seen = now
        await self._save(identity, record, method, now)

        logger.info("rate_limit_consumed", method=method, count=record.count, limit=limit)
        return self._build_result(
            identity, method, record,
            allowed=True,
            remaining=max(0, effective_limit - record.count),
            requires_auth=record.count >= effective_limit,
            burst=burst,
        )

    async def get_debug_info(self) -> RateLimitDebugInfo:
        """Group every live rate-limit key by dimension."""
        keys = await self._cache.keys(f"{RATE_LIMIT_PREFIX}*")
        return RateLimitDebugInfo(
            ip_keys=[k for k in keys if ":ip:" in k],
            user_keys=[k for k in keys if ":user:" in k],
            fingerprint_keys=[k for k in keys if ":fingerprint:" in k or ":combined:" in k],
        )

    async def reset_rate_limit(self, target: str, reset_type: ResetType) -> list[str]:
        """Delete the counters for a target.

        An ``ip`` target may be a raw address (hashed here) or an already
        hashed identity. A ``fingerprint`` reset also clears every combined
        record for that fingerprint.

        Returns:
            Keys that were removed
        """
        if reset_type == "ip":
            identity = hash_ip(target, self._config.ip_hash_salt) if is_valid_ip(target) else target
            candidates = [rate_limit_key("ip", identity)]
        elif reset_type == "user":
            candidates = [rate_limit_key("user", target)]
        else:
            candidates = [
                rate_limit_key("fingerprint", target),
                *await self._cache.keys(combined_pattern_for_fingerprint(target)),
            ]

        removed = [key for key in candidates if await self._cache.delete(key)]
        logger.info("rate_limit_reset", reset_type=reset_type, removed=len(removed))
        return removed
