"""Ad token service.

Signed, short-lived, single-use tokens proving that a rewarded ad was
watched to completion. Each token is bound to a browser fingerprint. Its
jti is tracked in the cache so it can be redeemed only once, and revoked.
"""

import secrets
from typing import Any

from jose import ExpiredSignatureError, JWTError, jwt
from jose.exceptions import JWTClaimsError
from pydantic import ValidationError

from brainrot.cache.cache import Cache
from brainrot.cache.keys import ad_token_blacklist_key, ad_token_used_key, ad_token_valid_key
from brainrot.config.environment import get_ad_token_secret, rewards_enabled
from brainrot.config.settings import Settings
from brainrot.exceptions import ConfigurationError, RewardsDisabledError
from brainrot.observability.logging import get_logger, truncate
from brainrot.observability.metrics import AD_TOKEN_OUTCOMES
from brainrot.tokens.models import AdTokenPayload, AdTokenValidationResult
from brainrot.utils.time import Clock, now_ms

logger = get_logger(__name__)

ALGORITHM = "HS256"
TOKEN_TYPE = "ad_completion"
DEFAULT_EXPIRY_SECONDS = 300
DEFAULT_USED_TTL_SECONDS = 24 * 60 * 60


class AdTokenService:
    """Mint, validate and revoke ad-completion tokens."""

    def __init__(
        self,
        cache: Cache,
        secret: str | None,
        enabled: bool = True,
        expiry_seconds: int = DEFAULT_EXPIRY_SECONDS,
        used_ttl_seconds: int = DEFAULT_USED_TTL_SECONDS,
        clock: Clock = now_ms,
    ) -> None:
        self._cache = cache
        self._secret = secret
        self._enabled = enabled
        self._expiry_seconds = expiry_seconds
        self._used_ttl_ms = used_ttl_seconds * 1000
        self._clock = clock

    @classmethod
    def from_settings(cls, cache: Cache, settings: Settings, clock: Clock = now_ms) -> "AdTokenService":
        """Build the service from settings and the environment.

        Raises:
            ConfigurationError: Rewards are enabled but no secret is set
        """
        enabled = rewards_enabled(settings)
        secret = get_ad_token_secret()
        if enabled and not secret:
            raise ConfigurationError(
                "AD_TOKEN_SECRET or AUTH_SECRET must be defined when rewards are enabled"
            )
        return cls(
            cache,
            secret,
            enabled=enabled,
            expiry_seconds=settings.rewards.token_expiry_seconds,
            used_ttl_seconds=settings.rewards.used_token_ttl_seconds,
            clock=clock,
        )

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def expiry_seconds(self) -> int:
        return self._expiry_seconds

    async def generate_ad_token(self, fingerprint: str) -> str:
        """Sign a new token for a fingerprint and register its jti.

        A failure to register the jti is logged, not raised; such a token
        will later be rejected as not found.

        Raises:
            RewardsDisabledError: The rewards feature is off
            ConfigurationError: No signing secret is configured
        """
        if not self._enabled:
            raise RewardsDisabledError()
        if not self._secret:
            raise ConfigurationError(
                "AD_TOKEN_SECRET or AUTH_SECRET must be defined when rewards are enabled"
            )

        now = self._clock() // 1000
        payload = AdTokenPayload(
            fingerprint=fingerprint,
            nonce=secrets.token_hex(16),
            iat=now,
            exp=now + self._expiry_seconds,
            jti=secrets.token_hex(16),
        )
        token: str = jwt.encode(payload.model_dump(), self._secret, algorithm=ALGORITHM)

        try:
            await self._cache.set(
                ad_token_valid_key(payload.jti), fingerprint, self._expiry_seconds * 1000
            )
        except Exception as e:
            logger.warning("ad_token_store_failed", jti=truncate(payload.jti, 12), error=str(e))

        AD_TOKEN_OUTCOMES.labels(operation="generate", outcome="success").inc()
        logger.info(
            "ad_token_generated",
            jti=truncate(payload.jti, 12),
            fingerprint=truncate(fingerprint),
            expires_in=self._expiry_seconds,
        )
        return token

    def _reject(self, reason: str) -> AdTokenValidationResult:
        AD_TOKEN_OUTCOMES.labels(operation="validate", outcome=reason).inc()
        logger.info("ad_token_rejected", reason=reason)
        return AdTokenValidationResult(valid=False, reason=reason)

    async def validate_ad_token(self, token: str, expected_fingerprint: str) -> AdTokenValidationResult:
        """Verify a token and redeem it.

        Checks run in a fixed order: signature and expiry, token type,
        fingerprint, expiry again against our clock, revocation, the used
        fence and finally the valid-token registry. On success the token is
        marked used and removed from the registry, so a second call fails
        with 'Token already used'.
        """
        if not self._enabled:
            return self._reject("Rewards system is disabled")
        if not self._secret:
            return self._reject("AD_TOKEN_SECRET not configured")
        if not token or not isinstance(token, str):
            return self._reject("Invalid token format")
        if not expected_fingerprint or not isinstance(expected_fingerprint, str):
            return self._reject("Invalid fingerprint")

        try:
            claims = jwt.decode(token, self._secret, algorithms=[ALGORITHM])
            if claims.get("type") != TOKEN_TYPE:
                return self._reject("Invalid token type")
            payload = AdTokenPayload.model_validate(claims)

            if payload.fingerprint != expected_fingerprint:
                return self._reject("Fingerprint mismatch")
            if payload.exp <= self._clock() // 1000:
                return self._reject("Token expired")
            if await self.is_token_blacklisted(payload.jti):
                return self._reject("Token revoked")

            used_key = ad_token_used_key(payload.jti)
            if await self._cache.get(used_key):
                return self._reject("Token already used")

            valid_key = ad_token_valid_key(payload.jti)
            stored_fingerprint = await self._cache.get(valid_key)
            if not stored_fingerprint:
                return self._reject("Token not found in valid tokens")
            if stored_fingerprint != expected_fingerprint:
                return self._reject("Stored fingerprint mismatch")
        except ExpiredSignatureError:
            return self._reject("Token expired")
        except JWTClaimsError as e:
            if "nbf" in str(e) or "not yet valid" in str(e):
                return self._reject("Token not yet valid")
            return self._reject("Invalid token claims")
        except JWTError:
            return self._reject("Invalid token signature")
        except ValidationError:
            return self._reject("Invalid token claims")
        except Exception as e:
            logger.error("ad_token_validation_error", error=str(e), error_type=type(e).__name__)
            return self._reject("Token validation failed")

        try:
            await self._cache.set(used_key, "used", self._used_ttl_ms)
            await self._cache.delete(valid_key)
        except Exception as e:
            # The token still validated; only the replay fence is at risk
            logger.warning("ad_token_mark_used_failed", jti=truncate(payload.jti, 12), error=str(e))

        AD_TOKEN_OUTCOMES.labels(operation="validate", outcome="valid").inc()
        logger.info("ad_token_redeemed", jti=truncate(payload.jti, 12))
        return AdTokenValidationResult(valid=True, payload=payload)

    async def revoke_ad_token(self, jti: str) -> None:
        """Blacklist a token id. Cache errors propagate.

        Raises:
            RewardsDisabledError: The rewards feature is off
        """
        if not self._enabled:
            raise RewardsDisabledError()
        try:
            await self._cache.set(ad_token_blacklist_key(jti), "revoked", self._used_ttl_ms)
        except Exception as e:
            logger.error("ad_token_revoke_failed", jti=truncate(jti, 12), error=str(e))
            raise
        logger.info("ad_token_revoked", jti=truncate(jti, 12))

    async def is_token_blacklisted(self, jti: str) -> bool:
        """False when rewards are off or the cache cannot be read."""
        if not self._enabled:
            return False
        try:
            return await self._cache.get(ad_token_blacklist_key(jti)) is not None
        except Exception as e:
            logger.error("ad_token_blacklist_check_failed", jti=truncate(jti, 12), error=str(e))
            return False

    @staticmethod
    def decode_ad_token_unsafe(token: str) -> dict[str, Any] | None:
        """Read claims without verifying the signature (debugging only)."""
        try:
            return jwt.get_unverified_claims(token)
        except JWTError:
            return None
