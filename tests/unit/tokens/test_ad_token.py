"""Unit tests for AdTokenService.

Tokens are signed with the real JWT library, which checks ``exp`` against
the wall clock, so these tests run on a clock anchored at the current time.
"""

from unittest.mock import AsyncMock

import pytest
from jose import jwt

from brainrot.cache.cache import Cache
from brainrot.cache.keys import ad_token_used_key, ad_token_valid_key
from brainrot.cache.stores.inmemory import InMemoryCacheAdapter
from brainrot.config.settings import Settings
from brainrot.exceptions import ConfigurationError, RewardsDisabledError
from brainrot.tokens.ad_token import AdTokenService
from brainrot.utils.time import MINUTE_MS, SECOND_MS, ManualClock

SECRET = "test-ad-secret"
FINGERPRINT = "fp0123456789abcd"


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def cache(clock: ManualClock) -> Cache:
    return Cache(InMemoryCacheAdapter(clock=clock))


@pytest.fixture
def service(cache: Cache, clock: ManualClock) -> AdTokenService:
    return AdTokenService(cache, SECRET, clock=clock)


def _claims(token: str) -> dict:
    claims = AdTokenService.decode_ad_token_unsafe(token)
    assert claims is not None
    return claims


class TestGenerateAdToken:
    """Tests for minting."""

    async def test_token_carries_expected_claims(self, service, clock) -> None:
        token = await service.generate_ad_token(FINGERPRINT)
        claims = _claims(token)
        assert claims["type"] == "ad_completion"
        assert claims["fingerprint"] == FINGERPRINT
        assert claims["exp"] - claims["iat"] == 300
        assert claims["iat"] == clock() // 1000
        assert len(claims["jti"]) == 32
        assert len(claims["nonce"]) == 32

    async def test_jti_registered_with_expiry(self, service, cache, clock) -> None:
        token = await service.generate_ad_token(FINGERPRINT)
        jti = _claims(token)["jti"]
        assert await cache.get(ad_token_valid_key(jti)) == FINGERPRINT
        clock.advance(300 * SECOND_MS + 1)
        assert await cache.get(ad_token_valid_key(jti)) is None

    async def test_tokens_are_unique(self, service) -> None:
        first = await service.generate_ad_token(FINGERPRINT)
        second = await service.generate_ad_token(FINGERPRINT)
        assert _claims(first)["jti"] != _claims(second)["jti"]

    async def test_disabled_raises(self, cache, clock) -> None:
        service = AdTokenService(cache, SECRET, enabled=False, clock=clock)
        with pytest.raises(RewardsDisabledError):
            await service.generate_ad_token(FINGERPRINT)

    async def test_missing_secret_raises(self, cache, clock) -> None:
        service = AdTokenService(cache, None, clock=clock)
        with pytest.raises(ConfigurationError):
            await service.generate_ad_token(FINGERPRINT)

    async def test_registry_failure_still_returns_token(self, clock) -> None:
        """The token is issued; it will later fail as not found."""
        adapter = AsyncMock()
        adapter.set.side_effect = RuntimeError("down")
        service = AdTokenService(Cache(adapter), SECRET, clock=clock)
        token = await service.generate_ad_token(FINGERPRINT)
        assert _claims(token)["fingerprint"] == FINGERPRINT


class TestValidateAdToken:
    """Tests for redemption and its rejection reasons."""

    async def test_valid_token_redeems_once(self, service, cache) -> None:
        token = await service.generate_ad_token(FINGERPRINT)
        jti = _claims(token)["jti"]

        result = await service.validate_ad_token(token, FINGERPRINT)
        assert result.valid is True
        assert result.payload.jti == jti
        assert await cache.get(ad_token_used_key(jti)) == "used"
        assert await cache.get(ad_token_valid_key(jti)) is None

        replay = await service.validate_ad_token(token, FINGERPRINT)
        assert replay.valid is False
        assert replay.reason == "Token already used"

    async def test_fingerprint_mismatch(self, service) -> None:
        token = await service.generate_ad_token(FINGERPRINT)
        result = await service.validate_ad_token(token, "someone-else")
        assert result.reason == "Fingerprint mismatch"

    async def test_mismatch_does_not_burn_token(self, service) -> None:
        token = await service.generate_ad_token(FINGERPRINT)
        await service.validate_ad_token(token, "someone-else")
        assert (await service.validate_ad_token(token, FINGERPRINT)).valid is True

    @pytest.mark.parametrize("token", ["", None])
    async def test_invalid_format(self, service, token) -> None:
        result = await service.validate_ad_token(token, FINGERPRINT)
        assert result.reason == "Invalid token format"

    async def test_invalid_fingerprint(self, service) -> None:
        token = await service.generate_ad_token(FINGERPRINT)
        result = await service.validate_ad_token(token, "")
        assert result.reason == "Invalid fingerprint"

    async def test_wrong_signature(self, service, cache, clock) -> None:
        other = AdTokenService(cache, "another-secret", clock=clock)
        token = await other.generate_ad_token(FINGERPRINT)
        result = await service.validate_ad_token(token, FINGERPRINT)
        assert result.reason == "Invalid token signature"

    async def test_garbage_token(self, service) -> None:
        result = await service.validate_ad_token("not.a.jwt", FINGERPRINT)
        assert result.reason == "Invalid token signature"

    async def test_expired_by_signature(self, cache) -> None:
        """A token whose exp is already in the past fails signature checks."""
        past = ManualClock()
        past.advance(-10 * MINUTE_MS)
        service = AdTokenService(cache, SECRET, clock=past)
        token = await service.generate_ad_token(FINGERPRINT)
        result = await service.validate_ad_token(token, FINGERPRINT)
        assert result.reason == "Token expired"

    async def test_expired_by_service_clock(self, service, clock) -> None:
        token = await service.generate_ad_token(FINGERPRINT)
        clock.advance(300 * SECOND_MS)
        result = await service.validate_ad_token(token, FINGERPRINT)
        assert result.reason == "Token expired"

    async def test_wrong_type(self, service, clock) -> None:
        now = clock() // 1000
        token = jwt.encode(
            {"type": "session", "fingerprint": FINGERPRINT, "iat": now, "exp": now + 60},
            SECRET,
            algorithm="HS256",
        )
        result = await service.validate_ad_token(token, FINGERPRINT)
        assert result.reason == "Invalid token type"

    async def test_missing_claims(self, service, clock) -> None:
        now = clock() // 1000
        token = jwt.encode(
            {"type": "ad_completion", "iat": now, "exp": now + 60}, SECRET, algorithm="HS256"
        )
        result = await service.validate_ad_token(token, FINGERPRINT)
        assert result.reason == "Invalid token claims"

    async def test_not_yet_valid(self, service, clock) -> None:
        now = clock() // 1000
        token = jwt.encode(
            {"type": "ad_completion", "fingerprint": FINGERPRINT, "iat": now, "exp": now + 600, "nbf": now + 300},
            SECRET,
            algorithm="HS256",
        )
        result = await service.validate_ad_token(token, FINGERPRINT)
        assert result.reason == "Token not yet valid"

    async def test_not_in_registry(self, service, cache) -> None:
        token = await service.generate_ad_token(FINGERPRINT)
        await cache.delete(ad_token_valid_key(_claims(token)["jti"]))
        result = await service.validate_ad_token(token, FINGERPRINT)
        assert result.reason == "Token not found in valid tokens"

    async def test_stored_fingerprint_mismatch(self, service, cache) -> None:
        token = await service.generate_ad_token(FINGERPRINT)
        await cache.set(ad_token_valid_key(_claims(token)["jti"]), "tampered")
        result = await service.validate_ad_token(token, FINGERPRINT)
        assert result.reason == "Stored fingerprint mismatch"

    async def test_disabled(self, cache, clock) -> None:
        service = AdTokenService(cache, SECRET, enabled=False, clock=clock)
        result = await service.validate_ad_token("x.y.z", FINGERPRINT)
        assert result.reason == "Rewards system is disabled"

    async def test_missing_secret(self, cache, clock) -> None:
        service = AdTokenService(cache, None, clock=clock)
        result = await service.validate_ad_token("x.y.z", FINGERPRINT)
        assert result.reason == "AD_TOKEN_SECRET not configured"


class TestRevocation:
    """Tests for the blacklist."""

    async def test_revoked_token_rejected(self, service) -> None:
        token = await service.generate_ad_token(FINGERPRINT)
        jti = _claims(token)["jti"]
        await service.revoke_ad_token(jti)
        assert await service.is_token_blacklisted(jti) is True
        result = await service.validate_ad_token(token, FINGERPRINT)
        assert result.reason == "Token revoked"

    async def test_revoke_when_disabled_raises(self, cache, clock) -> None:
        service = AdTokenService(cache, SECRET, enabled=False, clock=clock)
        with pytest.raises(RewardsDisabledError):
            await service.revoke_ad_token("jti")
        assert await service.is_token_blacklisted("jti") is False

    async def test_revoke_propagates_cache_errors(self, clock) -> None:
        adapter = AsyncMock()
        adapter.set.side_effect = RuntimeError("down")
        service = AdTokenService(Cache(adapter), SECRET, clock=clock)
        with pytest.raises(RuntimeError):
            await service.revoke_ad_token("jti")

    async def test_blacklist_check_fails_open(self, clock) -> None:
        adapter = AsyncMock()
        adapter.get.side_effect = RuntimeError("down")
        service = AdTokenService(Cache(adapter), SECRET, clock=clock)
        assert await service.is_token_blacklisted("jti") is False

    def test_decode_unsafe_rejects_garbage(self) -> None:
        assert AdTokenService.decode_ad_token_unsafe("garbage") is None


class TestFromSettings:
    """Tests for construction from settings and environment."""

    def test_enabled_without_secret_raises(self, cache, monkeypatch) -> None:
        monkeypatch.setenv("ENABLE_REWARDS", "true")
        monkeypatch.delenv("AD_TOKEN_SECRET", raising=False)
        monkeypatch.delenv("AUTH_SECRET", raising=False)
        with pytest.raises(ConfigurationError):
            AdTokenService.from_settings(cache, Settings())

    def test_auth_secret_fallback(self, cache, monkeypatch) -> None:
        monkeypatch.setenv("ENABLE_REWARDS", "true")
        monkeypatch.delenv("AD_TOKEN_SECRET", raising=False)
        monkeypatch.setenv("AUTH_SECRET", "auth-secret")
        service = AdTokenService.from_settings(cache, Settings())
        assert service.enabled is True

    def test_disabled_without_secret_is_allowed(self, cache, monkeypatch) -> None:
        monkeypatch.delenv("ENABLE_REWARDS", raising=False)
        monkeypatch.delenv("AD_TOKEN_SECRET", raising=False)
        monkeypatch.delenv("AUTH_SECRET", raising=False)
        service = AdTokenService.from_settings(cache, Settings())
        assert service.enabled is False

    def test_expiry_from_settings(self, cache, monkeypatch) -> None:
        monkeypatch.delenv("ENABLE_REWARDS", raising=False)
        monkeypatch.setenv("AD_TOKEN_SECRET", SECRET)
        service = AdTokenService.from_settings(
            cache, Settings(rewards={"enabled": True, "token_expiry_seconds": 120})
        )
        assert service.expiry_seconds == 120
