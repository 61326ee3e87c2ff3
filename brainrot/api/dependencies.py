"""Dependency injection for API routes.

Provides FastAPI dependencies for the cache, limiters and token services
used by API endpoints. Instances are created once per process from
settings and can be overridden for testing.
"""

from typing import Annotated

import redis.asyncio as redis
from fastapi import Depends, Request

from brainrot.api.middleware.auth import OptionalSessionDep
from brainrot.cache.cache import Cache
from brainrot.cache.factory import create_cache
from brainrot.config import get_settings
from brainrot.config.environment import get_redis_url
from brainrot.config.settings import Settings
from brainrot.observability.logging import get_logger
from brainrot.providers.tts import MockSpeechSynthesizer, SpeechSynthesizer
from brainrot.ratelimit.burst import BurstRateLimiter
from brainrot.ratelimit.fingerprint import process_fingerprint_data
from brainrot.ratelimit.ip import extract_client_ip, hash_ip
from brainrot.ratelimit.limiter import RateLimiter
from brainrot.ratelimit.models import RequestIdentity
from brainrot.rewards.ad_limits import AdWatchLimiter
from brainrot.rewards.service import RewardService
from brainrot.tokens.ad_token import AdTokenService
from brainrot.tokens.tts_token import TTSTokenService

logger = get_logger(__name__)

# Client and service instances, created once and reused
_redis_client: redis.Redis | None = None
_cache: Cache | None = None
_rate_limiter: RateLimiter | None = None
_ad_token_service: AdTokenService | None = None
_tts_token_service: TTSTokenService | None = None
_ad_watch_limiter: AdWatchLimiter | None = None
_reward_service: RewardService | None = None
_speech_synthesizer: SpeechSynthesizer | None = None


SettingsDep = Annotated[Settings, Depends(get_settings)]


async def get_redis_client() -> redis.Redis:
    """Get the shared Redis client.

    Uses REDIS_URL from environment.
    """
    global _redis_client
    if _redis_client is None:
        redis_url = get_redis_url()
        _redis_client = redis.from_url(redis_url, decode_responses=True)
        logger.info("redis_client_connected", url=redis_url.split("@")[-1])  # Log without credentials
    return _redis_client


async def get_cache(settings: SettingsDep) -> Cache:
    """Get the application cache built from ``settings.cache``."""
    global _cache
    if _cache is None:
        client = None
        if settings.cache.persistent_backend == "redis":
            client = await get_redis_client()
        _cache = create_cache(settings, client)
    return _cache


CacheDep = Annotated[Cache, Depends(get_cache)]


def get_rate_limiter(cache: CacheDep, settings: SettingsDep) -> RateLimiter:
    global _rate_limiter
    if _rate_limiter is None:
        burst = BurstRateLimiter(cache, settings.rate_limit.burst)
        _rate_limiter = RateLimiter(cache, settings.rate_limit, burst)
        logger.info(
            "rate_limiter_initialized",
            burst_enabled=settings.rate_limit.burst.enabled,
            debit_bonus_credits=settings.rate_limit.debit_bonus_credits,
        )
    return _rate_limiter


def get_ad_token_service(cache: CacheDep, settings: SettingsDep) -> AdTokenService:
    """Get the AdTokenService.

    Raises:
        ConfigurationError: Rewards are enabled without a signing secret
    """
    global _ad_token_service
    if _ad_token_service is None:
        _ad_token_service = AdTokenService.from_settings(cache, settings)
        logger.info("ad_token_service_initialized", enabled=_ad_token_service.enabled)
    return _ad_token_service


def get_tts_token_service(cache: CacheDep, settings: SettingsDep) -> TTSTokenService:
    global _tts_token_service
    if _tts_token_service is None:
        _tts_token_service = TTSTokenService(cache, settings.tts.token_ttl_seconds * 1000)
    return _tts_token_service


def get_ad_watch_limiter(cache: CacheDep, settings: SettingsDep) -> AdWatchLimiter:
    global _ad_watch_limiter
    if _ad_watch_limiter is None:
        _ad_watch_limiter = AdWatchLimiter(
            cache,
            max_per_hour=settings.rewards.max_ads_per_hour,
            max_per_day=settings.rewards.max_ads_per_day,
        )
    return _ad_watch_limiter


RateLimiterDep = Annotated[RateLimiter, Depends(get_rate_limiter)]
AdTokenServiceDep = Annotated[AdTokenService, Depends(get_ad_token_service)]
TTSTokenServiceDep = Annotated[TTSTokenService, Depends(get_tts_token_service)]
AdWatchLimiterDep = Annotated[AdWatchLimiter, Depends(get_ad_watch_limiter)]


def get_reward_service(
    tokens: AdTokenServiceDep,
    ad_limits: AdWatchLimiterDep,
    rate_limiter: RateLimiterDep,
    settings: SettingsDep,
) -> RewardService:
    global _reward_service
    if _reward_service is None:
        _reward_service = RewardService(
            tokens,
            ad_limits,
            rate_limiter,
            credits_per_ad=settings.rewards.credits_per_ad,
        )
    return _reward_service


def get_speech_synthesizer(settings: SettingsDep) -> SpeechSynthesizer:
    """Get the speech synthesizer.

    Only the mock provider ships with the core; deployments override this
    dependency with a real one.
    """
    global _speech_synthesizer
    if _speech_synthesizer is None:
        _speech_synthesizer = MockSpeechSynthesizer(model=settings.tts.model)
        logger.info("speech_synthesizer_initialized", provider="mock", model=settings.tts.model)
    return _speech_synthesizer


RewardServiceDep = Annotated[RewardService, Depends(get_reward_service)]
SpeechSynthesizerDep = Annotated[SpeechSynthesizer, Depends(get_speech_synthesizer)]


def build_identity(
    request: Request,
    settings: Settings,
    user_id: str | None,
    fingerprint_data: str | None,
) -> RequestIdentity:
    """Assemble the rate-limit identity of a request.

    The client IP is taken from proxy headers, then the socket peer, and
    hashed with ``rate_limit.ip_hash_salt``. Unusable fingerprint data is
    ignored.
    """
    peer = request.client.host if request.client else None
    client_ip = extract_client_ip(request.headers, peer)
    return RequestIdentity(
        ip=hash_ip(client_ip.ip, settings.rate_limit.ip_hash_salt),
        user_id=user_id,
        fingerprint=process_fingerprint_data(fingerprint_data),
    )


def get_request_identity(
    request: Request,
    settings: SettingsDep,
    session: OptionalSessionDep,
) -> RequestIdentity:
    """Identity for GET routes: fingerprint from ``?fingerprint=`` or X-Fingerprint."""
    fingerprint_data = request.query_params.get("fingerprint") or request.headers.get(
        "x-fingerprint"
    )
    return build_identity(
        request,
        settings,
        session.user_id if session else None,
        fingerprint_data,
    )


RequestIdentityDep = Annotated[RequestIdentity, Depends(get_request_identity)]


async def reset_dependencies() -> None:
    """Reset all cached dependencies.

    Used for testing to ensure fresh instances.
    Closes connections before resetting.
    """
    global _redis_client, _cache, _rate_limiter, _ad_token_service
    global _tts_token_service, _ad_watch_limiter, _reward_service, _speech_synthesizer

    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None

    _cache = None
    _rate_limiter = None
    _ad_token_service = None
    _tts_token_service = None
    _ad_watch_limiter = None
    _reward_service = None
    _speech_synthesizer = None
    get_settings.cache_clear()
