"""Fixtures for API route tests.

The application is built by ``create_app`` with settings, cache and rate
limiter overridden. Ad tokens are real JWTs, so every service here runs on
the wall clock.
"""

import json
from collections.abc import AsyncIterator, Callable

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from jose import jwt

from brainrot.api.app import create_app
from brainrot.api.dependencies import (
    get_cache,
    get_rate_limiter,
    get_speech_synthesizer,
    reset_dependencies,
)
from brainrot.cache.cache import Cache
from brainrot.cache.stores.inmemory import InMemoryCacheAdapter
from brainrot.config import get_settings
from brainrot.config.settings import Settings
from brainrot.providers.tts import MockSpeechSynthesizer
from brainrot.ratelimit.burst import BurstRateLimiter
from brainrot.ratelimit.ip import hash_ip
from brainrot.ratelimit.limiter import RateLimiter
from brainrot.ratelimit.models import RequestIdentity

CLIENT_IP = "203.0.113.10"
AUTH_SECRET = "test-auth-secret"
AD_SECRET = "test-ad-secret"

FINGERPRINT_DATA = json.dumps({
    "userAgent": "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 Chrome/126.0",
    "language": "en-US",
    "timezone": "Europe/Rome",
    "screenResolution": "1920x1080",
    "colorDepth": 24,
    "hardwareConcurrency": 8,
    "canvasFingerprint": "data:image/png;base64,iVBORw0KGgo",
    "webglFingerprint": "ANGLE (Intel, Mesa Intel(R) UHD Graphics)",
    "audioFingerprint": "124.04347527516074",
})


@pytest.fixture
def settings_overrides() -> dict:
    """Init kwargs for Settings; tests override this fixture to tweak config."""
    return {}


@pytest.fixture
def settings(settings_overrides: dict) -> Settings:
    return Settings(**settings_overrides)


@pytest.fixture(autouse=True)
def secrets_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AUTH_SECRET", AUTH_SECRET)
    monkeypatch.setenv("AD_TOKEN_SECRET", AD_SECRET)
    monkeypatch.delenv("ENABLE_REWARDS", raising=False)


@pytest.fixture
def api_cache() -> Cache:
    return Cache(InMemoryCacheAdapter())


@pytest.fixture
def rate_limiter(api_cache: Cache, settings: Settings) -> RateLimiter:
    return RateLimiter(
        api_cache,
        settings.rate_limit,
        BurstRateLimiter(api_cache, settings.rate_limit.burst),
    )


@pytest.fixture
def synthesizer() -> MockSpeechSynthesizer:
    return MockSpeechSynthesizer(model="mock-tts-1")


@pytest.fixture
async def app(
    settings: Settings,
    api_cache: Cache,
    rate_limiter: RateLimiter,
    synthesizer: MockSpeechSynthesizer,
) -> AsyncIterator[FastAPI]:
    await reset_dependencies()

    app = create_app()
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_cache] = lambda: api_cache
    app.dependency_overrides[get_rate_limiter] = lambda: rate_limiter
    app.dependency_overrides[get_speech_synthesizer] = lambda: synthesizer

    yield app

    await reset_dependencies()


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app, raise_server_exceptions=False, headers={"X-Forwarded-For": CLIENT_IP})


@pytest.fixture
def auth_headers() -> Callable[[str], dict[str, str]]:
    """Bearer header for a signed session of the given user."""

    def _headers(user_id: str = "user-1") -> dict[str, str]:
        token = jwt.encode({"sub": user_id, "email": f"{user_id}@example.com"}, AUTH_SECRET, algorithm="HS256")
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def anonymous(settings: Settings) -> RequestIdentity:
    """The identity the API derives for an anonymous test client."""
    return RequestIdentity(ip=hash_ip(CLIENT_IP, settings.rate_limit.ip_hash_salt))
