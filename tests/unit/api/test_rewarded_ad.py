"""Tests for the /api/rewarded-ad endpoints."""

import json
from unittest.mock import AsyncMock

import pytest

from brainrot.api.dependencies import get_rate_limiter
from brainrot.ratelimit.limiter import RateLimiter
from tests.unit.api.conftest import FINGERPRINT_DATA

OTHER_FINGERPRINT = json.dumps({**json.loads(FINGERPRINT_DATA), "timezone": "Asia/Tokyo"})


@pytest.fixture
def settings_overrides() -> dict:
    return {"rewards": {"enabled": True, "max_ads_per_hour": 2}}


def _generate(client, fingerprint_data=FINGERPRINT_DATA, **kwargs):
    return client.post(
        "/api/rewarded-ad/generate-token", json={"fingerprintData": fingerprint_data}, **kwargs
    )


def _grant(client, ad_token, fingerprint_data=FINGERPRINT_DATA, **kwargs):
    return client.post(
        "/api/rewarded-ad/grant-credit",
        json={"adToken": ad_token, "fingerprintData": fingerprint_data},
        **kwargs,
    )


class TestGenerateToken:
    def test_issues_token(self, client) -> None:
        response = _generate(client)
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["adToken"].count(".") == 2
        assert data["expiresIn"] == 300
        assert data["message"] == "Ad token generated successfully"

    @pytest.mark.parametrize("fingerprint_data", [None, "not json", "{}"])
    def test_requires_valid_fingerprint(self, client, fingerprint_data) -> None:
        response = _generate(client, fingerprint_data)
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid fingerprint"


class TestGrantCredit:
    """Tests for trading an ad token for a bonus credit."""

    def test_grants_one_credit(self, client) -> None:
        token = _generate(client).json()["adToken"]

        response = _grant(client, token)
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["remaining"] == 4
        assert data["message"] == "Credit granted successfully! You can now send 1 more message."
        assert isinstance(data["resetTime"], int)

        assert client.get("/api/rate-limit").json()["remaining"] == 4

    def test_signed_in_credit(self, client, auth_headers) -> None:
        headers = auth_headers("user-9")
        token = _generate(client, headers=headers).json()["adToken"]
        data = _grant(client, token, headers=headers).json()
        assert data["remaining"] == 11

    def test_replay_rejected(self, client) -> None:
        token = _generate(client).json()["adToken"]
        _grant(client, token)

        response = _grant(client, token)
        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "error": "Invalid ad token",
            "message": "Token already used",
            "code": "INVALID_REQUEST",
        }

    def test_fingerprint_mismatch(self, client) -> None:
        token = _generate(client).json()["adToken"]
        response = _grant(client, token, OTHER_FINGERPRINT)
        assert response.status_code == 400
        assert response.json()["message"] == "Fingerprint mismatch"

    def test_forged_token(self, client) -> None:
        response = _grant(client, "eyJhbGciOiJIUzI1NiJ9.e30.forged")
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid token signature"

    def test_hourly_ad_limit(self, client) -> None:
        for _ in range(2):
            assert _grant(client, _generate(client).json()["adToken"]).status_code == 200

        response = _grant(client, _generate(client).json()["adToken"])
        assert response.status_code == 429
        data = response.json()
        assert data["error"] == "Ad rate limit exceeded"
        assert data["code"] == "RATE_LIMIT_EXCEEDED"
        assert data["message"] == "You can only watch 2 ads per hour. Please try again later."

    def test_missing_token_is_validation_error(self, client) -> None:
        response = client.post("/api/rewarded-ad/grant-credit", json={"fingerprintData": FINGERPRINT_DATA})
        assert response.status_code == 400
        assert response.json()["error"] == "Validation failed"

    def test_storage_failure(self, app, client) -> None:
        broken = AsyncMock(spec=RateLimiter)
        broken.add_bonus_credits.side_effect = RuntimeError("down")
        app.dependency_overrides[get_rate_limiter] = lambda: broken
        token = _generate(client).json()["adToken"]

        response = _grant(client, token)
        assert response.status_code == 500
        assert response.json()["error"] == "Failed to grant credit"
        assert response.json()["message"] == "Unable to grant credit. Please try again."


class TestFeatureFlag:
    @pytest.fixture
    def settings_overrides(self) -> dict:
        return {"rewards": {"enabled": False}}

    def test_disabled_in_config(self, client) -> None:
        response = _generate(client)
        assert response.status_code == 503
        assert response.json() == {
            "success": False,
            "error": "Rewards system is currently disabled",
            "message": "The rewarded ad system is currently disabled",
            "code": "FEATURE_DISABLED",
        }
        assert _grant(client, "x.y.z").status_code == 503

    def test_env_flag_enables(self, client, monkeypatch) -> None:
        monkeypatch.setenv("ENABLE_REWARDS", "true")
        assert _generate(client).status_code == 200

    def test_enabled_without_secret(self, client, monkeypatch) -> None:
        monkeypatch.setenv("ENABLE_REWARDS", "true")
        monkeypatch.delenv("AD_TOKEN_SECRET")
        monkeypatch.delenv("AUTH_SECRET")

        response = _generate(client)
        assert response.status_code == 503
        assert response.json()["error"] == "Service not configured"
        assert "SECRET" not in response.json()["message"]
