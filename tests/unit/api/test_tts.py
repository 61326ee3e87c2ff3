"""Tests for POST /api/tts."""

import pytest

from brainrot.api.dependencies import get_speech_synthesizer
from brainrot.providers.tts import SpeechResult, SpeechSynthesizer, SynthesisError
from brainrot.tokens.tts_token import TTSTokenService


class FailingSynthesizer(SpeechSynthesizer):
    def __init__(self, error: Exception) -> None:
        self._error = error

    @property
    def provider_name(self) -> str:
        return "failing"

    async def synthesize(self, text, *, voice, format="mp3", instructions=None) -> SpeechResult:
        raise self._error


@pytest.fixture
def tts_tokens(api_cache) -> TTSTokenService:
    return TTSTokenService(api_cache)


def _speak(client, token: str, **options):
    return client.post("/api/tts", json={"ttsToken": token, **options})


class TestSynthesis:
    async def test_first_use_synthesizes(self, client, tts_tokens, synthesizer) -> None:
        token = await tts_tokens.create_tts_token("skibidi toilet", character_id="skibidi")

        response = _speak(client, token)

        assert response.status_code == 200
        assert response.headers["content-type"] == "audio/mp3"
        assert response.headers["x-cache"] == "MISS"
        assert response.headers["x-tts-voice"] == "alloy"
        assert response.headers["x-tts-model"] == "mock-tts-1"
        assert response.headers["cache-control"] == "public, max-age=3600"
        assert response.headers["x-tts-token"] == f"{token[:12]}..."
        assert response.content.startswith(b"MOCKmp3")
        assert synthesizer.call_history[0]["text"] == "skibidi toilet"

    async def test_replay_serves_cached_audio(self, client, tts_tokens, synthesizer) -> None:
        token = await tts_tokens.create_tts_token("hello")
        first = _speak(client, token)

        second = _speak(client, token)
        assert second.status_code == 200
        assert second.headers["x-cache"] == "HIT"
        assert second.content == first.content
        assert len(synthesizer.call_history) == 1

    async def test_voice_and_format_options(self, client, tts_tokens, synthesizer) -> None:
        token = await tts_tokens.create_tts_token("hello")
        response = _speak(client, token, voice="nova", format="wav", instructions="slowly")

        assert response.headers["content-type"] == "audio/wav"
        assert response.headers["x-tts-voice"] == "nova"
        assert synthesizer.call_history[0]["instructions"] == "slowly"


class TestRejections:
    def test_unknown_token(self, client) -> None:
        response = _speak(client, "tts_missing")
        assert response.status_code == 403
        assert response.json() == {
            "success": False,
            "error": "Invalid TTS token",
            "message": "Token not found or expired",
            "code": "INVALID_TOKEN",
        }

    async def test_used_token_without_audio(self, client, tts_tokens) -> None:
        token = await tts_tokens.create_tts_token("hello")
        await tts_tokens.validate_and_consume_tts_token(token)

        response = _speak(client, token)
        assert response.status_code == 403
        assert response.json()["message"] == "Token already used but no cached audio available"

    def test_unsupported_format(self, client) -> None:
        response = _speak(client, "tts_x", format="ogg")
        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_REQUEST"

    @pytest.fixture
    def settings_overrides(self) -> dict:
        return {"tts": {"max_text_length": 10}}

    async def test_text_too_long(self, client, tts_tokens) -> None:
        token = await tts_tokens.create_tts_token("this text is too long")
        response = _speak(client, token)
        assert response.status_code == 400
        assert response.json()["error"] == "Text too long"
        assert response.json()["message"] == "Text must be 10 characters or less"


class TestProviderFailures:
    async def test_synthesis_error(self, app, client, tts_tokens) -> None:
        app.dependency_overrides[get_speech_synthesizer] = lambda: FailingSynthesizer(
            SynthesisError("upstream down")
        )
        token = await tts_tokens.create_tts_token("hello")

        response = _speak(client, token)
        assert response.status_code == 503
        assert response.json()["error"] == "Failed to generate speech"
        assert response.json()["message"] == "TTS service temporarily unavailable"

    async def test_unexpected_error(self, app, client, tts_tokens) -> None:
        app.dependency_overrides[get_speech_synthesizer] = lambda: FailingSynthesizer(
            RuntimeError("bug")
        )
        token = await tts_tokens.create_tts_token("hello")

        response = _speak(client, token)
        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "error": "Internal server error",
            "message": "An unexpected error occurred",
            "code": "INTERNAL_ERROR",
        }
