"""Text-to-speech playback endpoint.

The text to speak is carried by a one-time TTS token minted alongside the
chat reply. The first redemption synthesizes and stores the audio on the
token; later redemptions replay the stored audio.
"""

from fastapi import APIRouter, Response

from brainrot.api.dependencies import SettingsDep, SpeechSynthesizerDep, TTSTokenServiceDep
from brainrot.api.exceptions import (
    BrainrotAPIError,
    InvalidRequestError,
    InvalidTokenError,
    ServiceUnavailableError,
)
from brainrot.api.models.tts import TTSRequest
from brainrot.observability.logging import get_logger, truncate
from brainrot.observability.metrics import TTS_SYNTHESIS_LATENCY
from brainrot.providers.tts import SynthesisError

logger = get_logger(__name__)

router = APIRouter()

CACHE_CONTROL = "public, max-age=3600"


def _audio_response(
    audio: bytes,
    content_type: str,
    voice: str,
    model: str,
    cache_status: str,
    token: str,
) -> Response:
    return Response(
        content=audio,
        media_type=content_type,
        headers={
            "Cache-Control": CACHE_CONTROL,
            "X-TTS-Model": model,
            "X-TTS-Voice": voice,
            "X-Cache": cache_status,
            "X-TTS-Token": truncate(token, 12),
        },
    )


@router.post("/tts")
async def text_to_speech(
    body: TTSRequest,
    settings: SettingsDep,
    tokens: TTSTokenServiceDep,
    synthesizer: SpeechSynthesizerDep,
) -> Response:
    """Synthesize, or replay, the audio for a TTS token."""
    result = await tokens.validate_and_consume_tts_token(body.tts_token)
    if not result.valid or result.token_data is None:
        raise InvalidTokenError(
            result.error or "The provided TTS token is invalid or has been used."
        )

    token_data = result.token_data
    cached = token_data.cached_audio
    if cached is not None:
        logger.info("tts_replay_served", token=truncate(body.tts_token, 12))
        return _audio_response(
            cached.data, cached.content_type, cached.voice, cached.model, "HIT", body.tts_token
        )

    text = token_data.text
    if len(text) > settings.tts.max_text_length:
        raise InvalidRequestError(
            f"Text must be {settings.tts.max_text_length} characters or less",
            error="Text too long",
        )

    voice = body.voice or settings.tts.default_voice
    audio_format = body.format or settings.tts.default_format

    try:
        with TTS_SYNTHESIS_LATENCY.labels(provider=synthesizer.provider_name).time():
            speech = await synthesizer.synthesize(
                text, voice=voice, format=audio_format, instructions=body.instructions
            )
    except SynthesisError as e:
        logger.warning("tts_synthesis_failed", error=str(e))
        raise ServiceUnavailableError(
            "TTS service temporarily unavailable", error="Failed to generate speech"
        ) from e

    if not speech.audio:
        raise BrainrotAPIError("Empty audio data generated", error="Failed to generate speech")

    await tokens.cache_audio_with_token(
        body.tts_token, speech.audio, speech.format, speech.voice, speech.model
    )

    logger.info(
        "tts_generated",
        token=truncate(body.tts_token, 12),
        character_id=body.character_id or token_data.character_id,
        voice=speech.voice,
        size=len(speech.audio),
    )
    return _audio_response(
        speech.audio,
        f"audio/{speech.format}",
        speech.voice,
        speech.model,
        "MISS",
        body.tts_token,
    )
