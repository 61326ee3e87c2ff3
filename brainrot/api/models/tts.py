"""TTS request model."""

from pydantic import Field

from brainrot.providers.tts.base import AudioFormat
from brainrot.ratelimit.models import CamelModel


class TTSRequest(CamelModel):
    """Body of POST /api/tts. The text itself comes from the token."""

    tts_token: str = Field(..., min_length=1, max_length=256)
    voice: str | None = Field(default=None, max_length=64)
    instructions: str | None = Field(default=None, max_length=4096)
    format: AudioFormat | None = None
    character_id: str | None = Field(default=None, max_length=128)
