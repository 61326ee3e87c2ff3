"""Text-to-speech configuration models."""

from pydantic import BaseModel, Field

from brainrot.providers.tts.base import AudioFormat


class TTSConfig(BaseModel):
    """TTS token and synthesis configuration."""

    token_ttl_seconds: int = Field(
        default=30 * 60,
        gt=0,
        description="Lifetime of a TTS token from creation",
    )
    max_text_length: int = Field(
        default=4096,
        gt=0,
        description="Longest text accepted for synthesis",
    )
    default_voice: str = Field(default="alloy", description="Voice used when none requested")
    default_format: AudioFormat = Field(
        default="mp3",
        description="Audio format used when none requested",
    )
    model: str = Field(default="mock-tts-1", description="Synthesis model name")
