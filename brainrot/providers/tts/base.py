"""Speech synthesis interface and result types."""

from abc import ABC, abstractmethod
from typing import Literal

from pydantic import BaseModel, Field

AudioFormat = Literal["mp3", "opus", "aac", "flac", "wav", "pcm"]


class SpeechResult(BaseModel):
    """Audio produced by a synthesizer."""

    audio: bytes = Field(..., description="Encoded audio")
    format: AudioFormat = Field(..., description="Audio container format")
    voice: str = Field(..., description="Voice used")
    model: str = Field(..., description="Model used")


class SynthesisError(Exception):
    """Raised when a provider cannot produce audio."""


class SpeechSynthesizer(ABC):
    """Turns text into speech audio."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Provider name used in metrics."""

    @abstractmethod
    async def synthesize(
        self,
        text: str,
        *,
        voice: str,
        format: AudioFormat = "mp3",
        instructions: str | None = None,
    ) -> SpeechResult:
        """Synthesize ``text``.

        Raises:
            SynthesisError: The provider failed
        """
