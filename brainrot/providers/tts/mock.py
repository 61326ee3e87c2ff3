"""Mock speech synthesizer for development and tests."""

import hashlib
from typing import Any

from brainrot.providers.tts.base import AudioFormat, SpeechResult, SpeechSynthesizer


class MockSpeechSynthesizer(SpeechSynthesizer):
    """Deterministic synthesizer that never calls out.

    The audio is a short header followed by a digest of the inputs, so the
    same request always yields the same bytes.
    """

    def __init__(self, model: str = "mock-tts-1") -> None:
        self._model = model
        self._call_history: list[dict[str, Any]] = []

    @property
    def provider_name(self) -> str:
        return "mock"

    @property
    def call_history(self) -> list[dict[str, Any]]:
        """Return history of calls for testing assertions."""
        return self._call_history

    async def synthesize(
        self,
        text: str,
        *,
        voice: str,
        format: AudioFormat = "mp3",
        instructions: str | None = None,
    ) -> SpeechResult:
        self._call_history.append(
            {"text": text, "voice": voice, "format": format, "instructions": instructions}
        )
        digest = hashlib.sha256(f"{voice}:{format}:{text}".encode()).digest()
        return SpeechResult(
            audio=b"MOCK" + format.encode() + digest,
            format=format,
            voice=voice,
            model=self._model,
        )
