"""Speech synthesis providers."""

from brainrot.providers.tts.base import (
    AudioFormat,
    SpeechResult,
    SpeechSynthesizer,
    SynthesisError,
)
from brainrot.providers.tts.mock import MockSpeechSynthesizer

__all__ = [
    "AudioFormat",
    "SpeechResult",
    "SpeechSynthesizer",
    "SynthesisError",
    "MockSpeechSynthesizer",
]
