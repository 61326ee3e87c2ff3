"""Replay-protected tokens: signed ad-completion tokens and one-shot TTS tokens."""

from brainrot.tokens.ad_token import AdTokenService
from brainrot.tokens.tts_token import TTSTokenService

__all__ = ["AdTokenService", "TTSTokenService"]
