"""Token models."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class AdTokenPayload(BaseModel):
    """Claims carried by a signed ad-completion token."""

    type: Literal["ad_completion"] = "ad_completion"
    fingerprint: str
    nonce: str
    iat: int = Field(description="Issued at, epoch seconds")
    exp: int = Field(description="Expiry, epoch seconds")
    jti: str = Field(description="Unique token id used for replay protection")


class AdTokenValidationResult(BaseModel):
    valid: bool
    reason: str | None = None
    payload: AdTokenPayload | None = None


class CachedAudio(BaseModel):
    """Audio generated for a TTS token, kept for replays."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    data: bytes
    format: str
    voice: str
    model: str
    content_type: str


class TTSTokenData(BaseModel):
    """Stored state of a TTS token (camelCase in the cache)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    text: str
    character_id: str | None = None
    session_id: str | None = None
    created_at: int = Field(description="Epoch ms")
    used_at: int | None = Field(default=None, description="Epoch ms of first use")
    cached_audio: CachedAudio | None = None


class TTSTokenValidationResult(BaseModel):
    valid: bool
    error: str | None = None
    token_data: TTSTokenData | None = None
