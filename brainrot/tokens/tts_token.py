"""TTS token service.

A TTS token authorizes exactly one speech synthesis for a given text. After
the first use, the generated audio is attached to the token so the client
can replay it without paying for synthesis again. Tokens expire 30 minutes
after creation; updates keep the original expiry.
"""

import secrets

from brainrot.cache.cache import Cache
from brainrot.cache.keys import TTS_TOKEN_PREFIX, tts_token_key
from brainrot.observability.logging import get_logger, truncate
from brainrot.observability.metrics import TTS_TOKEN_OUTCOMES
from brainrot.tokens.models import CachedAudio, TTSTokenData, TTSTokenValidationResult
from brainrot.utils.encoding import to_base36
from brainrot.utils.time import MINUTE_MS, Clock, now_ms

logger = get_logger(__name__)

DEFAULT_TOKEN_TTL_MS = 30 * MINUTE_MS


class TTSTokenService:
    """Issue, redeem and replay one-time TTS tokens."""

    def __init__(self, cache: Cache, token_ttl_ms: int = DEFAULT_TOKEN_TTL_MS, clock: Clock = now_ms) -> None:
        self._cache = cache
        self._token_ttl_ms = token_ttl_ms
        self._clock = clock

    @property
    def token_ttl_ms(self) -> int:
        return self._token_ttl_ms

    def generate_tts_token(self) -> str:
        """``tts_<base36 ms timestamp>_<random>``."""
        return f"tts_{to_base36(self._clock())}_{secrets.token_hex(6)}"

    def _remaining_ttl(self, data: TTSTokenData) -> int:
        return data.created_at + self._token_ttl_ms - self._clock()

    async def _load(self, token: str) -> TTSTokenData | None:
        raw = await self._cache.get(tts_token_key(token))
        if raw is None:
            return None
        data = TTSTokenData.model_validate(raw)
        if self._remaining_ttl(data) <= 0:
            return None
        return data

    async def _store(self, token: str, data: TTSTokenData, ttl_ms: int) -> None:
        await self._cache.set(tts_token_key(token), data.model_dump(by_alias=True), ttl_ms)

    async def store_tts_token(
        self,
        token: str,
        text: str,
        character_id: str | None = None,
        session_id: str | None = None,
    ) -> TTSTokenData:
        """Register a token for ``text``. Cache errors propagate."""
        data = TTSTokenData(
            text=text,
            character_id=character_id,
            session_id=session_id,
            created_at=self._clock(),
        )
        await self._store(token, data, self._token_ttl_ms)
        logger.info("tts_token_stored", token=truncate(token, 12), text_length=len(text))
        return data

    async def create_tts_token(
        self,
        text: str,
        character_id: str | None = None,
        session_id: str | None = None,
    ) -> str:
        """Generate and store a token in one step."""
        token = self.generate_tts_token()
        await self.store_tts_token(token, text, character_id, session_id)
        return token

    @staticmethod
    def _invalid(error: str) -> TTSTokenValidationResult:
        TTS_TOKEN_OUTCOMES.labels(outcome=error).inc()
        return TTSTokenValidationResult(valid=False, error=error)

    async def validate_and_consume_tts_token(self, token: str) -> TTSTokenValidationResult:
        """Redeem a token.

        A token carrying cached audio is a replay: it is returned as stored
        and nothing is written. Otherwise the first use stamps ``usedAt`` and
        any later use is rejected. Cache errors propagate.
        """
        if not token or not isinstance(token, str):
            return self._invalid("Invalid token format")

        data = await self._load(token)
        if data is None:
            return self._invalid("Token not found or expired")

        if data.cached_audio is not None:
            TTS_TOKEN_OUTCOMES.labels(outcome="replay").inc()
            logger.info("tts_token_replay", token=truncate(token, 12))
            return TTSTokenValidationResult(valid=True, token_data=data)

        if data.used_at is not None:
            return self._invalid("Token already used but no cached audio available")

        data.used_at = self._clock()
        remaining = self._remaining_ttl(data)
        if remaining > 0:
            await self._store(token, data, remaining)

        TTS_TOKEN_OUTCOMES.labels(outcome="consumed").inc()
        logger.info("tts_token_consumed", token=truncate(token, 12))
        return TTSTokenValidationResult(valid=True, token_data=data)

    async def check_tts_token(self, token: str) -> TTSTokenValidationResult:
        """Validate without consuming; used tokens are rejected."""
        if not token or not isinstance(token, str):
            return self._invalid("Invalid token format")

        data = await self._load(token)
        if data is None:
            return self._invalid("Token not found or expired")
        if data.used_at is not None:
            return self._invalid("Token already used")
        return TTSTokenValidationResult(valid=True, token_data=data)

    async def cache_audio_with_token(
        self,
        token: str,
        audio: bytes,
        format: str,
        voice: str,
        model: str,
    ) -> bool:
        """Attach generated audio to a token for later replays.

        Returns:
            True if the audio was stored
        """
        data = await self._load(token)
        if data is None:
            logger.warning("tts_token_missing_for_audio", token=truncate(token, 12))
            return False

        remaining = self._remaining_ttl(data)
        if remaining <= 0:
            return False

        data.cached_audio = CachedAudio(
            data=audio,
            format=format,
            voice=voice,
            model=model,
            content_type=f"audio/{format}",
        )
        await self._store(token, data, remaining)
        logger.info("tts_audio_cached", token=truncate(token, 12), size=len(audio), format=format)
        return True

    async def cleanup_expired_tokens(self) -> int:
        """Delete token entries that are unreadable or past their lifetime.

        Returns:
            Number of entries deleted
        """
        cleaned = 0
        for key in await self._cache.keys(f"{TTS_TOKEN_PREFIX}*"):
            raw = await self._cache.get(key)
            expired = raw is None
            if not expired:
                try:
                    data = TTSTokenData.model_validate(raw)
                    expired = self._remaining_ttl(data) <= 0
                except ValueError:
                    expired = True
            if expired:
                await self._cache.delete(key)
                cleaned += 1

        if cleaned:
            logger.info("tts_tokens_cleaned", count=cleaned)
        return cleaned
