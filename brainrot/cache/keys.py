"""Cache key naming conventions.

Every service builds its keys here so admin scans and resets agree with
what the limiters write.
"""

from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from brainrot.ratelimit.models import RateLimitMethod

AdLimitMethod = Literal["user", "fingerprint", "ip"]
AdLimitWindow = Literal["hourly", "daily"]
BonusMethod = Literal["user", "ip"]

RATE_LIMIT_PREFIX = "rate_limit:"
BONUS_CREDITS_PREFIX = "bonus_credits:"
AD_LIMIT_PREFIX = "ad_limit:"
AD_TOKEN_PREFIX = "ad_token:"
TTS_TOKEN_PREFIX = "tts_token:"


def rate_limit_key(method: "RateLimitMethod", identity: str) -> str:
    """``rate_limit:<method>:<identity>``.

    For ``combined`` the identity is ``<ip>:<fingerprint>``.
    """
    return f"{RATE_LIMIT_PREFIX}{method}:{identity}"


def combined_identity(ip_identity: str, fingerprint: str) -> str:
    return f"{ip_identity}:{fingerprint}"


def combined_pattern_for_fingerprint(fingerprint: str) -> str:
    return f"{RATE_LIMIT_PREFIX}combined:*:{fingerprint}"


def burst_key(method: str, identity: str) -> str:
    return f"{RATE_LIMIT_PREFIX}burst_{method}:{identity}"


def bonus_credits_key(method: BonusMethod, identity: str) -> str:
    return f"{BONUS_CREDITS_PREFIX}{method}:{identity}"


def ad_limit_key(method: AdLimitMethod, window: AdLimitWindow, identity: str) -> str:
    return f"{AD_LIMIT_PREFIX}{method}:{window}:{identity}"


def ad_token_valid_key(jti: str) -> str:
    return f"{AD_TOKEN_PREFIX}valid:{jti}"


def ad_token_used_key(jti: str) -> str:
    return f"{AD_TOKEN_PREFIX}used:{jti}"


def ad_token_blacklist_key(jti: str) -> str:
    return f"{AD_TOKEN_PREFIX}blacklist:{jti}"


def tts_token_key(token: str) -> str:
    return f"{TTS_TOKEN_PREFIX}{token}"
