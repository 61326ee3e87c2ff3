"""Request and response models for the HTTP API."""

from brainrot.api.models.errors import ErrorCode, ErrorDetail, ErrorResponse
from brainrot.api.models.health import ComponentHealth, HealthResponse
from brainrot.api.models.rate_limit import (
    RateLimitKeysResponse,
    RateLimitStatusResponse,
    ResetRateLimitRequest,
    ResetRateLimitResponse,
)
from brainrot.api.models.rewards import (
    GenerateAdTokenRequest,
    GenerateAdTokenResponse,
    GrantCreditRequest,
    GrantCreditResponse,
)
from brainrot.api.models.tts import TTSRequest

__all__ = [
    "ErrorCode",
    "ErrorDetail",
    "ErrorResponse",
    "ComponentHealth",
    "HealthResponse",
    "RateLimitKeysResponse",
    "RateLimitStatusResponse",
    "ResetRateLimitRequest",
    "ResetRateLimitResponse",
    "GenerateAdTokenRequest",
    "GenerateAdTokenResponse",
    "GrantCreditRequest",
    "GrantCreditResponse",
    "TTSRequest",
]
