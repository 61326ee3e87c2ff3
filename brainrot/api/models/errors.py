"""Error response models for consistent API error handling."""

from enum import Enum
from typing import Literal

from pydantic import BaseModel


class ErrorCode(str, Enum):
    """Machine-readable error codes."""

    INVALID_REQUEST = "INVALID_REQUEST"
    """Request validation failed (malformed JSON, missing fields, etc.)."""

    UNAUTHORIZED = "UNAUTHORIZED"
    """No valid session was presented."""

    INVALID_TOKEN = "INVALID_TOKEN"
    """A TTS token was missing, expired or already spent."""

    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    """A request or ad-watch quota is exhausted."""

    FEATURE_DISABLED = "FEATURE_DISABLED"
    """The requested feature is switched off."""

    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    """A backing service is not configured or unreachable."""

    INTERNAL_ERROR = "INTERNAL_ERROR"
    """An unexpected internal error occurred."""


class ErrorDetail(BaseModel):
    """Field-level detail for validation failures."""

    field: str | None = None
    message: str


class ErrorResponse(BaseModel):
    """Standard error response format for all API errors.

    Example:
        {
            "success": false,
            "error": "Invalid ad token",
            "message": "Token already used",
            "code": "INVALID_REQUEST"
        }
    """

    success: Literal[False] = False
    error: str
    """Stable short label the web client switches on."""

    message: str
    """Human-readable explanation."""

    code: ErrorCode
    details: list[ErrorDetail] | None = None
