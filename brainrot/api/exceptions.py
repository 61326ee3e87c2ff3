"""API exception hierarchy for consistent error handling.

All API exceptions inherit from BrainrotAPIError, which provides
status_code, error_code and a short ``error`` label used by the global
exception handler to render ErrorResponse.
"""

from brainrot.api.models.errors import ErrorCode


class BrainrotAPIError(Exception):
    """Base exception for all API errors."""

    status_code: int = 500
    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR
    error: str = "Internal server error"

    def __init__(self, message: str, error: str | None = None) -> None:
        self.message = message
        if error is not None:
            self.error = error
        super().__init__(message)


class InvalidRequestError(BrainrotAPIError):
    """Raised when request validation fails."""

    status_code = 400
    error_code = ErrorCode.INVALID_REQUEST
    error = "Invalid request"


class UnauthorizedError(BrainrotAPIError):
    """Raised when a route needs a signed-in session."""

    status_code = 401
    error_code = ErrorCode.UNAUTHORIZED
    error = "Unauthorized"


class InvalidTokenError(BrainrotAPIError):
    """Raised when a TTS token cannot be redeemed."""

    status_code = 403
    error_code = ErrorCode.INVALID_TOKEN
    error = "Invalid TTS token"


class RateLimitExceededError(BrainrotAPIError):
    status_code = 429
    error_code = ErrorCode.RATE_LIMIT_EXCEEDED
    error = "Rate limit exceeded"


class FeatureDisabledError(BrainrotAPIError):
    status_code = 503
    error_code = ErrorCode.FEATURE_DISABLED
    error = "Feature disabled"


class ServiceUnavailableError(BrainrotAPIError):
    """Raised when a backing service is missing or misconfigured."""

    status_code = 503
    error_code = ErrorCode.SERVICE_UNAVAILABLE
    error = "Service unavailable"
