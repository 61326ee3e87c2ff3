"""Domain exceptions shared below the HTTP layer."""


class BrainrotError(Exception):
    """Base exception for the abuse-prevention core."""


class ConfigurationError(BrainrotError):
    """Raised when required configuration (usually a secret) is missing."""


class RewardsDisabledError(BrainrotError):
    """Raised when a rewards operation is attempted with the feature off."""

    def __init__(self, message: str = "Rewards system is disabled") -> None:
        super().__init__(message)


class CacheLayerError(BrainrotError):
    """Raised when every layer of a composite cache failed an operation."""

    def __init__(self, operation: str, errors: dict[str, BaseException]) -> None:
        self.operation = operation
        self.errors = errors
        detail = ", ".join(f"{layer}: {error}" for layer, error in errors.items())
        super().__init__(f"All cache {operation} operations failed: {detail}")


class InvalidAdTokenError(BrainrotError):
    """Raised when an ad token fails validation during a credit grant."""

    def __init__(self, reason: str | None = None) -> None:
        self.reason = reason
        super().__init__(reason or "The ad was not properly completed")


class AdLimitExceededError(BrainrotError):
    """Raised when the caller has watched too many ads in a window."""


class CreditGrantError(BrainrotError):
    """Raised when a bonus credit could not be written."""
