"""Rate-limit status endpoint."""

from fastapi import APIRouter

from brainrot.api.dependencies import RateLimiterDep, RequestIdentityDep
from brainrot.api.exceptions import BrainrotAPIError
from brainrot.api.models.rate_limit import RateLimitStatusResponse
from brainrot.observability.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.get(
    "/rate-limit",
    response_model=RateLimitStatusResponse,
    response_model_by_alias=True,
)
async def get_rate_limit_status(
    identity: RequestIdentityDep,
    rate_limiter: RateLimiterDep,
) -> RateLimitStatusResponse:
    """Current standing of the caller. Nothing is consumed.

    The fingerprint comes from the ``fingerprint`` query parameter or the
    X-Fingerprint header, so the status matches what consumption would see.
    """
    try:
        status = await rate_limiter.check_rate_limit(identity)
    except Exception as e:
        logger.exception("rate_limit_status_failed", error=str(e))
        raise BrainrotAPIError(
            "Unable to check rate limit", error="Failed to check rate limit"
        ) from e

    logger.debug(
        "rate_limit_status",
        allowed=status.allowed,
        remaining=status.remaining,
        method=status.method,
        is_logged_in=status.is_logged_in,
    )
    return RateLimitStatusResponse(
        allowed=status.allowed,
        remaining=status.remaining,
        reset_time=status.reset_time,
        requires_auth=status.requires_auth,
        is_logged_in=status.is_logged_in,
        method=status.method,
    )
