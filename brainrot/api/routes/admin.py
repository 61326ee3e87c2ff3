"""Admin endpoints for inspecting and resetting rate-limit counters."""

from fastapi import APIRouter

from brainrot.api.dependencies import RateLimiterDep
from brainrot.api.middleware.auth import SessionDep
from brainrot.api.models.rate_limit import (
    RateLimitKeysResponse,
    ResetRateLimitRequest,
    ResetRateLimitResponse,
)
from brainrot.observability.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/admin")

RESET_LABELS = {"ip": "IP", "user": "user", "fingerprint": "fingerprint"}


@router.get(
    "/rate-limit",
    response_model=RateLimitKeysResponse,
    response_model_by_alias=True,
)
async def list_rate_limit_keys(
    session: SessionDep,
    rate_limiter: RateLimiterDep,
) -> RateLimitKeysResponse:
    """List live rate-limit keys grouped by dimension."""
    info = await rate_limiter.get_debug_info()
    logger.info("admin_rate_limit_listed", user_id=session.user_id)
    return RateLimitKeysResponse(
        ip_keys=info.ip_keys,
        user_keys=info.user_keys,
        fingerprint_keys=info.fingerprint_keys,
        total_ip_entries=len(info.ip_keys),
        total_user_entries=len(info.user_keys),
        total_fingerprint_entries=len(info.fingerprint_keys),
    )


@router.delete(
    "/rate-limit",
    response_model=ResetRateLimitResponse,
    response_model_by_alias=True,
)
async def reset_rate_limit(
    body: ResetRateLimitRequest,
    session: SessionDep,
    rate_limiter: RateLimiterDep,
) -> ResetRateLimitResponse:
    """Reset the counters of one IP, user or fingerprint."""
    removed = await rate_limiter.reset_rate_limit(body.target, body.type)
    logger.info(
        "admin_rate_limit_reset",
        user_id=session.user_id,
        reset_type=body.type,
        removed=len(removed),
    )
    return ResetRateLimitResponse(
        message=f"Reset {RESET_LABELS[body.type]}: {body.target}",
        removed_keys=removed,
    )
