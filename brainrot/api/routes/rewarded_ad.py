"""Rewarded-ad endpoints.

A client asks for an ad token before showing an ad, then trades the token
for one bonus credit once the ad has been watched.
"""

from fastapi import APIRouter, Request

from brainrot.api.dependencies import RewardServiceDep, SettingsDep, build_identity
from brainrot.api.exceptions import (
    BrainrotAPIError,
    FeatureDisabledError,
    InvalidRequestError,
    RateLimitExceededError,
)
from brainrot.api.middleware.auth import OptionalSessionDep
from brainrot.api.models.rewards import (
    GenerateAdTokenRequest,
    GenerateAdTokenResponse,
    GrantCreditRequest,
    GrantCreditResponse,
)
from brainrot.exceptions import (
    AdLimitExceededError,
    CreditGrantError,
    InvalidAdTokenError,
    RewardsDisabledError,
)
from brainrot.observability.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/rewarded-ad")


def _rewards_disabled() -> FeatureDisabledError:
    return FeatureDisabledError(
        "The rewarded ad system is currently disabled",
        error="Rewards system is currently disabled",
    )


@router.post(
    "/generate-token",
    response_model=GenerateAdTokenResponse,
    response_model_by_alias=True,
)
async def generate_token(
    body: GenerateAdTokenRequest,
    request: Request,
    settings: SettingsDep,
    session: OptionalSessionDep,
    rewards: RewardServiceDep,
) -> GenerateAdTokenResponse:
    """Issue an ad token bound to the caller's fingerprint."""
    if not rewards.enabled:
        raise _rewards_disabled()

    identity = build_identity(
        request, settings, session.user_id if session else None, body.fingerprint_data
    )
    if identity.fingerprint is None:
        raise InvalidRequestError(
            "Valid fingerprint data is required to watch an ad",
            error="Invalid fingerprint",
        )

    try:
        issued = await rewards.generate_token(identity)
    except RewardsDisabledError as e:
        raise _rewards_disabled() from e
    except Exception as e:
        logger.exception("ad_token_generation_failed", error=str(e))
        raise BrainrotAPIError(
            "Unable to generate ad token. Please try again.",
            error="Token generation failed",
        ) from e

    return GenerateAdTokenResponse(ad_token=issued.token, expires_in=issued.expires_in)


@router.post(
    "/grant-credit",
    response_model=GrantCreditResponse,
    response_model_by_alias=True,
)
async def grant_credit(
    body: GrantCreditRequest,
    request: Request,
    settings: SettingsDep,
    session: OptionalSessionDep,
    rewards: RewardServiceDep,
) -> GrantCreditResponse:
    """Redeem an ad token for one bonus credit."""
    if not rewards.enabled:
        raise _rewards_disabled()

    identity = build_identity(
        request, settings, session.user_id if session else None, body.fingerprint_data
    )

    try:
        granted = await rewards.grant_credit(identity, body.ad_token)
    except RewardsDisabledError as e:
        raise _rewards_disabled() from e
    except InvalidAdTokenError as e:
        raise InvalidRequestError(
            e.reason or "The ad was not properly completed", error="Invalid ad token"
        ) from e
    except AdLimitExceededError as e:
        raise RateLimitExceededError(str(e), error="Ad rate limit exceeded") from e
    except CreditGrantError as e:
        raise BrainrotAPIError(
            "Unable to grant credit. Please try again.", error="Failed to grant credit"
        ) from e

    return GrantCreditResponse(remaining=granted.remaining, reset_time=granted.reset_time)
