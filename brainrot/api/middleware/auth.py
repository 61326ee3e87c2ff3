"""Bearer session resolution.

Sessions are HS256 JWTs signed with AUTH_SECRET whose ``sub`` claim is the
user id. A missing or invalid token leaves the request anonymous; only
routes that depend on ``require_session`` reject it.
"""

from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import BaseModel

from brainrot.api.exceptions import UnauthorizedError
from brainrot.config.environment import get_auth_secret
from brainrot.observability.logging import get_logger

logger = get_logger(__name__)

SESSION_ALGORITHM = "HS256"

# Security scheme for OpenAPI docs
security_scheme = HTTPBearer(auto_error=False)


class Session(BaseModel):
    """Authenticated caller."""

    user_id: str
    email: str | None = None


async def get_optional_session(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security_scheme)],
) -> Session | None:
    """Resolve the session from the Authorization header, if any."""
    if credentials is None:
        return None

    secret = get_auth_secret()
    if not secret:
        logger.warning("auth_secret_missing", path=request.url.path)
        return None

    try:
        payload = jwt.decode(credentials.credentials, secret, algorithms=[SESSION_ALGORITHM])
    except JWTError as e:
        logger.info("auth_jwt_error", error=str(e), path=request.url.path)
        return None

    user_id = payload.get("sub")
    if not user_id:
        logger.info("auth_missing_subject", path=request.url.path)
        return None

    return Session(user_id=str(user_id), email=payload.get("email"))


OptionalSessionDep = Annotated[Session | None, Depends(get_optional_session)]


async def require_session(session: OptionalSessionDep) -> Session:
    """Reject the request with 401 unless a valid session is present."""
    if session is None:
        raise UnauthorizedError("Authentication required")
    return session


SessionDep = Annotated[Session, Depends(require_session)]
