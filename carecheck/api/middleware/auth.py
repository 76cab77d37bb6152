"""Authentication dependencies for API requests.

Candidates and admins authenticate with a JWT bearer token; ``sub`` is the
caller id (the candidate id for candidates) and ``roles`` lists granted
roles. The OCG webhook authenticates with a shared bearer secret.
"""

import hmac
import os
from typing import Annotated
from uuid import UUID

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from carecheck.api.exceptions import AuthenticationFailedError, ForbiddenError
from carecheck.config import get_settings
from carecheck.observability.logging import get_logger
from carecheck.verification.admin import ADMIN_ROLES
from carecheck.verification.models import Actor

logger = get_logger(__name__)

# Security scheme for OpenAPI docs
security_scheme = HTTPBearer(auto_error=False)


def get_jwt_secret() -> str:
    """Get JWT secret from environment."""
    secret = os.environ.get("CARECHECK_JWT_SECRET")
    if not secret:
        raise RuntimeError("CARECHECK_JWT_SECRET environment variable not set")
    return secret


def get_jwt_algorithm() -> str:
    return get_settings().api.jwt_algorithm


def get_ocg_webhook_secret() -> str | None:
    return os.environ.get("CARECHECK_OCG_WEBHOOK_SECRET") or None


async def get_actor(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security_scheme)],
) -> Actor:
    """Validate the bearer JWT and build the calling Actor.

    Raises:
        AuthenticationFailedError: 401 if the token is missing, invalid or expired
    """
    if credentials is None:
        logger.warning("auth_missing_token", path=request.url.path)
        raise AuthenticationFailedError("Missing authentication token")

    try:
        payload = jwt.decode(
            credentials.credentials,
            get_jwt_secret(),
            algorithms=[get_jwt_algorithm()],
        )
    except JWTError as e:
        logger.warning("auth_jwt_error", error=str(e), path=request.url.path)
        raise AuthenticationFailedError("Invalid or expired token") from None

    subject = payload.get("sub")
    if not subject:
        logger.warning("auth_missing_subject", path=request.url.path)
        raise AuthenticationFailedError("Token missing sub claim")

    roles = payload.get("roles") or []
    if isinstance(roles, str):
        roles = [roles]

    actor = Actor(subject=str(subject), roles=frozenset(roles))
    logger.debug("auth_success", subject=actor.subject, roles=sorted(actor.roles))
    return actor


async def get_candidate_id(actor: Annotated[Actor, Depends(get_actor)]) -> UUID:
    """The authenticated candidate's id, taken from ``sub``."""
    try:
        return UUID(actor.subject)
    except ValueError:
        raise AuthenticationFailedError("Token subject is not a candidate id") from None


async def require_admin(actor: Annotated[Actor, Depends(get_actor)]) -> Actor:
    """Reject callers without an admin role.

    Raises:
        ForbiddenError: 403 if the caller is not an admin
    """
    if not actor.has_any_role(*ADMIN_ROLES):
        logger.warning("auth_admin_required", subject=actor.subject)
        raise ForbiddenError("Admin role required")
    return actor


async def verify_ocg_webhook(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security_scheme)],
) -> None:
    """Check the OCG webhook's shared secret in constant time.

    Raises:
        AuthenticationFailedError: 401 if the secret is missing or wrong
    """
    expected = get_ocg_webhook_secret()
    if expected is None:
        logger.error("ocg_webhook_secret_not_configured")
        raise AuthenticationFailedError("Webhook authentication is not configured")

    provided = credentials.credentials if credentials else ""
    if not hmac.compare_digest(provided.encode(), expected.encode()):
        logger.warning("ocg_webhook_auth_failed", path=request.url.path)
        raise AuthenticationFailedError("Invalid webhook secret")


# Type aliases for dependency injection
ActorDep = Annotated[Actor, Depends(get_actor)]
CandidateIdDep = Annotated[UUID, Depends(get_candidate_id)]
AdminDep = Annotated[Actor, Depends(require_admin)]
