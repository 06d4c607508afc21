"""Bearer token authentication dependencies.

Two stages, applied in order on protected routes:

- ``jwt_check`` verifies the token's signature, audience and issuer through
  the configured TokenVerifier.
- ``jwt_parse`` decodes the payload without verifying it, reads the subject
  and resolves it to a stored user. The subject and the user's local id are
  attached to ``request.state``.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt
from jose.exceptions import JOSEError

from api.dependencies import get_token_verifier, get_user_repo
from domain.model.errors import AuthenticationError, IdentityProviderError
from port.token_verifier import TokenVerifier
from port.user_repository import UserRepository

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthContext:
    """Identity of the caller after both authentication stages."""
    auth0_id: str
    user_id: str


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def token_subject(token: str) -> str:
    """Read the ``sub`` claim without verifying the token. Raises 401 if absent."""
    try:
        claims = jwt.get_unverified_claims(token)
    except JOSEError as e:
        logger.debug(f"Token payload could not be decoded: {e}")
        raise _unauthorized("Invalid authentication credentials")

    subject = claims.get("sub")
    if not isinstance(subject, str) or not subject:
        raise _unauthorized("Invalid authentication credentials")
    return subject


def jwt_check(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    verifier: TokenVerifier = Depends(get_token_verifier),
) -> str:
    """Verify the bearer token. Return the raw token, or raise 401."""
    if not credentials:
        raise _unauthorized("Not authenticated")

    try:
        verifier.verify(credentials.credentials)
    except AuthenticationError as e:
        logger.debug(f"JWT verification failed: {e}")
        raise _unauthorized("Invalid authentication credentials")
    except IdentityProviderError as e:
        logger.error("Identity provider unavailable", extra={"error": str(e)})
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Identity provider unavailable",
        )

    return credentials.credentials


def jwt_parse(
    request: Request,
    token: str = Depends(jwt_check),
    user_repo: UserRepository = Depends(get_user_repo),
) -> AuthContext:
    """Resolve a verified token to a stored user. Raises 401 if there is none."""
    auth0_id = token_subject(token)

    user = user_repo.get_by_auth0_id(auth0_id)
    if not user:
        raise _unauthorized("User not found")

    request.state.auth0_id = auth0_id
    request.state.user_id = user.id
    return AuthContext(auth0_id=auth0_id, user_id=user.id)
