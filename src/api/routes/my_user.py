"""Current-user profile routes.

- POST /api/my/user: create the caller's user record if it does not exist
- GET /api/my/user: read the caller's user record
- PUT /api/my/user: overwrite the caller's name and address
"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Response, status

from api.dependencies import get_user_repo
from api.models import CreateMyUserRequest, UpdateMyUserRequest, UserResponse
from api.security import AuthContext, jwt_check, jwt_parse, token_subject
from domain.model.errors import DuplicateError
from domain.model.user import ProfileUpdate
from port.user_repository import UserRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/my/user", tags=["my-user"])


@router.post("", response_model=UserResponse)
async def create_current_user(
    request: CreateMyUserRequest,
    response: Response,
    token: str = Depends(jwt_check),
    repo: UserRepository = Depends(get_user_repo),
):
    """Create the current user, or return the existing record for this subject.

    Returns:
        201 with the new user, or 200 with the user already stored

    Raises:
        HTTPException: 403 if auth0Id differs from the token subject,
            500 if the user could not be stored
    """
    if request.auth0_id != token_subject(token):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="auth0Id does not match the authenticated subject",
        )

    existing_user = repo.get_by_auth0_id(request.auth0_id)
    if existing_user:
        return UserResponse.from_domain(existing_user)

    try:
        user = repo.create(auth0_id=request.auth0_id, email=request.email, name=request.name)
    except DuplicateError:
        # A concurrent create for this subject won the insert
        user = repo.get_by_auth0_id(request.auth0_id)
        created = False
    else:
        created = True

    if not user:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create user",
        )

    if created:
        response.status_code = status.HTTP_201_CREATED
    return UserResponse.from_domain(user)


@router.get("", response_model=UserResponse)
async def get_current_user(
    auth: AuthContext = Depends(jwt_parse),
    repo: UserRepository = Depends(get_user_repo),
):
    """Get the current user's record."""
    user = repo.get_by_id(auth.user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return UserResponse.from_domain(user)


@router.put("", response_model=UserResponse)
async def update_current_user(
    request: UpdateMyUserRequest,
    auth: AuthContext = Depends(jwt_parse),
    repo: UserRepository = Depends(get_user_repo),
):
    """Overwrite name, addressLine1, city and country on the current user.

    auth0Id and email are never changed here. Concurrent updates are
    last-write-wins.

    Raises:
        HTTPException: 404 if the user disappeared after authentication
    """
    update = ProfileUpdate(
        name=request.name,
        address_line1=request.address_line1,
        city=request.city,
        country=request.country,
    )
    user = repo.update_profile(auth.user_id, update)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    logger.info("Profile updated", extra={"userId": auth.user_id})
    return UserResponse.from_domain(user)
