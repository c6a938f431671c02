"""User profile API endpoints."""

from fastapi import APIRouter, Depends

from ..auth.dependencies import get_current_user
from ..db.models import User
from ..domain.service import LinkPageService
from .dependencies import get_link_service
from .schemas import ProblemDetails, ProfileUpdate, PublicProfileResponse, UserResponse

router = APIRouter(prefix="/api/users", tags=["users"])


# /profile is declared before /{username} so it is not read as a username
@router.get(
    "/profile",
    response_model=UserResponse,
    responses={401: {"model": ProblemDetails, "description": "Not authenticated"}},
)
async def get_profile(current_user: User = Depends(get_current_user)) -> UserResponse:
    """Return the signed-in user's own profile."""
    return UserResponse.model_validate(current_user)


@router.put(
    "/profile",
    response_model=UserResponse,
    responses={
        400: {
            "model": ProblemDetails,
            "description": "Validation error or username taken",
        },
        401: {"model": ProblemDetails, "description": "Not authenticated"},
    },
)
async def update_profile(
    profile_data: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    service: LinkPageService = Depends(get_link_service),
) -> UserResponse:
    """
    Update display name, bio, username, theme or avatar.

    Fields that are omitted or null keep their current value.
    """
    user = await service.update_profile(
        current_user.id, **profile_data.model_dump(exclude_unset=True)
    )
    return UserResponse.model_validate(user)


@router.get(
    "/{username}",
    response_model=PublicProfileResponse,
    responses={404: {"model": ProblemDetails, "description": "User not found"}},
)
async def get_public_profile(
    username: str,
    service: LinkPageService = Depends(get_link_service),
) -> PublicProfileResponse:
    """
    Public profile page: active links only, in display order.

    Every successful lookup is recorded as a page view.
    """
    profile = await service.get_public_profile(username)
    return PublicProfileResponse.model_validate(profile)
