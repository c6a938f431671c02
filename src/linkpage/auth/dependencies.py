"""Authentication dependencies for FastAPI."""

from typing import Optional
from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from ..api.dependencies import get_link_service, get_token_manager
from ..db.models import User
from ..domain.errors import NotFound, Unauthorized
from ..domain.service import LinkPageService
from ..utils.logging_config import get_logger
from .jwt_auth import JWTTokenManager

logger = get_logger('auth')

# Missing credentials are reported by get_current_user_id, not by HTTPBearer
security = HTTPBearer(auto_error=False)


def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    token_manager: JWTTokenManager = Depends(get_token_manager),
) -> UUID:
    """
    Resolve the user id from the ``Authorization: Bearer <token>`` header.

    Raises:
        Unauthorized: If the header is missing
        InvalidToken: If the token is forged or malformed
        ExpiredToken: If the token is past its expiry
    """
    if credentials is None or not credentials.credentials:
        raise Unauthorized()
    return token_manager.verify(credentials.credentials)


async def get_current_user(
    user_id: UUID = Depends(get_current_user_id),
    service: LinkPageService = Depends(get_link_service),
) -> User:
    """
    Get the current authenticated user.

    A valid token for a user that no longer exists is treated as
    unauthenticated.
    """
    try:
        return await service.get_user(user_id)
    except NotFound:
        logger.info(f"Token for unknown user {user_id} rejected")
        raise Unauthorized("User not found")
