"""Service wiring for the API routers."""

from fastapi import Depends

from ..auth.jwt_auth import JWTTokenManager, jwt_manager
from ..config import get_config
from ..domain.service import LinkPageService
from ..repositories.dependencies import get_repository_container
from ..repositories.interfaces import RepositoryContainer


def get_token_manager() -> JWTTokenManager:
    return jwt_manager


def get_link_service(
    repositories: RepositoryContainer = Depends(get_repository_container),
    token_manager: JWTTokenManager = Depends(get_token_manager),
) -> LinkPageService:
    """Build the domain service for one request."""
    return LinkPageService(
        repositories,
        token_manager,
        analytics_timezone=get_config().app.analytics_timezone,
    )
