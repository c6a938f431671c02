"""Authentication API endpoints."""

from fastapi import APIRouter, Depends, status

from ..auth.dependencies import get_current_user
from ..db.models import User
from ..domain.service import LinkPageService
from ..utils.logging_config import get_logger
from .dependencies import get_link_service
from .schemas import (
    AuthResponse,
    LoginRequest,
    ProblemDetails,
    RegisterRequest,
    SuccessResponse,
)

logger = get_logger('auth')

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_200_OK,
    responses={
        200: {"description": "Account created"},
        400: {
            "model": ProblemDetails,
            "description": "Validation error, email already registered or username taken",
        },
    },
)
async def register(
    register_data: RegisterRequest,
    service: LinkPageService = Depends(get_link_service),
) -> AuthResponse:
    """
    Create an account and return a bearer token for it.

    New accounts start with an empty bio and avatar and the default theme.
    """
    result = await service.register(
        email=register_data.email,
        password=register_data.password,
        display_name=register_data.display_name,
        username=register_data.username,
    )
    return AuthResponse.model_validate(result)


@router.post(
    "/login",
    response_model=AuthResponse,
    status_code=status.HTTP_200_OK,
    responses={
        200: {"description": "Login successful"},
        400: {"model": ProblemDetails, "description": "Validation error"},
        401: {"model": ProblemDetails, "description": "Invalid credentials"},
    },
)
async def login(
    login_data: LoginRequest,
    service: LinkPageService = Depends(get_link_service),
) -> AuthResponse:
    """
    Authenticate with email and password.

    An unknown email and a wrong password produce the same 401 response.
    """
    result = await service.login(email=login_data.email, password=login_data.password)
    logger.info(f"User {result.user.id} logged in")
    return AuthResponse.model_validate(result)


@router.post(
    "/logout",
    response_model=SuccessResponse,
    responses={401: {"model": ProblemDetails, "description": "Not authenticated"}},
)
async def logout(current_user: User = Depends(get_current_user)) -> SuccessResponse:
    """
    Acknowledge a logout.

    Tokens are stateless; the client discards its copy and the token stays
    valid until it expires.
    """
    logger.info(f"User {current_user.id} logged out")
    return SuccessResponse()
