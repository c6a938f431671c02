"""Pydantic models for API request/response validation.

JSON keys are camelCase on the wire; snake_case names are accepted on input
as well.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from ..core.enums import Theme

USERNAME_PATTERN = r"^[a-zA-Z0-9_-]+$"


class ApiModel(BaseModel):
    """Base model with camelCase aliases and ORM attribute loading."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ProblemDetails(BaseModel):
    """RFC 9457 Problem Details for HTTP APIs."""

    type: str = Field(description="A URI reference that identifies the problem type")
    title: str = Field(
        description="A short, human-readable summary of the problem type"
    )
    status: int = Field(description="The HTTP status code")
    detail: Optional[str] = Field(
        None, description="A human-readable explanation specific to this occurrence"
    )
    instance: Optional[str] = Field(
        None, description="A URI reference that identifies the specific occurrence"
    )
    field: Optional[str] = Field(None, description="Offending input field, if any")
    errors: Optional[List[Dict[str, Any]]] = Field(
        None, description="Request validation errors"
    )


# Authentication schemas
class RegisterRequest(ApiModel):
    """Schema for registration request."""

    email: EmailStr = Field(description="Login email, unique per account")
    password: str = Field(description="Account password", min_length=6, max_length=128)
    display_name: str = Field(description="Name shown on the profile", min_length=1, max_length=100)
    username: str = Field(
        description="Public handle used in the profile URL",
        min_length=3,
        max_length=50,
        pattern=USERNAME_PATTERN,
    )


class LoginRequest(ApiModel):
    """Schema for login request."""

    email: EmailStr = Field(description="Login email")
    password: str = Field(description="Account password", min_length=1, max_length=128)


class UserResponse(ApiModel):
    """The signed-in user's own profile. Never includes the password hash."""

    id: UUID
    email: str
    display_name: str
    username: str
    bio: str = ""
    avatar: str = ""
    theme: Theme
    created_at: datetime


class AuthResponse(ApiModel):
    """Schema for register/login response."""

    token: str = Field(description="Bearer token for API authentication")
    expires_at: datetime = Field(description="Token expiration timestamp")
    user: UserResponse


class ProfileUpdate(ApiModel):
    """Partial profile update; omitted or null fields are left unchanged."""

    display_name: Optional[str] = Field(None, min_length=1, max_length=100)
    bio: Optional[str] = Field(None, max_length=500)
    username: Optional[str] = Field(
        None, min_length=3, max_length=50, pattern=USERNAME_PATTERN
    )
    theme: Optional[Theme] = None
    avatar: Optional[str] = Field(None, max_length=2048)


# Link schemas
class LinkCreate(ApiModel):
    """Schema for creating a link."""

    title: str = Field(min_length=1, max_length=200)
    url: str = Field(min_length=1, max_length=2048)
    icon: Optional[str] = Field(None, max_length=100)


class LinkUpdate(ApiModel):
    """Partial link update."""

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    url: Optional[str] = Field(None, min_length=1, max_length=2048)
    icon: Optional[str] = Field(None, max_length=100)
    position: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None


class LinkResponse(ApiModel):
    """A link as its owner sees it."""

    id: UUID
    user_id: UUID
    title: str
    url: str
    icon: str
    position: int
    is_active: bool
    clicks: int
    created_at: datetime


class PublicLinkResponse(ApiModel):
    """A link as a visitor sees it."""

    id: UUID
    title: str
    url: str
    icon: str
    position: int


class PublicProfileResponse(ApiModel):
    """Public profile page data."""

    display_name: str
    username: str
    bio: str
    avatar: str
    theme: Theme
    links: List[PublicLinkResponse]


class ClickResponse(ApiModel):
    url: str = Field(description="Target URL to redirect the visitor to")


class SuccessResponse(ApiModel):
    success: bool = True


# Analytics schemas
class LinkStatResponse(ApiModel):
    id: UUID
    title: str
    clicks: int


class AnalyticsResponse(ApiModel):
    """Owner dashboard aggregate."""

    total_clicks: int
    page_views: int
    monthly_clicks: int
    link_stats: List[LinkStatResponse]


class LinkAnalyticsResponse(ApiModel):
    """Per-link click statistics."""

    id: UUID
    title: str
    clicks: int
    recorded_clicks: int
    monthly_clicks: int
    last_clicked_at: Optional[datetime] = None
