"""Typed errors raised by the domain service and repositories.

Each error knows the HTTP status and Problem Details title it maps to, so the
API layer can render any of them without a lookup table.
"""

from typing import Any, Dict, Optional


class LinkPageError(Exception):
    """Base exception for LinkPage domain operations."""

    status_code: int = 500
    title: str = "Internal Server Error"
    default_detail: str = "An unexpected error occurred"

    def __init__(self, detail: Optional[str] = None, **extra_fields: Any):
        self.detail = detail or self.default_detail
        self.extra_fields: Dict[str, Any] = extra_fields
        super().__init__(self.detail)


class ValidationError(LinkPageError):
    """Malformed input that reached the domain layer."""

    status_code = 400
    title = "Validation Error"
    default_detail = "Invalid input"

    def __init__(self, detail: Optional[str] = None, field: Optional[str] = None):
        if field is not None:
            super().__init__(detail, field=field)
        else:
            super().__init__(detail)
        self.field = field


class DuplicateEmail(LinkPageError):
    status_code = 400
    title = "Duplicate Email"
    default_detail = "Email already registered"


class DuplicateUsername(LinkPageError):
    status_code = 400
    title = "Duplicate Username"
    default_detail = "Username already taken"


class InvalidCredentials(LinkPageError):
    """Login failed. Deliberately says nothing about which part was wrong."""

    status_code = 401
    title = "Unauthorized"
    default_detail = "Invalid credentials"


class Unauthorized(LinkPageError):
    status_code = 401
    title = "Unauthorized"
    default_detail = "Access token required"


class InvalidToken(Unauthorized):
    default_detail = "Invalid access token"


class ExpiredToken(Unauthorized):
    default_detail = "Access token has expired"


class NotFound(LinkPageError):
    status_code = 404
    title = "Not Found"
    default_detail = "Not found"


class Forbidden(NotFound):
    """Ownership check failed.

    Rendered exactly like NotFound so callers cannot probe for other
    users' link ids.
    """


class InternalError(LinkPageError):
    """Unexpected storage or infrastructure failure."""
