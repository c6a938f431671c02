"""JWT-based session tokens."""

import jwt
from dataclasses import dataclass
from datetime import datetime, timezone, timedelta
from typing import Any, Callable, Dict, Optional
from uuid import UUID, uuid4

from ..config import get_config, clamp_token_expires_days
from ..domain.errors import ExpiredToken, InvalidToken

TOKEN_TYPE = "access"


@dataclass(frozen=True)
class IssuedToken:
    """A signed token and the moment it stops being accepted."""

    token: str
    expires_at: datetime


class JWTTokenManager:
    """Issues and verifies signed, time-limited tokens carrying a user id."""

    def __init__(
        self,
        secret_key: Optional[str] = None,
        algorithm: Optional[str] = None,
        expires_days: Optional[int] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize JWT token manager, defaulting to the app configuration."""
        config = get_config()
        self.secret_key = secret_key or config.app.jwt_secret_key
        self.algorithm = algorithm or config.app.jwt_algorithm
        self.expires_days = clamp_token_expires_days(
            expires_days if expires_days is not None else config.app.token_expires_days
        )
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def issue(
        self, user_id: UUID, additional_claims: Optional[Dict[str, Any]] = None
    ) -> IssuedToken:
        """
        Create an access token for a user.

        Args:
            user_id: UUID of the user
            additional_claims: Optional additional claims to include

        Returns:
            IssuedToken with the encoded token and its expiry
        """
        now = self._clock()
        expires_at = now + timedelta(days=self.expires_days)
        payload = {
            "sub": str(user_id),
            "iat": now,
            "exp": expires_at,
            "jti": str(uuid4()),
            "type": TOKEN_TYPE,
        }

        if additional_claims:
            payload.update(additional_claims)

        token = jwt.encode(payload, self.secret_key, algorithm=self.algorithm)
        return IssuedToken(token=token, expires_at=expires_at)

    def decode(self, token: str) -> Dict[str, Any]:
        """
        Verify signature, expiry and type, and return the payload.

        Raises:
            ExpiredToken: If the token is past its expiry
            InvalidToken: If the token is malformed, forged or of the wrong type
        """
        if not token:
            raise InvalidToken("Token cannot be empty")

        now = self._clock()
        try:
            # Expiry is checked against our own clock below
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                options={"verify_exp": False, "require": ["exp", "sub"]},
            )
        except jwt.InvalidTokenError:
            raise InvalidToken()

        if payload.get("type") != TOKEN_TYPE:
            raise InvalidToken("Invalid token type")

        try:
            expires_at = datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc)
        except (TypeError, ValueError):
            raise InvalidToken("Invalid or malformed token")

        if now >= expires_at:
            raise ExpiredToken()

        return payload

    def verify(self, token: str) -> UUID:
        """
        Verify a token and extract the user id.

        Raises:
            ExpiredToken: If the token is past its expiry
            InvalidToken: For any other verification failure
        """
        payload = self.decode(token)
        try:
            return UUID(str(payload["sub"]))
        except (KeyError, ValueError):
            raise InvalidToken("Invalid or malformed token")

    def get_token_expiry(self, token: str) -> datetime:
        """Get expiry time of a valid token."""
        payload = self.decode(token)
        return datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc)


# Global instance
jwt_manager = JWTTokenManager()
