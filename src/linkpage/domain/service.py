"""
Business rules for profiles, links and analytics.

The service is transport-agnostic: it takes plain values, talks to storage
only through a :class:`RepositoryContainer`, and reports failures with the
typed errors from :mod:`linkpage.domain.errors`.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone, tzinfo
from typing import Any, Callable, Dict, List, Optional
from uuid import UUID
from zoneinfo import ZoneInfo

from pydantic import AnyUrl, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from ..auth.jwt_auth import JWTTokenManager
from ..auth.security import dummy_verify, hash_password, verify_password
from ..core.enums import AnalyticType, Theme, DEFAULT_LINK_ICON, DEFAULT_THEME
from ..db.models import Link, User
from ..repositories.interfaces import RepositoryContainer
from ..utils.logging_config import get_logger, log_exception
from .errors import (
    DuplicateEmail,
    DuplicateUsername,
    Forbidden,
    InvalidCredentials,
    NotFound,
    ValidationError,
)

logger = get_logger('domain')

LINK_NOT_FOUND = "Link not found"
USER_NOT_FOUND = "User not found"

PROFILE_FIELDS = ("display_name", "bio", "username", "theme", "avatar")
LINK_FIELDS = ("title", "url", "icon", "position", "is_active")

_url_adapter = TypeAdapter(AnyUrl)


@dataclass
class AuthResult:
    """A user together with a freshly issued token."""

    user: User
    token: str
    expires_at: datetime


@dataclass
class PublicProfile:
    """What a visitor sees on a profile page."""

    display_name: str
    username: str
    bio: str
    avatar: str
    theme: str
    links: List[Link] = field(default_factory=list)


@dataclass
class LinkStat:
    id: UUID
    title: str
    clicks: int


@dataclass
class AnalyticsSummary:
    """Owner dashboard numbers."""

    total_clicks: int
    page_views: int
    monthly_clicks: int
    link_stats: List[LinkStat] = field(default_factory=list)


@dataclass
class LinkAnalytics:
    """Per-link numbers built from the click event history."""

    id: UUID
    title: str
    clicks: int
    recorded_clicks: int
    monthly_clicks: int
    last_clicked_at: Optional[datetime] = None


def validate_url(url: Any) -> str:
    """Return ``url`` if it is an absolute URL with a host, else raise."""
    if not isinstance(url, str) or not url.strip():
        raise ValidationError("URL is required", field="url")
    url = url.strip()
    try:
        parsed = _url_adapter.validate_python(url)
    except PydanticValidationError:
        raise ValidationError("URL must be a valid absolute URL", field="url")
    if not parsed.host:
        raise ValidationError("URL must be a valid absolute URL", field="url")
    return url


def validate_title(title: Any) -> str:
    if not isinstance(title, str) or not title.strip():
        raise ValidationError("Title cannot be empty", field="title")
    return title.strip()


def validate_position(position: Any) -> int:
    if isinstance(position, bool) or not isinstance(position, int) or position < 0:
        raise ValidationError("Position must be a non-negative integer", field="position")
    return position


def validate_theme(theme: Any) -> str:
    try:
        return Theme(theme).value
    except ValueError:
        allowed = ", ".join(t.value for t in Theme)
        raise ValidationError(f"Theme must be one of: {allowed}", field="theme")


def start_of_month(moment: datetime, zone: tzinfo) -> datetime:
    """First instant of ``moment``'s calendar month in ``zone``, as UTC."""
    local = moment.astimezone(zone)
    first = local.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    return first.astimezone(timezone.utc)


class LinkPageService:
    """Registration, profiles, link management, click tracking and analytics."""

    def __init__(
        self,
        repositories: RepositoryContainer,
        token_manager: JWTTokenManager,
        clock: Optional[Callable[[], datetime]] = None,
        analytics_timezone: str = "UTC",
    ):
        self.repos = repositories
        self.tokens = token_manager
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.analytics_zone = ZoneInfo(analytics_timezone)

    # Authentication

    async def register(
        self, email: str, password: str, display_name: str, username: str
    ) -> AuthResult:
        """Create an account and sign the new user in.

        Raises:
            DuplicateEmail: If the email is already registered
            DuplicateUsername: If the username is already taken
            ValidationError: If the password is empty
        """
        if await self.repos.user.get_by_email(email) is not None:
            raise DuplicateEmail()
        if await self.repos.user.get_by_username(username) is not None:
            raise DuplicateUsername()

        if not password:
            raise ValidationError("Password cannot be empty", field="password")

        # The repository re-checks both unique keys atomically on insert
        user = await self.repos.user.create(
            email=email,
            password_hash=hash_password(password),
            display_name=display_name,
            username=username,
            bio="",
            avatar="",
            theme=DEFAULT_THEME.value,
        )
        logger.info(f"Registered user {user.id} ({username})")
        return self._authenticate(user)

    async def login(self, email: str, password: str) -> AuthResult:
        """Check credentials and issue a token.

        Unknown email and wrong password raise the same InvalidCredentials.
        """
        user = await self.repos.user.get_by_email(email)
        if user is None:
            dummy_verify(password)
            raise InvalidCredentials()
        if not verify_password(password, user.password_hash):
            raise InvalidCredentials()
        return self._authenticate(user)

    def _authenticate(self, user: User) -> AuthResult:
        issued = self.tokens.issue(user.id)
        return AuthResult(user=user, token=issued.token, expires_at=issued.expires_at)

    # Profiles

    async def get_user(self, user_id: UUID) -> User:
        user = await self.repos.user.get_by_id(user_id)
        if user is None:
            raise NotFound(USER_NOT_FOUND)
        return user

    async def get_public_profile(self, username: str) -> PublicProfile:
        """Resolve a public profile and record a view.

        The view is best-effort telemetry: if writing it fails the failure
        is logged to the analytics log and the profile is still returned.
        """
        user = await self.repos.user.get_by_username(username)
        if user is None:
            raise NotFound(USER_NOT_FOUND)

        links = [link for link in await self.repos.link.get_user_links(user.id) if link.is_active]
        profile = PublicProfile(
            display_name=user.display_name,
            username=user.username,
            bio=user.bio or "",
            avatar=user.avatar or "",
            theme=user.theme or DEFAULT_THEME.value,
            links=links,
        )

        try:
            await self.repos.analytic.create(
                user_id=user.id, type=AnalyticType.VIEW, timestamp=self._clock()
            )
        except Exception as e:
            await self._safe_rollback()
            log_exception('analytics', e, {"event": "view", "user_id": user.id})

        return profile

    async def update_profile(self, user_id: UUID, **changes: Any) -> User:
        """Update profile fields; ``None`` values are left unchanged.

        Raises:
            DuplicateUsername: If the username belongs to a different user
            NotFound: If the user no longer exists
        """
        unknown = set(changes) - set(PROFILE_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown profile fields: {', '.join(sorted(unknown))}")

        fields = {key: value for key, value in changes.items() if value is not None}
        if "display_name" in fields and not str(fields["display_name"]).strip():
            raise ValidationError("Display name cannot be empty", field="display_name")
        if "theme" in fields:
            fields["theme"] = validate_theme(fields["theme"])
        if "avatar" in fields and fields["avatar"] != "":
            fields["avatar"] = validate_url(fields["avatar"])

        user = await self.repos.user.get_by_id(user_id)
        if user is None:
            raise NotFound(USER_NOT_FOUND)

        new_username = fields.get("username")
        if new_username is not None and new_username != user.username:
            existing = await self.repos.user.get_by_username(new_username)
            if existing is not None and existing.id != user_id:
                raise DuplicateUsername()

        updated = await self.repos.user.update(user_id, fields)
        if updated is None:
            raise NotFound(USER_NOT_FOUND)
        return updated

    # Links

    async def list_links(self, user_id: UUID) -> List[Link]:
        return await self.repos.link.get_user_links(user_id)

    async def _owned_link(self, user_id: UUID, link_id: UUID) -> Link:
        """Ownership check. Missing and foreign links look the same."""
        link = await self.repos.link.get_by_id(link_id)
        if link is None:
            raise NotFound(LINK_NOT_FOUND)
        if link.user_id != user_id:
            raise Forbidden(LINK_NOT_FOUND)
        return link

    async def get_link(self, user_id: UUID, link_id: UUID) -> Link:
        return await self._owned_link(user_id, link_id)

    async def create_link(
        self, user_id: UUID, title: str, url: str, icon: Optional[str] = None
    ) -> Link:
        """Append a link after the owner's current last position.

        Raises:
            ValidationError: For an empty title or a non-absolute URL
        """
        title = validate_title(title)
        url = validate_url(url)

        current_max = await self.repos.link.max_position(user_id)
        position = 0 if current_max is None else current_max + 1

        return await self.repos.link.create(
            user_id=user_id,
            title=title,
            url=url,
            icon=icon or DEFAULT_LINK_ICON,
            position=position,
            is_active=True,
        )

    async def update_link(self, user_id: UUID, link_id: UUID, changes: Dict[str, Any]) -> Link:
        """Apply a partial update to an owned link.

        Raises:
            NotFound: If the link is missing or owned by someone else
            ValidationError: If a field fails the creation rules
        """
        unknown = set(changes) - set(LINK_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown link fields: {', '.join(sorted(unknown))}")

        fields = {key: value for key, value in changes.items() if value is not None}
        if "title" in fields:
            fields["title"] = validate_title(fields["title"])
        if "url" in fields:
            fields["url"] = validate_url(fields["url"])
        if "position" in fields:
            fields["position"] = validate_position(fields["position"])
        if "icon" in fields and not fields["icon"]:
            fields["icon"] = DEFAULT_LINK_ICON
        if "is_active" in fields:
            fields["is_active"] = bool(fields["is_active"])

        await self._owned_link(user_id, link_id)
        updated = await self.repos.link.update(link_id, fields)
        if updated is None:
            raise NotFound(LINK_NOT_FOUND)
        return updated

    async def delete_link(self, user_id: UUID, link_id: UUID) -> None:
        await self._owned_link(user_id, link_id)
        if not await self.repos.link.delete(link_id):
            raise NotFound(LINK_NOT_FOUND)

    # Click tracking and analytics

    async def record_click(self, link_id: UUID) -> str:
        """Count a click and return the link's target URL.

        Raises:
            NotFound: If the link does not exist
        """
        link = await self.repos.link.get_by_id(link_id)
        if link is None:
            raise NotFound(LINK_NOT_FOUND)
        owner_id, target_url = link.user_id, link.url

        if await self.repos.link.increment_clicks(link_id) is None:
            # Deleted between the lookup and the increment
            raise NotFound(LINK_NOT_FOUND)

        await self.repos.analytic.create(
            user_id=owner_id,
            type=AnalyticType.CLICK,
            link_id=link_id,
            timestamp=self._clock(),
        )
        return target_url

    async def get_analytics(self, user_id: UUID) -> AnalyticsSummary:
        """Totals for the owner's dashboard.

        ``link_stats`` reads each link's live counter; the totals count
        events. The two are tracked independently.
        """
        month_start = start_of_month(self._clock(), self.analytics_zone)
        analytics = self.repos.analytic

        total_clicks = await analytics.count_for_user(user_id, AnalyticType.CLICK)
        page_views = await analytics.count_for_user(user_id, AnalyticType.VIEW)
        monthly_clicks = await analytics.count_for_user(
            user_id, AnalyticType.CLICK, since=month_start
        )

        links = await self.repos.link.get_user_links(user_id)
        return AnalyticsSummary(
            total_clicks=total_clicks,
            page_views=page_views,
            monthly_clicks=monthly_clicks,
            link_stats=[
                LinkStat(id=link.id, title=link.title, clicks=link.clicks or 0)
                for link in links
            ],
        )

    async def get_link_analytics(self, user_id: UUID, link_id: UUID) -> LinkAnalytics:
        link = await self._owned_link(user_id, link_id)
        month_start = start_of_month(self._clock(), self.analytics_zone)

        clicks = [
            event
            for event in await self.repos.analytic.list_for_link(link_id)
            if event.type == AnalyticType.CLICK.value
        ]
        return LinkAnalytics(
            id=link.id,
            title=link.title,
            clicks=link.clicks or 0,
            recorded_clicks=len(clicks),
            monthly_clicks=sum(1 for event in clicks if event.timestamp >= month_start),
            last_clicked_at=clicks[-1].timestamp if clicks else None,
        )

    async def _safe_rollback(self) -> None:
        try:
            await self.repos.rollback()
        except Exception as e:
            log_exception('database', e, {"during": "analytics rollback"})
