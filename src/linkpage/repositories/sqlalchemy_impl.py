"""SQLAlchemy concrete implementations of repository interfaces."""

from typing import List, Optional, Dict, Any
from uuid import UUID
from datetime import datetime, timezone

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy import func, select, update

from .interfaces import (
    UserRepository,
    LinkRepository,
    AnalyticRepository,
    RepositoryContainer,
)
from ..db.models import User, Link, Analytic
from ..core.enums import AnalyticType
from ..domain.errors import DuplicateEmail, DuplicateUsername, InternalError
from ..utils.logging_config import get_logger, log_exception

logger = get_logger('database')

USER_FIELDS = {"display_name", "bio", "username", "avatar", "theme", "password_hash"}
LINK_FIELDS = {"title", "url", "icon", "position", "is_active"}


class BaseSQLAlchemyRepository:
    """Base SQLAlchemy repository implementation."""

    def __init__(self, session: Session):
        self._session = session

    async def rollback(self) -> None:
        """Rollback the current transaction."""
        self._session.rollback()

    def _commit(self) -> None:
        """Commit, turning lock timeouts and lost connections into InternalError.

        IntegrityError passes through for callers that map unique violations.
        """
        try:
            self._session.commit()
        except OperationalError as e:
            self._session.rollback()
            log_exception('database', e)
            raise InternalError("Database operation failed")


class SQLAlchemyUserRepository(BaseSQLAlchemyRepository, UserRepository):
    """SQLAlchemy implementation of UserRepository."""

    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        """Get a user by ID."""
        return self._session.get(User, user_id)

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get a user by email."""
        return self._session.query(User).filter(User.email == email).first()

    async def get_by_username(self, username: str) -> Optional[User]:
        """Get a user by username."""
        return self._session.query(User).filter(User.username == username).first()

    async def create(
        self,
        email: str,
        password_hash: str,
        display_name: str,
        username: str,
        bio: str = "",
        avatar: str = "",
        theme: str = "gradient",
    ) -> User:
        """Create a new user.

        The unique constraints on email and username decide races between
        concurrent registrations; the loser gets the matching typed error.
        """
        user = User(
            email=email,
            password_hash=password_hash,
            display_name=display_name,
            username=username,
            bio=bio,
            avatar=avatar,
            theme=theme,
            created_at=datetime.now(timezone.utc),
        )
        self._session.add(user)
        try:
            self._commit()
        except IntegrityError:
            self._session.rollback()
            if await self.get_by_email(email) is not None:
                raise DuplicateEmail()
            logger.info(f"Registration lost unique race for username '{username}'")
            raise DuplicateUsername()
        self._session.refresh(user)
        return user

    async def update(self, user_id: UUID, fields: Dict[str, Any]) -> Optional[User]:
        """Apply field changes to a user."""
        user = await self.get_by_id(user_id)
        if user is None:
            return None

        for key, value in fields.items():
            if key in USER_FIELDS:
                setattr(user, key, value)
        try:
            self._commit()
        except IntegrityError:
            self._session.rollback()
            raise DuplicateUsername()
        self._session.refresh(user)
        return user

    async def delete(self, user_id: UUID) -> bool:
        """Delete a user; links and analytics go with it via ON DELETE CASCADE."""
        user = await self.get_by_id(user_id)
        if user is None:
            return False
        self._session.delete(user)
        self._commit()
        return True


class SQLAlchemyLinkRepository(BaseSQLAlchemyRepository, LinkRepository):
    """SQLAlchemy implementation of LinkRepository."""

    async def get_by_id(self, link_id: UUID) -> Optional[Link]:
        """Get a link by ID."""
        return self._session.get(Link, link_id)

    async def get_user_links(self, user_id: UUID) -> List[Link]:
        """Get a user's links ordered by position, then creation order."""
        return (
            self._session.query(Link)
            .filter(Link.user_id == user_id)
            .order_by(Link.position, Link.created_at)
            .all()
        )

    async def max_position(self, user_id: UUID) -> Optional[int]:
        """Highest position among a user's links."""
        return self._session.execute(
            select(func.max(Link.position)).where(Link.user_id == user_id)
        ).scalar()

    async def create(
        self,
        user_id: UUID,
        title: str,
        url: str,
        icon: str,
        position: int,
        is_active: bool = True,
    ) -> Link:
        """Create a new link."""
        link = Link(
            user_id=user_id,
            title=title,
            url=url,
            icon=icon,
            position=position,
            is_active=is_active,
            clicks=0,
            created_at=datetime.now(timezone.utc),
        )
        self._session.add(link)
        self._commit()
        self._session.refresh(link)
        return link

    async def update(self, link_id: UUID, fields: Dict[str, Any]) -> Optional[Link]:
        """Apply field changes to a link."""
        link = await self.get_by_id(link_id)
        if link is None:
            return None

        for key, value in fields.items():
            if key in LINK_FIELDS:
                setattr(link, key, value)
        self._commit()
        self._session.refresh(link)
        return link

    async def delete(self, link_id: UUID) -> bool:
        """Delete a link; its analytics go with it via ON DELETE CASCADE."""
        link = await self.get_by_id(link_id)
        if link is None:
            return False
        self._session.delete(link)
        self._commit()
        return True

    async def increment_clicks(self, link_id: UUID) -> Optional[int]:
        """Atomically add one click with a single UPDATE ... SET clicks = clicks + 1."""
        result = self._session.execute(
            update(Link)
            .where(Link.id == link_id)
            .values(clicks=Link.clicks + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            self._session.rollback()
            return None

        # Still inside our write transaction, so this is our own increment
        clicks = self._session.execute(
            select(Link.clicks).where(Link.id == link_id)
        ).scalar()
        self._commit()
        return clicks


class SQLAlchemyAnalyticRepository(BaseSQLAlchemyRepository, AnalyticRepository):
    """SQLAlchemy implementation of AnalyticRepository."""

    async def create(
        self,
        user_id: UUID,
        type: AnalyticType,
        link_id: Optional[UUID] = None,
        timestamp: Optional[datetime] = None,
    ) -> Analytic:
        """Append an analytics event."""
        analytic = Analytic(
            user_id=user_id,
            link_id=link_id,
            type=AnalyticType(type).value,
            timestamp=timestamp or datetime.now(timezone.utc),
        )
        self._session.add(analytic)
        self._commit()
        self._session.refresh(analytic)
        return analytic

    def _user_query(
        self,
        user_id: UUID,
        type: Optional[AnalyticType],
        since: Optional[datetime],
    ):
        query = self._session.query(Analytic).filter(Analytic.user_id == user_id)
        if type is not None:
            query = query.filter(Analytic.type == AnalyticType(type).value)
        if since is not None:
            query = query.filter(Analytic.timestamp >= since)
        return query

    async def list_for_user(
        self,
        user_id: UUID,
        type: Optional[AnalyticType] = None,
        since: Optional[datetime] = None,
    ) -> List[Analytic]:
        """Get a user's events, oldest first."""
        return self._user_query(user_id, type, since).order_by(Analytic.timestamp).all()

    async def count_for_user(
        self,
        user_id: UUID,
        type: AnalyticType,
        since: Optional[datetime] = None,
    ) -> int:
        """Count a user's events of one type."""
        return self._user_query(user_id, type, since).count()

    async def list_for_link(self, link_id: UUID) -> List[Analytic]:
        """Get a link's events, oldest first."""
        return (
            self._session.query(Analytic)
            .filter(Analytic.link_id == link_id)
            .order_by(Analytic.timestamp)
            .all()
        )


def create_sqlalchemy_container(session: Session) -> RepositoryContainer:
    """Build a repository container around one SQLAlchemy session."""
    return RepositoryContainer(
        user_repo=SQLAlchemyUserRepository(session),
        link_repo=SQLAlchemyLinkRepository(session),
        analytic_repo=SQLAlchemyAnalyticRepository(session),
    )
