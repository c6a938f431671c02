"""Abstract repository interfaces for data access layer.

Contract shared by every backend:

* lookups return ``None`` for a missing row instead of raising;
* updates on a missing id return ``None`` and deletes return ``False``;
* ``create`` raises ``DuplicateEmail``/``DuplicateUsername`` when a unique
  constraint fires, whatever the pre-checks said;
* deleting a user removes its links and analytics, deleting a link removes
  its analytics.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Dict, Any
from uuid import UUID
from datetime import datetime

from ..db.models import User, Link, Analytic
from ..core.enums import AnalyticType


class BaseRepository(ABC):
    """Base repository interface with common operations."""

    @abstractmethod
    async def rollback(self) -> None:
        """Rollback the current transaction."""
        pass


class UserRepository(BaseRepository):
    """Repository interface for User entities."""

    @abstractmethod
    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        """Get a user by ID."""
        pass

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[User]:
        """Get a user by email."""
        pass

    @abstractmethod
    async def get_by_username(self, username: str) -> Optional[User]:
        """Get a user by username."""
        pass

    @abstractmethod
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
        """Create a new user."""
        pass

    @abstractmethod
    async def update(self, user_id: UUID, fields: Dict[str, Any]) -> Optional[User]:
        """Apply field changes to a user; ``None`` if the user does not exist."""
        pass

    @abstractmethod
    async def delete(self, user_id: UUID) -> bool:
        """Delete a user together with its links and analytics."""
        pass


class LinkRepository(BaseRepository):
    """Repository interface for Link entities."""

    @abstractmethod
    async def get_by_id(self, link_id: UUID) -> Optional[Link]:
        """Get a link by ID."""
        pass

    @abstractmethod
    async def get_user_links(self, user_id: UUID) -> List[Link]:
        """Get a user's links ordered by position, then creation order."""
        pass

    @abstractmethod
    async def max_position(self, user_id: UUID) -> Optional[int]:
        """Highest position among a user's links, or None if there are none."""
        pass

    @abstractmethod
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
        pass

    @abstractmethod
    async def update(self, link_id: UUID, fields: Dict[str, Any]) -> Optional[Link]:
        """Apply field changes to a link; ``None`` if the link does not exist."""
        pass

    @abstractmethod
    async def delete(self, link_id: UUID) -> bool:
        """Delete a link and its analytics."""
        pass

    @abstractmethod
    async def increment_clicks(self, link_id: UUID) -> Optional[int]:
        """Atomically add one click; returns the new count or None if missing."""
        pass


class AnalyticRepository(BaseRepository):
    """Repository interface for Analytic events."""

    @abstractmethod
    async def create(
        self,
        user_id: UUID,
        type: AnalyticType,
        link_id: Optional[UUID] = None,
        timestamp: Optional[datetime] = None,
    ) -> Analytic:
        """Append an analytics event."""
        pass

    @abstractmethod
    async def list_for_user(
        self,
        user_id: UUID,
        type: Optional[AnalyticType] = None,
        since: Optional[datetime] = None,
    ) -> List[Analytic]:
        """Get a user's events, oldest first."""
        pass

    @abstractmethod
    async def count_for_user(
        self,
        user_id: UUID,
        type: AnalyticType,
        since: Optional[datetime] = None,
    ) -> int:
        """Count a user's events of one type, optionally since a moment."""
        pass

    @abstractmethod
    async def list_for_link(self, link_id: UUID) -> List[Analytic]:
        """Get a link's events, oldest first."""
        pass


class RepositoryContainer:
    """Container for all repository interfaces to support dependency injection."""

    def __init__(
        self,
        user_repo: UserRepository,
        link_repo: LinkRepository,
        analytic_repo: AnalyticRepository,
    ):
        self.user = user_repo
        self.link = link_repo
        self.analytic = analytic_repo

    async def rollback(self) -> None:
        """Roll back every repository's pending work."""
        for repo in (self.user, self.link, self.analytic):
            await repo.rollback()
