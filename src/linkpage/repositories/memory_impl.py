"""In-memory implementations of repository interfaces.

All three repositories of a :class:`MemoryStore` share one re-entrant lock,
so uniqueness checks, counter increments and cascades are atomic even when
requests run on several threads.
"""

import threading
from itertools import count
from typing import List, Optional, Dict, Any
from uuid import UUID, uuid4
from datetime import datetime, timezone

from .interfaces import (
    UserRepository,
    LinkRepository,
    AnalyticRepository,
    RepositoryContainer,
)
from ..db.models import User, Link, Analytic
from ..core.enums import AnalyticType
from ..domain.errors import DuplicateEmail, DuplicateUsername

USER_FIELDS = {"display_name", "bio", "username", "avatar", "theme", "password_hash"}
LINK_FIELDS = {"title", "url", "icon", "position", "is_active"}


class MemoryStore:
    """Shared state for the in-memory backend."""

    def __init__(self):
        self.lock = threading.RLock()
        self.users: Dict[UUID, User] = {}
        self.email_index: Dict[str, UUID] = {}
        self.username_index: Dict[str, UUID] = {}
        self.links: Dict[UUID, Link] = {}
        self.link_order: Dict[UUID, int] = {}
        self.analytics: Dict[UUID, Analytic] = {}
        self._sequence = count()

    def next_sequence(self) -> int:
        return next(self._sequence)

    def new_id(self, existing: Dict[UUID, Any]) -> UUID:
        """Generate a UUID not already used as a key in ``existing``."""
        new_id = uuid4()
        while new_id in existing:
            new_id = uuid4()
        return new_id

    def remove_link(self, link_id: UUID) -> bool:
        """Drop a link and its analytics. Caller holds the lock."""
        if self.links.pop(link_id, None) is None:
            return False
        self.link_order.pop(link_id, None)
        for analytic_id in [
            a.id for a in self.analytics.values() if a.link_id == link_id
        ]:
            del self.analytics[analytic_id]
        return True


class BaseMemoryRepository:
    """Base in-memory repository implementation."""

    def __init__(self, store: MemoryStore):
        self._store = store

    async def rollback(self) -> None:
        """Rollback the current transaction."""
        # In memory - nothing is staged
        pass


class MemoryUserRepository(BaseMemoryRepository, UserRepository):
    """In-memory implementation of UserRepository."""

    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        """Get a user by ID."""
        return self._store.users.get(user_id)

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get a user by email."""
        with self._store.lock:
            user_id = self._store.email_index.get(email)
            return self._store.users.get(user_id) if user_id else None

    async def get_by_username(self, username: str) -> Optional[User]:
        """Get a user by username."""
        with self._store.lock:
            user_id = self._store.username_index.get(username)
            return self._store.users.get(user_id) if user_id else None

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
        store = self._store
        with store.lock:
            if email in store.email_index:
                raise DuplicateEmail()
            if username in store.username_index:
                raise DuplicateUsername()

            user = User(
                id=store.new_id(store.users),
                email=email,
                password_hash=password_hash,
                display_name=display_name,
                username=username,
                bio=bio,
                avatar=avatar,
                theme=theme,
                created_at=datetime.now(timezone.utc),
            )
            store.users[user.id] = user
            store.email_index[email] = user.id
            store.username_index[username] = user.id
            return user

    async def update(self, user_id: UUID, fields: Dict[str, Any]) -> Optional[User]:
        """Apply field changes to a user."""
        store = self._store
        with store.lock:
            user = store.users.get(user_id)
            if user is None:
                return None

            new_username = fields.get("username")
            if new_username is not None and new_username != user.username:
                owner = store.username_index.get(new_username)
                if owner is not None and owner != user_id:
                    raise DuplicateUsername()
                del store.username_index[user.username]
                store.username_index[new_username] = user_id

            for key, value in fields.items():
                if key in USER_FIELDS:
                    setattr(user, key, value)
            return user

    async def delete(self, user_id: UUID) -> bool:
        """Delete a user together with its links and analytics."""
        store = self._store
        with store.lock:
            user = store.users.pop(user_id, None)
            if user is None:
                return False
            store.email_index.pop(user.email, None)
            store.username_index.pop(user.username, None)

            for link_id in [l.id for l in store.links.values() if l.user_id == user_id]:
                store.remove_link(link_id)
            for analytic_id in [
                a.id for a in store.analytics.values() if a.user_id == user_id
            ]:
                del store.analytics[analytic_id]
            return True


class MemoryLinkRepository(BaseMemoryRepository, LinkRepository):
    """In-memory implementation of LinkRepository."""

    async def get_by_id(self, link_id: UUID) -> Optional[Link]:
        """Get a link by ID."""
        return self._store.links.get(link_id)

    async def get_user_links(self, user_id: UUID) -> List[Link]:
        """Get a user's links ordered by position, then creation order."""
        store = self._store
        with store.lock:
            links = [link for link in store.links.values() if link.user_id == user_id]
            return sorted(
                links, key=lambda link: (link.position, store.link_order[link.id])
            )

    async def max_position(self, user_id: UUID) -> Optional[int]:
        """Highest position among a user's links."""
        with self._store.lock:
            positions = [
                link.position
                for link in self._store.links.values()
                if link.user_id == user_id
            ]
            return max(positions) if positions else None

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
        store = self._store
        with store.lock:
            link = Link(
                id=store.new_id(store.links),
                user_id=user_id,
                title=title,
                url=url,
                icon=icon,
                position=position,
                is_active=is_active,
                clicks=0,
                created_at=datetime.now(timezone.utc),
            )
            store.links[link.id] = link
            store.link_order[link.id] = store.next_sequence()
            return link

    async def update(self, link_id: UUID, fields: Dict[str, Any]) -> Optional[Link]:
        """Apply field changes to a link."""
        with self._store.lock:
            link = self._store.links.get(link_id)
            if link is None:
                return None
            for key, value in fields.items():
                if key in LINK_FIELDS:
                    setattr(link, key, value)
            return link

    async def delete(self, link_id: UUID) -> bool:
        """Delete a link and its analytics."""
        with self._store.lock:
            return self._store.remove_link(link_id)

    async def increment_clicks(self, link_id: UUID) -> Optional[int]:
        """Atomically add one click."""
        with self._store.lock:
            link = self._store.links.get(link_id)
            if link is None:
                return None
            link.clicks = (link.clicks or 0) + 1
            return link.clicks


class MemoryAnalyticRepository(BaseMemoryRepository, AnalyticRepository):
    """In-memory implementation of AnalyticRepository."""

    async def create(
        self,
        user_id: UUID,
        type: AnalyticType,
        link_id: Optional[UUID] = None,
        timestamp: Optional[datetime] = None,
    ) -> Analytic:
        """Append an analytics event."""
        store = self._store
        with store.lock:
            analytic = Analytic(
                id=store.new_id(store.analytics),
                user_id=user_id,
                link_id=link_id,
                type=AnalyticType(type).value,
                timestamp=timestamp or datetime.now(timezone.utc),
            )
            store.analytics[analytic.id] = analytic
            return analytic

    async def list_for_user(
        self,
        user_id: UUID,
        type: Optional[AnalyticType] = None,
        since: Optional[datetime] = None,
    ) -> List[Analytic]:
        """Get a user's events, oldest first."""
        with self._store.lock:
            events = [a for a in self._store.analytics.values() if a.user_id == user_id]

        if type is not None:
            events = [a for a in events if a.type == AnalyticType(type).value]
        if since is not None:
            events = [a for a in events if a.timestamp >= since]
        return sorted(events, key=lambda a: a.timestamp)

    async def count_for_user(
        self,
        user_id: UUID,
        type: AnalyticType,
        since: Optional[datetime] = None,
    ) -> int:
        """Count a user's events of one type."""
        return len(await self.list_for_user(user_id, type=type, since=since))

    async def list_for_link(self, link_id: UUID) -> List[Analytic]:
        """Get a link's events, oldest first."""
        with self._store.lock:
            events = [a for a in self._store.analytics.values() if a.link_id == link_id]
        return sorted(events, key=lambda a: a.timestamp)


def create_memory_container(store: Optional[MemoryStore] = None) -> RepositoryContainer:
    """Build a repository container backed by one shared in-memory store."""
    store = store or MemoryStore()
    return RepositoryContainer(
        user_repo=MemoryUserRepository(store),
        link_repo=MemoryLinkRepository(store),
        analytic_repo=MemoryAnalyticRepository(store),
    )
