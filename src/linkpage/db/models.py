"""SQLAlchemy models for LinkPage.

The same classes are used as plain entity objects by the in-memory
repositories, so every column the domain reads is set explicitly on
creation rather than left to column defaults.
"""

from datetime import datetime, timezone
from uuid import UUID, uuid4

from sqlalchemy import (
    Column,
    String,
    Text,
    Integer,
    DateTime,
    Boolean,
    ForeignKey,
    Index,
    CheckConstraint,
)
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import relationship
from sqlalchemy.types import TypeDecorator, CHAR

from ..core.enums import AnalyticType, DEFAULT_LINK_ICON, DEFAULT_THEME
from .database import Base


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class GUID(TypeDecorator):
    """Platform-independent GUID type using String for SQLite."""

    impl = CHAR
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(PG_UUID())
        else:
            return dialect.type_descriptor(CHAR(36))

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        return str(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        if not isinstance(value, UUID):
            return UUID(str(value))
        return value


class UTCDateTime(TypeDecorator):
    """Timezone-aware datetime stored as UTC.

    SQLite drops tzinfo on the way out; this puts it back so comparisons
    against aware datetimes keep working.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class User(Base):
    """A profile owner."""

    __tablename__ = "users"

    id = Column(GUID(), primary_key=True, default=uuid4)
    email = Column(String(320), nullable=False, unique=True)
    password_hash = Column(String(255), nullable=False)
    display_name = Column(String(100), nullable=False)
    bio = Column(Text, nullable=False, default="")
    username = Column(String(50), nullable=False, unique=True)
    avatar = Column(String(2048), nullable=False, default="")
    theme = Column(String(20), nullable=False, default=DEFAULT_THEME.value)
    created_at = Column(UTCDateTime(), nullable=False, default=utc_now)

    # Relationships
    links = relationship(
        "Link",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    analytics = relationship(
        "Analytic",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}')>"


class Link(Base):
    """An outbound link shown on its owner's profile."""

    __tablename__ = "links"

    id = Column(GUID(), primary_key=True, default=uuid4)
    user_id = Column(
        GUID(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    title = Column(String(200), nullable=False)
    url = Column(String(2048), nullable=False)
    icon = Column(String(100), nullable=False, default=DEFAULT_LINK_ICON)
    position = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    clicks = Column(Integer, nullable=False, default=0)
    created_at = Column(UTCDateTime(), nullable=False, default=utc_now)

    # Relationships
    user = relationship("User", back_populates="links")
    analytics = relationship(
        "Analytic",
        back_populates="link",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("ix_links_user_position", "user_id", "position"),
        CheckConstraint("position >= 0", name="ck_links_position_non_negative"),
        CheckConstraint("clicks >= 0", name="ck_links_clicks_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<Link(id={self.id}, title='{self.title}', position={self.position})>"


class Analytic(Base):
    """Append-only view/click event."""

    __tablename__ = "analytics"

    id = Column(GUID(), primary_key=True, default=uuid4)
    user_id = Column(
        GUID(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    link_id = Column(
        GUID(), ForeignKey("links.id", ondelete="CASCADE"), nullable=True
    )
    type = Column(String(10), nullable=False)
    timestamp = Column(UTCDateTime(), nullable=False, default=utc_now)

    # Relationships
    user = relationship("User", back_populates="analytics")
    link = relationship("Link", back_populates="analytics")

    __table_args__ = (
        Index("ix_analytics_user_type_timestamp", "user_id", "type", "timestamp"),
        Index("ix_analytics_link_id", "link_id"),
        CheckConstraint(
            f"type IN ('{AnalyticType.VIEW.value}', '{AnalyticType.CLICK.value}')",
            name="ck_analytics_type",
        ),
    )

    def __repr__(self) -> str:
        return f"<Analytic(id={self.id}, type='{self.type}', link_id={self.link_id})>"
