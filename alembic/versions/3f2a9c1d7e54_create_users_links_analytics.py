"""create_users_links_analytics

Revision ID: 3f2a9c1d7e54
Revises:
Create Date: 2026-10-19 10:12:41.205318

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

import linkpage.db.models


# revision identifiers, used by Alembic.
revision: str = '3f2a9c1d7e54'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create users, links and analytics tables."""
    op.create_table(
        'users',
        sa.Column('id', linkpage.db.models.GUID(), nullable=False),
        sa.Column('email', sa.String(length=320), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('display_name', sa.String(length=100), nullable=False),
        sa.Column('bio', sa.Text(), nullable=False),
        sa.Column('username', sa.String(length=50), nullable=False),
        sa.Column('avatar', sa.String(length=2048), nullable=False),
        sa.Column('theme', sa.String(length=20), nullable=False),
        sa.Column('created_at', linkpage.db.models.UTCDateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
        sa.UniqueConstraint('username'),
    )

    op.create_table(
        'links',
        sa.Column('id', linkpage.db.models.GUID(), nullable=False),
        sa.Column('user_id', linkpage.db.models.GUID(), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('url', sa.String(length=2048), nullable=False),
        sa.Column('icon', sa.String(length=100), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('clicks', sa.Integer(), nullable=False),
        sa.Column('created_at', linkpage.db.models.UTCDateTime(), nullable=False),
        sa.CheckConstraint('position >= 0', name='ck_links_position_non_negative'),
        sa.CheckConstraint('clicks >= 0', name='ck_links_clicks_non_negative'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_links_user_position', 'links', ['user_id', 'position'], unique=False)

    op.create_table(
        'analytics',
        sa.Column('id', linkpage.db.models.GUID(), nullable=False),
        sa.Column('user_id', linkpage.db.models.GUID(), nullable=False),
        sa.Column('link_id', linkpage.db.models.GUID(), nullable=True),
        sa.Column('type', sa.String(length=10), nullable=False),
        sa.Column('timestamp', linkpage.db.models.UTCDateTime(), nullable=False),
        sa.CheckConstraint("type IN ('view', 'click')", name='ck_analytics_type'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['link_id'], ['links.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'ix_analytics_user_type_timestamp',
        'analytics',
        ['user_id', 'type', 'timestamp'],
        unique=False,
    )
    op.create_index('ix_analytics_link_id', 'analytics', ['link_id'], unique=False)


def downgrade() -> None:
    """Drop analytics, links and users tables."""
    op.drop_index('ix_analytics_link_id', table_name='analytics')
    op.drop_index('ix_analytics_user_type_timestamp', table_name='analytics')
    op.drop_table('analytics')
    op.drop_index('ix_links_user_position', table_name='links')
    op.drop_table('links')
    op.drop_table('users')
