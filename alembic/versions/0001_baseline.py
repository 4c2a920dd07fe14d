"""Baseline migration - users, social graph, content and activity tables

Revision ID: 0001_baseline
Revises:
Create Date: 2026-10-16

Creates the full jukeboxd schema: users, follow edges, ratings, reviews,
the activity log and the account deletion audit trail.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_baseline'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamp(name: str) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), nullable=False)


def upgrade() -> None:
    """Create all tables."""

    # ==========================================================================
    # Users
    # ==========================================================================
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('username', sa.String(50), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('credential_hash', sa.String(255), nullable=False),
        sa.Column('display_name', sa.String(100), nullable=True),
        sa.Column('bio', sa.Text(), nullable=True),
        _timestamp('created_at'),
        _timestamp('updated_at'),
        sa.UniqueConstraint('username', name='uq_users_username'),
        sa.UniqueConstraint('email', name='uq_users_email'),
    )

    # ==========================================================================
    # Follow edges
    # ==========================================================================
    op.create_table(
        'follows',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'follower_id', sa.Uuid(),
            sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False,
        ),
        sa.Column(
            'followee_id', sa.Uuid(),
            sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False,
        ),
        _timestamp('created_at'),
        sa.UniqueConstraint('follower_id', 'followee_id', name='uq_follows_follower_followee'),
        sa.CheckConstraint('follower_id <> followee_id', name='ck_follows_no_self_follow'),
    )
    op.create_index('ix_follows_follower_id', 'follows', ['follower_id'])
    op.create_index('ix_follows_followee_id', 'follows', ['followee_id'])

    # ==========================================================================
    # Ratings / reviews (user_id is NULL once anonymized)
    # ==========================================================================
    op.create_table(
        'ratings',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'user_id', sa.Uuid(),
            sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True,
        ),
        sa.Column('item_id', sa.String(255), nullable=False),
        sa.Column('rating', sa.Integer(), nullable=False),
        _timestamp('created_at'),
        _timestamp('updated_at'),
        sa.UniqueConstraint('user_id', 'item_id', name='uq_ratings_user_item'),
        sa.CheckConstraint('rating >= 1 AND rating <= 5', name='ck_ratings_range'),
    )
    op.create_index('ix_ratings_user_id', 'ratings', ['user_id'])
    op.create_index('ix_ratings_item_id', 'ratings', ['item_id'])

    op.create_table(
        'reviews',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'user_id', sa.Uuid(),
            sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True,
        ),
        sa.Column('item_id', sa.String(255), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        _timestamp('created_at'),
        _timestamp('updated_at'),
        sa.UniqueConstraint('user_id', 'item_id', name='uq_reviews_user_item'),
    )
    op.create_index('ix_reviews_user_id', 'reviews', ['user_id'])
    op.create_index('ix_reviews_item_id', 'reviews', ['item_id'])

    # ==========================================================================
    # Activity log
    # ==========================================================================
    op.create_table(
        'activities',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'user_id', sa.Uuid(),
            sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True,
        ),
        sa.Column('type', sa.String(20), nullable=False),
        sa.Column('item_id', sa.String(255), nullable=False),
        sa.Column('source_id', sa.Uuid(), nullable=False),
        sa.Column('payload', sa.JSON(), nullable=False),
        _timestamp('created_at'),
    )
    op.create_index('ix_activities_user_id', 'activities', ['user_id'])
    op.create_index('ix_activities_created_at', 'activities', ['created_at'])
    op.create_index('ix_activities_source', 'activities', ['type', 'source_id'])

    # ==========================================================================
    # Account deletion audit (no FK: outlives the user row)
    # ==========================================================================
    op.create_table(
        'account_deletion_audit',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        _timestamp('deleted_at'),
        sa.Column('ratings_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('reviews_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('follows_count', sa.Integer(), nullable=False, server_default='0'),
        _timestamp('created_at'),
    )
    op.create_index('ix_account_deletion_audit_user_id', 'account_deletion_audit', ['user_id'])
    op.create_index(
        'ix_account_deletion_audit_deleted_at', 'account_deletion_audit', ['deleted_at']
    )


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table('account_deletion_audit')
    op.drop_table('activities')
    op.drop_table('reviews')
    op.drop_table('ratings')
    op.drop_table('follows')
    op.drop_table('users')
