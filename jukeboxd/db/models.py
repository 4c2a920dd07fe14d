"""SQLAlchemy ORM models."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from jukeboxd.db.base import Base
from jukeboxd.db.ownership import Anonymized, OwnedBy, ownership_of
from jukeboxd.db.types import utcnow


class User(Base):
    """
    Application user.

    The credential hash is produced and verified by the auth layer; this
    package only stores it and never returns it from a read.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    username: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    credential_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    display_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)


class Follow(Base):
    """Directed edge: follower receives followee's activity in their feed."""

    __tablename__ = "follows"
    __table_args__ = (
        UniqueConstraint("follower_id", "followee_id", name="uq_follows_follower_followee"),
        CheckConstraint("follower_id <> followee_id", name="ck_follows_no_self_follow"),
        Index("ix_follows_follower_id", "follower_id"),
        Index("ix_follows_followee_id", "followee_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    follower_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    followee_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)


class Rating(Base):
    """
    One user's 1-5 rating of one album.

    user_id is NULL once the owner deleted their account; the value keeps
    counting toward album statistics.
    """

    __tablename__ = "ratings"
    __table_args__ = (
        UniqueConstraint("user_id", "item_id", name="uq_ratings_user_item"),
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_ratings_range"),
        Index("ix_ratings_user_id", "user_id"),
        Index("ix_ratings_item_id", "item_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    item_id: Mapped[str] = mapped_column(String(255), nullable=False)
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    @property
    def owner(self) -> OwnedBy | Anonymized:
        return ownership_of(self.user_id)


class Review(Base):
    """One user's free-text review of one album. Same ownership rules as Rating."""

    __tablename__ = "reviews"
    __table_args__ = (
        UniqueConstraint("user_id", "item_id", name="uq_reviews_user_item"),
        Index("ix_reviews_user_id", "user_id"),
        Index("ix_reviews_item_id", "item_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    item_id: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    @property
    def owner(self) -> OwnedBy | Anonymized:
        return ownership_of(self.user_id)


class Activity(Base):
    """
    Append-only record of a rating/review action.

    source_id points at the rating or review row that produced the event
    (no foreign key: events outlive deleted content).
    """

    __tablename__ = "activities"
    __table_args__ = (
        Index("ix_activities_user_id", "user_id"),
        Index("ix_activities_created_at", "created_at"),
        Index("ix_activities_source", "type", "source_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    item_id: Mapped[str] = mapped_column(String(255), nullable=False)
    source_id: Mapped[uuid.UUID] = mapped_column(nullable=False)
    payload: Mapped[dict] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    @property
    def actor(self) -> OwnedBy | Anonymized:
        return ownership_of(self.user_id)


class AccountDeletionAudit(Base):
    """Forensic record of an account deletion, written before anything is removed."""

    __tablename__ = "account_deletion_audit"
    __table_args__ = (
        Index("ix_account_deletion_audit_user_id", "user_id"),
        Index("ix_account_deletion_audit_deleted_at", "deleted_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    # Not a foreign key: the audit row must survive the user row.
    user_id: Mapped[uuid.UUID] = mapped_column(nullable=False)
    deleted_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    ratings_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    reviews_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    follows_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
