"""Social graph service - directed follow edges between users."""

import logging
from uuid import UUID

from sqlalchemy import and_, delete, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, aliased

from jukeboxd.core.exceptions import (
    AlreadyFollowingError,
    NotFollowingError,
    SelfFollowError,
    UserNotFoundError,
    ValidationError,
)
from jukeboxd.core.structured_logging import build_log_context
from jukeboxd.db.models import Follow, User
from jukeboxd.schemas.social import FollowRead
from jukeboxd.schemas.user import UserProfile, UserProfileWithStats
from jukeboxd.services import user_service

logger = logging.getLogger(__name__)

DEFAULT_SUGGESTION_LIMIT = 10
MAX_SUGGESTION_LIMIT = 100


def _edge_order():
    # Most recent edge first; id breaks ties so repeated reads agree.
    return (Follow.created_at.desc(), Follow.id.asc())


def _ensure_users_exist(db: Session, *user_ids: UUID) -> None:
    found = set(
        db.execute(select(User.id).where(User.id.in_(set(user_ids)))).scalars().all()
    )
    if any(user_id not in found for user_id in user_ids):
        raise UserNotFoundError()


# =============================================================================
# Writes
# =============================================================================


def follow(
    db: Session,
    follower_id: UUID,
    followee_id: UUID,
    *,
    commit: bool = True,
) -> FollowRead:
    """
    Create the edge follower -> followee.

    The pre-check gives a clean error in the common case; the unique
    constraint on (follower_id, followee_id) decides concurrent attempts.
    """
    if follower_id == followee_id:
        raise SelfFollowError()
    _ensure_users_exist(db, follower_id, followee_id)

    if is_following(db, follower_id, followee_id):
        raise AlreadyFollowingError()

    edge = Follow(follower_id=follower_id, followee_id=followee_id)
    try:
        with db.begin_nested():
            db.add(edge)
            db.flush()
    except IntegrityError:
        # Lost a race against an identical follow.
        if is_following(db, follower_id, followee_id):
            raise AlreadyFollowingError()
        raise

    result = FollowRead.model_validate(edge)
    if commit:
        db.commit()
    logger.info(
        "Follow created",
        extra=build_log_context(
            user_id=follower_id, target_user_id=followee_id, operation="follow"
        ),
    )
    return result


def unfollow(
    db: Session,
    follower_id: UUID,
    followee_id: UUID,
    *,
    commit: bool = True,
) -> None:
    """Remove the edge follower -> followee."""
    result = db.execute(
        delete(Follow).where(
            and_(Follow.follower_id == follower_id, Follow.followee_id == followee_id)
        )
    )
    if result.rowcount == 0:
        raise NotFollowingError()

    if commit:
        db.commit()
    logger.info(
        "Follow removed",
        extra=build_log_context(
            user_id=follower_id, target_user_id=followee_id, operation="unfollow"
        ),
    )


def delete_edges_for_user(db: Session, user_id: UUID) -> int:
    """Hard-delete every edge where the user is follower or followee. Flush only."""
    result = db.execute(
        delete(Follow).where(
            or_(Follow.follower_id == user_id, Follow.followee_id == user_id)
        )
    )
    return result.rowcount


# =============================================================================
# Reads
# =============================================================================


def is_following(db: Session, follower_id: UUID, followee_id: UUID) -> bool:
    if follower_id == followee_id:
        return False
    return (
        db.execute(
            select(Follow.id).where(
                and_(Follow.follower_id == follower_id, Follow.followee_id == followee_id)
            )
        ).first()
        is not None
    )


def is_following_multiple(
    db: Session, follower_id: UUID, followee_ids: list[UUID]
) -> dict[UUID, bool]:
    """Batch follow-status lookup, keyed by each requested followee id."""
    if not followee_ids:
        return {}
    followed = set(
        db.execute(
            select(Follow.followee_id).where(
                and_(
                    Follow.follower_id == follower_id,
                    Follow.followee_id.in_(set(followee_ids)),
                )
            )
        ).scalars().all()
    )
    return {followee_id: followee_id in followed for followee_id in followee_ids}


def get_followers(db: Session, user_id: UUID) -> list[UserProfile]:
    """Users following ``user_id``, most recent edge first."""
    user_service.require_user(db, user_id)
    rows = db.execute(
        select(User)
        .join(Follow, Follow.follower_id == User.id)
        .where(Follow.followee_id == user_id)
        .order_by(*_edge_order())
    ).scalars().all()
    return [user_service.to_profile(user) for user in rows]


def get_following(db: Session, user_id: UUID) -> list[UserProfile]:
    """Users ``user_id`` follows, most recent edge first."""
    user_service.require_user(db, user_id)
    rows = db.execute(
        select(User)
        .join(Follow, Follow.followee_id == User.id)
        .where(Follow.follower_id == user_id)
        .order_by(*_edge_order())
    ).scalars().all()
    return [user_service.to_profile(user) for user in rows]


def get_following_ids(db: Session, user_id: UUID) -> list[UUID]:
    """Ids of users ``user_id`` follows (feed composition)."""
    return list(
        db.execute(
            select(Follow.followee_id)
            .where(Follow.follower_id == user_id)
            .order_by(*_edge_order())
        ).scalars().all()
    )


def get_follower_count(db: Session, user_id: UUID) -> int:
    return db.execute(
        select(func.count())
        .select_from(Follow)
        .join(User, Follow.follower_id == User.id)
        .where(Follow.followee_id == user_id)
    ).scalar_one()


def get_following_count(db: Session, user_id: UUID) -> int:
    return db.execute(
        select(func.count())
        .select_from(Follow)
        .join(User, Follow.followee_id == User.id)
        .where(Follow.follower_id == user_id)
    ).scalar_one()


def count_edges_for_user(db: Session, user_id: UUID) -> int:
    """Edges touching the user in either direction."""
    return db.execute(
        select(func.count())
        .select_from(Follow)
        .where(or_(Follow.follower_id == user_id, Follow.followee_id == user_id))
    ).scalar_one()


def get_mutual_follows(db: Session, user_id: UUID) -> list[UserProfile]:
    """Users with edges in both directions with ``user_id``, by username."""
    user_service.require_user(db, user_id)
    outgoing = aliased(Follow)
    incoming = aliased(Follow)
    rows = db.execute(
        select(User)
        .join(outgoing, and_(outgoing.followee_id == User.id, outgoing.follower_id == user_id))
        .join(incoming, and_(incoming.follower_id == User.id, incoming.followee_id == user_id))
        .order_by(User.username.asc())
    ).scalars().all()
    return [user_service.to_profile(user) for user in rows]


def get_follow_suggestions(
    db: Session, user_id: UUID, limit: int = DEFAULT_SUGGESTION_LIMIT
) -> list[UserProfile]:
    """
    Users not yet followed, newest accounts first.

    No ranking beyond excluding the user and people already followed.
    """
    if not 1 <= limit <= MAX_SUGGESTION_LIMIT:
        raise ValidationError("limit must be between 1 and 100")
    user_service.require_user(db, user_id)

    already_followed = select(Follow.followee_id).where(Follow.follower_id == user_id)
    rows = db.execute(
        select(User)
        .where(User.id != user_id, User.id.not_in(already_followed))
        .order_by(User.created_at.desc(), User.id.asc())
        .limit(limit)
    ).scalars().all()
    return [user_service.to_profile(user) for user in rows]


def get_profile_with_stats(db: Session, user_id: UUID) -> UserProfileWithStats:
    user = user_service.require_user(db, user_id)
    return UserProfileWithStats(
        **user_service.to_profile(user).model_dump(),
        follower_count=get_follower_count(db, user_id),
        following_count=get_following_count(db, user_id),
    )
