"""Activity logging service - append-only record of rating/review actions.

Every accepted rating or review write appends one event. Feeds show the
*current* event of each content row: the log keeps the full history, but a
rating changed from 4 to 5 is presented once, with payload 5.
"""

import logging
from datetime import timedelta
from typing import Any
from uuid import UUID

from sqlalchemy import Select, and_, func, or_, select, update
from sqlalchemy.orm import Session, aliased

from jukeboxd.core.exceptions import ValidationError
from jukeboxd.db.enums import ActivityType
from jukeboxd.db.models import Activity
from jukeboxd.db.types import utcnow

logger = logging.getLogger(__name__)


def parse_activity_type(activity_type: ActivityType | str) -> ActivityType:
    if isinstance(activity_type, ActivityType):
        return activity_type
    if isinstance(activity_type, str) and ActivityType.has_value(activity_type):
        return ActivityType(activity_type)
    raise ValidationError('Activity type must be either "rating" or "review"')


# =============================================================================
# Writes
# =============================================================================


def log_activity(
    db: Session,
    actor_id: UUID | None,
    activity_type: ActivityType | str,
    item_id: str,
    source_id: UUID,
    payload: dict[str, Any],
) -> Activity:
    """
    Append an activity event.

    Args:
        db: Database session
        actor_id: User who performed the action (None once anonymized)
        activity_type: "rating" or "review"
        item_id: Album the action was about
        source_id: Rating/review row the action produced or changed
        payload: Value at the time of the action

    Returns:
        The created activity (flushed, not committed)
    """
    activity_type = parse_activity_type(activity_type)

    created_at = utcnow()
    latest = db.execute(
        select(func.max(Activity.created_at)).where(
            and_(Activity.type == activity_type.value, Activity.source_id == source_id)
        )
    ).scalar_one_or_none()
    if latest is not None and created_at <= latest:
        # Keep events of one source strictly ordered in time.
        created_at = latest + timedelta(microseconds=1)

    activity = Activity(
        user_id=actor_id,
        type=activity_type.value,
        item_id=item_id,
        source_id=source_id,
        payload=payload,
        created_at=created_at,
    )
    db.add(activity)
    db.flush()  # Don't commit - let caller control transaction
    return activity


def log_rating_activity(
    db: Session, actor_id: UUID, item_id: str, rating_id: UUID, rating: int
) -> Activity:
    """Log a rating create/update with the new value."""
    return log_activity(
        db=db,
        actor_id=actor_id,
        activity_type=ActivityType.RATING,
        item_id=item_id,
        source_id=rating_id,
        payload={"rating": rating},
    )


def log_review_activity(
    db: Session, actor_id: UUID | None, item_id: str, review_id: UUID, content: str
) -> Activity:
    """Log a review create/update with the full (trimmed) text."""
    return log_activity(
        db=db,
        actor_id=actor_id,
        activity_type=ActivityType.REVIEW,
        item_id=item_id,
        source_id=review_id,
        payload={"content": content},
    )


def anonymize_actor(db: Session, user_id: UUID) -> int:
    """Detach a user's events. Other users' feed history keeps them."""
    result = db.execute(
        update(Activity).where(Activity.user_id == user_id).values(user_id=None)
    )
    return result.rowcount


# =============================================================================
# Query building (feed engine)
# =============================================================================


def _is_current():
    newer = aliased(Activity)
    return ~(
        select(newer.id)
        .where(
            and_(
                newer.type == Activity.type,
                newer.source_id == Activity.source_id,
                or_(
                    newer.created_at > Activity.created_at,
                    # Same-instant events (concurrent writers) resolve by id.
                    and_(newer.created_at == Activity.created_at, newer.id > Activity.id),
                ),
            )
        )
        .exists()
    )


def current_events() -> Select:
    """Latest event per content row."""
    return select(Activity).where(_is_current())


def count_current_events() -> Select:
    return select(func.count()).select_from(Activity).where(_is_current())


def newest_first(query: Select) -> Select:
    # Ties on created_at break by id ascending for stable pagination.
    return query.order_by(Activity.created_at.desc(), Activity.id.asc())


def fetch_page(db: Session, query: Select, limit: int, offset: int) -> list[Activity]:
    return list(db.execute(newest_first(query).limit(limit).offset(offset)).scalars().all())


def get_activity(db: Session, activity_id: UUID) -> Activity | None:
    return db.get(Activity, activity_id)


def list_history_for_source(
    db: Session, activity_type: ActivityType | str, source_id: UUID
) -> list[Activity]:
    """Every event ever logged for one rating/review row, oldest first."""
    activity_type = parse_activity_type(activity_type)
    return list(
        db.execute(
            select(Activity)
            .where(
                and_(Activity.type == activity_type.value, Activity.source_id == source_id)
            )
            .order_by(Activity.created_at.asc(), Activity.id.asc())
        ).scalars().all()
    )
