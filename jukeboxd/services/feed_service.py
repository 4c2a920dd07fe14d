"""Activity feed service - fan-out-on-read over the follow graph.

Feeds are composed at read time: the follow graph gives the set of actors,
the activity log gives their current events. Nothing here writes.
"""

from uuid import UUID

from sqlalchemy.orm import Session

from jukeboxd.core.config import settings
from jukeboxd.core.exceptions import ValidationError
from jukeboxd.db.enums import ActivityType
from jukeboxd.db.models import Activity
from jukeboxd.schemas.activity import ActivityRead, PaginatedActivities, PaginationMeta
from jukeboxd.services import activity_service, social_service


def validate_pagination(limit: int, offset: int = 0) -> None:
    """Reject out-of-range paging values (no silent clamping)."""
    if isinstance(limit, bool) or not isinstance(limit, int):
        raise ValidationError(f"limit must be between 1 and {settings.FEED_MAX_LIMIT}")
    if not 1 <= limit <= settings.FEED_MAX_LIMIT:
        raise ValidationError(f"limit must be between 1 and {settings.FEED_MAX_LIMIT}")
    if isinstance(offset, bool) or not isinstance(offset, int) or offset < 0:
        raise ValidationError("offset must be a non-negative integer")


def page_to_offset(page: int, limit: int) -> int:
    if isinstance(page, bool) or not isinstance(page, int) or page < 1:
        raise ValidationError("page must be a positive integer")
    validate_pagination(limit)
    return (page - 1) * limit


def _to_reads(rows: list[Activity]) -> list[ActivityRead]:
    return [ActivityRead.model_validate(row) for row in rows]


def _paginated(
    rows: list[Activity], page: int, limit: int, total: int
) -> PaginatedActivities:
    return PaginatedActivities(
        activities=_to_reads(rows),
        pagination=PaginationMeta(
            page=page,
            limit=limit,
            has_more=page * limit < total,
            total=total,
        ),
    )


# =============================================================================
# Personalized feed (people the user follows)
# =============================================================================


def get_feed(
    db: Session,
    user_id: UUID,
    limit: int = settings.FEED_DEFAULT_LIMIT,
    offset: int = 0,
) -> list[ActivityRead]:
    """
    Events of followed users, newest first.

    A user following nobody gets [] without the activity log being queried.
    """
    validate_pagination(limit, offset)
    followee_ids = social_service.get_following_ids(db, user_id)
    if not followee_ids:
        return []

    query = activity_service.current_events().where(Activity.user_id.in_(followee_ids))
    return _to_reads(activity_service.fetch_page(db, query, limit, offset))


def get_feed_with_pagination(
    db: Session,
    user_id: UUID,
    page: int = 1,
    limit: int = settings.FEED_DEFAULT_LIMIT,
) -> PaginatedActivities:
    """Feed page with exact total and has_more."""
    offset = page_to_offset(page, limit)
    followee_ids = social_service.get_following_ids(db, user_id)
    if not followee_ids:
        return _paginated([], page, limit, 0)

    total = db.execute(
        activity_service.count_current_events().where(Activity.user_id.in_(followee_ids))
    ).scalar_one()
    query = activity_service.current_events().where(Activity.user_id.in_(followee_ids))
    rows = activity_service.fetch_page(db, query, limit, offset)
    return _paginated(rows, page, limit, total)


# =============================================================================
# A single user's own events (profile pages)
# =============================================================================


def get_user_feed(
    db: Session,
    user_id: UUID,
    limit: int = settings.FEED_DEFAULT_LIMIT,
    offset: int = 0,
) -> list[ActivityRead]:
    validate_pagination(limit, offset)
    query = activity_service.current_events().where(Activity.user_id == user_id)
    return _to_reads(activity_service.fetch_page(db, query, limit, offset))


def get_user_activities_with_pagination(
    db: Session,
    user_id: UUID,
    page: int = 1,
    limit: int = settings.FEED_DEFAULT_LIMIT,
) -> PaginatedActivities:
    offset = page_to_offset(page, limit)
    total = get_user_activity_count(db, user_id)
    query = activity_service.current_events().where(Activity.user_id == user_id)
    rows = activity_service.fetch_page(db, query, limit, offset)
    return _paginated(rows, page, limit, total)


def get_user_activity_count(db: Session, user_id: UUID) -> int:
    return db.execute(
        activity_service.count_current_events().where(Activity.user_id == user_id)
    ).scalar_one()


def has_user_activities(db: Session, user_id: UUID) -> bool:
    """Drives the empty-state decision; same source as the count."""
    return get_user_activity_count(db, user_id) > 0


# =============================================================================
# Global discovery feed
# =============================================================================


def get_recent_activities(
    db: Session,
    limit: int = settings.FEED_DEFAULT_LIMIT,
    offset: int = 0,
) -> list[ActivityRead]:
    validate_pagination(limit, offset)
    query = activity_service.current_events()
    return _to_reads(activity_service.fetch_page(db, query, limit, offset))


def get_activities_by_type(
    db: Session,
    activity_type: ActivityType | str,
    limit: int = settings.FEED_DEFAULT_LIMIT,
    offset: int = 0,
) -> list[ActivityRead]:
    """Global feed filtered to ratings or reviews."""
    activity_type = activity_service.parse_activity_type(activity_type)
    validate_pagination(limit, offset)
    query = activity_service.current_events().where(Activity.type == activity_type.value)
    return _to_reads(activity_service.fetch_page(db, query, limit, offset))
