"""Rating service - one 1-5 rating per user and album, with album statistics."""

import logging
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from jukeboxd.core.exceptions import (
    DuplicateContentError,
    RatingNotFoundError,
    ValidationError,
)
from jukeboxd.core.structured_logging import build_log_context
from jukeboxd.db.models import Rating
from jukeboxd.schemas.content import ItemStats, RatingRead
from jukeboxd.services import activity_service, content_store, review_service, user_service
from jukeboxd.services.catalog import ItemCatalog, ensure_item_exists

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5
RATING_RANGE_MESSAGE = "Rating must be an integer between 1 and 5"


def validate_rating(value) -> int:
    """Accept only true integers 1-5 (bools and floats are rejected)."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(RATING_RANGE_MESSAGE)
    if not MIN_RATING <= value <= MAX_RATING:
        raise ValidationError(RATING_RANGE_MESSAGE)
    return value


def _to_read(row: Rating) -> RatingRead:
    return RatingRead.model_validate(row)


# =============================================================================
# Writes
# =============================================================================


def upsert_rating(
    db: Session,
    owner_id: UUID,
    item_id: str,
    rating: int,
    *,
    catalog: ItemCatalog | None = None,
    commit: bool = True,
) -> RatingRead:
    """
    Create the user's rating for an album or update it in place.

    Input is validated before storage is touched. The row write and its
    activity event happen in one savepoint: either both land or neither.
    """
    rating = validate_rating(rating)
    ensure_item_exists(catalog, item_id)
    user_service.require_user(db, owner_id)

    with db.begin_nested():
        row, created = content_store.upsert_row(
            db, Rating, owner_id, item_id, {"rating": rating}
        )
        activity_service.log_rating_activity(db, owner_id, item_id, row.id, rating)
    result = _to_read(row)

    if commit:
        db.commit()
    logger.info(
        f"Rating {'created' if created else 'updated'}",
        extra=build_log_context(user_id=owner_id, item_id=item_id, operation="upsert_rating"),
    )
    return result


def create_rating(
    db: Session,
    owner_id: UUID,
    item_id: str,
    rating: int,
    *,
    catalog: ItemCatalog | None = None,
    commit: bool = True,
) -> RatingRead:
    """Insert-only rating. Fails with DuplicateContentError if one exists."""
    rating = validate_rating(rating)
    ensure_item_exists(catalog, item_id)
    user_service.require_user(db, owner_id)

    with db.begin_nested():
        row = content_store.insert_row(db, Rating, owner_id, item_id, {"rating": rating})
        if row is None:
            raise DuplicateContentError("User has already rated this album")
        activity_service.log_rating_activity(db, owner_id, item_id, row.id, rating)
    result = _to_read(row)

    if commit:
        db.commit()
    return result


def delete_rating(
    db: Session, owner_id: UUID, item_id: str, *, commit: bool = True
) -> None:
    """Remove a user's rating for an album (user-initiated; not anonymization)."""
    if content_store.delete_by_owner_and_item(db, Rating, owner_id, item_id) == 0:
        raise RatingNotFoundError()
    if commit:
        db.commit()


def delete_rating_by_id(db: Session, rating_id: UUID, *, commit: bool = True) -> None:
    if content_store.delete_by_id(db, Rating, rating_id) == 0:
        raise RatingNotFoundError()
    if commit:
        db.commit()


# =============================================================================
# Reads
# =============================================================================


def get_user_rating(db: Session, owner_id: UUID, item_id: str) -> RatingRead | None:
    row = content_store.find_by_owner_and_item(db, Rating, owner_id, item_id)
    return _to_read(row) if row else None


def get_rating(db: Session, rating_id: UUID) -> RatingRead | None:
    row = db.get(Rating, rating_id)
    return _to_read(row) if row else None


def list_user_ratings(db: Session, owner_id: UUID) -> list[RatingRead]:
    """A user's ratings, newest first."""
    return [_to_read(row) for row in content_store.list_by_owner(db, Rating, owner_id)]


def list_item_ratings(db: Session, item_id: str) -> list[RatingRead]:
    """All ratings on an album (anonymized included), newest first."""
    rows = db.execute(
        select(Rating)
        .where(Rating.item_id == item_id)
        .order_by(Rating.created_at.desc(), Rating.id.asc())
    ).scalars().all()
    return [_to_read(row) for row in rows]


def get_average_rating(db: Session, item_id: str) -> float:
    """Mean of the album's rating values, 2 decimals; 0.0 when unrated."""
    average = db.execute(
        select(func.avg(Rating.rating)).where(Rating.item_id == item_id)
    ).scalar_one_or_none()
    if average is None:
        return 0.0
    return round(float(average), 2)


def get_rating_count(db: Session, item_id: str) -> int:
    return content_store.count_by_item(db, Rating, item_id)


def get_user_rating_count(db: Session, owner_id: UUID) -> int:
    return content_store.count_by_owner(db, Rating, owner_id)


def get_item_stats(db: Session, item_id: str) -> ItemStats:
    """Average, rating count and review count for an album."""
    return ItemStats(
        item_id=item_id,
        average_rating=get_average_rating(db, item_id),
        rating_count=get_rating_count(db, item_id),
        review_count=review_service.get_review_count(db, item_id),
    )
