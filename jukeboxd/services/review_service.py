"""Review service - one free-text review per user and album."""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from jukeboxd.core.config import settings
from jukeboxd.core.exceptions import (
    DuplicateContentError,
    ReviewNotFoundError,
    ValidationError,
)
from jukeboxd.core.structured_logging import build_log_context
from jukeboxd.db.models import Review
from jukeboxd.schemas.content import ReviewRead
from jukeboxd.services import activity_service, content_store, user_service
from jukeboxd.services.catalog import ItemCatalog, ensure_item_exists

logger = logging.getLogger(__name__)

CONTENT_REQUIRED_MESSAGE = "Review content is required"
CONTENT_BLANK_MESSAGE = "Review content cannot be empty or contain only whitespace"


def validate_content(content) -> str:
    """Return the trimmed review text or raise ValidationError.

    Length is measured on the trimmed text, which is what gets stored.
    """
    if content is None or not isinstance(content, str):
        raise ValidationError(CONTENT_REQUIRED_MESSAGE)
    trimmed = content.strip()
    if not trimmed:
        raise ValidationError(CONTENT_BLANK_MESSAGE)
    if len(trimmed) > settings.REVIEW_MAX_LENGTH:
        raise ValidationError(
            f"Review content cannot exceed {settings.REVIEW_MAX_LENGTH} characters"
        )
    return trimmed


def _to_read(row: Review) -> ReviewRead:
    return ReviewRead.model_validate(row)


# =============================================================================
# Writes
# =============================================================================


def upsert_review(
    db: Session,
    owner_id: UUID,
    item_id: str,
    content: str,
    *,
    catalog: ItemCatalog | None = None,
    commit: bool = True,
) -> ReviewRead:
    """Create the user's review for an album or replace its text in place."""
    content = validate_content(content)
    ensure_item_exists(catalog, item_id)
    user_service.require_user(db, owner_id)

    with db.begin_nested():
        row, created = content_store.upsert_row(
            db, Review, owner_id, item_id, {"content": content}
        )
        activity_service.log_review_activity(db, owner_id, item_id, row.id, content)
    result = _to_read(row)

    if commit:
        db.commit()
    logger.info(
        f"Review {'created' if created else 'updated'}",
        extra=build_log_context(user_id=owner_id, item_id=item_id, operation="upsert_review"),
    )
    return result


def create_review(
    db: Session,
    owner_id: UUID,
    item_id: str,
    content: str,
    *,
    catalog: ItemCatalog | None = None,
    commit: bool = True,
) -> ReviewRead:
    """Insert-only review. Fails with DuplicateContentError if one exists."""
    content = validate_content(content)
    ensure_item_exists(catalog, item_id)
    user_service.require_user(db, owner_id)

    with db.begin_nested():
        row = content_store.insert_row(db, Review, owner_id, item_id, {"content": content})
        if row is None:
            raise DuplicateContentError("User has already reviewed this album")
        activity_service.log_review_activity(db, owner_id, item_id, row.id, content)
    result = _to_read(row)

    if commit:
        db.commit()
    return result


def update_review_content(
    db: Session, review_id: UUID, content: str, *, commit: bool = True
) -> ReviewRead:
    """Replace the text of an existing review by id."""
    content = validate_content(content)

    with db.begin_nested():
        row = db.get(Review, review_id)
        if row is None:
            raise ReviewNotFoundError()
        row.content = content
        row.updated_at = content_store.next_updated_at(row.updated_at)
        db.flush()
        # Anonymized reviews still log the edit, with no actor.
        activity_service.log_review_activity(db, row.user_id, row.item_id, row.id, content)
    result = _to_read(row)

    if commit:
        db.commit()
    return result


def delete_review(
    db: Session, owner_id: UUID, item_id: str, *, commit: bool = True
) -> None:
    """Remove a user's review for an album (user-initiated; not anonymization)."""
    if content_store.delete_by_owner_and_item(db, Review, owner_id, item_id) == 0:
        raise ReviewNotFoundError()
    if commit:
        db.commit()


def delete_review_by_id(db: Session, review_id: UUID, *, commit: bool = True) -> None:
    if content_store.delete_by_id(db, Review, review_id) == 0:
        raise ReviewNotFoundError()
    if commit:
        db.commit()


# =============================================================================
# Reads
# =============================================================================


def get_user_review(db: Session, owner_id: UUID, item_id: str) -> ReviewRead | None:
    row = content_store.find_by_owner_and_item(db, Review, owner_id, item_id)
    return _to_read(row) if row else None


def get_review(db: Session, review_id: UUID) -> ReviewRead | None:
    row = db.get(Review, review_id)
    return _to_read(row) if row else None


def list_user_reviews(db: Session, owner_id: UUID) -> list[ReviewRead]:
    """A user's reviews, newest first (activity history)."""
    return [_to_read(row) for row in content_store.list_by_owner(db, Review, owner_id)]


def list_item_reviews(db: Session, item_id: str) -> list[ReviewRead]:
    """All reviews on an album, oldest first (chronological display)."""
    rows = db.execute(
        select(Review)
        .where(Review.item_id == item_id)
        .order_by(Review.created_at.asc(), Review.id.asc())
    ).scalars().all()
    return [_to_read(row) for row in rows]


def get_review_count(db: Session, item_id: str) -> int:
    return content_store.count_by_item(db, Review, item_id)


def get_user_review_count(db: Session, owner_id: UUID) -> int:
    return content_store.count_by_owner(db, Review, owner_id)


def has_user_reviewed(db: Session, owner_id: UUID, item_id: str) -> bool:
    return content_store.find_by_owner_and_item(db, Review, owner_id, item_id) is not None
