"""Shared storage rules for per-(user, album) content: ratings and reviews.

Both content kinds follow the same contract: at most one row per
(user_id, item_id) while owned, written through an upsert that keeps the row
id and created_at and always advances updated_at.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, TypeVar
from uuid import UUID

from sqlalchemy import and_, delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from jukeboxd.db.models import Rating, Review
from jukeboxd.db.types import utcnow

ContentRow = TypeVar("ContentRow", Rating, Review)


def next_updated_at(previous: datetime | None) -> datetime:
    """Current time, bumped past ``previous`` so updated_at strictly advances."""
    now = utcnow()
    if previous is not None and now <= previous:
        return previous + timedelta(microseconds=1)
    return now


def find_by_owner_and_item(
    db: Session, model: type[ContentRow], owner_id: UUID, item_id: str
) -> ContentRow | None:
    return db.execute(
        select(model).where(and_(model.user_id == owner_id, model.item_id == item_id))
    ).scalar_one_or_none()


def upsert_row(
    db: Session,
    model: type[ContentRow],
    owner_id: UUID,
    item_id: str,
    values: dict[str, Any],
) -> tuple[ContentRow, bool]:
    """
    Update the (owner, item) row in place or insert it.

    Returns (row, created). Must be called inside a transaction scope owned
    by the caller; the insert runs in its own savepoint so that losing an
    insert race falls back to updating the row the winner created.
    """
    row = find_by_owner_and_item(db, model, owner_id, item_id)
    if row is not None:
        _apply_update(row, values)
        db.flush()
        return row, False

    row = model(user_id=owner_id, item_id=item_id, **values)
    try:
        with db.begin_nested():
            db.add(row)
            db.flush()
        return row, True
    except IntegrityError:
        # A concurrent upsert inserted first; its row becomes ours to update.
        row = find_by_owner_and_item(db, model, owner_id, item_id)
        if row is None:
            raise
        _apply_update(row, values)
        db.flush()
        return row, False


def insert_row(
    db: Session,
    model: type[ContentRow],
    owner_id: UUID,
    item_id: str,
    values: dict[str, Any],
) -> ContentRow | None:
    """Insert-only variant. Returns None when the (owner, item) row already exists."""
    if find_by_owner_and_item(db, model, owner_id, item_id) is not None:
        return None
    row = model(user_id=owner_id, item_id=item_id, **values)
    try:
        with db.begin_nested():
            db.add(row)
            db.flush()
    except IntegrityError:
        return None
    return row


def _apply_update(row: Rating | Review, values: dict[str, Any]) -> None:
    for key, value in values.items():
        setattr(row, key, value)
    row.updated_at = next_updated_at(row.updated_at)


def list_by_owner(db: Session, model: type[ContentRow], owner_id: UUID) -> list[ContentRow]:
    """A user's own rows, newest first."""
    return list(
        db.execute(
            select(model)
            .where(model.user_id == owner_id)
            .order_by(model.created_at.desc(), model.id.asc())
        ).scalars().all()
    )


def count_by_item(db: Session, model: type[ContentRow], item_id: str) -> int:
    """Rows on an album, anonymized rows included."""
    return db.execute(
        select(func.count()).select_from(model).where(model.item_id == item_id)
    ).scalar_one()


def count_by_owner(db: Session, model: type[ContentRow], owner_id: UUID) -> int:
    return db.execute(
        select(func.count()).select_from(model).where(model.user_id == owner_id)
    ).scalar_one()


def delete_by_owner_and_item(
    db: Session, model: type[ContentRow], owner_id: UUID, item_id: str
) -> int:
    result = db.execute(
        delete(model).where(and_(model.user_id == owner_id, model.item_id == item_id))
    )
    return result.rowcount


def delete_by_id(db: Session, model: type[ContentRow], row_id: UUID) -> int:
    result = db.execute(delete(model).where(model.id == row_id))
    return result.rowcount


def anonymize_owner(db: Session, model: type[ContentRow], owner_id: UUID) -> int:
    """Detach every row from ``owner_id``; values and aggregates are kept."""
    result = db.execute(
        update(model).where(model.user_id == owner_id).values(user_id=None)
    )
    return result.rowcount
