"""Account lifecycle service - atomic account deletion.

Deleting an account removes personal data but keeps the aggregate shape of
the catalog: ratings and reviews are anonymized rather than deleted, activity
events lose their actor, and only follow edges and the user row are removed.
"""

import logging
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from jukeboxd.core.exceptions import AccountNotFoundError, DeletionFailedError
from jukeboxd.core.structured_logging import build_log_context
from jukeboxd.db.models import AccountDeletionAudit, Rating, Review, User
from jukeboxd.db.types import utcnow
from jukeboxd.db.unit_of_work import UnitOfWork
from jukeboxd.schemas.audit import DeletionAuditRead
from jukeboxd.services import activity_service, content_store, social_service
from jukeboxd.services.session_service import SessionStore

logger = logging.getLogger(__name__)


def _write_audit_record(db: Session, user_id: UUID) -> AccountDeletionAudit:
    """Capture the scope of the deletion before anything is touched."""
    audit = AccountDeletionAudit(
        user_id=user_id,
        deleted_at=utcnow(),
        ratings_count=content_store.count_by_owner(db, Rating, user_id),
        reviews_count=content_store.count_by_owner(db, Review, user_id),
        follows_count=social_service.count_edges_for_user(db, user_id),
    )
    db.add(audit)
    db.flush()
    return audit


def _invalidate_sessions(sessions: SessionStore | None, user_id: UUID) -> None:
    if sessions is None:
        return
    try:
        sessions.invalidate_user_sessions(user_id)
    except Exception as exc:
        # Sessions of a deleted user fail auth anyway; keep deleting.
        logger.warning(
            f"Session invalidation failed during account deletion: {type(exc).__name__}",
            extra=build_log_context(user_id=user_id, operation="delete_account"),
        )


def delete_account(
    db: Session,
    user_id: UUID,
    *,
    sessions: SessionStore | None = None,
) -> DeletionAuditRead:
    """
    Delete a user account as one unit of work.

    Steps, in order:
        1. audit record with ratings/reviews/follow-edge counts
        2. session invalidation (best effort)
        3. anonymize ratings and reviews
        4. anonymize activity events
        5. delete follow edges in both directions
        6. delete the user row

    Raises:
        AccountNotFoundError: the user row did not exist; nothing was committed
        DeletionFailedError: any other step failed; nothing was committed
    """
    log_context = build_log_context(user_id=user_id, operation="delete_account")
    try:
        with UnitOfWork(db) as uow:
            audit = _write_audit_record(uow.session, user_id)
            _invalidate_sessions(sessions, user_id)

            ratings = content_store.anonymize_owner(uow.session, Rating, user_id)
            reviews = content_store.anonymize_owner(uow.session, Review, user_id)
            activities = activity_service.anonymize_actor(uow.session, user_id)
            edges = social_service.delete_edges_for_user(uow.session, user_id)

            result = uow.session.execute(delete(User).where(User.id == user_id))
            if result.rowcount == 0:
                raise AccountNotFoundError()
            uow.session.flush()
            audit_read = DeletionAuditRead.model_validate(audit)
    except AccountNotFoundError:
        logger.info("Account deletion skipped: account not found", extra=log_context)
        raise
    except Exception as exc:
        logger.exception("Account deletion failed and was rolled back", extra=log_context)
        raise DeletionFailedError() from exc

    logger.info(
        f"Account deleted: anonymized {ratings} rating(s), {reviews} review(s), "
        f"{activities} event(s); removed {edges} follow edge(s)",
        extra=log_context,
    )
    return audit_read


def get_deletion_audit(db: Session, user_id: UUID) -> list[DeletionAuditRead]:
    """Audit records for a deleted user id, newest first."""
    rows = db.execute(
        select(AccountDeletionAudit)
        .where(AccountDeletionAudit.user_id == user_id)
        .order_by(AccountDeletionAudit.deleted_at.desc(), AccountDeletionAudit.id.asc())
    ).scalars().all()
    return [DeletionAuditRead.model_validate(row) for row in rows]
