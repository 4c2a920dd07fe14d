"""Explicit transaction scope for multi-step writes."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session, SessionTransaction

logger = logging.getLogger(__name__)


class UnitOfWork:
    """
    Collects a sequence of writes and commits or rolls them back as one.

    Usage:
        with UnitOfWork(db) as uow:
            ...  # flush-only writes against uow.session

    Work runs inside a SAVEPOINT so that a failure undoes exactly the steps
    of this unit, leaving anything the caller did earlier untouched. On
    success the savepoint is released and, when ``commit`` is true, the
    enclosing transaction is committed so the result is durable.
    """

    def __init__(self, db: Session, *, commit: bool = True):
        self.session = db
        self._commit = commit
        self._savepoint: SessionTransaction | None = None
        self.committed = False

    def __enter__(self) -> "UnitOfWork":
        self._savepoint = self.session.begin_nested()
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        savepoint = self._savepoint
        self._savepoint = None
        if exc_type is not None:
            if savepoint is not None and savepoint.is_active:
                savepoint.rollback()
            logger.debug(f"Unit of work rolled back: {exc_type.__name__}")
            return False

        if savepoint is not None and savepoint.is_active:
            savepoint.commit()
        if self._commit:
            self.session.commit()
            self.committed = True
        return False
