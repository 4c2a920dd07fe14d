"""
Test configuration and fixtures.

Provides:
- A fresh in-memory SQLite database per test (foreign keys enforced)
- User factory fixtures
- In-memory cache / session store
- SQL statement capture for query-shape assertions
"""
import os
import uuid
from typing import Callable, Generator

import pytest
from sqlalchemy import event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Keep the module-level engine off the developer's database file.
os.environ["DATABASE_URL"] = "sqlite+pysqlite://"
os.environ["REDIS_URL"] = "memory://"

from jukeboxd.core.cache import MemoryCache
from jukeboxd.db.base import Base
from jukeboxd.db.models import User
from jukeboxd.db.session import build_engine
from jukeboxd.services import user_service
from jukeboxd.services.catalog import StaticItemCatalog
from jukeboxd.services.session_service import SessionStore


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def engine():
    """In-memory SQLite engine; StaticPool keeps the one connection alive."""
    engine = build_engine("sqlite+pysqlite://", poolclass=StaticPool)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db(session_factory) -> Generator[Session, None, None]:
    """A session against the per-test database. Service code may commit freely."""
    session = session_factory()
    yield session
    session.close()


# =============================================================================
# Users
# =============================================================================

@pytest.fixture(scope="function")
def make_user(db: Session) -> Callable[..., User]:
    """Factory: make_user("alice") registers a user with a unique email."""

    def _make_user(username: str | None = None, **kwargs) -> User:
        username = username or f"user_{uuid.uuid4().hex[:8]}"
        email = kwargs.pop("email", f"{username.lower()}@test.com")
        return user_service.create_user(
            db, username, email, kwargs.pop("credential_hash", "hashed-secret"), **kwargs
        )

    return _make_user


@pytest.fixture(scope="function")
def alice(make_user) -> User:
    return make_user("alice")


@pytest.fixture(scope="function")
def bob(make_user) -> User:
    return make_user("bob")


@pytest.fixture(scope="function")
def carol(make_user) -> User:
    return make_user("carol")


# =============================================================================
# Collaborators
# =============================================================================

@pytest.fixture(scope="function")
def catalog() -> StaticItemCatalog:
    return StaticItemCatalog(["album-1", "album-2", "album-3"])


@pytest.fixture(scope="function")
def cache() -> MemoryCache:
    return MemoryCache()


@pytest.fixture(scope="function")
def sessions(cache: MemoryCache) -> SessionStore:
    return SessionStore(cache, ttl_seconds=3600)


# =============================================================================
# SQL capture
# =============================================================================

@pytest.fixture(scope="function")
def sql_statements(engine) -> Generator[list[str], None, None]:
    """Collect every statement sent to the database while the test runs."""
    statements: list[str] = []

    def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):  # type: ignore[no-untyped-def]
        statements.append(statement)

    event.listen(engine, "before_cursor_execute", before_cursor_execute)
    yield statements
    event.remove(engine, "before_cursor_execute", before_cursor_execute)
