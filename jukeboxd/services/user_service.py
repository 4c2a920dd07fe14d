"""User registry - registration records, lookups and profile edits."""

import logging
import re
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from jukeboxd.core.exceptions import ConflictError, UserNotFoundError, ValidationError
from jukeboxd.db.models import User
from jukeboxd.db.types import utcnow
from jukeboxd.schemas.user import UserProfile

logger = logging.getLogger(__name__)

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 50
EMAIL_MAX_LENGTH = 255
DISPLAY_NAME_MAX_LENGTH = 100
BIO_MAX_LENGTH = 500


def _validate_username(username: str) -> str:
    username = (username or "").strip()
    if not USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH:
        raise ValidationError("Username must be between 3 and 50 characters")
    if not USERNAME_PATTERN.match(username):
        raise ValidationError(
            "Username can only contain letters, numbers, underscores, and hyphens"
        )
    return username


def _validate_email(email: str) -> str:
    email = (email or "").strip().lower()
    if not EMAIL_PATTERN.match(email):
        raise ValidationError("Invalid email format")
    if len(email) > EMAIL_MAX_LENGTH:
        raise ValidationError("Email must be less than 255 characters")
    return email


def to_profile(user: User) -> UserProfile:
    """Public projection of a user row."""
    return UserProfile.model_validate(user)


def get_user(db: Session, user_id: UUID) -> User | None:
    return db.get(User, user_id)


def get_user_by_username(db: Session, username: str) -> User | None:
    return db.execute(
        select(User).where(func.lower(User.username) == username.strip().lower())
    ).scalar_one_or_none()


def user_exists(db: Session, user_id: UUID) -> bool:
    return db.execute(select(User.id).where(User.id == user_id)).first() is not None


def require_user(db: Session, user_id: UUID) -> User:
    """Get a user or raise UserNotFoundError."""
    user = get_user(db, user_id)
    if not user:
        raise UserNotFoundError()
    return user


def create_user(
    db: Session,
    username: str,
    email: str,
    credential_hash: str,
    *,
    display_name: str | None = None,
    commit: bool = True,
) -> User:
    """
    Register a user.

    ``credential_hash`` is produced by the auth layer; it is stored as-is.
    Duplicate usernames/emails are rejected up front and, under a race, by
    the unique constraints.
    """
    username = _validate_username(username)
    email = _validate_email(email)
    if not credential_hash:
        raise ValidationError("Credential hash is required")

    if get_user_by_username(db, username):
        raise ConflictError("Username already exists")
    if db.execute(select(User.id).where(User.email == email)).first():
        raise ConflictError("Email already exists")

    user = User(
        username=username,
        email=email,
        credential_hash=credential_hash,
        display_name=display_name.strip() if display_name else None,
    )
    try:
        with db.begin_nested():
            db.add(user)
            db.flush()
    except IntegrityError:
        raise ConflictError("Username or email already exists")

    user_id = user.id
    if commit:
        db.commit()
    logger.info(f"User created: {user_id}")
    return user


def update_profile(
    db: Session,
    user_id: UUID,
    *,
    display_name: str | None = None,
    bio: str | None = None,
    commit: bool = True,
) -> User:
    """Update editable profile fields. ``None`` leaves a field unchanged, "" clears it."""
    user = require_user(db, user_id)

    if display_name is not None:
        display_name = display_name.strip()
        if len(display_name) > DISPLAY_NAME_MAX_LENGTH:
            raise ValidationError("Display name must be less than 100 characters")
        user.display_name = display_name or None
    if bio is not None:
        bio = bio.strip()
        if len(bio) > BIO_MAX_LENGTH:
            raise ValidationError("Bio must be less than 500 characters")
        user.bio = bio or None

    user.updated_at = utcnow()
    db.flush()
    if commit:
        db.commit()
    return user
