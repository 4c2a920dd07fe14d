"""Typed failures raised by the core services.

Callers branch on the exception class and may show ``message`` to end users;
``status_code`` is a hint for whichever transport layer maps these errors.
"""


class JukeboxdError(Exception):
    """Base exception for all core service errors."""

    status_code = 500
    default_message = "Internal error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


# =============================================================================
# Validation (400)
# =============================================================================


class ValidationError(JukeboxdError):
    """Malformed input. Recoverable by correcting the input."""

    status_code = 400
    default_message = "Invalid input"


class SelfFollowError(ValidationError):
    """A user tried to follow themselves."""

    default_message = "Users cannot follow themselves"


# =============================================================================
# Conflict (409)
# =============================================================================


class ConflictError(JukeboxdError):
    """Unique-key violation surfaced to the caller as-is."""

    status_code = 409
    default_message = "Resource already exists"


class AlreadyFollowingError(ConflictError):
    default_message = "User is already following this user"


class DuplicateContentError(ConflictError):
    """A rating or review already exists for this user and album."""

    default_message = "Content already exists for this album"


# =============================================================================
# Not found (404)
# =============================================================================


class NotFoundError(JukeboxdError):
    status_code = 404
    default_message = "Not found"


class UserNotFoundError(NotFoundError):
    default_message = "User not found"


class NotFollowingError(NotFoundError):
    default_message = "User is not following this user"


class RatingNotFoundError(NotFoundError):
    default_message = "Rating not found"


class ReviewNotFoundError(NotFoundError):
    default_message = "Review not found"


class ItemNotFoundError(NotFoundError):
    default_message = "Album not found"


class AccountNotFoundError(NotFoundError):
    default_message = "Account not found"


# =============================================================================
# Deletion (500)
# =============================================================================


class DeletionFailedError(JukeboxdError):
    """Account deletion failed and was rolled back. The cause is chained."""

    status_code = 500
    default_message = "Account deletion failed"
