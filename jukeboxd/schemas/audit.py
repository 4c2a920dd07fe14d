"""Account deletion audit schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class DeletionAuditRead(BaseModel):
    """Scope of an account deletion, captured before any data was touched."""
    id: UUID
    user_id: UUID
    deleted_at: datetime
    ratings_count: int
    reviews_count: int
    follows_count: int

    model_config = {"from_attributes": True}
