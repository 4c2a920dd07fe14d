"""Follow graph schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class FollowRead(BaseModel):
    """A directed follow edge."""
    id: UUID
    follower_id: UUID
    followee_id: UUID
    created_at: datetime

    model_config = {"from_attributes": True}
