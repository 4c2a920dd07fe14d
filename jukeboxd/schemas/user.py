"""User-related Pydantic schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class UserProfile(BaseModel):
    """Public projection of a user. Never carries email or credential material."""
    id: UUID
    username: str
    display_name: str | None = None
    bio: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class UserProfileWithStats(UserProfile):
    """Public profile plus social graph counters."""
    follower_count: int
    following_count: int
