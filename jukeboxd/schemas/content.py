"""Rating and review schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from jukeboxd.db.ownership import Ownership


class RatingRead(BaseModel):
    id: UUID
    owner: Ownership
    item_id: str
    rating: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ReviewRead(BaseModel):
    id: UUID
    owner: Ownership
    item_id: str
    content: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ItemStats(BaseModel):
    """Aggregate statistics for one album."""
    item_id: str
    average_rating: float
    rating_count: int
    review_count: int
