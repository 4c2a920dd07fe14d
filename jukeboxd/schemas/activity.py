"""Activity feed schemas."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel

from jukeboxd.db.enums import ActivityType
from jukeboxd.db.ownership import Ownership


class ActivityRead(BaseModel):
    """One feed entry. ``payload`` is {"rating": int} or {"content": str}."""
    id: UUID
    actor: Ownership
    type: ActivityType
    item_id: str
    source_id: UUID
    payload: dict[str, Any]
    created_at: datetime

    model_config = {"from_attributes": True}


class PaginationMeta(BaseModel):
    page: int
    limit: int
    has_more: bool
    total: int


class PaginatedActivities(BaseModel):
    activities: list[ActivityRead]
    pagination: PaginationMeta
