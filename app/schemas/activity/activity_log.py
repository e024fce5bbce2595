from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from pydantic import Field
from app.models.activity.activity_log import ActivityAction
from app.schemas.base import CamelModel
from app.schemas.user.user import UserRef


class ActivityLogEntry(CamelModel):
    """An audit record on its way to the activity log"""
    user_id: Optional[int] = None
    trip_id: int
    event_id: Optional[str] = None
    action_type: ActivityAction
    description: str
    details: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ActivityOut(CamelModel):
    id: int
    user: Optional[UserRef] = None
    trip_id: int
    event_id: Optional[str] = None
    action_type: ActivityAction
    description: str
    details: Dict[str, Any] = {}
    created_at: datetime


class Pagination(CamelModel):
    total: int
    page: int
    limit: int
    pages: int


class ActivityPage(CamelModel):
    activities: List[ActivityOut]
    pagination: Pagination
