from pydantic import Field
from typing import List, Optional
from datetime import date, datetime
from app.schemas.base import CamelModel
from app.schemas.trip.event import Event
from app.schemas.trip.collaborator import CollaboratorOut
from app.schemas.user.user import UserRef


class TripCreate(CamelModel):
    name: str = Field(min_length=1)
    description: Optional[str] = ""
    thumbnail_url: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class TripUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    is_public: Optional[bool] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    # Version the client edited against; omitted means "latest"
    version: Optional[int] = None
    events: Optional[List[Event]] = None


class TripResponse(CamelModel):
    id: int
    name: str
    description: Optional[str] = ""
    thumbnail_url: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    owner: UserRef
    collaborators: List[CollaboratorOut] = []
    events: List[Event] = []
    is_public: bool = False
    shareable_link: Optional[str] = None
    version: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ShareResponse(CamelModel):
    shareable_link: str


class MessageResponse(CamelModel):
    message: str
