from datetime import datetime
from typing import List, Optional

from app.schemas.base import CamelModel
from app.schemas.user.user import UserRef


class NoteEdit(CamelModel):
    content: str
    user: UserRef
    timestamp: datetime


class TripNote(CamelModel):
    content: str = ""
    edits: List[NoteEdit] = []
    last_edited_by: Optional[UserRef] = None
    last_edited_at: Optional[datetime] = None


class NoteUpdate(CamelModel):
    content: str
