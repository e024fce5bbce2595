from pydantic import EmailStr
from typing import Optional
from datetime import datetime
from app.models.trips.trip_collaborator import CollaboratorRole
from app.schemas.base import CamelModel
from app.schemas.user.user import UserRef


class CollaboratorAdd(CamelModel):
    email: EmailStr
    role: CollaboratorRole = CollaboratorRole.VIEWER


class CollaboratorRoleUpdate(CamelModel):
    role: CollaboratorRole


class CollaboratorOut(CamelModel):
    user: UserRef
    role: CollaboratorRole
    added_at: Optional[datetime] = None
