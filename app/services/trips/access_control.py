import enum
from typing import Optional

from app.models.trips.trip_model import Trip


class TripRole(str, enum.Enum):
    OWNER = "owner"
    EDITOR = "editor"
    VIEWER = "viewer"


EDIT_ROLES = frozenset({TripRole.OWNER, TripRole.EDITOR})


def resolve_access(trip: Trip, user_id: int) -> Optional[TripRole]:
    """Role of ``user_id`` on ``trip``, or None when the user has no access.

    Reads only the loaded trip snapshot; callers must load collaborators.
    """
    if trip.owner_id == user_id:
        return TripRole.OWNER
    for collaborator in trip.collaborators:
        if collaborator.user_id == user_id:
            return TripRole(collaborator.role)
    return None


def can_edit(role: Optional[TripRole]) -> bool:
    return role in EDIT_ROLES


def can_view(trip: Trip, role: Optional[TripRole]) -> bool:
    return role is not None or bool(trip.is_public)
