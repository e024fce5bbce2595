import pytest

import app.models  # noqa: F401
from app.models.trips.trip_collaborator import CollaboratorRole, TripCollaborator
from app.models.trips.trip_model import Trip
from app.services.trips.access_control import TripRole, can_edit, can_view, resolve_access


@pytest.fixture
def trip():
    return Trip(
        id=1,
        name="Lisbon",
        owner_id=10,
        is_public=False,
        collaborators=[
            TripCollaborator(user_id=20, role=CollaboratorRole.EDITOR),
            TripCollaborator(user_id=30, role=CollaboratorRole.VIEWER),
        ],
    )


@pytest.mark.parametrize("user_id, expected", [
    (10, TripRole.OWNER),
    (20, TripRole.EDITOR),
    (30, TripRole.VIEWER),
    (40, None),
])
def test_resolve_access(trip, user_id, expected):
    assert resolve_access(trip, user_id) == expected


def test_owner_wins_over_collaborator_row(trip):
    trip.collaborators.append(TripCollaborator(user_id=10, role=CollaboratorRole.VIEWER))
    assert resolve_access(trip, 10) == TripRole.OWNER


@pytest.mark.parametrize("role, allowed", [
    (TripRole.OWNER, True),
    (TripRole.EDITOR, True),
    (TripRole.VIEWER, False),
    (None, False),
])
def test_can_edit(role, allowed):
    assert can_edit(role) is allowed


def test_public_trip_readable_without_role(trip):
    assert can_view(trip, None) is False
    trip.is_public = True
    assert can_view(trip, None) is True


def test_any_role_can_view(trip):
    assert can_view(trip, TripRole.VIEWER) is True
