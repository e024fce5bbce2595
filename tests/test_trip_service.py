import pytest
from sqlalchemy.exc import SQLAlchemyError

from app.core.database import SessionLocal
from app.core.exceptions import (
    AccessDeniedError,
    ConflictError,
    InternalError,
    NotFoundError,
    ValidationFailedError,
)
from app.models.trips.trip_model import Trip
from app.schemas.trip.event import EventListAdapter
from app.schemas.trip.trip_schema import TripCreate, TripUpdate
from app.services.trips.trip_service import TripService


def patch_events(*raw, **fields):
    return TripUpdate(events=EventListAdapter.validate_python(list(raw)), **fields)


async def seed_events(service, db, trip, user, *raw):
    return await service.update_trip(db, trip.id, patch_events(*raw), user)


# ─────────────────────────── create / read ───────────────────────────

@pytest.mark.asyncio
async def test_create_trip_sets_owner_and_logs(db, trip_service, activity_queue, owner):
    created = await trip_service.create_trip(db, TripCreate(name="Porto"), owner)

    assert created.owner.id == owner.id
    assert created.owner.email == owner.email
    assert created.events == []
    assert created.collaborators == []
    assert created.is_public is False
    assert created.version == 1
    assert activity_queue.actions() == ["trip_create"]


@pytest.mark.asyncio
async def test_get_trip_denied_for_non_member(db, trip_service, trip, stranger):
    with pytest.raises(AccessDeniedError):
        await trip_service.get_trip(db, trip.id, stranger)


@pytest.mark.asyncio
async def test_get_missing_trip(db, trip_service, owner):
    with pytest.raises(NotFoundError):
        await trip_service.get_trip(db, 9999, owner)


@pytest.mark.asyncio
async def test_user_trips_include_shared_trips(db, trip_service, trip, viewer, stranger):
    assert [t.id for t in await trip_service.get_user_trips(db, viewer)] == [trip.id]
    assert await trip_service.get_user_trips(db, stranger) == []


@pytest.mark.asyncio
async def test_cached_trip_is_served_without_database(db, trip_service, trip, owner, mock_redis):
    mock_redis.get.return_value = trip.model_dump_json()

    cached = await trip_service.get_trip(db, trip.id, owner)

    assert cached == trip


# ─────────────────────────── update orchestration ───────────────────────────

@pytest.mark.asyncio
async def test_editor_updates_event_notes(db, trip_service, activity_queue, trip, owner, editor):
    await seed_events(trip_service, db, trip, owner, {"id": "a", "type": "stay", "notes": "old"})
    activity_queue.entries.clear()

    updated = await seed_events(trip_service, db, trip, editor, {"id": "a", "type": "stay", "notes": "new"})

    event = updated.events[0]
    assert event.notes == "new"
    assert event.updated_by.id == editor.id
    assert event.created_by.id == owner.id
    assert activity_queue.actions() == ["event_update"]
    assert activity_queue.entries[0].details["changedFields"] == ["notes"]
    assert activity_queue.entries[0].user_id == editor.id


@pytest.mark.asyncio
async def test_viewer_cannot_update(db, trip_service, activity_queue, trip, viewer):
    with pytest.raises(AccessDeniedError):
        await seed_events(trip_service, db, trip, viewer, {"id": "a", "type": "stay"})

    assert activity_queue.entries == []
    reloaded = await trip_service.get_trip(db, trip.id, viewer)
    assert reloaded.events == []
    assert reloaded.version == trip.version


@pytest.mark.asyncio
async def test_stranger_cannot_update(db, trip_service, trip, stranger):
    with pytest.raises(AccessDeniedError):
        await trip_service.update_trip(db, trip.id, TripUpdate(name="Mine"), stranger)


@pytest.mark.asyncio
async def test_update_missing_trip(db, trip_service, owner):
    with pytest.raises(NotFoundError):
        await trip_service.update_trip(db, 9999, TripUpdate(name="x"), owner)


@pytest.mark.asyncio
async def test_new_event_authored_by_caller(db, trip_service, activity_queue, trip, editor):
    updated = await seed_events(trip_service, db, trip, editor, {"id": "x", "type": "flight", "airline": "TAP"})

    event = updated.events[0]
    assert event.created_by.id == event.updated_by.id == editor.id
    assert activity_queue.actions() == ["event_create"]
    assert activity_queue.entries[0].event_id == "x"


@pytest.mark.asyncio
async def test_empty_event_list_deletes_all(db, trip_service, activity_queue, trip, owner):
    await seed_events(
        trip_service, db, trip, owner,
        {"id": "a", "type": "stay"}, {"id": "b", "type": "activity"},
    )
    activity_queue.entries.clear()

    updated = await trip_service.update_trip(db, trip.id, TripUpdate(events=[]), owner)

    assert updated.events == []
    assert activity_queue.actions() == ["event_delete", "event_delete"]


@pytest.mark.asyncio
async def test_deletes_are_logged_before_creates(db, trip_service, activity_queue, trip, owner):
    await seed_events(trip_service, db, trip, owner, {"id": "old", "type": "stay"})
    activity_queue.entries.clear()

    await seed_events(trip_service, db, trip, owner, {"id": "new", "type": "activity"})

    assert activity_queue.actions() == ["event_delete", "event_create"]


@pytest.mark.asyncio
async def test_resubmitting_events_changes_nothing(db, trip_service, activity_queue, trip, owner):
    seeded = await seed_events(trip_service, db, trip, owner, {"id": "a", "type": "stay", "notes": "x"})
    activity_queue.entries.clear()

    again = await trip_service.update_trip(db, trip.id, TripUpdate(events=seeded.events), owner)

    assert activity_queue.entries == []
    assert again.version == seeded.version
    assert again.events == seeded.events


@pytest.mark.asyncio
async def test_trip_field_change_is_logged(db, trip_service, activity_queue, trip, editor):
    updated = await trip_service.update_trip(db, trip.id, TripUpdate(name="Lisbon & Sintra"), editor)

    assert updated.name == "Lisbon & Sintra"
    assert updated.version == trip.version + 1
    assert activity_queue.actions() == ["trip_update"]
    details = activity_queue.entries[0].details
    assert details["changedFields"] == ["name"]
    assert details["previousValues"] == {"name": "Lisbon 2026"}


@pytest.mark.asyncio
async def test_stale_client_version_conflicts(db, trip_service, trip, owner):
    await trip_service.update_trip(db, trip.id, TripUpdate(name="First"), owner)

    with pytest.raises(ConflictError):
        await trip_service.update_trip(db, trip.id, TripUpdate(name="Second", version=trip.version), owner)


@pytest.mark.asyncio
async def test_concurrent_write_conflicts(db, trip_service, trip):
    stale = await db.get(Trip, trip.id)

    async with SessionLocal() as other:
        fresh = await other.get(Trip, trip.id)
        fresh.name = "Porto"
        await other.commit()

    stale.name = "Faro"
    with pytest.raises(ConflictError):
        await trip_service._commit(db, trip.id)


@pytest.mark.asyncio
async def test_duplicate_event_ids_rejected(db, trip_service, activity_queue, trip, owner):
    with pytest.raises(ValidationFailedError):
        await seed_events(
            trip_service, db, trip, owner,
            {"id": "a", "type": "stay"}, {"id": "a", "type": "activity"},
        )
    assert activity_queue.entries == []


@pytest.mark.asyncio
async def test_logging_failure_does_not_fail_update(db, cache, failing_activity_logger, trip, owner):
    service = TripService(cache, failing_activity_logger)

    updated = await seed_events(service, db, trip, owner, {"id": "a", "type": "stay"})

    assert [e.id for e in updated.events] == ["a"]


@pytest.mark.asyncio
async def test_persistence_failure_leaves_trip_untouched(db, trip_service, activity_queue, trip, owner, monkeypatch):
    async def broken_commit():
        raise SQLAlchemyError("disk I/O error")

    monkeypatch.setattr(db, "commit", broken_commit)
    with pytest.raises(InternalError):
        await trip_service.update_trip(
            db, trip.id, patch_events({"id": "a", "type": "stay"}, name="Broken"), owner
        )
    monkeypatch.undo()

    stored = await trip_service.get_trip(db, trip.id, owner)
    assert stored.name == "Lisbon 2026"
    assert stored.events == []
    assert stored.version == trip.version
    assert activity_queue.entries == []

@pytest.mark.asyncio
async def test_update_invalidates_member_caches(db, trip_service, trip, owner, editor, viewer, mock_redis):
    mock_redis.scan.reset_mock()

    await trip_service.update_trip(db, trip.id, TripUpdate(description="Long weekend"), owner)

    patterns = {call.kwargs["match"] for call in mock_redis.scan.call_args_list}
    assert patterns == {
        f"trips:id:{trip.id}",
        f"trips:user:{owner.id}:*",
        f"trips:user:{editor.id}:*",
        f"trips:user:{viewer.id}:*",
    }


# ─────────────────────────── delete / share / vote ───────────────────────────

@pytest.mark.asyncio
async def test_only_owner_deletes(db, trip_service, activity_queue, trip, owner, editor):
    with pytest.raises(AccessDeniedError):
        await trip_service.delete_trip(db, trip.id, editor)

    await trip_service.delete_trip(db, trip.id, owner)

    assert activity_queue.actions() == ["trip_delete"]
    with pytest.raises(NotFoundError):
        await trip_service.get_trip(db, trip.id, owner)


@pytest.mark.asyncio
async def test_share_and_unshare(db, trip_service, activity_queue, trip, editor, stranger):
    link = await trip_service.share_trip(db, trip.id, editor)
    token = link.rsplit("/", 1)[-1]

    assert link.startswith(f"http://testserver/trips/{trip.id}/shared/")
    shared = await trip_service.get_shared_trip(db, token)
    assert shared.id == trip.id
    assert shared.is_public is True
    assert (await trip_service.get_trip(db, trip.id, stranger)).id == trip.id

    await trip_service.unshare_trip(db, trip.id, editor)

    with pytest.raises(NotFoundError):
        await trip_service.get_shared_trip(db, token)
    assert activity_queue.actions() == ["trip_share", "trip_unshare"]


@pytest.mark.asyncio
async def test_viewer_cannot_share(db, trip_service, trip, viewer):
    with pytest.raises(AccessDeniedError):
        await trip_service.share_trip(db, trip.id, viewer)


@pytest.mark.asyncio
async def test_vote_on_exploring_event(db, trip_service, activity_queue, trip, owner, editor):
    await seed_events(trip_service, db, trip, owner, {"id": "e", "type": "activity", "status": "exploring"})
    activity_queue.entries.clear()

    voted = await trip_service.vote(db, trip.id, "e", "like", editor)

    assert voted.events[0].likes == [editor.id]
    assert voted.events[0].updated_by.id == owner.id
    assert activity_queue.actions() == ["event_like"]
    assert activity_queue.entries[0].event_id == "e"


@pytest.mark.asyncio
async def test_vote_unknown_event(db, trip_service, trip, owner):
    with pytest.raises(NotFoundError):
        await trip_service.vote(db, trip.id, "missing", "like", owner)


@pytest.mark.asyncio
async def test_vote_on_confirmed_event_rejected(db, trip_service, trip, owner):
    await seed_events(trip_service, db, trip, owner, {"id": "c", "type": "stay"})

    with pytest.raises(ValidationFailedError):
        await trip_service.vote(db, trip.id, "c", "dislike", owner)


@pytest.mark.asyncio
async def test_viewer_cannot_vote(db, trip_service, trip, owner, viewer):
    await seed_events(trip_service, db, trip, owner, {"id": "e", "type": "activity", "status": "exploring"})

    with pytest.raises(AccessDeniedError):
        await trip_service.vote(db, trip.id, "e", "like", viewer)


@pytest.mark.asyncio
async def test_update_cannot_write_vote_lists(db, trip_service, activity_queue, trip, owner, editor, viewer):
    await seed_events(trip_service, db, trip, owner, {"id": "s", "type": "stay", "notes": "x"})
    activity_queue.entries.clear()

    updated = await seed_events(
        trip_service, db, trip, editor,
        {"id": "s", "type": "stay", "notes": "x", "likes": [viewer.id, viewer.id], "dislikes": [viewer.id]},
        {"id": "n", "type": "activity", "likes": [viewer.id]},
    )

    stay, activity = updated.events
    assert stay.likes == [] and stay.dislikes == []
    assert activity.likes == []
    assert activity_queue.actions() == ["event_create"]


@pytest.mark.asyncio
async def test_resubmitting_older_events_keeps_votes(db, trip_service, activity_queue, trip, owner, editor):
    seeded = await seed_events(
        trip_service, db, trip, owner, {"id": "e", "type": "activity", "status": "exploring"}
    )
    await trip_service.vote(db, trip.id, "e", "like", editor)
    activity_queue.entries.clear()

    resubmitted = await trip_service.update_trip(db, trip.id, TripUpdate(events=seeded.events), owner)

    assert resubmitted.events[0].likes == [editor.id]
    assert activity_queue.entries == []
