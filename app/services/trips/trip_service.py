import secrets
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from fastapi.encoders import jsonable_encoder
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.exc import StaleDataError

from app.core.cache import RedisCache
from app.core.config import settings
from app.core.exceptions import (
    AccessDeniedError,
    ConflictError,
    InternalError,
    NotFoundError,
    ValidationFailedError,
)
from app.core.logger import logger
from app.models.activity.activity_log import ActivityAction
from app.models.trips.trip_collaborator import TripCollaborator
from app.models.trips.trip_model import Trip
from app.models.user.user import User
from app.schemas.trip.collaborator import CollaboratorOut
from app.schemas.trip.event import dump_events, load_events
from app.schemas.trip.trip_schema import TripCreate, TripResponse, TripUpdate
from app.schemas.user.user import UserRef
from app.services.activity.activity_logger import ActivityLogger
from app.services.trips.access_control import TripRole, can_edit, can_view, resolve_access
from app.services.trips.event_reconciler import apply_vote, duplicate_event_ids, reconcile
from app.utils.event_labels import event_label, event_type_name
from app.utils.normalize import normalize_value

# Trip columns a patch may overwrite directly
TRIP_PATCH_FIELDS = ("name", "description", "thumbnail_url", "is_public", "start_date", "end_date")
NON_NULLABLE_FIELDS = ("name", "is_public")

# Stamped by the reconciler or owned by voting; never compared
SERVER_MANAGED_FIELDS = {"created_by", "created_at", "updated_by", "updated_at", "likes", "dislikes"}

VOTE_ACTIONS = {
    "like": ActivityAction.EVENT_LIKE,
    "dislike": ActivityAction.EVENT_DISLIKE,
    "remove": ActivityAction.EVENT_VOTE_REMOVE,
}


def shareable_link(trip: Trip) -> Optional[str]:
    if not trip.share_token:
        return None
    return f"{settings.FRONTEND_BASE_URL}/trips/{trip.id}/shared/{trip.share_token}"


def build_trip_response(trip: Trip) -> TripResponse:
    """Trip with owner and collaborator profiles expanded"""
    return TripResponse(
        id=trip.id,
        name=trip.name,
        description=trip.description,
        thumbnail_url=trip.thumbnail_url,
        start_date=trip.start_date,
        end_date=trip.end_date,
        owner=UserRef(**trip.owner.to_ref()),
        collaborators=[
            CollaboratorOut(user=UserRef(**c.user.to_ref()), role=c.role, added_at=c.added_at)
            for c in trip.collaborators
        ],
        events=load_events(trip.events),
        is_public=trip.is_public,
        shareable_link=shareable_link(trip),
        version=trip.version,
        created_at=trip.created_at,
        updated_at=trip.updated_at,
    )


def _comparable(events) -> list:
    return [event.model_dump(mode="json", exclude=SERVER_MANAGED_FIELDS) for event in events]


class TripService:
    def __init__(self, cache: RedisCache, activity: ActivityLogger):
        self.cache = cache
        self.activity = activity

    async def _invalidate_trip_caches(self, trip_id: int, user_ids: Iterable[int] = ()):
        """Invalidate all caches related to a trip"""
        patterns = [f"trips:id:{trip_id}"]
        for user_id in set(user_ids):
            patterns.append(f"trips:user:{user_id}:*")

        for pattern in patterns:
            await self.cache.delete_pattern(pattern)

    async def _load_trip(self, db: AsyncSession, trip_id: int) -> Trip:
        result = await db.execute(
            select(Trip)
            .options(
                selectinload(Trip.owner),
                selectinload(Trip.collaborators).selectinload(TripCollaborator.user),
            )
            .where(Trip.id == trip_id)
            .execution_options(populate_existing=True)
        )
        trip = result.scalar_one_or_none()
        if not trip:
            logger.warning(f"Trip not found: ID {trip_id}")
            raise NotFoundError("Trip not found")
        return trip

    async def _commit(self, db: AsyncSession, trip_id: int):
        try:
            await db.commit()
        except StaleDataError:
            await db.rollback()
            logger.warning(f"Concurrent modification rejected for trip {trip_id}")
            raise ConflictError()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Failed to persist trip {trip_id}: {e}")
            raise InternalError("Failed to save trip")

    async def _load_editable(self, db: AsyncSession, trip_id: int, user: User, action: str) -> Trip:
        trip = await self._load_trip(db, trip_id)
        role = resolve_access(trip, user.id)
        if not can_edit(role):
            logger.warning(f"User {user.id} with role {role} denied {action} on trip {trip_id}")
            raise AccessDeniedError(f"You do not have permission to {action} this trip")
        return trip

    async def create_trip(self, db: AsyncSession, trip_data: TripCreate, current_user: User) -> TripResponse:
        new_trip = Trip(
            name=trip_data.name,
            description=trip_data.description or "",
            thumbnail_url=trip_data.thumbnail_url,
            start_date=trip_data.start_date,
            end_date=trip_data.end_date,
            owner_id=current_user.id,
            events=[],
            is_public=False,
        )
        db.add(new_trip)
        try:
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Failed to create trip for user {current_user.id}: {e}")
            raise InternalError("Failed to create trip")

        trip = await self._load_trip(db, new_trip.id)
        await self._invalidate_trip_caches(trip.id, [current_user.id])

        logger.info(f"Trip {trip.id} created by user {current_user.id}")
        self.activity.log_trip(
            ActivityAction.TRIP_CREATE,
            trip_id=trip.id,
            user_id=current_user.id,
            description=f'Created trip "{trip.name}"',
            details={"tripName": trip.name, "tripDescription": trip.description},
        )
        return build_trip_response(trip)

    async def member_trips(self, db: AsyncSession, user_id: int) -> List[Trip]:
        """Trips owned by or shared with ``user_id``, newest first"""
        shared = select(TripCollaborator.trip_id).where(TripCollaborator.user_id == user_id)
        result = await db.execute(
            select(Trip)
            .options(
                selectinload(Trip.owner),
                selectinload(Trip.collaborators).selectinload(TripCollaborator.user),
            )
            .where(or_(Trip.owner_id == user_id, Trip.id.in_(shared)))
            .order_by(Trip.id.desc())
        )
        return list(result.scalars().all())

    async def invalidate_member_caches(self, db: AsyncSession, user_id: int):
        """Drop cached trips showing ``user_id``'s profile"""
        for trip in await self.member_trips(db, user_id):
            await self._invalidate_trip_caches(trip.id, trip.member_ids())

    async def get_user_trips(self, db: AsyncSession, current_user: User) -> List[TripResponse]:
        cache_key = self.cache.build_key("trips", "user", current_user.id, "all")
        cached_trips = await self.cache.get(cache_key)
        if cached_trips is not None:
            logger.info(f"Retrieved {len(cached_trips)} trips for user {current_user.id} from cache")
            return [TripResponse.model_validate(trip) for trip in cached_trips]

        trips = [build_trip_response(trip) for trip in await self.member_trips(db, current_user.id)]

        await self.cache.set(
            cache_key,
            [trip.model_dump(mode="json") for trip in trips],
            expire=settings.TRIP_CACHE_TTL_SECONDS
        )

        logger.info(f"Retrieved {len(trips)} trips for user {current_user.id} from database")
        return trips

    async def get_trip(self, db: AsyncSession, trip_id: int, current_user: User) -> TripResponse:
        cache_key = self.cache.build_key("trips", "id", trip_id)
        cached_trip = await self.cache.get(cache_key)

        if cached_trip is not None:
            trip = TripResponse.model_validate(cached_trip)
            member_ids = {trip.owner.id} | {c.user.id for c in trip.collaborators}
            if current_user.id not in member_ids and not trip.is_public:
                logger.warning(f"Unauthorized access attempt: trip {trip_id} by user {current_user.id}")
                raise AccessDeniedError()
            logger.info(f"Trip ID {trip_id} retrieved from cache")
            return trip

        trip = await self._load_trip(db, trip_id)
        if not can_view(trip, resolve_access(trip, current_user.id)):
            logger.warning(f"Unauthorized access attempt: trip {trip_id} by user {current_user.id}")
            raise AccessDeniedError()

        response = build_trip_response(trip)
        await self.cache.set(cache_key, response.model_dump(mode="json"), expire=settings.TRIP_CACHE_TTL_SECONDS)

        logger.info(f"Trip ID {trip_id} retrieved from database")
        return response

    async def get_shared_trip(self, db: AsyncSession, share_token: str) -> TripResponse:
        result = await db.execute(select(Trip.id).where(Trip.share_token == share_token))
        trip_id = result.scalar_one_or_none()
        if trip_id is None:
            logger.warning("Shared trip requested with unknown token")
            raise NotFoundError("Shared trip not found")
        return build_trip_response(await self._load_trip(db, trip_id))

    async def update_trip(self, db: AsyncSession, trip_id: int, patch: TripUpdate, current_user: User) -> TripResponse:
        trip = await self._load_editable(db, trip_id, current_user, "edit")

        if patch.version is not None and patch.version != trip.version:
            logger.warning(f"Stale update of trip {trip_id}: base version {patch.version}, current {trip.version}")
            raise ConflictError()

        if patch.events is not None:
            duplicates = duplicate_event_ids(patch.events)
            if duplicates:
                raise ValidationFailedError(f"Duplicate event ids: {', '.join(duplicates)}")

        provided = patch.model_fields_set
        changed_fields, previous_values = [], {}
        for name in TRIP_PATCH_FIELDS:
            if name not in provided:
                continue
            value = getattr(patch, name)
            if value is None and name in NON_NULLABLE_FIELDS:
                continue
            if normalize_value(getattr(trip, name)) != normalize_value(value):
                changed_fields.append(name)
                previous_values[name] = getattr(trip, name)
                setattr(trip, name, value)

        diffs = []
        if patch.events is not None:
            stored_events = load_events(trip.events)
            if _comparable(stored_events) != _comparable(patch.events):
                result = reconcile(
                    stored_events,
                    patch.events,
                    actor=UserRef(**current_user.to_ref()),
                    now=datetime.now(timezone.utc),
                )
                trip.events = dump_events(result.merged_events)
                diffs = result.ordered_diffs()

        member_ids = trip.member_ids()
        await self._commit(db, trip_id)
        trip = await self._load_trip(db, trip_id)
        await self._invalidate_trip_caches(trip_id, member_ids)

        logger.info(
            f"Trip ID {trip_id} updated by user {current_user.id} "
            f"(fields: {changed_fields}, event changes: {len(diffs)})"
        )

        for diff in diffs:
            self.activity.log_event_diff(diff, trip.id, trip.name, current_user.id)
        if changed_fields:
            self.activity.log_trip(
                ActivityAction.TRIP_UPDATE,
                trip_id=trip.id,
                user_id=current_user.id,
                description=f'Updated trip "{trip.name}" (changed: {", ".join(changed_fields)})',
                details=jsonable_encoder({
                    "tripName": trip.name,
                    "changedFields": changed_fields,
                    "previousValues": previous_values,
                    "newValues": {name: getattr(trip, name) for name in changed_fields},
                }),
            )

        return build_trip_response(trip)

    async def delete_trip(self, db: AsyncSession, trip_id: int, current_user: User) -> dict:
        trip = await self._load_trip(db, trip_id)
        if resolve_access(trip, current_user.id) != TripRole.OWNER:
            logger.warning(f"Unauthorized delete attempt: trip {trip_id}, user {current_user.id}")
            raise AccessDeniedError("You are not authorized to delete this trip")

        trip_name, description = trip.name, trip.description
        member_ids = trip.member_ids()
        await db.delete(trip)
        await self._commit(db, trip_id)
        await self._invalidate_trip_caches(trip_id, member_ids)

        logger.info(f"Trip ID {trip_id} deleted by user {current_user.id}")
        self.activity.log_trip(
            ActivityAction.TRIP_DELETE,
            trip_id=trip_id,
            user_id=current_user.id,
            description=f'Deleted trip "{trip_name}"',
            details={"tripName": trip_name, "tripDescription": description},
        )
        return {"message": "Trip deleted successfully"}

    async def share_trip(self, db: AsyncSession, trip_id: int, current_user: User) -> str:
        trip = await self._load_editable(db, trip_id, current_user, "share")

        trip.share_token = secrets.token_hex(32)
        trip.is_public = True
        member_ids = trip.member_ids()
        await self._commit(db, trip_id)
        await self._invalidate_trip_caches(trip_id, member_ids)

        link = shareable_link(trip)
        logger.info(f"Share link generated for trip {trip_id} by user {current_user.id}")
        self.activity.log_trip(
            ActivityAction.TRIP_SHARE,
            trip_id=trip_id,
            user_id=current_user.id,
            description=f'Shared trip "{trip.name}"',
            details={"tripName": trip.name},
        )
        return link

    async def unshare_trip(self, db: AsyncSession, trip_id: int, current_user: User) -> dict:
        trip = await self._load_editable(db, trip_id, current_user, "revoke the share link of")

        trip.share_token = None
        trip.is_public = False
        member_ids = trip.member_ids()
        await self._commit(db, trip_id)
        await self._invalidate_trip_caches(trip_id, member_ids)

        logger.info(f"Share link revoked for trip {trip_id} by user {current_user.id}")
        self.activity.log_trip(
            ActivityAction.TRIP_UNSHARE,
            trip_id=trip_id,
            user_id=current_user.id,
            description=f'Stopped sharing trip "{trip.name}"',
            details={"tripName": trip.name},
        )
        return {"message": "Share link revoked successfully"}

    async def vote(self, db: AsyncSession, trip_id: int, event_id: str, vote: str, current_user: User) -> TripResponse:
        trip = await self._load_editable(db, trip_id, current_user, "vote on")

        events = load_events(trip.events)
        index = next((i for i, event in enumerate(events) if event.id == event_id), None)
        if index is None:
            raise NotFoundError("Event not found")

        events[index] = apply_vote(events[index], current_user.id, vote)
        trip.events = dump_events(events)
        member_ids = trip.member_ids()
        await self._commit(db, trip_id)
        trip = await self._load_trip(db, trip_id)
        await self._invalidate_trip_caches(trip_id, member_ids)

        event = events[index]
        verb = {"like": "Liked", "dislike": "Disliked", "remove": "Removed vote on"}[vote]
        self.activity.log_trip(
            VOTE_ACTIONS[vote],
            trip_id=trip_id,
            user_id=current_user.id,
            event_id=event_id,
            description=f'{verb} {event_type_name(event)} "{event_label(event)}" in trip "{trip.name}"',
            details={
                "tripName": trip.name,
                "eventType": event.type,
                "eventId": event_id,
                "likes": len(event.likes),
                "dislikes": len(event.dislikes),
            },
        )
        return build_trip_response(trip)
