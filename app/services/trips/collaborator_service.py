from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.core.exceptions import AccessDeniedError, NotFoundError, ValidationFailedError
from app.core.logger import logger
from app.models.activity.activity_log import ActivityAction
from app.models.trips.trip_collaborator import CollaboratorRole, TripCollaborator
from app.models.trips.trip_model import Trip
from app.models.user.user import User
from app.schemas.trip.collaborator import CollaboratorAdd
from app.schemas.trip.trip_schema import TripResponse
from app.services.trips.access_control import TripRole, resolve_access
from app.services.trips.trip_service import TripService, build_trip_response


def _find_collaborator(trip: Trip, user_id: int):
    return next((c for c in trip.collaborators if c.user_id == user_id), None)


class CollaboratorService(TripService):
    """Collaborator management; every operation here is owner-only except leaving."""

    async def _load_owned(self, db: AsyncSession, trip_id: int, current_user: User, action: str) -> Trip:
        trip = await self._load_trip(db, trip_id)
        if resolve_access(trip, current_user.id) != TripRole.OWNER:
            logger.warning(f"User {current_user.id} denied {action} on trip {trip_id}")
            raise AccessDeniedError(f"Only the trip owner can {action}")
        return trip

    async def add_collaborator(self, db: AsyncSession, trip_id: int, data: CollaboratorAdd, current_user: User) -> TripResponse:
        trip = await self._load_owned(db, trip_id, current_user, "add collaborators")

        collaborator_user = await db.scalar(select(User).where(User.email == data.email.lower()))
        if not collaborator_user:
            raise NotFoundError("User not found")
        if collaborator_user.id == trip.owner_id:
            raise ValidationFailedError("The trip owner cannot be added as a collaborator")
        if _find_collaborator(trip, collaborator_user.id):
            raise ValidationFailedError("User is already a collaborator")

        trip.collaborators.append(TripCollaborator(user_id=collaborator_user.id, role=data.role))
        await self._commit(db, trip_id)
        trip = await self._load_trip(db, trip_id)
        await self._invalidate_trip_caches(trip_id, trip.member_ids())

        logger.info(f"User {collaborator_user.id} added to trip {trip_id} as {data.role.value}")
        self.activity.log_trip(
            ActivityAction.COLLABORATOR_ADD,
            trip_id=trip_id,
            user_id=current_user.id,
            description=f'Added {collaborator_user.name} as a {data.role.value} to trip "{trip.name}"',
            details={
                "tripName": trip.name,
                "collaboratorId": collaborator_user.id,
                "collaboratorName": collaborator_user.name,
                "collaboratorEmail": collaborator_user.email,
                "role": data.role.value,
            },
        )
        return build_trip_response(trip)

    async def change_role(self, db: AsyncSession, trip_id: int, user_id: int, role: CollaboratorRole, current_user: User) -> TripResponse:
        trip = await self._load_owned(db, trip_id, current_user, "change collaborator roles")

        collaborator = _find_collaborator(trip, user_id)
        if not collaborator:
            raise NotFoundError("Collaborator not found")

        previous_role = CollaboratorRole(collaborator.role)
        if previous_role == role:
            return build_trip_response(trip)

        collaborator_name = collaborator.user.name
        collaborator.role = role
        await self._commit(db, trip_id)
        trip = await self._load_trip(db, trip_id)
        await self._invalidate_trip_caches(trip_id, trip.member_ids())

        logger.info(f"User {user_id} role on trip {trip_id} changed from {previous_role.value} to {role.value}")
        self.activity.log_trip(
            ActivityAction.COLLABORATOR_ROLE_CHANGE,
            trip_id=trip_id,
            user_id=current_user.id,
            description=f'Changed {collaborator_name} from {previous_role.value} to {role.value} in trip "{trip.name}"',
            details={
                "tripName": trip.name,
                "collaboratorId": user_id,
                "collaboratorName": collaborator_name,
                "previousRole": previous_role.value,
                "role": role.value,
            },
        )
        return build_trip_response(trip)

    async def remove_collaborator(self, db: AsyncSession, trip_id: int, user_id: int, current_user: User) -> TripResponse:
        trip = await self._load_owned(db, trip_id, current_user, "remove collaborators")

        collaborator = _find_collaborator(trip, user_id)
        if not collaborator:
            raise NotFoundError("Collaborator not found")

        collaborator_name = collaborator.user.name
        role = CollaboratorRole(collaborator.role)
        member_ids = trip.member_ids()
        trip.collaborators.remove(collaborator)
        await self._commit(db, trip_id)
        trip = await self._load_trip(db, trip_id)
        await self._invalidate_trip_caches(trip_id, member_ids)

        logger.info(f"User {user_id} removed from trip {trip_id} by user {current_user.id}")
        self.activity.log_trip(
            ActivityAction.COLLABORATOR_REMOVE,
            trip_id=trip_id,
            user_id=current_user.id,
            description=f'Removed {collaborator_name} from trip "{trip.name}"',
            details={
                "tripName": trip.name,
                "collaboratorId": user_id,
                "collaboratorName": collaborator_name,
                "role": role.value,
            },
        )
        return build_trip_response(trip)

    async def leave_trip(self, db: AsyncSession, trip_id: int, current_user: User) -> dict:
        trip = await self._load_trip(db, trip_id)
        if trip.owner_id == current_user.id:
            raise AccessDeniedError("The owner cannot leave their own trip")

        collaborator = _find_collaborator(trip, current_user.id)
        if not collaborator:
            raise NotFoundError("You are not a collaborator on this trip")

        role = CollaboratorRole(collaborator.role)
        member_ids = trip.member_ids()
        trip.collaborators.remove(collaborator)
        await self._commit(db, trip_id)
        await self._invalidate_trip_caches(trip_id, member_ids)

        logger.info(f"User {current_user.id} left trip {trip_id}")
        self.activity.log_trip(
            ActivityAction.COLLABORATOR_REMOVE,
            trip_id=trip_id,
            user_id=current_user.id,
            description=f'{current_user.name} left trip "{trip.name}"',
            details={
                "tripName": trip.name,
                "collaboratorId": current_user.id,
                "collaboratorName": current_user.name,
                "role": role.value,
            },
        )
        return {"message": "Successfully left the trip"}
