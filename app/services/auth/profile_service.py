from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from app.core.config import settings
from app.core.exceptions import AccessDeniedError, InternalError, NotFoundError, ValidationFailedError
from app.core.logger import logger
from app.core.security import hash_password, verify_password
from app.dependencies.auth import is_main_admin
from app.models.activity.activity_log import ActivityAction
from app.models.trips.trip_model import Trip
from app.models.user.user import User
from app.schemas.user.user import UserUpdate
from app.services.activity.activity_logger import ActivityLogger
from app.services.trips.trip_service import TripService


class ProfileService:
    def __init__(self, cache, activity: ActivityLogger):
        self.activity = activity
        self.trips = TripService(cache, activity)

    @staticmethod
    async def get_user_by_id(user_id: int, db: AsyncSession) -> User:
        result = await db.execute(
            select(User)
            .options(
                selectinload(User.owned_trips).selectinload(Trip.collaborators),
                selectinload(User.collaborations),
            )
            .where(User.id == user_id)
            .execution_options(populate_existing=True)
        )
        user = result.scalar_one_or_none()
        if not user:
            raise NotFoundError("User not found")
        return user

    async def _commit(self, db: AsyncSession, user_id: int, action: str):
        try:
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Failed to {action} for user {user_id}: {e}")
            raise InternalError(f"Failed to {action}")

    async def update_profile(self, db: AsyncSession, current_user: User, update_data: UserUpdate) -> User:
        update_fields = update_data.model_dump(exclude_unset=True)
        if not update_fields:
            raise ValidationFailedError("No fields to update.")

        current_password = update_fields.pop("current_password", None)
        new_password = update_fields.pop("new_password", None)

        if current_password is not None and not verify_password(current_password, current_user.hashed_password):
            logger.warning(f"Profile update for user {current_user.id} rejected: wrong current password")
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Current password is incorrect")

        if new_password is not None:
            if current_password is None:
                raise ValidationFailedError("Current password is required to set a new password")
            if len(new_password) < settings.PASSWORD_MIN_LENGTH:
                raise ValidationFailedError(
                    f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters"
                )
            current_user.hashed_password = hash_password(new_password)

        profile_changed = False
        if update_fields.get("name") is not None:
            name = update_fields["name"].strip()
            if not name:
                raise ValidationFailedError("Name cannot be blank")
            profile_changed = profile_changed or name != current_user.name
            current_user.name = name
        if "photo_url" in update_fields:
            profile_changed = profile_changed or update_fields["photo_url"] != current_user.photo_url
            current_user.photo_url = update_fields["photo_url"]

        await self._commit(db, current_user.id, "update profile")

        # Trip responses embed the owner and collaborator profiles
        if profile_changed:
            await self.trips.invalidate_member_caches(db, current_user.id)

        logger.info(f"User {current_user.id} updated profile (password changed: {new_password is not None})")
        return current_user

    async def delete_account(self, db: AsyncSession, user_id: int, current_user: User) -> dict:
        if not current_user.is_admin and user_id != current_user.id:
            logger.warning(f"User {current_user.id} denied deleting account {user_id}")
            raise AccessDeniedError("You can only delete your own account")

        user = await self.get_user_by_id(user_id, db)
        if is_main_admin(user) and user.id != current_user.id:
            raise AccessDeniedError("Cannot delete the main admin's account")

        affected = [(trip.id, trip.member_ids()) for trip in await self.trips.member_trips(db, user_id)]
        owned = [(trip.id, trip.name) for trip in user.owned_trips]
        collaborations_removed = len(user.collaborations)

        # Owned trips and collaborator rows go with the user through ORM cascades
        await db.delete(user)
        await self._commit(db, user_id, "delete account")

        for trip_id, member_ids in affected:
            await self.trips._invalidate_trip_caches(trip_id, member_ids)

        # Entries by a deleted user carry no author
        actor_id = None if user_id == current_user.id else current_user.id
        for trip_id, trip_name in owned:
            self.activity.log_trip(
                ActivityAction.TRIP_DELETE,
                trip_id=trip_id,
                user_id=actor_id,
                description=f'Deleted trip "{trip_name}" with its owner\'s account',
                details={"tripName": trip_name, "deletedBy": "self" if actor_id is None else "admin"},
            )

        logger.info(
            f"User {user_id} deleted by user {current_user.id}: "
            f"{len(owned)} trips, {collaborations_removed} collaborations removed"
        )
        return {
            "message": "User and associated data deleted successfully",
            "trips_deleted": len(owned),
            "collaborations_removed": collaborations_removed,
        }
