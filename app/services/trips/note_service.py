from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AccessDeniedError
from app.core.logger import logger
from app.models.activity.activity_log import ActivityAction
from app.models.user.user import User
from app.schemas.trip.note import NoteEdit, NoteUpdate, TripNote
from app.schemas.user.user import UserRef
from app.services.trips.access_control import can_view, resolve_access
from app.services.trips.trip_service import TripService


class NoteService(TripService):
    """Trip notepad. Every save is appended to the edit history, even when the text is unchanged."""

    async def get_notes(self, db: AsyncSession, trip_id: int, current_user: User) -> TripNote:
        trip = await self._load_trip(db, trip_id)
        if not can_view(trip, resolve_access(trip, current_user.id)):
            logger.warning(f"Notes access denied: trip {trip_id}, user {current_user.id}")
            raise AccessDeniedError()
        return TripNote.model_validate(trip.note or {})

    async def update_notes(self, db: AsyncSession, trip_id: int, data: NoteUpdate, current_user: User) -> TripNote:
        trip = await self._load_editable(db, trip_id, current_user, "edit notes of")

        note = TripNote.model_validate(trip.note or {})
        author = UserRef(**current_user.to_ref())
        now = datetime.now(timezone.utc)
        note.edits.append(NoteEdit(content=data.content, user=author, timestamp=now))
        note.content = data.content
        note.last_edited_by = author
        note.last_edited_at = now

        trip.note = note.model_dump(mode="json")
        member_ids = trip.member_ids()
        await self._commit(db, trip_id)
        await self._invalidate_trip_caches(trip_id, member_ids)

        logger.info(f"Notes of trip {trip_id} updated by user {current_user.id} ({len(note.edits)} edits)")
        self.activity.log_trip(
            ActivityAction.NOTE_UPDATE,
            trip_id=trip_id,
            user_id=current_user.id,
            description=f'Updated notes for trip "{trip.name}"',
            details={"tripName": trip.name},
        )
        return note
