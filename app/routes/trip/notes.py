from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.redis_lifecyle import get_cache
from app.dependencies.auth import get_current_user
from app.models.user.user import User
from app.schemas.trip.note import NoteUpdate, TripNote
from app.services.activity.activity_logger import ActivityLogger, get_activity_logger
from app.services.trips.note_service import NoteService

router = APIRouter(prefix="/trips/{trip_id}/notes", tags=["Trip Notes"])


async def get_note_service(
    cache=Depends(get_cache),
    activity: ActivityLogger = Depends(get_activity_logger),
) -> NoteService:
    return NoteService(cache, activity)


@router.get("", response_model=TripNote)
async def get_trip_notes(
    trip_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    service: NoteService = Depends(get_note_service)
):
    return await service.get_notes(db, trip_id, current_user)


@router.put("", response_model=TripNote)
async def update_trip_notes(
    trip_id: int,
    data: NoteUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    service: NoteService = Depends(get_note_service)
):
    return await service.update_notes(db, trip_id, data, current_user)
