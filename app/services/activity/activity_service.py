import math
from typing import List

from sqlalchemy import func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from app.core.database import SessionLocal
from app.core.exceptions import AccessDeniedError, NotFoundError
from app.core.logger import logger
from app.models.activity.activity_log import ActivityLog
from app.models.trips.trip_collaborator import TripCollaborator
from app.models.trips.trip_model import Trip
from app.models.user.user import User
from app.schemas.activity.activity_log import ActivityLogEntry, ActivityOut, ActivityPage, Pagination
from app.services.trips.access_control import can_view, resolve_access


async def persist_activity_entry(entry: ActivityLogEntry) -> None:
    """Write one entry in its own session, independent of any request."""
    async with SessionLocal() as db:
        db.add(ActivityLog(
            user_id=entry.user_id,
            trip_id=entry.trip_id,
            event_id=entry.event_id,
            action_type=entry.action_type,
            description=entry.description,
            details=entry.details,
            created_at=entry.created_at,
        ))
        await db.commit()
    logger.debug(f"Activity logged: {entry.action_type.value} by user {entry.user_id} on trip {entry.trip_id}")


def _to_out(activity: ActivityLog) -> ActivityOut:
    return ActivityOut(
        id=activity.id,
        user=activity.user.to_ref() if activity.user else None,
        trip_id=activity.trip_id,
        event_id=activity.event_id,
        action_type=activity.action_type,
        description=activity.description,
        details=activity.details or {},
        created_at=activity.created_at,
    )


async def _page(db: AsyncSession, condition, page: int, limit: int) -> ActivityPage:
    page = max(page, 1)
    limit = min(max(limit, 1), 100)

    total = await db.scalar(select(func.count(ActivityLog.id)).where(condition))
    result = await db.execute(
        select(ActivityLog)
        .options(selectinload(ActivityLog.user))
        .where(condition)
        .order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    activities: List[ActivityLog] = result.scalars().all()

    return ActivityPage(
        activities=[_to_out(a) for a in activities],
        pagination=Pagination(
            total=total or 0,
            page=page,
            limit=limit,
            pages=math.ceil((total or 0) / limit),
        ),
    )


async def list_trip_activity(db: AsyncSession, trip_id: int, current_user: User, page: int = 1, limit: int = 20) -> ActivityPage:
    result = await db.execute(
        select(Trip).options(selectinload(Trip.collaborators)).where(Trip.id == trip_id)
    )
    trip = result.scalar_one_or_none()
    if not trip:
        raise NotFoundError("Trip not found")

    if not can_view(trip, resolve_access(trip, current_user.id)):
        logger.warning(f"Activity access denied: trip {trip_id}, user {current_user.id}")
        raise AccessDeniedError()

    return await _page(db, ActivityLog.trip_id == trip_id, page, limit)


async def list_user_activity(db: AsyncSession, current_user: User, page: int = 1, limit: int = 20) -> ActivityPage:
    owned = select(Trip.id).where(Trip.owner_id == current_user.id)
    shared = select(TripCollaborator.trip_id).where(TripCollaborator.user_id == current_user.id)
    condition = or_(ActivityLog.trip_id.in_(owned), ActivityLog.trip_id.in_(shared))
    return await _page(db, condition, page, limit)
