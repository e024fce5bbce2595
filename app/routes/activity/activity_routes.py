from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.dependencies.auth import get_current_user
from app.models.user.user import User
from app.schemas.activity.activity_log import ActivityPage
from app.services.activity.activity_service import list_trip_activity, list_user_activity

router = APIRouter(prefix="/activities", tags=["Activity Log"])


@router.get("", response_model=ActivityPage)
async def my_activity(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return await list_user_activity(db, current_user, page, limit)


@router.get("/trip/{trip_id}", response_model=ActivityPage)
async def trip_activity(
    trip_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return await list_trip_activity(db, trip_id, current_user, page, limit)
