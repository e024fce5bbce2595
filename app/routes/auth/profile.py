from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.redis_lifecyle import get_cache
from app.dependencies.auth import get_current_user
from app.models.user.user import User
from app.schemas.user.user import AccountDeleted, UserOut, UserUpdate
from app.services.activity.activity_logger import ActivityLogger, get_activity_logger
from app.services.auth.profile_service import ProfileService

router = APIRouter(prefix="/users", tags=["Profile"])


async def get_profile_service(
    cache=Depends(get_cache),
    activity: ActivityLogger = Depends(get_activity_logger),
) -> ProfileService:
    return ProfileService(cache, activity)


@router.get("/me", response_model=UserOut)
async def get_my_profile(current_user: User = Depends(get_current_user)):
    return current_user


@router.put("/profile", response_model=UserOut)
async def update_my_profile(
    data: UserUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service)
):
    return await service.update_profile(db, current_user, data)


@router.delete("/{user_id}", response_model=AccountDeleted)
async def delete_user(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service)
):
    return await service.delete_account(db, user_id, current_user)
