from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.redis_lifecyle import get_cache
from app.dependencies.auth import get_current_user
from app.models.user.user import User
from app.schemas.trip.collaborator import CollaboratorAdd, CollaboratorRoleUpdate
from app.schemas.trip.trip_schema import MessageResponse, TripResponse
from app.services.activity.activity_logger import ActivityLogger, get_activity_logger
from app.services.trips.collaborator_service import CollaboratorService

router = APIRouter(prefix="/trips/{trip_id}", tags=["Trip Collaborators"])


async def get_collaborator_service(
    cache=Depends(get_cache),
    activity: ActivityLogger = Depends(get_activity_logger),
) -> CollaboratorService:
    return CollaboratorService(cache, activity)


@router.post("/collaborators", response_model=TripResponse, status_code=status.HTTP_201_CREATED)
async def add_collaborator_route(
    trip_id: int,
    data: CollaboratorAdd,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    service: CollaboratorService = Depends(get_collaborator_service)
):
    return await service.add_collaborator(db, trip_id, data, current_user)


@router.patch("/collaborators/{user_id}", response_model=TripResponse)
async def change_collaborator_role_route(
    trip_id: int,
    user_id: int,
    data: CollaboratorRoleUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    service: CollaboratorService = Depends(get_collaborator_service)
):
    return await service.change_role(db, trip_id, user_id, data.role, current_user)


@router.delete("/collaborators/{user_id}", response_model=TripResponse)
async def remove_collaborator_route(
    trip_id: int,
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    service: CollaboratorService = Depends(get_collaborator_service)
):
    return await service.remove_collaborator(db, trip_id, user_id, current_user)


@router.post("/leave", response_model=MessageResponse)
async def leave_trip_route(
    trip_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    service: CollaboratorService = Depends(get_collaborator_service)
):
    return await service.leave_trip(db, trip_id, current_user)
