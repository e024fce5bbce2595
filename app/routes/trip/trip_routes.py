from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from app.schemas.trip.trip_schema import TripCreate, TripUpdate, TripResponse, ShareResponse, MessageResponse
from app.schemas.trip.vote import VoteRequest
from app.models.user.user import User
from app.core.database import get_db
from app.core.redis_lifecyle import get_cache
from app.dependencies.auth import get_current_user
from app.services.activity.activity_logger import ActivityLogger, get_activity_logger
from app.services.trips.trip_service import TripService

router = APIRouter(prefix="/trips", tags=['Trips'])


async def get_trip_service(
    cache=Depends(get_cache),
    activity: ActivityLogger = Depends(get_activity_logger),
) -> TripService:
    return TripService(cache, activity)


@router.post("", response_model=TripResponse, status_code=status.HTTP_201_CREATED)
async def create_trip_route(
    trip: TripCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    trip_service: TripService = Depends(get_trip_service)
):
    return await trip_service.create_trip(db, trip, current_user)


@router.get("", response_model=List[TripResponse])
async def get_my_trips(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    trip_service: TripService = Depends(get_trip_service)
):
    return await trip_service.get_user_trips(db, current_user)


@router.get("/shared/{share_token}", response_model=TripResponse)
async def get_shared_trip(
    share_token: str,
    db: AsyncSession = Depends(get_db),
    trip_service: TripService = Depends(get_trip_service)
):
    return await trip_service.get_shared_trip(db, share_token)


@router.get("/{trip_id}", response_model=TripResponse)
async def get_trip(
    trip_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    trip_service: TripService = Depends(get_trip_service)
):
    return await trip_service.get_trip(db, trip_id, current_user)


@router.put("/{trip_id}", response_model=TripResponse)
async def update_trip_route(
    trip_id: int,
    trip_update: TripUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    trip_service: TripService = Depends(get_trip_service)
):
    return await trip_service.update_trip(db, trip_id, trip_update, current_user)


@router.delete("/{trip_id}", response_model=MessageResponse)
async def delete_trip_route(
    trip_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    trip_service: TripService = Depends(get_trip_service)
):
    return await trip_service.delete_trip(db, trip_id, current_user)


@router.post("/{trip_id}/share", response_model=ShareResponse)
async def share_trip_route(
    trip_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    trip_service: TripService = Depends(get_trip_service)
):
    link = await trip_service.share_trip(db, trip_id, current_user)
    return ShareResponse(shareable_link=link)


@router.delete("/{trip_id}/share", response_model=MessageResponse)
async def unshare_trip_route(
    trip_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    trip_service: TripService = Depends(get_trip_service)
):
    return await trip_service.unshare_trip(db, trip_id, current_user)


@router.post("/{trip_id}/events/{event_id}/vote", response_model=TripResponse)
async def vote_on_event_route(
    trip_id: int,
    event_id: str,
    body: VoteRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    trip_service: TripService = Depends(get_trip_service)
):
    return await trip_service.vote(db, trip_id, event_id, body.vote, current_user)
