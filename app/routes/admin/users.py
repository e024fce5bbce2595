from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.database import get_db
from app.dependencies.auth import require_main_admin
from app.models.user.user import User
from app.schemas.user.user import AdminRoleUpdate, AdminUserOut
from app.services.admin.user_admin import UserAdminService

router = APIRouter(prefix="/admin/users", tags=["Admin Users"])


@router.get("", response_model=List[AdminUserOut])
async def list_users(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_main_admin)
):
    return await UserAdminService.list_users(db)


@router.patch("/{user_id}/role", response_model=AdminUserOut)
async def change_user_role(
    user_id: int,
    data: AdminRoleUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_main_admin)
):
    return await UserAdminService.set_admin(db, user_id, data.is_admin, current_user)
