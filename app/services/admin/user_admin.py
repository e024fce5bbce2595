from typing import List

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.core.exceptions import AccessDeniedError, NotFoundError
from app.core.logger import logger
from app.dependencies.auth import is_main_admin
from app.models.user.user import User


class UserAdminService:
    @staticmethod
    async def list_users(db: AsyncSession) -> List[User]:
        result = await db.execute(select(User).order_by(User.created_at, User.id))
        return list(result.scalars().all())

    @staticmethod
    async def set_admin(db: AsyncSession, user_id: int, is_admin: bool, current_user: User) -> User:
        user = await db.scalar(select(User).where(User.id == user_id))
        if not user:
            raise NotFoundError("User not found")
        if is_main_admin(user):
            raise AccessDeniedError("Cannot change the main admin's role")

        user.is_admin = is_admin
        await db.commit()
        await db.refresh(user)

        logger.info(f"User {user_id} admin flag set to {is_admin} by user {current_user.id}")
        return user
