from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.exc import IntegrityError
from fastapi import HTTPException, status
from app.models.user.user import User
from app.schemas.user.user import UserCreate
from app.core.security import hash_password, verify_password, create_access_token
from app.core.config import settings
from app.core.logger import logger


async def register_user(user_data: UserCreate, db: AsyncSession) -> User:
    email = user_data.email.lower()
    result = await db.execute(select(User).where(User.email == email))
    if result.scalar():
        raise HTTPException(status_code=400, detail="Email already registered")

    if len(user_data.password) < settings.PASSWORD_MIN_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters"
        )

    new_user = User(
        email=email,
        name=user_data.name.strip(),
        hashed_password=hash_password(user_data.password),
        is_admin=bool(settings.ADMIN_EMAIL) and email == settings.ADMIN_EMAIL.lower(),
    )

    db.add(new_user)
    try:
        await db.commit()
        await db.refresh(new_user)
    except IntegrityError:
        # Fallback in case of race condition with the query above
        await db.rollback()
        raise HTTPException(status_code=400, detail="Email already registered")

    logger.info(f"User {new_user.id} registered")
    return new_user


async def login_user(email: str, password: str, db: AsyncSession) -> dict:
    result = await db.execute(select(User).where(User.email == email.lower()))
    user = result.scalar()

    if not user or not verify_password(password, user.hashed_password):
        logger.warning(f"Failed login for {email}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials"
        )

    access_token = create_access_token({"sub": str(user.id)})
    return {"access_token": access_token, "token_type": "bearer"}
