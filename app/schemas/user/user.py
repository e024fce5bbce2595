from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from typing import Optional
from app.schemas.base import CamelModel


class UserCreate(BaseModel):
    email: EmailStr
    name: str = Field(min_length=1)
    password: str


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class UserOut(CamelModel):
    id: int
    email: EmailStr
    name: str
    photo_url: Optional[str] = None
    is_admin: bool = False


class UserRef(CamelModel):
    """Profile snapshot of a user, embedded in events and trip responses"""
    id: int
    name: str
    email: str
    photo_url: Optional[str] = None


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1)
    photo_url: Optional[str] = None
    current_password: Optional[str] = None
    new_password: Optional[str] = None


class AccountDeleted(CamelModel):
    message: str
    trips_deleted: int
    collaborations_removed: int


class AdminUserOut(CamelModel):
    id: int
    email: EmailStr
    name: str
    is_admin: bool
    created_at: Optional[datetime] = None


class AdminRoleUpdate(CamelModel):
    is_admin: bool
