from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional
from datetime import datetime

from app.models.user import UserRole
from app.schemas.common import CamelModel


class UserBase(CamelModel):
    name: str = Field(..., min_length=2)
    email: EmailStr
    phone: Optional[str] = None


class UserCreate(UserBase):
    password: str = Field(..., min_length=6)
    role: UserRole = UserRole.USER

    @field_validator("role")
    @classmethod
    def no_self_admin(cls, value: UserRole) -> UserRole:
        # El admin inicial se crea en el arranque (INITIAL_ADMIN_EMAIL)
        if value == UserRole.ADMIN:
            raise ValueError("admin role cannot be self-assigned")
        return value


class UserResponse(UserBase):
    id: int
    role: UserRole
    is_active: bool = True
    created_at: datetime


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
