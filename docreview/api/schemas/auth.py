from pydantic import BaseModel, EmailStr, Field
from uuid import UUID
from datetime import datetime

from docreview.core.rbac.roles import UserRole


class UserCreate(BaseModel):
    email: EmailStr
    full_name: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=6)
    role: UserRole = UserRole.INTERNAL_USER


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserResponse(BaseModel):
    id: UUID
    email: str
    full_name: str
    role: int
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True
