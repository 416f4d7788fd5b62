from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from classroom_api.core.enums import UserRole
from classroom_api.core.schemas import strip_text


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8)
    role: UserRole
    phone: Optional[str] = Field(None, max_length=20)
    image_url: Optional[str] = None

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: Any) -> Any:
        return strip_text(v)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str
    remember_me: bool = False


class RefreshRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1)


class UserInfo(BaseModel):
    id: UUID
    name: str
    email: EmailStr
    role: UserRole
    phone: Optional[str] = None
    image_url: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class TokenResponse(BaseModel):
    user: UserInfo
    token: str
    token_type: str = "Bearer"
    expires_at: datetime
    refresh_token: Optional[str] = None  # Only issued on remember_me logins
    remember_me_status: Optional[str] = None  # enabled | disabled


class CurrentUser(BaseModel):
    """Authenticated actor threaded through every policy and service call."""

    id: UUID
    name: str
    email: str
    role: UserRole

    @property
    def is_teacher(self) -> bool:
        return self.role == UserRole.TEACHER

    @property
    def is_student(self) -> bool:
        return self.role == UserRole.STUDENT
