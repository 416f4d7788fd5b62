from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from classroom_api.core.schemas import strip_text


class ClassCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: Any) -> Any:
        return strip_text(v)


class ClassUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: Any) -> Any:
        return strip_text(v)


class ClassResponse(BaseModel):
    class_id: UUID
    name: str
    description: Optional[str] = None
    unique_code: str
    created_by: UUID
    created_at: datetime
    updated_at: Optional[datetime] = None


class MyClassItem(BaseModel):
    """Teacher's own class with enrollment count."""

    class_id: UUID
    name: str
    description: Optional[str] = None
    unique_code: str
    student_count: int
    created_at: datetime


class OtherClassItem(BaseModel):
    class_id: UUID
    name: str
    description: Optional[str] = None
    teacher_name: str
    created_at: datetime


class AvailableClassItem(BaseModel):
    class_id: UUID
    name: str
    description: Optional[str] = None
    teacher_name: str
    is_joined: bool
    created_at: datetime


class EnrolledClassItem(BaseModel):
    class_id: UUID
    name: str
    description: Optional[str] = None
    teacher_name: str
    enrolled_at: datetime
    room_count: int


class RoomSummary(BaseModel):
    room_id: UUID
    name: str
    description: Optional[str] = None


class ClassDetailResponse(BaseModel):
    class_id: UUID
    name: str
    description: Optional[str] = None
    unique_code: str
    teacher_name: str
    created_at: datetime
    rooms: List[RoomSummary] = Field(default_factory=list)
