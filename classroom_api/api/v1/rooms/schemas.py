from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from classroom_api.core.schemas import strip_text


class RoomCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: Any) -> Any:
        return strip_text(v)


class RoomResponse(BaseModel):
    room_id: UUID
    class_id: UUID
    name: str
    description: Optional[str] = None
    created_at: datetime
