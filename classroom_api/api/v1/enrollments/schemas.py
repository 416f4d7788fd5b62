from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class JoinClassRequest(BaseModel):
    unique_code: str = Field(..., min_length=1, max_length=10)


class JoinClassResponse(BaseModel):
    class_id: UUID
    name: str
    description: Optional[str] = None
    teacher_name: str
