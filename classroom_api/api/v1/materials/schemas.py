from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from classroom_api.core.schemas import strip_text


class MaterialCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)

    @field_validator("title", "description", "content", mode="before")
    @classmethod
    def strip_fields(cls, v: Any) -> Any:
        return strip_text(v)


class MaterialUpdate(BaseModel):
    """Partial update; a field that is sent must not be empty."""

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    content: Optional[str] = Field(None, min_length=1)

    @field_validator("title", "description", "content", mode="before")
    @classmethod
    def strip_fields(cls, v: Any) -> Any:
        return strip_text(v)


class MaterialResponse(BaseModel):
    material_id: UUID
    class_id: UUID
    title: str
    description: str
    content: str
    class_name: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class MaterialSummary(BaseModel):
    material_id: UUID
    title: str
    description: str
    created_at: datetime
    updated_at: Optional[datetime] = None


class ClassMaterialsResponse(BaseModel):
    class_id: UUID
    class_name: str
    materials: List[MaterialSummary] = Field(default_factory=list)
