from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class GradeRequest(BaseModel):
    score: int = Field(..., ge=0, le=100)
    feedback: Optional[str] = None


class SubmitResponse(BaseModel):
    submission_id: UUID
    assignment_id: UUID
    file_url: str
    submitted_at: datetime
    status: str


class SubmissionItem(BaseModel):
    submission_id: UUID
    student_id: UUID
    student_name: str
    file_url: str
    submitted_at: datetime
    status: str
    score: Optional[int] = None
    feedback: Optional[str] = None
    graded_at: Optional[datetime] = None


class GradeResponse(BaseModel):
    submission_id: UUID
    assignment_id: UUID
    student_name: str
    score: int
    feedback: Optional[str] = None
    status: str
    graded_at: datetime
