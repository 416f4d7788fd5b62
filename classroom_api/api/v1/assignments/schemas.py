from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class OwnSubmission(BaseModel):
    """The requesting student's submission, embedded in assignment reads."""

    submission_id: UUID
    file_url: str
    submitted_at: datetime
    status: str
    score: Optional[int] = None
    feedback: Optional[str] = None


class AssignmentResponse(BaseModel):
    assignment_id: UUID
    class_id: UUID
    title: str
    description: str
    due_date: Optional[datetime] = None
    file_url: Optional[str] = None
    class_name: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    submission: Optional[OwnSubmission] = None


class SubmissionStats(BaseModel):
    total_submissions: int = 0
    graded_submissions: int = 0


class AssignmentListItem(BaseModel):
    """Owner rows carry submission_stats; student rows carry submission and the due flags."""

    assignment_id: UUID
    title: str
    description: str
    due_date: Optional[datetime] = None
    file_url: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    submission_stats: Optional[SubmissionStats] = None
    is_due: Optional[bool] = None
    is_overdue: Optional[bool] = None
    submission: Optional[OwnSubmission] = None


class ClassAssignmentsResponse(BaseModel):
    class_id: UUID
    class_name: str
    assignments: List[AssignmentListItem] = Field(default_factory=list)
