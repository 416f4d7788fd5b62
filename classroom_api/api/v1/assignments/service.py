"""Assignments: multipart create/update with an optional document, reads and guarded delete."""

from datetime import datetime
from typing import Dict, Optional, Tuple
from uuid import UUID

import structlog
from fastapi import UploadFile
from sqlalchemy import case, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from classroom_api.api.v1.classes import service as class_service
from classroom_api.auth import policy
from classroom_api.auth.schemas import CurrentUser
from classroom_api.core.enums import SubmissionStatus
from classroom_api.core.exceptions import ConflictError, NotFoundError, ValidationError
from classroom_api.core.models import Assignment, ClassRoom, Submission
from classroom_api.core.utils import as_utc, utcnow
from classroom_api.storage.files import LocalFileStorage

from .schemas import (
    AssignmentListItem,
    AssignmentResponse,
    ClassAssignmentsResponse,
    OwnSubmission,
    SubmissionStats,
)

logger = structlog.get_logger(__name__)

ASSIGNMENT_FOLDER = "assignments"


def has_upload(upload: Optional[UploadFile]) -> bool:
    # Browsers send an empty part with no filename when the file input is left blank.
    return upload is not None and bool(upload.filename)


def own_submission(s: Optional[Submission]) -> Optional[OwnSubmission]:
    if s is None:
        return None
    return OwnSubmission(
        submission_id=s.id,
        file_url=s.file_url,
        submitted_at=s.submitted_at,
        status=s.status,
        score=s.score,
        feedback=s.feedback,
    )


def _assignment_to_response(
    a: Assignment,
    class_name: Optional[str] = None,
    submission: Optional[Submission] = None,
) -> AssignmentResponse:
    return AssignmentResponse(
        assignment_id=a.id,
        class_id=a.class_id,
        title=a.title,
        description=a.description,
        due_date=a.due_date,
        file_url=a.file_url,
        class_name=class_name,
        created_at=a.created_at,
        updated_at=a.updated_at,
        submission=own_submission(submission),
    )


async def get_assignment_or_404(db: AsyncSession, assignment_id: UUID) -> Assignment:
    obj = await db.get(Assignment, assignment_id)
    if not obj:
        raise NotFoundError("Assignment not found")
    return obj


async def _get_assignment_with_class(db: AsyncSession, assignment_id: UUID) -> Tuple[Assignment, ClassRoom]:
    assignment = await get_assignment_or_404(db, assignment_id)
    classroom = await class_service.get_class_or_404(db, assignment.class_id)
    return assignment, classroom


async def get_student_submission(db: AsyncSession, assignment_id: UUID, student_id: UUID) -> Optional[Submission]:
    result = await db.execute(
        select(Submission).where(
            Submission.assignment_id == assignment_id,
            Submission.student_id == student_id,
        )
    )
    return result.scalar_one_or_none()


async def _commit_or_discard(db: AsyncSession, storage: LocalFileStorage, file_url: Optional[str]) -> None:
    """Commit; on failure roll back and remove the file written for this request."""
    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        storage.delete(file_url)
        logger.error("assignment_write_failed", file_url=file_url)
        raise


async def create_assignment(
    db: AsyncSession,
    actor: CurrentUser,
    class_id: UUID,
    *,
    title: str,
    description: str,
    due_date: Optional[datetime],
    upload: Optional[UploadFile],
    storage: LocalFileStorage,
) -> AssignmentResponse:
    classroom = await class_service.get_class_or_404(db, class_id)
    policy.can_manage_class(actor, await class_service.load_class_facts(db, actor, classroom)).enforce()
    if not title.strip():
        raise ValidationError("Validation error", {"title": ["The title field is required."]})

    file_url = await storage.save(upload, ASSIGNMENT_FOLDER) if has_upload(upload) else None
    assignment = Assignment(
        class_id=class_id,
        title=title.strip(),
        description=description,
        due_date=as_utc(due_date),
        file_url=file_url,
    )
    db.add(assignment)
    await _commit_or_discard(db, storage, file_url)
    await db.refresh(assignment)
    logger.info("assignment_created", assignment_id=str(assignment.id), class_id=str(class_id))
    return _assignment_to_response(assignment, classroom.name)


async def get_assignment(
    db: AsyncSession,
    actor: CurrentUser,
    assignment_id: UUID,
) -> AssignmentResponse:
    assignment, classroom = await _get_assignment_with_class(db, assignment_id)
    policy.can_view_content(actor, await class_service.load_class_facts(db, actor, classroom)).enforce()
    submission = None
    if actor.is_student:
        submission = await get_student_submission(db, assignment.id, actor.id)
    return _assignment_to_response(assignment, classroom.name, submission)


async def _submission_stats(db: AsyncSession, class_id: UUID) -> Dict[UUID, SubmissionStats]:
    graded = func.sum(case((Submission.status == SubmissionStatus.graded.value, 1), else_=0))
    result = await db.execute(
        select(Submission.assignment_id, func.count(Submission.id), graded)
        .join(Assignment, Assignment.id == Submission.assignment_id)
        .where(Assignment.class_id == class_id)
        .group_by(Submission.assignment_id)
    )
    return {
        assignment_id: SubmissionStats(total_submissions=total, graded_submissions=graded_count or 0)
        for assignment_id, total, graded_count in result.all()
    }


async def list_class_assignments(
    db: AsyncSession,
    actor: CurrentUser,
    class_id: UUID,
) -> ClassAssignmentsResponse:
    """
    Owner: newest first, each with submission statistics.
    Enrolled student: by due date (undated last), each with the student's own
    submission and whether it is past due / overdue (past due and not submitted).
    """
    classroom = await class_service.get_class_or_404(db, class_id)
    facts = await class_service.load_class_facts(db, actor, classroom)
    policy.can_view_content(actor, facts).enforce()

    result = await db.execute(
        select(Assignment).where(Assignment.class_id == class_id).order_by(Assignment.created_at.desc())
    )
    assignments = list(result.scalars().all())
    items = []

    if policy.owns_class(actor, facts):
        stats = await _submission_stats(db, class_id)
        for a in assignments:
            items.append(
                AssignmentListItem(
                    assignment_id=a.id,
                    title=a.title,
                    description=a.description,
                    due_date=a.due_date,
                    file_url=a.file_url,
                    created_at=a.created_at,
                    updated_at=a.updated_at,
                    submission_stats=stats.get(a.id, SubmissionStats()),
                )
            )
    else:
        own = await db.execute(
            select(Submission)
            .join(Assignment, Assignment.id == Submission.assignment_id)
            .where(Assignment.class_id == class_id, Submission.student_id == actor.id)
        )
        by_assignment = {s.assignment_id: s for s in own.scalars().all()}
        now = utcnow()
        assignments.sort(key=lambda a: (a.due_date is None, as_utc(a.due_date) or now))
        for a in assignments:
            submission = by_assignment.get(a.id)
            is_due = a.due_date is not None and now > as_utc(a.due_date)
            items.append(
                AssignmentListItem(
                    assignment_id=a.id,
                    title=a.title,
                    description=a.description,
                    due_date=a.due_date,
                    file_url=a.file_url,
                    created_at=a.created_at,
                    updated_at=a.updated_at,
                    is_due=is_due,
                    is_overdue=is_due and submission is None,
                    submission=own_submission(submission),
                )
            )

    return ClassAssignmentsResponse(class_id=classroom.id, class_name=classroom.name, assignments=items)


async def update_assignment(
    db: AsyncSession,
    actor: CurrentUser,
    assignment_id: UUID,
    *,
    title: Optional[str],
    description: Optional[str],
    due_date: Optional[datetime],
    upload: Optional[UploadFile],
    storage: LocalFileStorage,
    clear_due_date: bool = False,
) -> AssignmentResponse:
    assignment, classroom = await _get_assignment_with_class(db, assignment_id)
    policy.can_manage_class(actor, await class_service.load_class_facts(db, actor, classroom)).enforce()
    if title is not None and not title.strip():
        raise ValidationError("Validation error", {"title": ["The title field must not be empty."]})

    new_url = await storage.save(upload, ASSIGNMENT_FOLDER) if has_upload(upload) else None
    old_url = assignment.file_url
    if new_url:
        assignment.file_url = new_url
    if title is not None:
        assignment.title = title.strip()
    if description is not None:
        assignment.description = description
    if clear_due_date:
        assignment.due_date = None
    elif due_date is not None:
        assignment.due_date = as_utc(due_date)
    await _commit_or_discard(db, storage, new_url)
    if new_url:
        storage.delete(old_url)
    await db.refresh(assignment)
    return _assignment_to_response(assignment, classroom.name)


async def delete_assignment(
    db: AsyncSession,
    actor: CurrentUser,
    assignment_id: UUID,
    storage: LocalFileStorage,
) -> None:
    assignment, classroom = await _get_assignment_with_class(db, assignment_id)
    policy.can_manage_class(actor, await class_service.load_class_facts(db, actor, classroom)).enforce()
    result = await db.execute(select(Submission.id).where(Submission.assignment_id == assignment_id).limit(1))
    if result.scalar_one_or_none() is not None:
        raise ConflictError("Cannot delete assignment with existing submissions")
    file_url = assignment.file_url
    await db.delete(assignment)
    await db.commit()
    storage.delete(file_url)
