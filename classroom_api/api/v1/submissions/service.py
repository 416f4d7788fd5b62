"""
Submission and grading workflow.

A student has at most one submission per assignment; submitting again replaces
the file and resets the row to pending. The unique constraint on
(assignment_id, student_id) decides concurrent first submissions: the loser of
the race is replayed as an overwrite.
"""

from typing import List, Optional, Tuple
from uuid import UUID

import structlog
from fastapi import UploadFile
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from classroom_api.api.v1.assignments import service as assignment_service
from classroom_api.api.v1.classes import service as class_service
from classroom_api.auth import policy
from classroom_api.auth.models import User
from classroom_api.auth.schemas import CurrentUser
from classroom_api.core.enums import SubmissionStatus, UserRole
from classroom_api.core.exceptions import NotFoundError, ValidationError
from classroom_api.core.models import Assignment, Submission
from classroom_api.core.utils import utcnow
from classroom_api.storage.files import LocalFileStorage

from .schemas import GradeRequest, GradeResponse, SubmissionItem, SubmitResponse

logger = structlog.get_logger(__name__)

SUBMISSION_FOLDER = "submissions"


async def _write_submission(
    db: AsyncSession,
    assignment_id: UUID,
    student_id: UUID,
    file_url: str,
) -> Tuple[Submission, bool, Optional[str]]:
    """Insert or overwrite; returns (row, created, replaced file url)."""
    existing = await assignment_service.get_student_submission(db, assignment_id, student_id)
    if existing is not None:
        previous_url = existing.file_url
        existing.file_url = file_url
        existing.submitted_at = utcnow()
        existing.status = SubmissionStatus.pending.value
        await db.commit()
        return existing, False, previous_url

    submission = Submission(
        assignment_id=assignment_id,
        student_id=student_id,
        file_url=file_url,
        submitted_at=utcnow(),
        status=SubmissionStatus.pending.value,
    )
    db.add(submission)
    await db.commit()
    return submission, True, None


async def submit_assignment(
    db: AsyncSession,
    actor: CurrentUser,
    assignment_id: UUID,
    upload: Optional[UploadFile],
    storage: LocalFileStorage,
) -> Tuple[SubmitResponse, bool]:
    """Returns the submission and whether it was newly created."""
    policy.require_role(actor, UserRole.STUDENT, "Only students can submit assignments").enforce()
    assignment = await assignment_service.get_assignment_or_404(db, assignment_id)
    classroom = await class_service.get_class_or_404(db, assignment.class_id)
    facts = await class_service.load_class_facts(db, actor, classroom)
    policy.can_submit(actor, facts, assignment.due_date, utcnow()).enforce()
    if not assignment_service.has_upload(upload):
        raise ValidationError("Validation error", {"file": ["The file field is required."]})

    file_url = await storage.save(upload, SUBMISSION_FOLDER, prefix=f"{actor.id}_")
    try:
        try:
            submission, created, previous_url = await _write_submission(db, assignment_id, actor.id, file_url)
        except IntegrityError:
            # A concurrent first submission won the insert; overwrite it instead.
            await db.rollback()
            submission, created, previous_url = await _write_submission(db, assignment_id, actor.id, file_url)
    except SQLAlchemyError:
        await db.rollback()
        storage.delete(file_url)
        logger.error("submission_write_failed", assignment_id=str(assignment_id), student_id=str(actor.id))
        raise

    if previous_url and previous_url != file_url:
        storage.delete(previous_url)
    await db.refresh(submission)
    logger.info(
        "assignment_submitted",
        assignment_id=str(assignment_id),
        student_id=str(actor.id),
        resubmission=not created,
    )
    return (
        SubmitResponse(
            submission_id=submission.id,
            assignment_id=submission.assignment_id,
            file_url=submission.file_url,
            submitted_at=submission.submitted_at,
            status=submission.status,
        ),
        created,
    )


async def list_submissions(
    db: AsyncSession,
    actor: CurrentUser,
    assignment_id: UUID,
) -> List[SubmissionItem]:
    policy.require_role(actor, UserRole.TEACHER, "Only teachers can view all submissions").enforce()
    assignment = await assignment_service.get_assignment_or_404(db, assignment_id)
    classroom = await class_service.get_class_or_404(db, assignment.class_id)
    policy.can_grade(actor, await class_service.load_class_facts(db, actor, classroom)).enforce()

    result = await db.execute(
        select(Submission, User.name)
        .join(User, User.id == Submission.student_id)
        .where(Submission.assignment_id == assignment_id)
        .order_by(Submission.submitted_at.asc())
    )
    return [
        SubmissionItem(
            submission_id=s.id,
            student_id=s.student_id,
            student_name=student_name,
            file_url=s.file_url,
            submitted_at=s.submitted_at,
            status=s.status,
            score=s.score,
            feedback=s.feedback,
            graded_at=s.graded_at,
        )
        for s, student_name in result.all()
    ]


async def grade_submission(
    db: AsyncSession,
    actor: CurrentUser,
    submission_id: UUID,
    payload: GradeRequest,
) -> GradeResponse:
    policy.require_role(actor, UserRole.TEACHER, "Only teachers can grade submissions").enforce()
    submission = await db.get(Submission, submission_id)
    if not submission:
        raise NotFoundError("Submission not found")
    assignment = await db.get(Assignment, submission.assignment_id)
    classroom = await class_service.get_class_or_404(db, assignment.class_id)
    policy.can_grade(actor, await class_service.load_class_facts(db, actor, classroom)).enforce()

    submission.score = payload.score
    submission.feedback = payload.feedback
    submission.status = SubmissionStatus.graded.value
    submission.graded_at = utcnow()
    await db.commit()
    await db.refresh(submission)

    student = await db.get(User, submission.student_id)
    logger.info("submission_graded", submission_id=str(submission.id), score=submission.score)
    return GradeResponse(
        submission_id=submission.id,
        assignment_id=submission.assignment_id,
        student_name=student.name if student else "",
        score=submission.score,
        feedback=submission.feedback,
        status=submission.status,
        graded_at=submission.graded_at,
    )
