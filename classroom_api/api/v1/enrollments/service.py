"""Enrollment workflow: students join classes by code and leave them."""

from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from classroom_api.api.v1.classes import service as class_service
from classroom_api.auth import policy
from classroom_api.auth.schemas import CurrentUser
from classroom_api.core.enums import UserRole
from classroom_api.core.exceptions import ConflictError, NotFoundError
from classroom_api.core.models import Enrollment
from classroom_api.core.utils import utcnow

from .schemas import JoinClassRequest, JoinClassResponse

logger = structlog.get_logger(__name__)


async def join_class(
    db: AsyncSession,
    actor: CurrentUser,
    payload: JoinClassRequest,
) -> JoinClassResponse:
    # Role first, so teachers get 403 rather than learning whether a code exists.
    policy.require_role(actor, UserRole.STUDENT, "Only students can join classes").enforce()

    classroom = await class_service.get_class_by_code(db, payload.unique_code)
    if not classroom:
        raise NotFoundError("Class not found")

    facts = await class_service.load_class_facts(db, actor, classroom)
    policy.can_join_class(actor, facts).enforce()

    db.add(Enrollment(class_id=classroom.id, student_id=actor.id, enrolled_at=utcnow()))
    try:
        await db.commit()
    except IntegrityError as e:
        # Concurrent join won the race; the unique constraint is the real check.
        await db.rollback()
        raise ConflictError("You are already enrolled in this class") from e

    logger.info("class_joined", class_id=str(classroom.id), student_id=str(actor.id))
    return JoinClassResponse(
        class_id=classroom.id,
        name=classroom.name,
        description=classroom.description,
        teacher_name=await class_service.get_teacher_name(db, classroom.owner_id),
    )


async def leave_class(
    db: AsyncSession,
    actor: CurrentUser,
    class_id: UUID,
) -> None:
    policy.require_role(actor, UserRole.STUDENT, "Only students can leave classes").enforce()

    classroom = await class_service.get_class_or_404(db, class_id)
    facts = await class_service.load_class_facts(db, actor, classroom)
    policy.can_leave_class(actor, facts).enforce()

    result = await db.execute(
        select(Enrollment).where(
            Enrollment.class_id == class_id,
            Enrollment.student_id == actor.id,
        )
    )
    enrollment = result.scalar_one_or_none()
    if not enrollment:
        # Removed by a concurrent leave after the facts were loaded.
        raise ConflictError("You are not enrolled in this class")
    await db.delete(enrollment)
    await db.commit()
    logger.info("class_left", class_id=str(class_id), student_id=str(actor.id))
