"""Classroom registry: class CRUD, listings and the fact loaders other services reuse."""

from typing import List, Optional
from uuid import UUID

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from classroom_api.auth import policy
from classroom_api.auth.class_code import generate_class_code
from classroom_api.auth.models import User
from classroom_api.auth.schemas import CurrentUser
from classroom_api.core.exceptions import ConflictError, NotFoundError
from classroom_api.core.models import Assignment, ClassRoom, Enrollment, Room, Submission
from classroom_api.storage.files import LocalFileStorage

from .schemas import (
    AvailableClassItem,
    ClassCreate,
    ClassDetailResponse,
    ClassResponse,
    ClassUpdate,
    EnrolledClassItem,
    MyClassItem,
    OtherClassItem,
    RoomSummary,
)

logger = structlog.get_logger(__name__)


def _class_to_response(c: ClassRoom) -> ClassResponse:
    return ClassResponse(
        class_id=c.id,
        name=c.name,
        description=c.description,
        unique_code=c.unique_code,
        created_by=c.owner_id,
        created_at=c.created_at,
        updated_at=c.updated_at,
    )


# ----- Fact loading (shared with enrollment, content and submission services) -----
async def get_class_or_404(db: AsyncSession, class_id: UUID) -> ClassRoom:
    obj = await db.get(ClassRoom, class_id)
    if not obj:
        raise NotFoundError("Class not found")
    return obj


async def is_enrolled(db: AsyncSession, class_id: UUID, student_id: UUID) -> bool:
    result = await db.execute(
        select(Enrollment.id).where(
            Enrollment.class_id == class_id,
            Enrollment.student_id == student_id,
        )
    )
    return result.scalar_one_or_none() is not None


async def load_class_facts(db: AsyncSession, actor: CurrentUser, classroom: ClassRoom) -> policy.ClassFacts:
    enrolled = False
    if actor.is_student:
        enrolled = await is_enrolled(db, classroom.id, actor.id)
    return policy.ClassFacts(class_id=classroom.id, owner_id=classroom.owner_id, is_enrolled=enrolled)


async def get_teacher_name(db: AsyncSession, owner_id: UUID) -> str:
    result = await db.execute(select(User.name).where(User.id == owner_id))
    return result.scalar_one_or_none() or ""


# ----- Teacher CRUD -----
async def create_class(
    db: AsyncSession,
    actor: CurrentUser,
    payload: ClassCreate,
) -> ClassResponse:
    policy.can_create_class(actor).enforce()
    code = await generate_class_code(db)
    obj = ClassRoom(
        name=payload.name,
        description=payload.description,
        unique_code=code,
        owner_id=actor.id,
    )
    db.add(obj)
    try:
        await db.commit()
    except IntegrityError as e:
        # Another request took the same code between the lookup and the insert.
        await db.rollback()
        raise ConflictError("Class code collision, please retry") from e
    await db.refresh(obj)
    logger.info("class_created", class_id=str(obj.id), owner_id=str(actor.id))
    return _class_to_response(obj)


async def update_class(
    db: AsyncSession,
    actor: CurrentUser,
    class_id: UUID,
    payload: ClassUpdate,
) -> ClassResponse:
    obj = await get_class_or_404(db, class_id)
    policy.can_manage_class(actor, await load_class_facts(db, actor, obj)).enforce()
    if payload.name is not None:
        obj.name = payload.name
    if "description" in payload.model_fields_set:
        obj.description = payload.description
    await db.commit()
    await db.refresh(obj)
    return _class_to_response(obj)


async def delete_class(
    db: AsyncSession,
    actor: CurrentUser,
    class_id: UUID,
    storage: LocalFileStorage,
) -> None:
    """Delete a class; the FK cascade removes enrollments, rooms, materials, assignments and submissions."""
    obj = await get_class_or_404(db, class_id)
    policy.can_manage_class(actor, await load_class_facts(db, actor, obj)).enforce()

    assignment_files = await db.execute(
        select(Assignment.file_url).where(Assignment.class_id == class_id, Assignment.file_url.is_not(None))
    )
    submission_files = await db.execute(
        select(Submission.file_url)
        .join(Assignment, Assignment.id == Submission.assignment_id)
        .where(Assignment.class_id == class_id)
    )
    orphaned = list(assignment_files.scalars().all()) + list(submission_files.scalars().all())

    await db.delete(obj)
    await db.commit()
    # Files go only after the rows are gone for good.
    storage.delete_many(orphaned)
    logger.info("class_deleted", class_id=str(class_id), files_removed=len(orphaned))


async def get_class_details(
    db: AsyncSession,
    actor: CurrentUser,
    class_id: UUID,
) -> ClassDetailResponse:
    obj = await get_class_or_404(db, class_id)
    policy.can_view_class(actor, await load_class_facts(db, actor, obj)).enforce()
    rooms = await db.execute(select(Room).where(Room.class_id == class_id).order_by(Room.created_at))
    return ClassDetailResponse(
        class_id=obj.id,
        name=obj.name,
        description=obj.description,
        unique_code=obj.unique_code,
        teacher_name=await get_teacher_name(db, obj.owner_id),
        created_at=obj.created_at,
        rooms=[RoomSummary(room_id=r.id, name=r.name, description=r.description) for r in rooms.scalars().all()],
    )


# ----- Listings -----
async def list_my_classes(db: AsyncSession, actor: CurrentUser) -> List[MyClassItem]:
    policy.can_list_teacher_classes(actor).enforce()
    student_count = (
        select(func.count(Enrollment.id))
        .where(Enrollment.class_id == ClassRoom.id)
        .correlate(ClassRoom)
        .scalar_subquery()
    )
    stmt = (
        select(ClassRoom, student_count.label("student_count"))
        .where(ClassRoom.owner_id == actor.id)
        .order_by(ClassRoom.created_at.desc())
    )
    result = await db.execute(stmt)
    return [
        MyClassItem(
            class_id=c.id,
            name=c.name,
            description=c.description,
            unique_code=c.unique_code,
            student_count=count or 0,
            created_at=c.created_at,
        )
        for c, count in result.all()
    ]


async def list_other_teachers_classes(db: AsyncSession, actor: CurrentUser) -> List[OtherClassItem]:
    policy.can_list_teacher_classes(actor).enforce()
    stmt = (
        select(ClassRoom, User.name)
        .join(User, User.id == ClassRoom.owner_id)
        .where(ClassRoom.owner_id != actor.id)
        .order_by(ClassRoom.created_at.desc())
    )
    result = await db.execute(stmt)
    return [
        OtherClassItem(
            class_id=c.id,
            name=c.name,
            description=c.description,
            teacher_name=teacher_name,
            created_at=c.created_at,
        )
        for c, teacher_name in result.all()
    ]


async def list_available_classes(db: AsyncSession, actor: CurrentUser) -> List[AvailableClassItem]:
    """Every class, flagged with whether the student already joined it."""
    policy.can_list_student_classes(actor).enforce()
    is_joined = (
        select(Enrollment.id)
        .where(Enrollment.class_id == ClassRoom.id, Enrollment.student_id == actor.id)
        .correlate(ClassRoom)
        .exists()
    )
    stmt = (
        select(ClassRoom, User.name, is_joined.label("is_joined"))
        .join(User, User.id == ClassRoom.owner_id)
        .order_by(ClassRoom.created_at.desc())
    )
    result = await db.execute(stmt)
    return [
        AvailableClassItem(
            class_id=c.id,
            name=c.name,
            description=c.description,
            teacher_name=teacher_name,
            is_joined=bool(joined),
            created_at=c.created_at,
        )
        for c, teacher_name, joined in result.all()
    ]


async def list_enrolled_classes(db: AsyncSession, actor: CurrentUser) -> List[EnrolledClassItem]:
    policy.can_list_student_classes(actor).enforce()
    room_count = (
        select(func.count(Room.id))
        .where(Room.class_id == ClassRoom.id)
        .correlate(ClassRoom)
        .scalar_subquery()
    )
    stmt = (
        select(ClassRoom, User.name, Enrollment.enrolled_at, room_count.label("room_count"))
        .join(Enrollment, Enrollment.class_id == ClassRoom.id)
        .join(User, User.id == ClassRoom.owner_id)
        .where(Enrollment.student_id == actor.id)
        .order_by(Enrollment.enrolled_at.desc())
    )
    result = await db.execute(stmt)
    return [
        EnrolledClassItem(
            class_id=c.id,
            name=c.name,
            description=c.description,
            teacher_name=teacher_name,
            enrolled_at=enrolled_at,
            room_count=rooms or 0,
        )
        for c, teacher_name, enrolled_at, rooms in result.all()
    ]


async def get_class_by_code(db: AsyncSession, code: str) -> Optional[ClassRoom]:
    result = await db.execute(select(ClassRoom).where(ClassRoom.unique_code == code.strip().upper()))
    return result.scalar_one_or_none()
