"""
Access-control policy.

Pure decisions over an actor and plain facts about the target resource. Nothing
here touches the database: services load the facts (owner id, enrollment
existence, due date) with explicit queries and pass them in. Every denial
carries the error type the caller must raise, so a refusal is never a silent
filter.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Type
from uuid import UUID

from classroom_api.auth.schemas import CurrentUser
from classroom_api.core.enums import UserRole
from classroom_api.core.exceptions import (
    AuthorizationError,
    ConflictError,
    ServiceError,
)
from classroom_api.core.utils import as_utc


@dataclass(frozen=True)
class ClassFacts:
    """What the policy needs to know about a class relative to the actor."""

    class_id: UUID
    owner_id: UUID
    is_enrolled: bool = False


@dataclass(frozen=True)
class Decision:
    allowed: bool
    error: Optional[Type[ServiceError]] = None
    message: Optional[str] = None

    def enforce(self) -> None:
        if not self.allowed:
            raise self.error(self.message)


ALLOW = Decision(allowed=True)


def deny(message: str, error: Type[ServiceError] = AuthorizationError) -> Decision:
    return Decision(allowed=False, error=error, message=message)


def owns_class(actor: CurrentUser, facts: ClassFacts) -> bool:
    return actor.is_teacher and facts.owner_id == actor.id


def require_role(actor: CurrentUser, role: UserRole, message: str) -> Decision:
    if actor.role != role:
        return deny(message)
    return ALLOW


# ----- Classes -----
def can_create_class(actor: CurrentUser) -> Decision:
    if not actor.is_teacher:
        return deny("Only teachers can create classes")
    return ALLOW


def can_manage_class(actor: CurrentUser, facts: ClassFacts) -> Decision:
    """Update/delete the class and author rooms, materials and assignments in it."""
    if not actor.is_teacher:
        return deny("Only teachers can manage classes")
    if not owns_class(actor, facts):
        return deny("Only the teacher who created the class can manage it")
    return ALLOW


def can_view_class(actor: CurrentUser, facts: ClassFacts) -> Decision:
    # Teachers may browse any class; students only the ones they joined.
    if actor.is_teacher:
        return ALLOW
    if actor.is_student and facts.is_enrolled:
        return ALLOW
    return deny("You do not have access to this class")


def can_list_teacher_classes(actor: CurrentUser) -> Decision:
    return require_role(actor, UserRole.TEACHER, "Only teachers can access this endpoint")


def can_list_student_classes(actor: CurrentUser) -> Decision:
    return require_role(actor, UserRole.STUDENT, "Only students can access this endpoint")


# ----- Materials / assignments -----
def can_view_content(actor: CurrentUser, facts: ClassFacts) -> Decision:
    """Read a material or assignment: the owning teacher or an enrolled student."""
    if owns_class(actor, facts):
        return ALLOW
    if actor.is_student and facts.is_enrolled:
        return ALLOW
    return deny("You must be the class teacher or enrolled in this class")


# ----- Enrollment -----
def can_join_class(actor: CurrentUser, facts: ClassFacts) -> Decision:
    if not actor.is_student:
        return deny("Only students can join classes")
    if facts.is_enrolled:
        return deny("You are already enrolled in this class", ConflictError)
    return ALLOW


def can_leave_class(actor: CurrentUser, facts: ClassFacts) -> Decision:
    if not actor.is_student:
        return deny("Only students can leave classes")
    if not facts.is_enrolled:
        return deny("You are not enrolled in this class", ConflictError)
    return ALLOW


# ----- Submissions -----
def can_submit(
    actor: CurrentUser,
    facts: ClassFacts,
    due_date: Optional[datetime],
    now: datetime,
) -> Decision:
    if not actor.is_student:
        return deny("Only students can submit assignments")
    if not facts.is_enrolled:
        return deny("You are not enrolled in this class")
    if due_date is not None and as_utc(now) > as_utc(due_date):
        return deny("The due date for this assignment has passed", ConflictError)
    return ALLOW


def can_grade(actor: CurrentUser, facts: ClassFacts) -> Decision:
    """Grade a submission or list all submissions of an assignment."""
    if not actor.is_teacher:
        return deny("Only teachers can grade or list submissions")
    if not owns_class(actor, facts):
        return deny("You are not authorized to grade submissions for this class")
    return ALLOW
