"""Unit tests for the access-control policy decisions."""

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from classroom_api.auth import policy
from classroom_api.auth.schemas import CurrentUser
from classroom_api.core.exceptions import AuthorizationError, ConflictError


def _user(role: str) -> CurrentUser:
    return CurrentUser(id=uuid.uuid4(), name="User", email="user@example.com", role=role)


@pytest.fixture()
def owner() -> CurrentUser:
    return _user("Teacher")


@pytest.fixture()
def facts(owner: CurrentUser) -> policy.ClassFacts:
    return policy.ClassFacts(class_id=uuid.uuid4(), owner_id=owner.id)


def test_only_teachers_create_classes(owner: CurrentUser) -> None:
    assert policy.can_create_class(owner).allowed
    decision = policy.can_create_class(_user("Student"))
    assert not decision.allowed
    assert decision.error is AuthorizationError


def test_manage_requires_ownership(owner: CurrentUser, facts: policy.ClassFacts) -> None:
    assert policy.can_manage_class(owner, facts).allowed
    assert not policy.can_manage_class(_user("Teacher"), facts).allowed
    # A student never manages, even when enrolled.
    enrolled = policy.ClassFacts(class_id=facts.class_id, owner_id=facts.owner_id, is_enrolled=True)
    assert not policy.can_manage_class(_user("Student"), enrolled).allowed


def test_view_class_any_teacher_or_enrolled_student(facts: policy.ClassFacts) -> None:
    assert policy.can_view_class(_user("Teacher"), facts).allowed
    assert not policy.can_view_class(_user("Student"), facts).allowed
    enrolled = policy.ClassFacts(class_id=facts.class_id, owner_id=facts.owner_id, is_enrolled=True)
    assert policy.can_view_class(_user("Student"), enrolled).allowed


def test_view_content_owner_or_enrolled(owner: CurrentUser, facts: policy.ClassFacts) -> None:
    assert policy.can_view_content(owner, facts).allowed
    assert not policy.can_view_content(_user("Teacher"), facts).allowed
    assert not policy.can_view_content(_user("Student"), facts).allowed
    enrolled = policy.ClassFacts(class_id=facts.class_id, owner_id=facts.owner_id, is_enrolled=True)
    assert policy.can_view_content(_user("Student"), enrolled).allowed


def test_join_twice_is_a_conflict(facts: policy.ClassFacts) -> None:
    student = _user("Student")
    assert policy.can_join_class(student, facts).allowed
    enrolled = policy.ClassFacts(class_id=facts.class_id, owner_id=facts.owner_id, is_enrolled=True)
    decision = policy.can_join_class(student, enrolled)
    assert decision.error is ConflictError
    with pytest.raises(ConflictError):
        decision.enforce()


def test_leave_requires_enrollment(facts: policy.ClassFacts) -> None:
    decision = policy.can_leave_class(_user("Student"), facts)
    assert decision.error is ConflictError
    assert decision.message == "You are not enrolled in this class"
    assert policy.can_leave_class(_user("Teacher"), facts).error is AuthorizationError


def test_submit_checks_in_order(facts: policy.ClassFacts) -> None:
    now = datetime(2030, 1, 1, tzinfo=timezone.utc)
    past = now - timedelta(days=1)
    enrolled = policy.ClassFacts(class_id=facts.class_id, owner_id=facts.owner_id, is_enrolled=True)
    student = _user("Student")

    assert policy.can_submit(_user("Teacher"), enrolled, None, now).error is AuthorizationError
    # Enrollment is checked before the due date.
    assert policy.can_submit(student, facts, past, now).error is AuthorizationError
    assert policy.can_submit(student, enrolled, past, now).error is ConflictError
    assert policy.can_submit(student, enrolled, None, now).allowed
    assert policy.can_submit(student, enrolled, now + timedelta(minutes=1), now).allowed


def test_submit_accepts_naive_due_date(facts: policy.ClassFacts) -> None:
    enrolled = policy.ClassFacts(class_id=facts.class_id, owner_id=facts.owner_id, is_enrolled=True)
    now = datetime(2030, 1, 1, 12, tzinfo=timezone.utc)
    naive_past = datetime(2030, 1, 1, 11)
    decision = policy.can_submit(_user("Student"), enrolled, naive_past, now)
    assert decision.error is ConflictError


def test_grade_requires_owner(owner: CurrentUser, facts: policy.ClassFacts) -> None:
    assert policy.can_grade(owner, facts).allowed
    assert not policy.can_grade(_user("Teacher"), facts).allowed
    assert not policy.can_grade(_user("Student"), facts).allowed


def test_allow_enforce_is_noop() -> None:
    policy.ALLOW.enforce()
