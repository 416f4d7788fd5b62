"""Class content: materials, assignments and student submissions."""

import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, Uuid

from classroom_api.core.enums import SubmissionStatus
from classroom_api.core.utils import utcnow
from classroom_api.db.session import Base


class Material(Base):
    """Reading material posted by the class owner."""

    __tablename__ = "materials"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    class_id = Column(Uuid(as_uuid=True), ForeignKey("classes.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class Assignment(Base):
    """Assignment in a class. Cannot be deleted once it has submissions (checked in service)."""

    __tablename__ = "assignments"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    class_id = Column(Uuid(as_uuid=True), ForeignKey("classes.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    file_url = Column(String(512), nullable=True)
    due_date = Column(DateTime(timezone=True), nullable=True)  # NULL = no deadline
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class Submission(Base):
    """One submission per (assignment, student); resubmitting overwrites the row."""

    __tablename__ = "submissions"
    __table_args__ = (
        UniqueConstraint("assignment_id", "student_id", name="uq_submission_assignment_student"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    assignment_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("assignments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    student_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    file_url = Column(String(512), nullable=False)
    submitted_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    status = Column(String(20), nullable=False, default=SubmissionStatus.pending.value)  # pending | graded
    score = Column(Integer, nullable=True)  # 0..100, validated at the request boundary
    feedback = Column(Text, nullable=True)
    graded_at = Column(DateTime(timezone=True), nullable=True)
