import uuid

from sqlalchemy import Column, DateTime, ForeignKey, UniqueConstraint, Uuid

from classroom_api.core.utils import utcnow
from classroom_api.db.session import Base


class Enrollment(Base):
    """Student membership in a class. One row per (class, student)."""

    __tablename__ = "class_enrollments"
    __table_args__ = (
        # Real backstop for concurrent joins; the service pre-check is advisory
        UniqueConstraint("class_id", "student_id", name="uq_enrollment_class_student"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    class_id = Column(Uuid(as_uuid=True), ForeignKey("classes.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    enrolled_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
