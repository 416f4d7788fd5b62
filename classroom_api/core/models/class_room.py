"""Classes owned by a teacher. Model named ClassRoom to avoid Python 'class' keyword."""
import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String, Text, Uuid

from classroom_api.core.utils import utcnow
from classroom_api.db.session import Base


class ClassRoom(Base):
    """Class owned by one teacher; students find it by unique_code.

    Enrollments, rooms, materials and assignments reference it with ON DELETE CASCADE.
    """

    __tablename__ = "classes"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    unique_code = Column(String(10), nullable=False, unique=True, index=True)
    owner_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class Room(Base):
    """Sub-space of a class (e.g. a study group), listed in class details."""

    __tablename__ = "rooms"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    class_id = Column(Uuid(as_uuid=True), ForeignKey("classes.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
