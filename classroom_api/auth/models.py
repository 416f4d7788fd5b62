import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, Uuid

from classroom_api.core.utils import utcnow
from classroom_api.db.session import Base


class User(Base):
    """Teacher or student account. Role is fixed at registration."""

    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(Text, nullable=False)
    # Teacher | Student
    role = Column(String(20), nullable=False)
    phone = Column(String(20), nullable=True)
    image_url = Column(Text, nullable=True)
    # Embedded in access tokens; bumping it revokes every token issued before.
    token_version = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class RefreshToken(Base):
    """Stored refresh tokens, issued on remember-me logins."""

    __tablename__ = "refresh_tokens"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    token = Column(String(512), nullable=False, unique=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
