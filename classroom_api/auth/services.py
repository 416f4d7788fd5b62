from typing import Optional

import structlog
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from classroom_api.auth.models import RefreshToken, User
from classroom_api.auth.schemas import (
    CurrentUser,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    TokenResponse,
    UserInfo,
)
from classroom_api.auth.security import (
    create_access_token,
    create_refresh_token,
    hash_password,
    verify_password,
)
from classroom_api.core.config import settings
from classroom_api.core.exceptions import (
    AuthenticationError,
    ConflictError,
    InternalError,
    NotFoundError,
)
from classroom_api.core.utils import as_utc, utcnow

logger = structlog.get_logger(__name__)


def _issue_access_token(user: User, expires_minutes: Optional[int] = None):
    return create_access_token(
        subject={
            "sub": str(user.id),
            "role": user.role,
            "ver": user.token_version,
            "iat": int(utcnow().timestamp()),
        },
        expires_minutes=expires_minutes,
    )


async def _get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(select(User).where(func.lower(User.email) == email.lower()))
    return result.scalar_one_or_none()


async def register_user(db: AsyncSession, payload: RegisterRequest) -> TokenResponse:
    if await _get_user_by_email(db, payload.email):
        raise ConflictError("Email is already in use")

    user = User(
        name=payload.name,
        email=payload.email.lower(),
        password_hash=hash_password(payload.password),
        role=payload.role.value,
        phone=payload.phone,
        image_url=payload.image_url,
        token_version=0,
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError("Email is already in use") from e
    await db.refresh(user)

    token, expires_at = _issue_access_token(user)
    logger.info("user_registered", user_id=str(user.id), role=user.role)
    return TokenResponse(
        user=UserInfo.model_validate(user),
        token=token,
        expires_at=expires_at,
    )


async def login_user(db: AsyncSession, payload: LoginRequest) -> TokenResponse:
    user = await _get_user_by_email(db, payload.email)
    if not user or not verify_password(payload.password, user.password_hash):
        raise AuthenticationError("The provided credentials are incorrect")

    # A new login revokes previous sessions: old access tokens carry a stale
    # version and stored refresh tokens are dropped.
    user.token_version = (user.token_version or 0) + 1
    await db.execute(delete(RefreshToken).where(RefreshToken.user_id == user.id))

    refresh_token_str: Optional[str] = None
    if payload.remember_me:
        refresh_token_str, refresh_expires_at = create_refresh_token()
        db.add(
            RefreshToken(
                user_id=user.id,
                token=refresh_token_str,
                expires_at=refresh_expires_at,
            )
        )
        expires_minutes = settings.remember_me_access_token_expire_minutes
    else:
        expires_minutes = settings.access_token_expire_minutes

    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise InternalError("Failed to persist authentication state") from e
    await db.refresh(user)

    token, expires_at = _issue_access_token(user, expires_minutes)
    logger.info("user_logged_in", user_id=str(user.id), remember_me=payload.remember_me)
    return TokenResponse(
        user=UserInfo.model_validate(user),
        token=token,
        expires_at=expires_at,
        refresh_token=refresh_token_str,
        remember_me_status="enabled" if payload.remember_me else "disabled",
    )


async def refresh_access_token(db: AsyncSession, payload: RefreshRequest) -> TokenResponse:
    result = await db.execute(select(RefreshToken).where(RefreshToken.token == payload.refresh_token))
    stored = result.scalar_one_or_none()
    if not stored:
        raise AuthenticationError("Invalid refresh token")

    if as_utc(stored.expires_at) <= utcnow():
        await db.delete(stored)
        await db.commit()
        raise AuthenticationError("Refresh token has expired")

    user = await db.get(User, stored.user_id)
    if not user:
        raise AuthenticationError("Invalid refresh token")

    token, expires_at = _issue_access_token(user, settings.remember_me_access_token_expire_minutes)
    return TokenResponse(
        user=UserInfo.model_validate(user),
        token=token,
        expires_at=expires_at,
        refresh_token=payload.refresh_token,
        remember_me_status="enabled",
    )


async def get_profile(db: AsyncSession, actor: CurrentUser) -> UserInfo:
    user = await db.get(User, actor.id)
    if not user:
        raise NotFoundError("User not found")
    return UserInfo.model_validate(user)


async def logout_user(db: AsyncSession, actor: CurrentUser) -> None:
    user = await db.get(User, actor.id)
    if not user:
        raise NotFoundError("User not found")
    user.token_version = (user.token_version or 0) + 1
    await db.execute(delete(RefreshToken).where(RefreshToken.user_id == user.id))
    await db.commit()
    logger.info("user_logged_out", user_id=str(user.id))
