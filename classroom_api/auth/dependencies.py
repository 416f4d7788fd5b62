from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from classroom_api.auth.models import User
from classroom_api.auth.schemas import CurrentUser
from classroom_api.auth.security import decode_access_token
from classroom_api.db.session import get_db


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/v1/auth/login-oauth")


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> CurrentUser:
    """Resolve the authenticated user from the bearer access token."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = decode_access_token(token)
    except JWTError:
        raise credentials_exception

    user_id_str = payload.get("sub")
    token_version = payload.get("ver")
    if not user_id_str or token_version is None:
        raise credentials_exception

    try:
        user_id = UUID(user_id_str)
    except ValueError:
        raise credentials_exception

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    # Logout and re-login bump token_version; older tokens stop resolving.
    if not user or user.token_version != token_version:
        raise credentials_exception

    return CurrentUser(
        id=user.id,
        name=user.name,
        email=user.email,
        role=user.role,
    )
