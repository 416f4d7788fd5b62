from typing import Dict

from fastapi import APIRouter, Depends, HTTPException
from fastapi import status as http_status
from fastapi.security import OAuth2PasswordRequestForm
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from classroom_api.auth.dependencies import get_current_user
from classroom_api.auth.schemas import (
    CurrentUser,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    TokenResponse,
    UserInfo,
)
from classroom_api.auth.services import (
    get_profile,
    login_user,
    logout_user,
    refresh_access_token,
    register_user,
)
from classroom_api.core.exceptions import ServiceError
from classroom_api.core.schemas import ApiResponse
from classroom_api.db.session import get_db

router = APIRouter(prefix="/v1/auth", tags=["auth"])

# Session endpoints for an already authenticated user live directly under /v1.
session_router = APIRouter(prefix="/v1", tags=["auth"])


@router.post(
    "/register",
    response_model=ApiResponse[TokenResponse],
    status_code=http_status.HTTP_201_CREATED,
)
async def register(
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[TokenResponse]:
    try:
        result = await register_user(db, payload)
        return ApiResponse(message="User registered successfully", data=result)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.post(
    "/login",
    response_model=ApiResponse[TokenResponse],
    status_code=http_status.HTTP_200_OK,
)
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[TokenResponse]:
    try:
        result = await login_user(db, payload)
        return ApiResponse(message="Login successful", data=result)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.post("/refresh", response_model=ApiResponse[TokenResponse])
async def refresh(
    payload: RefreshRequest,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[TokenResponse]:
    try:
        result = await refresh_access_token(db, payload)
        return ApiResponse(message="Token refreshed successfully", data=result)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.post("/login-oauth")
async def login_oauth(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, str]:
    """Form login for the interactive docs' Authorize button."""
    try:
        payload = LoginRequest(
            email=form_data.username.strip(),
            password=form_data.password,
        )
    except PydanticValidationError:
        raise HTTPException(
            status_code=http_status.HTTP_401_UNAUTHORIZED,
            detail="The provided credentials are incorrect",
        )
    try:
        result = await login_user(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
    return {
        "access_token": result.token,
        "token_type": "bearer",
    }


@session_router.get("/me", response_model=ApiResponse[UserInfo])
async def me(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ApiResponse[UserInfo]:
    try:
        return ApiResponse(data=await get_profile(db, current_user))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@session_router.post("/logout", response_model=ApiResponse[None])
async def logout(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ApiResponse[None]:
    try:
        await logout_user(db, current_user)
        return ApiResponse(message="Successfully logged out")
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
