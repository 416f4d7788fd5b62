from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from classroom_api.auth.dependencies import get_current_user
from classroom_api.auth.schemas import CurrentUser
from classroom_api.core.exceptions import ServiceError
from classroom_api.core.schemas import ApiResponse
from classroom_api.db.session import get_db
from classroom_api.storage.files import LocalFileStorage, get_file_storage

from .schemas import (
    AvailableClassItem,
    ClassCreate,
    ClassDetailResponse,
    ClassResponse,
    ClassUpdate,
    EnrolledClassItem,
    MyClassItem,
    OtherClassItem,
)
from . import service

router = APIRouter(prefix="/v1/classes", tags=["classes"])


@router.post(
    "",
    response_model=ApiResponse[ClassResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_class(
    payload: ClassCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ApiResponse[ClassResponse]:
    try:
        obj = await service.create_class(db, current_user, payload)
        return ApiResponse(message="Class created successfully", data=obj)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


# Static paths are registered before "/{class_id}" so they are not captured by it.
@router.get("/my-classes", response_model=ApiResponse[List[MyClassItem]])
async def list_my_classes(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ApiResponse[List[MyClassItem]]:
    try:
        return ApiResponse(data=await service.list_my_classes(db, current_user))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.get("/other-teachers", response_model=ApiResponse[List[OtherClassItem]])
async def list_other_teachers_classes(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ApiResponse[List[OtherClassItem]]:
    try:
        return ApiResponse(data=await service.list_other_teachers_classes(db, current_user))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.get("/available", response_model=ApiResponse[List[AvailableClassItem]])
async def list_available_classes(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ApiResponse[List[AvailableClassItem]]:
    try:
        return ApiResponse(data=await service.list_available_classes(db, current_user))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.get("/enrolled", response_model=ApiResponse[List[EnrolledClassItem]])
async def list_enrolled_classes(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ApiResponse[List[EnrolledClassItem]]:
    try:
        return ApiResponse(data=await service.list_enrolled_classes(db, current_user))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.put("/update/{class_id}", response_model=ApiResponse[ClassResponse])
async def update_class(
    class_id: UUID,
    payload: ClassUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ApiResponse[ClassResponse]:
    try:
        obj = await service.update_class(db, current_user, class_id, payload)
        return ApiResponse(message="Class updated successfully", data=obj)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.delete("/delete/{class_id}", response_model=ApiResponse[None])
async def delete_class(
    class_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
    storage: LocalFileStorage = Depends(get_file_storage),
) -> ApiResponse[None]:
    try:
        await service.delete_class(db, current_user, class_id, storage)
        return ApiResponse(message="Class deleted successfully")
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.get("/{class_id}", response_model=ApiResponse[ClassDetailResponse])
async def get_class_details(
    class_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ApiResponse[ClassDetailResponse]:
    try:
        return ApiResponse(data=await service.get_class_details(db, current_user, class_id))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
