from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from classroom_api.auth.dependencies import get_current_user
from classroom_api.auth.schemas import CurrentUser
from classroom_api.core.exceptions import ServiceError
from classroom_api.core.schemas import ApiResponse
from classroom_api.db.session import get_db

from . import service
from .schemas import ClassMaterialsResponse, MaterialCreate, MaterialResponse, MaterialUpdate

router = APIRouter(prefix="/v1", tags=["materials"])


@router.post(
    "/classes/{class_id}/materials",
    response_model=ApiResponse[MaterialResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_material(
    class_id: UUID,
    payload: MaterialCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ApiResponse[MaterialResponse]:
    try:
        material = await service.create_material(db, current_user, class_id, payload)
        return ApiResponse(message="Material created successfully", data=material)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.get("/classes/{class_id}/class-material", response_model=ApiResponse[ClassMaterialsResponse])
async def list_class_materials(
    class_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ApiResponse[ClassMaterialsResponse]:
    try:
        return ApiResponse(data=await service.list_class_materials(db, current_user, class_id))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.get("/materials/{material_id}", response_model=ApiResponse[MaterialResponse])
async def get_material(
    material_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ApiResponse[MaterialResponse]:
    try:
        return ApiResponse(data=await service.get_material(db, current_user, material_id))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.put("/materials/{material_id}", response_model=ApiResponse[MaterialResponse])
async def update_material(
    material_id: UUID,
    payload: MaterialUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ApiResponse[MaterialResponse]:
    try:
        material = await service.update_material(db, current_user, material_id, payload)
        return ApiResponse(message="Material updated successfully", data=material)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.delete("/materials/{material_id}", response_model=ApiResponse[None])
async def delete_material(
    material_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ApiResponse[None]:
    try:
        await service.delete_material(db, current_user, material_id)
        return ApiResponse(message="Material deleted successfully")
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
