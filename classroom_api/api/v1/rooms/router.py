from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from classroom_api.auth.dependencies import get_current_user
from classroom_api.auth.schemas import CurrentUser
from classroom_api.core.exceptions import ServiceError
from classroom_api.core.schemas import ApiResponse
from classroom_api.db.session import get_db

from . import service
from .schemas import RoomCreate, RoomResponse

router = APIRouter(prefix="/v1", tags=["rooms"])


@router.post(
    "/classes/{class_id}/rooms",
    response_model=ApiResponse[RoomResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_room(
    class_id: UUID,
    payload: RoomCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ApiResponse[RoomResponse]:
    try:
        room = await service.create_room(db, current_user, class_id, payload)
        return ApiResponse(message="Room created successfully", data=room)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.delete("/rooms/{room_id}", response_model=ApiResponse[None])
async def delete_room(
    room_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ApiResponse[None]:
    try:
        await service.delete_room(db, current_user, room_id)
        return ApiResponse(message="Room deleted successfully")
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
