from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from classroom_api.auth.dependencies import get_current_user
from classroom_api.auth.schemas import CurrentUser
from classroom_api.core.exceptions import ServiceError
from classroom_api.core.schemas import ApiResponse
from classroom_api.db.session import get_db

from . import service
from .schemas import JoinClassRequest, JoinClassResponse

router = APIRouter(prefix="/v1/classes", tags=["enrollments"])


@router.post("/join", response_model=ApiResponse[JoinClassResponse])
async def join_class(
    payload: JoinClassRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ApiResponse[JoinClassResponse]:
    try:
        data = await service.join_class(db, current_user, payload)
        return ApiResponse(message="Successfully joined the class", data=data)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.post("/{class_id}/leave", response_model=ApiResponse[None])
async def leave_class(
    class_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ApiResponse[None]:
    try:
        await service.leave_class(db, current_user, class_id)
        return ApiResponse(message="Successfully left the class")
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
