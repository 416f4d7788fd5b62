from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from classroom_api.auth.dependencies import get_current_user
from classroom_api.auth.schemas import CurrentUser
from classroom_api.core.exceptions import ServiceError
from classroom_api.core.schemas import ApiResponse
from classroom_api.db.session import get_db
from classroom_api.storage.files import LocalFileStorage, get_file_storage

from . import service
from .schemas import AssignmentResponse, ClassAssignmentsResponse

router = APIRouter(prefix="/v1", tags=["assignments"])


@router.post(
    "/classes/{class_id}/assignments",
    response_model=ApiResponse[AssignmentResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_assignment(
    class_id: UUID,
    title: str = Form(..., max_length=255),
    description: str = Form(...),
    due_date: Optional[datetime] = Form(None),
    file: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
    storage: LocalFileStorage = Depends(get_file_storage),
) -> ApiResponse[AssignmentResponse]:
    try:
        obj = await service.create_assignment(
            db,
            current_user,
            class_id,
            title=title,
            description=description,
            due_date=due_date,
            upload=file,
            storage=storage,
        )
        return ApiResponse(message="Assignment created successfully", data=obj)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.get("/classes/{class_id}/assignments", response_model=ApiResponse[ClassAssignmentsResponse])
async def list_class_assignments(
    class_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ApiResponse[ClassAssignmentsResponse]:
    try:
        return ApiResponse(data=await service.list_class_assignments(db, current_user, class_id))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.get("/assignments/{assignment_id}", response_model=ApiResponse[AssignmentResponse])
async def get_assignment(
    assignment_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ApiResponse[AssignmentResponse]:
    try:
        return ApiResponse(data=await service.get_assignment(db, current_user, assignment_id))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.put("/assignments/{assignment_id}", response_model=ApiResponse[AssignmentResponse])
async def update_assignment(
    assignment_id: UUID,
    request: Request,
    title: Optional[str] = Form(None, max_length=255),
    description: Optional[str] = Form(None),
    due_date: Optional[datetime] = Form(None),
    file: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
    storage: LocalFileStorage = Depends(get_file_storage),
) -> ApiResponse[AssignmentResponse]:
    # Form parsing turns an empty due_date into None; an explicitly empty field clears the deadline.
    form = await request.form()
    clear_due_date = "due_date" in form and not form["due_date"]
    try:
        obj = await service.update_assignment(
            db,
            current_user,
            assignment_id,
            title=title,
            description=description,
            due_date=due_date,
            clear_due_date=clear_due_date,
            upload=file,
            storage=storage,
        )
        return ApiResponse(message="Assignment updated successfully", data=obj)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.delete("/assignments/{assignment_id}", response_model=ApiResponse[None])
async def delete_assignment(
    assignment_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
    storage: LocalFileStorage = Depends(get_file_storage),
) -> ApiResponse[None]:
    try:
        await service.delete_assignment(db, current_user, assignment_id, storage)
        return ApiResponse(message="Assignment deleted successfully")
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
