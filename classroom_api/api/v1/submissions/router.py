from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from classroom_api.auth.dependencies import get_current_user
from classroom_api.auth.schemas import CurrentUser
from classroom_api.core.exceptions import ServiceError
from classroom_api.core.schemas import ApiResponse
from classroom_api.db.session import get_db
from classroom_api.storage.files import LocalFileStorage, get_file_storage

from . import service
from .schemas import GradeRequest, GradeResponse, SubmissionItem, SubmitResponse

router = APIRouter(prefix="/v1", tags=["submissions"])


@router.post(
    "/assignments/{assignment_id}/submit",
    response_model=ApiResponse[SubmitResponse],
    status_code=status.HTTP_201_CREATED,
)
async def submit_assignment(
    assignment_id: UUID,
    response: Response,
    file: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
    storage: LocalFileStorage = Depends(get_file_storage),
) -> ApiResponse[SubmitResponse]:
    try:
        obj, created = await service.submit_assignment(db, current_user, assignment_id, file, storage)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
    if created:
        return ApiResponse(message="Assignment submitted successfully", data=obj)
    response.status_code = status.HTTP_200_OK
    return ApiResponse(message="Assignment resubmitted successfully", data=obj)


@router.get("/assignments/{assignment_id}/submissions", response_model=ApiResponse[List[SubmissionItem]])
async def list_submissions(
    assignment_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ApiResponse[List[SubmissionItem]]:
    try:
        return ApiResponse(data=await service.list_submissions(db, current_user, assignment_id))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.post("/submissions/{submission_id}/grade", response_model=ApiResponse[GradeResponse])
async def grade_submission(
    submission_id: UUID,
    payload: GradeRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ApiResponse[GradeResponse]:
    try:
        obj = await service.grade_submission(db, current_user, submission_id, payload)
        return ApiResponse(message="Submission graded successfully", data=obj)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
