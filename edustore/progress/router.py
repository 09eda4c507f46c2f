"""HTTP endpoints for course progress.

Provides:
- POST /v1/progress/{course_id}/consume - Mark a leaf consumed
- GET  /v1/progress/my - All own progress records
- GET  /v1/progress/{course_id} - Progress detail
"""

from uuid import UUID

from fastapi import APIRouter

from edustore.auth.dependencies import CurrentUser

from .dependencies import ProgressServiceDep
from .schemas import (
    ConsumptionResponse,
    CourseProgressResponse,
    ProgressListResponse,
    RecordConsumptionRequest,
)


router = APIRouter(prefix="/v1/progress", tags=["progress"])


@router.post(
    "/{course_id}/consume",
    response_model=ConsumptionResponse,
    summary="Record leaf consumption",
)
async def record_consumption(
    course_id: UUID,
    request: RecordConsumptionRequest,
    service: ProgressServiceDep,
    current_user: CurrentUser,
) -> ConsumptionResponse:
    """Mark a leaf of a course as consumed. Repeating it is a no-op."""
    return await service.record_consumption(current_user.id, course_id, request.leaf_id)


@router.get(
    "/my",
    response_model=ProgressListResponse,
    summary="List my progress",
)
async def list_my_progress(
    service: ProgressServiceDep,
    current_user: CurrentUser,
) -> ProgressListResponse:
    """List progress of every purchased course."""
    items = await service.list_user_progress(current_user.id)
    return ProgressListResponse(items=items, total=len(items))


@router.get(
    "/{course_id}",
    response_model=CourseProgressResponse,
    summary="Get course progress",
)
async def get_course_progress(
    course_id: UUID,
    service: ProgressServiceDep,
    current_user: CurrentUser,
) -> CourseProgressResponse:
    """Get progress detail of a purchased course."""
    return await service.get_progress(current_user.id, course_id)
