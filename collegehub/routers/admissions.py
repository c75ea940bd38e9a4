"""
Admissions Router

Applicant-side application management and the admin review queue.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from collegehub.dependencies import get_admin_user, get_current_user
from collegehub.models.application import (
    ApplicationCreate,
    ApplicationProgress,
    ApplicationStatusUpdate,
    ApplicationUpdate,
)
from collegehub.models.user import User
from collegehub.services.application_service import ApplicationService, SubmissionError


router = APIRouter()
application_service = ApplicationService()


def _not_found():
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Application not found")


@router.get("/applications")
async def list_applications(
    status_filter: Optional[str] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
) -> dict:
    return await application_service.list_applications(
        current_user.user_id, status_filter, page, limit
    )


@router.get("/applications/{application_id}")
async def get_application(
    application_id: str, current_user: User = Depends(get_current_user)
) -> dict:
    application = await application_service.get_application(current_user.user_id, application_id)
    if not application:
        raise _not_found()
    return application


@router.post("/applications", status_code=status.HTTP_201_CREATED)
async def create_application(
    data: ApplicationCreate, current_user: User = Depends(get_current_user)
) -> dict:
    try:
        application = await application_service.create_application(current_user, data)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if not application:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="College not found")
    return application


@router.put("/applications/{application_id}")
async def update_application(
    application_id: str,
    update: ApplicationUpdate,
    current_user: User = Depends(get_current_user),
) -> dict:
    """Only drafts can be edited."""
    try:
        application = await application_service.update_application(
            current_user.user_id, application_id, update
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if not application:
        raise _not_found()
    return application


@router.get("/applications/{application_id}/progress", response_model=ApplicationProgress)
async def get_progress(application_id: str, current_user: User = Depends(get_current_user)):
    progress = await application_service.get_progress(current_user.user_id, application_id)
    if not progress:
        raise _not_found()
    return progress


@router.post("/applications/{application_id}/submit")
async def submit_application(
    application_id: str, current_user: User = Depends(get_current_user)
) -> dict:
    try:
        application = await application_service.submit_application(
            current_user.user_id, application_id
        )
    except SubmissionError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": str(e), "errors": e.errors},
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if not application:
        raise _not_found()
    return application


@router.delete("/applications/{application_id}")
async def delete_application(
    application_id: str, current_user: User = Depends(get_current_user)
) -> dict:
    try:
        deleted = await application_service.delete_application(
            current_user.user_id, application_id
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if not deleted:
        raise _not_found()
    return {"message": "Application deleted successfully"}


@router.get("/deadlines")
async def get_deadlines(
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
) -> List[dict]:
    return await application_service.get_upcoming_deadlines(limit)


# =============================================================================
# Admin
# =============================================================================


@router.get("/admin/applications")
async def admin_list_applications(
    status_filter: Optional[str] = Query(None, alias="status"),
    college_id: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    sort_by: str = Query("submitted_at", pattern="^(submitted_at|created_at|updated_at|status)$"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    admin: User = Depends(get_admin_user),
) -> dict:
    return await application_service.admin_list_applications(
        status=status_filter,
        college_id=college_id,
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
    )


@router.put("/admin/applications/{application_id}/status")
async def update_application_status(
    application_id: str,
    data: ApplicationStatusUpdate,
    admin: User = Depends(get_admin_user),
) -> dict:
    try:
        application = await application_service.update_status(
            admin, application_id, data.status, data.notes
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if not application:
        raise _not_found()
    return application


@router.get("/admin/analytics")
async def get_admission_analytics(
    college_id: Optional[str] = None,
    year: Optional[int] = Query(None, ge=1900, le=2100),
    admin: User = Depends(get_admin_user),
) -> dict:
    return await application_service.get_analytics(college_id, year)
