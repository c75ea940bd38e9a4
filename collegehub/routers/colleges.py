"""
Colleges Router

Public browsing endpoints plus admin management.

Static paths (/featured, /stats, ...) are declared before /{slug}.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from collegehub.dependencies import get_admin_user
from collegehub.models.college import CollegeCreate, CollegeUpdate
from collegehub.models.review import RatingSummary
from collegehub.models.user import User
from collegehub.services.college_service import CollegeService


router = APIRouter()
college_service = CollegeService()


def _not_found():
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="College not found")


@router.get("")
async def list_colleges(
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    search: Optional[str] = None,
    type: Optional[str] = None,
    size: Optional[str] = None,
    state: Optional[str] = None,
    min_tuition: Optional[float] = Query(None, ge=0),
    max_tuition: Optional[float] = Query(None, ge=0),
    min_rating: Optional[float] = Query(None, ge=0, le=5),
    featured: Optional[bool] = None,
    sort_by: str = "name",
    sort_order: str = Query("asc", pattern="^(asc|desc)$"),
) -> dict:
    return await college_service.list_colleges(
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
        search=search,
        type=type,
        size=size,
        state=state,
        min_tuition=min_tuition,
        max_tuition=max_tuition,
        min_rating=min_rating,
        featured=featured,
    )


@router.get("/featured")
async def get_featured(limit: int = Query(6, ge=1, le=50)) -> List[dict]:
    return await college_service.get_featured(limit)


@router.get("/search-suggestions")
async def search_suggestions(q: Optional[str] = None) -> List[dict]:
    return await college_service.get_suggestions(q)


@router.get("/stats")
async def get_stats() -> dict:
    return await college_service.get_stats()


@router.get("/{slug}")
async def get_college(slug: str) -> dict:
    """College detail with recent reviews and similar colleges."""
    result = await college_service.get_by_slug(slug)
    if not result:
        raise _not_found()
    return result


# =============================================================================
# Admin
# =============================================================================


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_college(
    data: CollegeCreate, admin: User = Depends(get_admin_user)
) -> dict:
    try:
        return await college_service.create_college(admin, data)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.put("/{college_id}")
async def update_college(
    college_id: str, update: CollegeUpdate, admin: User = Depends(get_admin_user)
) -> dict:
    try:
        college = await college_service.update_college(admin, college_id, update)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if not college:
        raise _not_found()
    return college


@router.delete("/{college_id}")
async def delete_college(college_id: str, admin: User = Depends(get_admin_user)) -> dict:
    if not await college_service.delete_college(admin, college_id):
        raise _not_found()
    return {"message": "College deleted successfully"}


@router.post("/{college_id}/toggle-featured")
async def toggle_featured(college_id: str, admin: User = Depends(get_admin_user)) -> dict:
    college = await college_service.toggle_featured(admin, college_id)
    if not college:
        raise _not_found()
    return college


@router.get("/{college_id}/analytics")
async def get_college_analytics(
    college_id: str, admin: User = Depends(get_admin_user)
) -> dict:
    analytics = await college_service.get_analytics(college_id)
    if not analytics:
        raise _not_found()
    return analytics


@router.post("/{college_id}/recompute-rating", response_model=RatingSummary)
async def recompute_rating(college_id: str, admin: User = Depends(get_admin_user)):
    """Rebuild the rating summary from the college's active reviews."""
    summary = await college_service.recompute_rating(admin, college_id)
    if not summary:
        raise _not_found()
    return summary
