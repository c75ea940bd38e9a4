"""
Reviews Router

Public review listings, author actions and admin moderation.

Static paths (/user/..., /admin/..., /college/...) are declared before
/{review_id}.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from collegehub.dependencies import get_admin_user, get_current_user, get_optional_user
from collegehub.models.review import (
    HelpfulVoteRequest,
    ModerateRequest,
    ModerationAction,
    ReportRequest,
    ReviewCreate,
    ReviewUpdate,
)
from collegehub.models.user import User
from collegehub.services.content_validator import ContentRejectedError
from collegehub.services.review_service import ReviewService


router = APIRouter()
review_service = ReviewService()

SORT_PATTERN = "^(created_at|updated_at|rating|helpful|quality)$"

MODERATION_RESULTS = {
    ModerationAction.APPROVE: "approved",
    ModerationAction.REMOVE: "removed",
    ModerationAction.WARN: "warned",
}


def _not_found():
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Review not found")


def _rejected(e: ContentRejectedError):
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"message": str(e), "errors": e.errors},
    )


@router.get("")
async def list_reviews(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    college_id: Optional[str] = None,
    rating: Optional[int] = Query(None, ge=1, le=5),
    student_type: Optional[str] = None,
    search: Optional[str] = None,
    sort_by: str = Query("created_at", pattern=SORT_PATTERN),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
) -> dict:
    """
    List active reviews.

    Every review carries a `quality` block with its score and sentiment;
    `sort_by=quality` ranks by that score.
    """
    return await review_service.list_reviews(
        college_id=college_id,
        min_rating=rating,
        student_type=student_type,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
    )


@router.get("/college/{college_id}")
async def list_college_reviews(
    college_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    rating: Optional[int] = Query(None, ge=1, le=5),
    student_type: Optional[str] = None,
    sort_by: str = Query("created_at", pattern=SORT_PATTERN),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
) -> dict:
    return await review_service.list_college_reviews(
        college_id,
        min_rating=rating,
        student_type=student_type,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
    )


@router.get("/user/my-reviews")
async def get_my_reviews(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
) -> dict:
    return await review_service.get_user_reviews(current_user.user_id, page, limit)


@router.get("/admin/reported")
async def get_reported_reviews(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    admin: User = Depends(get_admin_user),
) -> dict:
    return await review_service.get_reported_reviews(page, limit)


@router.get("/admin/analytics")
async def get_review_analytics(
    college_id: Optional[str] = None, admin: User = Depends(get_admin_user)
) -> dict:
    return await review_service.get_analytics(college_id)


@router.post("/admin/{review_id}/moderate")
async def moderate_review(
    review_id: str, data: ModerateRequest, admin: User = Depends(get_admin_user)
) -> dict:
    """approve clears reports, remove hides the review, warn is audit-only."""
    if not await review_service.moderate_review(admin, review_id, data.action, data.reason):
        raise _not_found()
    return {"message": f"Review {MODERATION_RESULTS[data.action]} successfully"}


@router.get("/{review_id}")
async def get_review(
    review_id: str, current_user: Optional[User] = Depends(get_optional_user)
) -> dict:
    review = await review_service.get_review(review_id)
    if not review:
        raise _not_found()

    if current_user:
        review["user_voted"] = current_user.user_id in review.get("helpful", {}).get("voters", [])
    return review


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_review(
    data: ReviewCreate, current_user: User = Depends(get_current_user)
) -> dict:
    try:
        review = await review_service.create_review(current_user, data)
    except ContentRejectedError as e:
        raise _rejected(e)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if not review:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="College not found")
    return review


@router.put("/{review_id}")
async def update_review(
    review_id: str, update: ReviewUpdate, current_user: User = Depends(get_current_user)
) -> dict:
    try:
        review = await review_service.update_review(current_user.user_id, review_id, update)
    except ContentRejectedError as e:
        raise _rejected(e)

    if not review:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Review not found or unauthorized"
        )
    return review


@router.delete("/{review_id}")
async def delete_review(review_id: str, current_user: User = Depends(get_current_user)) -> dict:
    if not await review_service.delete_review(current_user.user_id, review_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Review not found or unauthorized"
        )
    return {"message": "Review deleted successfully"}


@router.post("/{review_id}/helpful")
async def vote_helpful(
    review_id: str,
    data: HelpfulVoteRequest = HelpfulVoteRequest(),
    current_user: User = Depends(get_current_user),
) -> dict:
    result = await review_service.vote_helpful(current_user.user_id, review_id, data.helpful)
    if not result:
        raise _not_found()
    return result


@router.post("/{review_id}/report")
async def report_review(
    review_id: str,
    data: ReportRequest = ReportRequest(),
    current_user: User = Depends(get_current_user),
) -> dict:
    try:
        found = await review_service.report_review(current_user.user_id, review_id, data.reason)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if not found:
        raise _not_found()
    return {"message": "Review reported successfully"}
