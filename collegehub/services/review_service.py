"""
Review Service

Handles review submission, editing, voting, reporting and moderation.

Content is checked by the content validator before every write that
touches title or content. Every write that changes a college's active
review set goes through `RatingAggregator.on_review_set_changed`.
"""

import logging
import re
import uuid
from typing import Any, Dict, List, Optional

from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from collegehub.database import get_db
from collegehub.models.review import (
    ModerationAction,
    Review,
    ReviewCreate,
    ReviewUpdate,
    VoterSet,
)
from collegehub.models.user import User
from collegehub.services.audit_service import AuditService
from collegehub.services.content_validator import ContentRejectedError, validate_content
from collegehub.services.rating_aggregator import RatingAggregator
from collegehub.services.review_scoring import score_review
from collegehub.utils.pagination import build_pagination, page_window, sort_direction
from collegehub.utils.timezone_utils import utc_now

logger = logging.getLogger(__name__)

SORT_FIELDS = {
    "created_at": "created_at",
    "updated_at": "updated_at",
    "rating": "ratings.overall",
    "helpful": "helpful.count",
}


def _voter_pipeline(field: str, user_id: str, add: bool) -> List[dict]:
    """Update pipeline that edits a voter set and re-derives its count in the same write."""
    current = {"$ifNull": [f"${field}.voters", []]}
    op = "$setUnion" if add else "$setDifference"
    return [
        {"$set": {f"{field}.voters": {op: [current, [user_id]]}}},
        {"$set": {f"{field}.count": {"$size": f"${field}.voters"}}},
    ]


def annotate_quality(review: dict) -> dict:
    """Attach the quality score and sentiment used for ranking and display."""
    review["quality"] = score_review(review).model_dump()
    return review


class ReviewService:
    """Service for managing college reviews."""

    def __init__(self):
        self.audit = AuditService()
        self.aggregator = RatingAggregator()

    # =========================================================================
    # Reads
    # =========================================================================

    def _build_query(
        self,
        college_id: Optional[str] = None,
        min_rating: Optional[int] = None,
        student_type: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Dict[str, Any]:
        query: Dict[str, Any] = {"is_active": True}

        if college_id:
            query["college_id"] = college_id
        if min_rating:
            query["ratings.overall"] = {"$gte": min_rating}
        if student_type and student_type != "all":
            query["student_type"] = student_type
        if search:
            pattern = {"$regex": re.escape(search), "$options": "i"}
            query["$or"] = [
                {"title": pattern},
                {"content": pattern},
                {"pros": pattern},
                {"cons": pattern},
            ]

        return query

    async def _populate(self, reviews: List[dict], with_college: bool = True) -> List[dict]:
        """Attach author name/avatar and college name/slug to each review."""
        if not reviews:
            return reviews

        db = get_db()

        user_ids = list({r["user_id"] for r in reviews})
        users = await db.users.find(
            {"user_id": {"$in": user_ids}}, {"_id": 0, "user_id": 1, "name": 1, "avatar": 1}
        ).to_list(length=None)
        users_by_id = {u["user_id"]: u for u in users}

        colleges_by_id = {}
        if with_college:
            college_ids = list({r["college_id"] for r in reviews})
            colleges = await db.colleges.find(
                {"college_id": {"$in": college_ids}},
                {"_id": 0, "college_id": 1, "name": 1, "slug": 1, "location": 1},
            ).to_list(length=None)
            colleges_by_id = {c["college_id"]: c for c in colleges}

        for review in reviews:
            review["user"] = users_by_id.get(review["user_id"])
            if with_college:
                review["college"] = colleges_by_id.get(review["college_id"])

        return reviews

    async def _find_page(
        self,
        query: Dict[str, Any],
        sort_by: str,
        sort_order: str,
        page: int,
        limit: int,
    ) -> tuple:
        """
        Fetch one page of reviews, each annotated with its quality score.

        Sorting by quality needs the score of every matching review, so that
        case loads the whole match set and pages in memory.
        """
        db = get_db()
        skip, limit = page_window(page, limit)
        direction = sort_direction(sort_order)

        total = await db.reviews.count_documents(query)

        if sort_by == "quality":
            docs = await db.reviews.find(query, {"_id": 0}).to_list(length=None)
            docs = [annotate_quality(d) for d in docs]
            docs.sort(key=lambda d: d["quality"]["score"], reverse=direction == -1)
            return docs[skip:skip + limit], total

        field = SORT_FIELDS.get(sort_by, "created_at")
        docs = await (
            db.reviews.find(query, {"_id": 0})
            .sort([(field, direction)])
            .skip(skip)
            .limit(limit)
            .to_list(length=limit)
        )
        return [annotate_quality(d) for d in docs], total

    async def list_reviews(
        self,
        college_id: Optional[str] = None,
        min_rating: Optional[int] = None,
        student_type: Optional[str] = None,
        search: Optional[str] = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
        page: int = 1,
        limit: int = 10,
    ) -> dict:
        db = get_db()
        query = self._build_query(college_id, min_rating, student_type, search)

        reviews, total = await self._find_page(query, sort_by, sort_order, page, limit)
        await self._populate(reviews)

        return {
            "reviews": reviews,
            "pagination": build_pagination(page, limit, total).model_dump(),
            "filter_options": {
                "ratings": [1, 2, 3, 4, 5],
                "student_types": await db.reviews.distinct("student_type", {"is_active": True}),
            },
        }

    async def list_college_reviews(
        self,
        college_id: str,
        min_rating: Optional[int] = None,
        student_type: Optional[str] = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
        page: int = 1,
        limit: int = 10,
    ) -> dict:
        """Reviews of one college plus rating and student-type distributions."""
        db = get_db()
        query = self._build_query(college_id, min_rating, student_type)

        reviews, total = await self._find_page(query, sort_by, sort_order, page, limit)
        await self._populate(reviews, with_college=False)

        match = {"$match": {"college_id": college_id, "is_active": True}}
        rating_distribution = await db.reviews.aggregate([
            match,
            {"$group": {"_id": "$ratings.overall", "count": {"$sum": 1}}},
            {"$sort": {"_id": -1}},
        ]).to_list(length=None)
        student_type_distribution = await db.reviews.aggregate([
            match,
            {"$group": {"_id": "$student_type", "count": {"$sum": 1}}},
        ]).to_list(length=None)

        return {
            "reviews": reviews,
            "pagination": build_pagination(page, limit, total).model_dump(),
            "distributions": {
                "ratings": rating_distribution,
                "student_types": student_type_distribution,
            },
        }

    async def get_review(self, review_id: str) -> Optional[dict]:
        doc = await get_db().reviews.find_one(
            {"review_id": review_id, "is_active": True}, {"_id": 0}
        )
        if not doc:
            return None

        (doc,) = await self._populate([annotate_quality(doc)])
        return doc

    async def get_user_reviews(self, user_id: str, page: int = 1, limit: int = 10) -> dict:
        query = {"user_id": user_id, "is_active": True}
        reviews, total = await self._find_page(query, "created_at", "desc", page, limit)
        await self._populate(reviews)

        return {
            "reviews": reviews,
            "pagination": build_pagination(page, limit, total).model_dump(),
        }

    # =========================================================================
    # Writes
    # =========================================================================

    def _check_content(self, title: str, content: str):
        result = validate_content(title, content)
        if not result.is_valid:
            logger.info(f"Rejected review content: {result.errors}")
            raise ContentRejectedError(result.errors)

    async def create_review(self, user: User, data: ReviewCreate) -> Optional[dict]:
        """
        Submit a review.

        Returns None if the college does not exist. Raises ContentRejectedError
        if the text fails the content checks and ValueError if the user has
        already reviewed the college.
        """
        db = get_db()

        college = await db.colleges.find_one({"college_id": data.college_id, "is_active": True})
        if not college:
            return None

        self._check_content(data.title, data.content)

        existing = await db.reviews.find_one(
            {"user_id": user.user_id, "college_id": data.college_id}
        )
        if existing:
            raise ValueError("You have already reviewed this college")

        review = Review(
            review_id=str(uuid.uuid4()),
            user_id=user.user_id,
            **data.model_dump(),
        )

        try:
            await db.reviews.insert_one(review.model_dump())
        except DuplicateKeyError:
            raise ValueError("You have already reviewed this college")

        await self.aggregator.on_review_set_changed(data.college_id)

        return await self.get_review(review.review_id)

    async def update_review(
        self, user_id: str, review_id: str, update: ReviewUpdate
    ) -> Optional[dict]:
        """
        Update the caller's own review.

        Ratings are merged per field. Returns None if the review does not
        exist or belongs to someone else.
        """
        db = get_db()

        doc = await db.reviews.find_one(
            {"review_id": review_id, "user_id": user_id, "is_active": True}
        )
        if not doc:
            return None

        changes = update.model_dump(exclude_unset=True, exclude_none=True)
        if not changes:
            return await self.get_review(review_id)

        if "title" in changes or "content" in changes:
            self._check_content(
                changes.get("title", doc["title"]), changes.get("content", doc["content"])
            )

        update_data = {k: v for k, v in changes.items() if k != "ratings"}
        for field, value in changes.get("ratings", {}).items():
            update_data[f"ratings.{field}"] = value
        update_data["updated_at"] = utc_now()

        await db.reviews.update_one({"review_id": review_id}, {"$set": update_data})
        await self.aggregator.on_review_set_changed(doc["college_id"])

        return await self.get_review(review_id)

    async def delete_review(self, user_id: str, review_id: str) -> bool:
        """Soft-delete the caller's own review."""
        db = get_db()

        doc = await db.reviews.find_one_and_update(
            {"review_id": review_id, "user_id": user_id, "is_active": True},
            {"$set": {"is_active": False, "updated_at": utc_now()}},
        )
        if not doc:
            return False

        await self.aggregator.on_review_set_changed(doc["college_id"])
        return True

    async def vote_helpful(
        self, user_id: str, review_id: str, helpful: bool = True
    ) -> Optional[dict]:
        """
        Add or withdraw a helpful vote. Repeated votes are no-ops.

        Returns the updated voter set and whether the caller has voted.
        """
        doc = await get_db().reviews.find_one_and_update(
            {"review_id": review_id, "is_active": True},
            _voter_pipeline("helpful", user_id, add=helpful),
            projection={"_id": 0, "helpful": 1},
            return_document=ReturnDocument.AFTER,
        )
        if not doc:
            return None

        votes = VoterSet(**doc.get("helpful", {}))
        return {"helpful": votes.model_dump(), "user_voted": user_id in votes}

    async def report_review(
        self, user_id: str, review_id: str, reason: Optional[str] = None
    ) -> bool:
        """
        Flag a review for moderation. Each user may report a review once.

        Returns False if the review does not exist.
        """
        db = get_db()

        doc = await db.reviews.find_one({"review_id": review_id, "is_active": True})
        if not doc:
            return False

        if user_id in VoterSet(**doc.get("reported", {})):
            raise ValueError("You have already reported this review")

        result = await db.reviews.update_one(
            {"review_id": review_id, "reported.voters": {"$ne": user_id}},
            _voter_pipeline("reported", user_id, add=True),
        )
        if result.modified_count == 0:
            raise ValueError("You have already reported this review")

        logger.info(f"Review {review_id} reported by {user_id}: {reason or 'no reason'}")
        return True

    # =========================================================================
    # Admin
    # =========================================================================

    async def get_reported_reviews(self, page: int = 1, limit: int = 20) -> dict:
        db = get_db()
        query = {"reported.count": {"$gt": 0}, "is_active": True}
        skip, limit = page_window(page, limit)

        total = await db.reviews.count_documents(query)
        reviews = await (
            db.reviews.find(query, {"_id": 0})
            .sort([("reported.count", -1), ("created_at", -1)])
            .skip(skip)
            .limit(limit)
            .to_list(length=limit)
        )
        await self._populate(reviews)

        return {
            "reviews": reviews,
            "pagination": build_pagination(page, limit, total).model_dump(),
        }

    async def moderate_review(
        self,
        admin: User,
        review_id: str,
        action: ModerationAction,
        reason: Optional[str] = None,
    ) -> bool:
        """
        Apply a moderation action.

        - approve: clears all reports
        - remove: deactivates the review and refreshes the college rating
        - warn: recorded in the audit log only
        """
        db = get_db()
        action = ModerationAction(action)

        doc = await db.reviews.find_one({"review_id": review_id})
        if not doc:
            return False

        if action == ModerationAction.REMOVE:
            await db.reviews.update_one(
                {"review_id": review_id},
                {"$set": {"is_active": False, "updated_at": utc_now()}},
            )
            await self.aggregator.on_review_set_changed(doc["college_id"])
        elif action == ModerationAction.APPROVE:
            await db.reviews.update_one(
                {"review_id": review_id},
                {"$set": {"reported": VoterSet().model_dump(), "updated_at": utc_now()}},
            )

        await self.audit.log_admin_action(
            admin_id=admin.user_id,
            admin_email=admin.email,
            action=f"review_{action.value}",
            target_type="review",
            target_id=review_id,
            reason=reason,
        )
        logger.info(f"Review {review_id} moderated ({action.value}) by {admin.user_id}")
        return True

    async def get_analytics(self, college_id: Optional[str] = None) -> dict:
        db = get_db()

        match: Dict[str, Any] = {"is_active": True}
        if college_id:
            match["college_id"] = college_id

        overview = await db.reviews.aggregate([
            {"$match": match},
            {
                "$group": {
                    "_id": None,
                    "total_reviews": {"$sum": 1},
                    "average_rating": {"$avg": "$ratings.overall"},
                    "recommendation_rate": {
                        "$avg": {"$cond": [{"$eq": ["$would_recommend", True]}, 1, 0]}
                    },
                    "total_helpful_votes": {"$sum": "$helpful.count"},
                    "total_reports": {"$sum": "$reported.count"},
                }
            },
            {"$project": {"_id": 0}},
        ]).to_list(length=None)

        rating_distribution = await db.reviews.aggregate([
            {"$match": match},
            {"$group": {"_id": "$ratings.overall", "count": {"$sum": 1}}},
            {"$sort": {"_id": 1}},
        ]).to_list(length=None)

        monthly_trends = await db.reviews.aggregate([
            {"$match": match},
            {
                "$group": {
                    "_id": {"year": {"$year": "$created_at"}, "month": {"$month": "$created_at"}},
                    "reviews": {"$sum": 1},
                    "average_rating": {"$avg": "$ratings.overall"},
                }
            },
            {"$sort": {"_id.year": 1, "_id.month": 1}},
            {"$limit": 12},
        ]).to_list(length=None)

        student_types = await db.reviews.aggregate([
            {"$match": match},
            {
                "$group": {
                    "_id": "$student_type",
                    "count": {"$sum": 1},
                    "average_rating": {"$avg": "$ratings.overall"},
                }
            },
        ]).to_list(length=None)

        return {
            "overview": overview[0] if overview else {},
            "distributions": {"ratings": rating_distribution, "student_types": student_types},
            "trends": monthly_trends,
        }
