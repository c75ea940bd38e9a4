"""
College Service

Search, detail pages, statistics and admin management of colleges.
"""

import logging
import re
import uuid
from typing import Any, Dict, List, Optional

from collegehub.database import get_db
from collegehub.models.college import College, CollegeCreate, CollegeUpdate
from collegehub.models.review import RatingSummary
from collegehub.models.user import User
from collegehub.services.audit_service import AuditService
from collegehub.services.rating_aggregator import RatingAggregator
from collegehub.services.review_scoring import score_review
from collegehub.utils.pagination import build_pagination, page_window, sort_direction
from collegehub.utils.slugify import generate_unique_slug, slugify
from collegehub.utils.timezone_utils import utc_now

logger = logging.getLogger(__name__)

SORT_FIELDS = {
    "rating": "rating_summary.average_rating",
    "tuition": "costs.tuition.out_of_state",
    "students": "stats.total_students",
}

CARD_PROJECTION = {
    "_id": 0,
    "college_id": 1,
    "name": 1,
    "slug": 1,
    "location": 1,
    "images": 1,
    "rating_summary": 1,
}


class CollegeService:
    """Service for browsing and managing colleges."""

    def __init__(self):
        self.audit = AuditService()
        self.aggregator = RatingAggregator()

    # =========================================================================
    # Public reads
    # =========================================================================

    def build_search_query(
        self,
        search: Optional[str] = None,
        type: Optional[str] = None,
        size: Optional[str] = None,
        state: Optional[str] = None,
        min_tuition: Optional[float] = None,
        max_tuition: Optional[float] = None,
        min_rating: Optional[float] = None,
        featured: Optional[bool] = None,
    ) -> Dict[str, Any]:
        query: Dict[str, Any] = {"is_active": True}

        if search:
            pattern = {"$regex": re.escape(search), "$options": "i"}
            query["$or"] = [
                {"name": pattern},
                {"description": pattern},
                {"location.city": pattern},
                {"location.state": pattern},
                {"academics.programs.name": pattern},
            ]

        if type and type != "all":
            query["type"] = type
        if size and size != "all":
            query["size"] = size
        if state and state != "all":
            query["location.state"] = state

        if min_tuition is not None or max_tuition is not None:
            tuition: Dict[str, float] = {}
            if min_tuition is not None:
                tuition["$gte"] = min_tuition
            if max_tuition is not None:
                tuition["$lte"] = max_tuition
            query["costs.tuition.out_of_state"] = tuition

        if min_rating is not None:
            query["rating_summary.average_rating"] = {"$gte": min_rating}

        if featured:
            query["featured"] = True

        return query

    async def list_colleges(
        self,
        page: int = 1,
        limit: int = 12,
        sort_by: str = "name",
        sort_order: str = "asc",
        **filters,
    ) -> dict:
        db = get_db()
        query = self.build_search_query(**filters)
        skip, limit = page_window(page, limit)
        field = SORT_FIELDS.get(sort_by, sort_by)

        colleges = await (
            db.colleges.find(query, {"_id": 0})
            .sort([(field, sort_direction(sort_order))])
            .skip(skip)
            .limit(limit)
            .to_list(length=limit)
        )
        total = await db.colleges.count_documents(query)

        return {
            "colleges": colleges,
            "pagination": build_pagination(page, limit, total).model_dump(),
            "filter_options": await self.get_filter_options(),
        }

    async def get_filter_options(self) -> dict:
        db = get_db()
        active = {"is_active": True}

        tuition = await db.colleges.aggregate([
            {"$match": active},
            {
                "$group": {
                    "_id": None,
                    "min": {"$min": "$costs.tuition.out_of_state"},
                    "max": {"$max": "$costs.tuition.out_of_state"},
                }
            },
            {"$project": {"_id": 0}},
        ]).to_list(length=None)

        return {
            "types": await db.colleges.distinct("type", active),
            "sizes": await db.colleges.distinct("size", active),
            "states": await db.colleges.distinct("location.state", active),
            "tuition_range": tuition[0] if tuition else {"min": None, "max": None},
        }

    async def get_featured(self, limit: int = 6) -> List[dict]:
        _, limit = page_window(1, limit)
        return await (
            get_db().colleges.find({"featured": True, "is_active": True}, {"_id": 0})
            .sort([("rating_summary.average_rating", -1)])
            .limit(limit)
            .to_list(length=limit)
        )

    async def get_suggestions(self, q: Optional[str]) -> List[dict]:
        """Name/city/state matches for search-as-you-type. Needs at least 2 characters."""
        if not q or len(q) < 2:
            return []

        pattern = {"$regex": re.escape(q), "$options": "i"}
        return await get_db().colleges.find(
            {
                "$or": [
                    {"name": pattern},
                    {"location.city": pattern},
                    {"location.state": pattern},
                ],
                "is_active": True,
            },
            {"_id": 0, "college_id": 1, "name": 1, "slug": 1, "location.city": 1, "location.state": 1},
        ).limit(10).to_list(length=10)

    async def get_stats(self) -> dict:
        db = get_db()
        match = {"$match": {"is_active": True}}

        overview = await db.colleges.aggregate([
            match,
            {
                "$group": {
                    "_id": None,
                    "total_colleges": {"$sum": 1},
                    "average_rating": {"$avg": "$rating_summary.average_rating"},
                    "total_students": {"$sum": "$stats.total_students"},
                    "average_tuition": {"$avg": "$costs.tuition.out_of_state"},
                }
            },
            {"$project": {"_id": 0}},
        ]).to_list(length=None)

        types = await db.colleges.aggregate([
            match, {"$group": {"_id": "$type", "count": {"$sum": 1}}},
        ]).to_list(length=None)
        sizes = await db.colleges.aggregate([
            match, {"$group": {"_id": "$size", "count": {"$sum": 1}}},
        ]).to_list(length=None)
        states = await db.colleges.aggregate([
            match,
            {"$group": {"_id": "$location.state", "count": {"$sum": 1}}},
            {"$sort": {"count": -1}},
            {"$limit": 10},
        ]).to_list(length=None)

        return {
            "overview": overview[0] if overview else {},
            "distributions": {"types": types, "sizes": sizes, "states": states},
        }

    async def get_college(self, college_id: str) -> Optional[dict]:
        return await get_db().colleges.find_one({"college_id": college_id}, {"_id": 0})

    async def get_by_slug(self, slug: str) -> Optional[dict]:
        """College detail with its five latest reviews and up to four similar colleges."""
        db = get_db()

        college = await db.colleges.find_one({"slug": slug, "is_active": True}, {"_id": 0})
        if not college:
            return None

        recent_reviews = await (
            db.reviews.find({"college_id": college["college_id"], "is_active": True}, {"_id": 0})
            .sort([("created_at", -1)])
            .limit(5)
            .to_list(length=5)
        )
        for review in recent_reviews:
            review["quality"] = score_review(review).model_dump()

        similar = await db.colleges.find(
            {
                "college_id": {"$ne": college["college_id"]},
                "$or": [
                    {"type": college.get("type")},
                    {"size": college.get("size")},
                    {"location.state": college.get("location", {}).get("state")},
                ],
                "is_active": True,
            },
            CARD_PROJECTION,
        ).limit(4).to_list(length=4)

        return {"college": college, "recent_reviews": recent_reviews, "similar_colleges": similar}

    # =========================================================================
    # Admin
    # =========================================================================

    async def create_college(self, admin: User, data: CollegeCreate) -> dict:
        """
        Create a college. The rating summary always starts at zero.

        Raises ValueError if an explicit slug is already taken.
        """
        db = get_db()
        college_id = str(uuid.uuid4())

        if data.slug:
            slug = slugify(data.slug)
            if await db.colleges.find_one({"slug": slug}):
                raise ValueError("College with this slug already exists")
        else:
            slug = await generate_unique_slug(db.colleges, data.name)

        college = College(
            college_id=college_id,
            slug=slug,
            rating_summary=RatingSummary(),
            **data.model_dump(exclude={"slug"}),
        )
        await db.colleges.insert_one(college.model_dump())

        await self.audit.log_admin_action(
            admin_id=admin.user_id,
            admin_email=admin.email,
            action="college_created",
            target_type="college",
            target_id=college_id,
        )
        logger.info(f"College {college_id} created with slug {slug}")

        return await self.get_college(college_id)

    async def update_college(
        self, admin: User, college_id: str, update: CollegeUpdate
    ) -> Optional[dict]:
        """Raises ValueError on a slug collision. Returns None if not found."""
        db = get_db()

        existing = await self.get_college(college_id)
        if not existing:
            return None

        update_data = update.model_dump(exclude_unset=True)
        if "slug" in update_data:
            if not update_data["slug"]:
                del update_data["slug"]
            else:
                update_data["slug"] = slugify(update_data["slug"])
                if update_data["slug"] != existing["slug"] and await db.colleges.find_one(
                    {"slug": update_data["slug"], "college_id": {"$ne": college_id}}
                ):
                    raise ValueError("College with this slug already exists")

        if update_data:
            update_data["updated_at"] = utc_now()
            await db.colleges.update_one({"college_id": college_id}, {"$set": update_data})

        await self.audit.log_admin_action(
            admin_id=admin.user_id,
            admin_email=admin.email,
            action="college_updated",
            target_type="college",
            target_id=college_id,
            after_state={k: v for k, v in update_data.items() if k != "updated_at"},
        )

        return await self.get_college(college_id)

    async def delete_college(self, admin: User, college_id: str) -> bool:
        """Soft delete."""
        result = await get_db().colleges.update_one(
            {"college_id": college_id},
            {"$set": {"is_active": False, "updated_at": utc_now()}},
        )
        if result.matched_count == 0:
            return False

        await self.audit.log_admin_action(
            admin_id=admin.user_id,
            admin_email=admin.email,
            action="college_deleted",
            target_type="college",
            target_id=college_id,
        )
        return True

    async def toggle_featured(self, admin: User, college_id: str) -> Optional[dict]:
        db = get_db()

        college = await self.get_college(college_id)
        if not college:
            return None

        featured = not college.get("featured", False)
        await db.colleges.update_one(
            {"college_id": college_id},
            {"$set": {"featured": featured, "updated_at": utc_now()}},
        )
        college["featured"] = featured

        await self.audit.log_admin_action(
            admin_id=admin.user_id,
            admin_email=admin.email,
            action="college_featured" if featured else "college_unfeatured",
            target_type="college",
            target_id=college_id,
        )
        return college

    async def get_analytics(self, college_id: str) -> Optional[dict]:
        db = get_db()

        college = await self.get_college(college_id)
        if not college:
            return None

        match = {"$match": {"college_id": college_id, "is_active": True}}
        reviews = await db.reviews.aggregate([
            match,
            {
                "$group": {
                    "_id": None,
                    "total_reviews": {"$sum": 1},
                    "average_overall": {"$avg": "$ratings.overall"},
                    "average_academics": {"$avg": "$ratings.academics"},
                    "average_campus_life": {"$avg": "$ratings.campus_life"},
                    "average_facilities": {"$avg": "$ratings.facilities"},
                    "average_location": {"$avg": "$ratings.location"},
                    "average_value": {"$avg": "$ratings.value"},
                    "recommendation_rate": {
                        "$avg": {"$cond": [{"$eq": ["$would_recommend", True]}, 1, 0]}
                    },
                }
            },
            {"$project": {"_id": 0}},
        ]).to_list(length=None)

        trends = await db.reviews.aggregate([
            match,
            {
                "$group": {
                    "_id": {"year": {"$year": "$created_at"}, "month": {"$month": "$created_at"}},
                    "count": {"$sum": 1},
                    "average_rating": {"$avg": "$ratings.overall"},
                }
            },
            {"$sort": {"_id.year": 1, "_id.month": 1}},
            {"$limit": 12},
        ]).to_list(length=None)

        return {
            "college": college,
            "analytics": {"reviews": reviews[0] if reviews else {}, "trends": trends},
        }

    async def recompute_rating(self, admin: User, college_id: str) -> Optional[RatingSummary]:
        """Rebuild one college's rating summary from its active reviews."""
        if not await self.get_college(college_id):
            return None

        summary = await self.aggregator.recompute_college_rating(college_id)
        await self.audit.log_admin_action(
            admin_id=admin.user_id,
            admin_email=admin.email,
            action="college_rating_recomputed",
            target_type="college",
            target_id=college_id,
            after_state=summary.model_dump(),
        )
        return summary
