"""
User Service

Profile, preferences, saved colleges and the student dashboard.
"""

import logging
from typing import List, Optional

from collegehub.database import get_db
from collegehub.models.user import PreferencesUpdate, ProfileUpdate, User
from collegehub.utils.timezone_utils import utc_now

logger = logging.getLogger(__name__)

COLLEGE_CARD_PROJECTION = {
    "_id": 0,
    "college_id": 1,
    "name": 1,
    "slug": 1,
    "location": 1,
    "images": 1,
    "type": 1,
    "rating_summary": 1,
}


class UserService:
    """Service for user profile management."""

    async def get_user(self, user_id: str) -> Optional[User]:
        doc = await get_db().users.find_one({"user_id": user_id})
        return User(**doc) if doc else None

    async def update_profile(self, user_id: str, update: ProfileUpdate) -> Optional[User]:
        """
        Update name and profile blocks.

        Only the fields present in the request are written; nested blocks
        (address, education, preferences) replace the stored block.
        """
        db = get_db()

        update_data = {}
        for key, value in update.model_dump(exclude_unset=True).items():
            if value is None:
                continue
            field = key if key == "name" else f"profile.{key}"
            update_data[field] = value

        if update_data:
            update_data["updated_at"] = utc_now()
            result = await db.users.update_one({"user_id": user_id}, {"$set": update_data})
            if result.matched_count == 0:
                return None

        return await self.get_user(user_id)

    async def update_preferences(
        self, user_id: str, update: PreferencesUpdate
    ) -> Optional[User]:
        update_data = {
            f"profile.preferences.{k}": v
            for k, v in update.model_dump(exclude_unset=True).items()
            if v is not None
        }
        if update_data:
            update_data["updated_at"] = utc_now()
            result = await get_db().users.update_one(
                {"user_id": user_id}, {"$set": update_data}
            )
            if result.matched_count == 0:
                return None

        return await self.get_user(user_id)

    async def get_saved_colleges(self, user_id: str) -> List[dict]:
        user = await self.get_user(user_id)
        if not user or not user.saved_colleges:
            return []

        return await get_db().colleges.find(
            {"college_id": {"$in": user.saved_colleges}}, COLLEGE_CARD_PROJECTION
        ).to_list(length=None)

    async def toggle_saved_college(self, user_id: str, college_id: str) -> Optional[bool]:
        """
        Save a college, or unsave it if already saved.

        Returns the new saved state, or None if the user or college does not exist.
        """
        db = get_db()

        user = await self.get_user(user_id)
        if not user:
            return None

        if not await db.colleges.find_one({"college_id": college_id, "is_active": True}):
            return None

        if college_id in user.saved_colleges:
            await db.users.update_one(
                {"user_id": user_id}, {"$pull": {"saved_colleges": college_id}}
            )
            return False

        await db.users.update_one(
            {"user_id": user_id}, {"$addToSet": {"saved_colleges": college_id}}
        )
        return True

    async def get_dashboard(self, user_id: str) -> Optional[dict]:
        """Saved colleges, applications, recommendations and deadlines in one call."""
        db = get_db()

        user = await self.get_user(user_id)
        if not user:
            return None

        saved = await self.get_saved_colleges(user_id)

        applications = await db.applications.find(
            {"applicant_id": user_id}, {"_id": 0}
        ).sort("created_at", -1).to_list(length=None)

        recommended = []
        majors = user.profile.preferences.interested_majors
        if majors:
            recommended = await db.colleges.find(
                {
                    "academics.programs.name": {"$in": majors},
                    "college_id": {"$nin": user.saved_colleges},
                    "is_active": True,
                },
                COLLEGE_CARD_PROJECTION,
            ).limit(6).to_list(length=6)

        upcoming = await db.colleges.find(
            {
                "admissions.application_deadlines.regular": {"$gte": utc_now()},
                "is_active": True,
            },
            {"_id": 0, "college_id": 1, "name": 1, "slug": 1, "admissions.application_deadlines": 1},
        ).sort("admissions.application_deadlines.regular", 1).limit(5).to_list(length=5)

        return {
            "user": user.model_dump(),
            "saved_colleges": saved,
            "applications": applications,
            "recommended_colleges": recommended,
            "upcoming_deadlines": upcoming,
            "stats": {
                "saved_colleges": len(saved),
                "applications": len(applications),
                "completed_applications": sum(
                    1 for a in applications if a.get("status") == "submitted"
                ),
            },
        }
