"""
Application Service

Student admission applications: drafting, progress tracking, submission
and admin review.
"""

import logging
import math
import random
import string
import time
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from pymongo.errors import DuplicateKeyError

from collegehub.database import get_db
from collegehub.models.application import (
    Application,
    ApplicationCreate,
    ApplicationData,
    ApplicationFees,
    ApplicationNote,
    ApplicationProgress,
    ApplicationStatus,
    ApplicationUpdate,
    PersonalInfo,
)
from collegehub.models.user import User
from collegehub.services.audit_service import AuditService
from collegehub.utils.pagination import build_pagination, page_window, sort_direction
from collegehub.utils.timezone_utils import ensure_utc, utc_now

logger = logging.getLogger(__name__)

PROGRESS_SECTIONS = (
    "personal_info",
    "academic_info",
    "essays",
    "extracurriculars",
    "work_experience",
)

MIN_ESSAY_LENGTH = 100

DEADLINE_TYPES = ("early_decision", "early_action", "regular", "transfer")

COLLEGE_SUMMARY_PROJECTION = {
    "_id": 0,
    "college_id": 1,
    "name": 1,
    "slug": 1,
    "location": 1,
    "images": 1,
    "admissions": 1,
}


def generate_application_number(now_ms: Optional[int] = None) -> str:
    """APP-<last 6 digits of epoch millis>-<5 random uppercase alphanumerics>."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    suffix = "".join(random.choices(string.ascii_uppercase + string.digits, k=5))
    return f"APP-{str(now_ms)[-6:]}-{suffix}"


def _section_complete(data: ApplicationData, section: str) -> bool:
    if section == "personal_info":
        p = data.personal_info
        return all([p.first_name, p.last_name, p.email, p.phone, p.date_of_birth])
    if section == "academic_info":
        return bool(data.academic_info.gpa and data.academic_info.current_education)
    if section == "essays":
        return bool(data.essays) and all(
            len(e.response or "") > MIN_ESSAY_LENGTH for e in data.essays
        )
    return bool(getattr(data, section))


def calculate_progress(data: ApplicationData) -> ApplicationProgress:
    """Per-section completion and overall percentage."""
    sections = {s: int(_section_complete(data, s)) for s in PROGRESS_SECTIONS}
    completed = sum(sections.values())
    total = len(PROGRESS_SECTIONS)

    return ApplicationProgress(
        sections=sections,
        completed_sections=completed,
        total_sections=total,
        percentage=int(completed / total * 100 + 0.5),
        is_complete=completed == total,
    )


def validate_for_submission(data: ApplicationData) -> List[str]:
    """Reasons the application cannot be submitted yet; empty when ready."""
    errors = []

    p = data.personal_info
    if not p.first_name:
        errors.append("First name is required")
    if not p.last_name:
        errors.append("Last name is required")
    if not p.email:
        errors.append("Email is required")
    if not p.phone:
        errors.append("Phone number is required")
    if not p.date_of_birth:
        errors.append("Date of birth is required")

    a = data.academic_info
    if not a.gpa:
        errors.append("GPA is required")
    if not a.current_education:
        errors.append("Current education level is required")

    if not data.essays:
        errors.append("At least one essay is required")
    else:
        for index, essay in enumerate(data.essays, start=1):
            if len(essay.response or "") < MIN_ESSAY_LENGTH:
                errors.append(f"Essay {index} must be at least {MIN_ESSAY_LENGTH} characters")

    return errors


class SubmissionError(ValueError):
    """Raised when a draft is missing required information."""

    def __init__(self, errors: List[str]):
        super().__init__("Application is incomplete")
        self.errors = errors


def _empty_status_counts() -> Dict[str, int]:
    return {status.value: 0 for status in ApplicationStatus}


class ApplicationService:
    """Service for managing admission applications."""

    def __init__(self):
        self.audit = AuditService()

    async def _attach_colleges(self, applications: List[dict]) -> List[dict]:
        if not applications:
            return applications

        college_ids = list({a["college_id"] for a in applications})
        colleges = await get_db().colleges.find(
            {"college_id": {"$in": college_ids}}, COLLEGE_SUMMARY_PROJECTION
        ).to_list(length=None)
        by_id = {c["college_id"]: c for c in colleges}

        for application in applications:
            application["college"] = by_id.get(application["college_id"])
        return applications

    async def _status_counts(self, match: Dict[str, Any]) -> Dict[str, int]:
        counts = _empty_status_counts()
        stats = await get_db().applications.aggregate([
            {"$match": match},
            {"$group": {"_id": "$status", "count": {"$sum": 1}}},
        ]).to_list(length=None)
        for stat in stats:
            counts[stat["_id"]] = stat["count"]
        return counts

    async def _get_own(self, user_id: str, application_id: str) -> Optional[Application]:
        doc = await get_db().applications.find_one(
            {"application_id": application_id, "applicant_id": user_id}
        )
        return Application(**doc) if doc else None

    # =========================================================================
    # Applicant
    # =========================================================================

    async def list_applications(
        self, user_id: str, status: Optional[str] = None, page: int = 1, limit: int = 10
    ) -> dict:
        db = get_db()

        query: Dict[str, Any] = {"applicant_id": user_id}
        if status and status != "all":
            query["status"] = status

        skip, limit = page_window(page, limit)
        applications = await (
            db.applications.find(query, {"_id": 0})
            .sort([("created_at", -1)])
            .skip(skip)
            .limit(limit)
            .to_list(length=limit)
        )
        total = await db.applications.count_documents(query)
        await self._attach_colleges(applications)

        return {
            "applications": applications,
            "pagination": build_pagination(page, limit, total).model_dump(),
            "stats": await self._status_counts({"applicant_id": user_id}),
        }

    async def get_application(self, user_id: str, application_id: str) -> Optional[dict]:
        doc = await get_db().applications.find_one(
            {"application_id": application_id, "applicant_id": user_id}, {"_id": 0}
        )
        if not doc:
            return None

        (doc,) = await self._attach_colleges([doc])
        doc["progress"] = calculate_progress(Application(**doc).application_data).model_dump()
        return doc

    async def create_application(self, user: User, data: ApplicationCreate) -> Optional[dict]:
        """
        Start a draft application.

        Personal info is pre-filled from the account and the fee from the
        college. Returns None if the college does not exist; raises
        ValueError on a duplicate (college, program).
        """
        db = get_db()

        college = await db.colleges.find_one({"college_id": data.college_id, "is_active": True})
        if not college:
            return None

        duplicate = {
            "applicant_id": user.user_id,
            "college_id": data.college_id,
            "program": data.program,
        }
        if await db.applications.find_one(duplicate):
            raise ValueError("You already have an application for this program at this college")

        first_name, _, last_name = user.name.partition(" ")
        application = Application(
            application_id=str(uuid.uuid4()),
            application_number=generate_application_number(),
            applicant_id=user.user_id,
            college_id=data.college_id,
            program=data.program,
            degree_level=data.degree_level,
            application_data=ApplicationData(
                personal_info=PersonalInfo(
                    first_name=first_name, last_name=last_name.strip(), email=user.email
                )
            ),
            fees=ApplicationFees(
                application_fee=(college.get("admissions") or {}).get("application_fee") or 0
            ),
        )

        try:
            await db.applications.insert_one(application.model_dump())
        except DuplicateKeyError:
            raise ValueError("You already have an application for this program at this college")

        await db.users.update_one(
            {"user_id": user.user_id},
            {"$addToSet": {"applications": application.application_id}},
        )
        logger.info(f"Application {application.application_number} created by {user.user_id}")

        return await self.get_application(user.user_id, application.application_id)

    async def update_application(
        self, user_id: str, application_id: str, update: ApplicationUpdate
    ) -> Optional[dict]:
        """Edit a draft. Sections present in the request replace the stored sections."""
        application = await self._get_own(user_id, application_id)
        if not application:
            return None

        if application.status != ApplicationStatus.DRAFT.value:
            raise ValueError("Cannot update application after submission")

        update_data: Dict[str, Any] = {}
        if update.application_data:
            merged = application.application_data.model_dump() | update.application_data
            update_data["application_data"] = ApplicationData(**merged).model_dump()
        if update.documents is not None:
            update_data["documents"] = [d.model_dump() for d in update.documents]

        if update_data:
            update_data["updated_at"] = utc_now()
            await get_db().applications.update_one(
                {"application_id": application_id}, {"$set": update_data}
            )

        return await self.get_application(user_id, application_id)

    async def get_progress(self, user_id: str, application_id: str) -> Optional[ApplicationProgress]:
        application = await self._get_own(user_id, application_id)
        if not application:
            return None
        return calculate_progress(application.application_data)

    async def submit_application(self, user_id: str, application_id: str) -> Optional[dict]:
        """Raises SubmissionError listing what is missing."""
        application = await self._get_own(user_id, application_id)
        if not application:
            return None

        if application.status != ApplicationStatus.DRAFT.value:
            raise ValueError("Application has already been submitted")

        errors = validate_for_submission(application.application_data)
        if errors:
            raise SubmissionError(errors)

        now = utc_now()
        await get_db().applications.update_one(
            {"application_id": application_id, "status": ApplicationStatus.DRAFT.value},
            {"$set": {
                "status": ApplicationStatus.SUBMITTED.value,
                "submitted_at": now,
                "updated_at": now,
            }},
        )
        logger.info(f"Application {application_id} submitted")

        return await self.get_application(user_id, application_id)

    async def delete_application(self, user_id: str, application_id: str) -> bool:
        db = get_db()

        application = await self._get_own(user_id, application_id)
        if not application:
            return False

        if application.status != ApplicationStatus.DRAFT.value:
            raise ValueError("Cannot delete submitted application")

        await db.applications.delete_one({"application_id": application_id})
        await db.users.update_one(
            {"user_id": user_id}, {"$pull": {"applications": application_id}}
        )
        return True

    async def get_upcoming_deadlines(self, limit: int = 10) -> List[dict]:
        """Future deadlines across active colleges, soonest first."""
        now = utc_now()
        _, limit = page_window(1, limit)

        colleges = await get_db().colleges.find(
            {
                "$or": [
                    {f"admissions.application_deadlines.{t}": {"$gte": now}}
                    for t in ("regular", "early_decision", "early_action")
                ],
                "is_active": True,
            },
            {
                "_id": 0,
                "college_id": 1,
                "name": 1,
                "slug": 1,
                "location": 1,
                "images": 1,
                "admissions.application_deadlines": 1,
            },
        ).limit(limit).to_list(length=limit)

        deadlines = []
        for college in colleges:
            dates = (college.get("admissions") or {}).get("application_deadlines") or {}
            for deadline_type in DEADLINE_TYPES:
                date = dates.get(deadline_type)
                if not isinstance(date, datetime) or ensure_utc(date) < now:
                    continue
                deadlines.append({
                    "college": {k: college.get(k) for k in ("college_id", "name", "slug", "location", "images")},
                    "type": deadline_type,
                    "date": date,
                    "days_until": math.ceil((ensure_utc(date) - now).total_seconds() / 86400),
                })

        deadlines.sort(key=lambda d: ensure_utc(d["date"]))
        return deadlines[:limit]

    # =========================================================================
    # Admin
    # =========================================================================

    async def admin_list_applications(
        self,
        status: Optional[str] = None,
        college_id: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
        sort_by: str = "submitted_at",
        sort_order: str = "desc",
    ) -> dict:
        db = get_db()

        query: Dict[str, Any] = {}
        if status and status != "all":
            query["status"] = status
        if college_id:
            query["college_id"] = college_id

        skip, limit = page_window(page, limit)
        applications = await (
            db.applications.find(query, {"_id": 0})
            .sort([(sort_by, sort_direction(sort_order))])
            .skip(skip)
            .limit(limit)
            .to_list(length=limit)
        )
        total = await db.applications.count_documents(query)
        await self._attach_colleges(applications)

        applicant_ids = list({a["applicant_id"] for a in applications})
        if applicant_ids:
            applicants = await db.users.find(
                {"user_id": {"$in": applicant_ids}},
                {"_id": 0, "user_id": 1, "name": 1, "email": 1, "profile": 1},
            ).to_list(length=None)
            by_id = {u["user_id"]: u for u in applicants}
            for application in applications:
                application["applicant"] = by_id.get(application["applicant_id"])

        return {
            "applications": applications,
            "pagination": build_pagination(page, limit, total).model_dump(),
            "stats": await self._status_counts({}),
        }

    async def update_status(
        self,
        admin: User,
        application_id: str,
        status: str,
        notes: Optional[str] = None,
    ) -> Optional[dict]:
        """Set a review outcome. Accept and reject also stamp the decision date."""
        db = get_db()
        status = ApplicationStatus(status)

        if status == ApplicationStatus.DRAFT:
            raise ValueError("Invalid status")

        doc = await db.applications.find_one({"application_id": application_id})
        if not doc:
            return None

        now = utc_now()
        update: Dict[str, Any] = {"$set": {"status": status.value, "reviewed_at": now, "updated_at": now}}
        if status in (ApplicationStatus.ACCEPTED, ApplicationStatus.REJECTED):
            update["$set"]["decision_date"] = now
        if notes:
            update["$push"] = {
                "notes": ApplicationNote(content=notes, added_by=admin.user_id).model_dump()
            }

        await db.applications.update_one({"application_id": application_id}, update)

        await self.audit.log_admin_action(
            admin_id=admin.user_id,
            admin_email=admin.email,
            action="application_status_changed",
            target_type="application",
            target_id=application_id,
            before_state={"status": doc.get("status")},
            after_state={"status": status.value},
        )

        return await db.applications.find_one({"application_id": application_id}, {"_id": 0})

    async def get_analytics(
        self, college_id: Optional[str] = None, year: Optional[int] = None
    ) -> dict:
        db = get_db()

        match: Dict[str, Any] = {}
        if college_id:
            match["college_id"] = college_id
        if year:
            match["submitted_at"] = {
                "$gte": datetime(year, 1, 1),
                "$lt": datetime(year + 1, 1, 1),
            }

        def count_if(status: str) -> dict:
            return {"$sum": {"$cond": [{"$eq": ["$status", status]}, 1, 0]}}

        overview = await db.applications.aggregate([
            {"$match": match},
            {
                "$group": {
                    "_id": None,
                    "total_applications": {"$sum": 1},
                    "submitted": {"$sum": {"$cond": [{"$ne": ["$status", "draft"]}, 1, 0]}},
                    "accepted": count_if("accepted"),
                    "rejected": count_if("rejected"),
                    "waitlisted": count_if("waitlisted"),
                    "under_review": count_if("under-review"),
                }
            },
            {"$project": {"_id": 0}},
        ]).to_list(length=None)

        trends = await db.applications.aggregate([
            {"$match": {**match, "submitted_at": match.get("submitted_at", {"$ne": None})}},
            {
                "$group": {
                    "_id": {"year": {"$year": "$submitted_at"}, "month": {"$month": "$submitted_at"}},
                    "applications": {"$sum": 1},
                    "accepted": count_if("accepted"),
                }
            },
            {"$sort": {"_id.year": 1, "_id.month": 1}},
        ]).to_list(length=None)

        college_stats = await db.applications.aggregate([
            {"$match": match},
            {
                "$group": {
                    "_id": "$college_id",
                    "applications": {"$sum": 1},
                    "accepted": count_if("accepted"),
                    "rejected": count_if("rejected"),
                }
            },
            {
                "$lookup": {
                    "from": "colleges",
                    "localField": "_id",
                    "foreignField": "college_id",
                    "as": "college",
                }
            },
            {"$unwind": "$college"},
            {
                "$project": {
                    "college_name": "$college.name",
                    "applications": 1,
                    "accepted": 1,
                    "rejected": 1,
                    "acceptance_rate": {
                        "$cond": [
                            {"$gt": ["$applications", 0]},
                            {"$multiply": [{"$divide": ["$accepted", "$applications"]}, 100]},
                            0,
                        ]
                    },
                }
            },
            {"$sort": {"applications": -1}},
        ]).to_list(length=None)

        return {
            "overview": overview[0] if overview else {},
            "trends": trends,
            "college_stats": college_stats,
        }
