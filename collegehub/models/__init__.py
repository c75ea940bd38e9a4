"""CollegeHub Models Package"""

from collegehub.models.user import User, UserRole, ProfileUpdate, PreferencesUpdate
from collegehub.models.college import College, CollegeCreate, CollegeUpdate, CollegeType, CollegeSize
from collegehub.models.review import (
    Review, ReviewCreate, ReviewUpdate, Ratings, VoterSet,
    RatingSummary, RatingBreakdown, ReviewQuality, ContentValidation,
)
from collegehub.models.application import Application, ApplicationCreate, ApplicationUpdate, ApplicationStatus
from collegehub.models.audit_log import AuditLog, ActorType

__all__ = [
    "User", "UserRole", "ProfileUpdate", "PreferencesUpdate",
    "College", "CollegeCreate", "CollegeUpdate", "CollegeType", "CollegeSize",
    "Review", "ReviewCreate", "ReviewUpdate", "Ratings", "VoterSet",
    "RatingSummary", "RatingBreakdown", "ReviewQuality", "ContentValidation",
    "Application", "ApplicationCreate", "ApplicationUpdate", "ApplicationStatus",
    "AuditLog", "ActorType",
]
