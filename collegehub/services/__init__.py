"""CollegeHub Services Package"""

from collegehub.services.auth_service import AuthService
from collegehub.services.user_service import UserService
from collegehub.services.college_service import CollegeService
from collegehub.services.review_service import ReviewService
from collegehub.services.application_service import ApplicationService
from collegehub.services.rating_aggregator import RatingAggregator
from collegehub.services.audit_service import AuditService

__all__ = [
    "AuthService",
    "UserService",
    "CollegeService",
    "ReviewService",
    "ApplicationService",
    "RatingAggregator",
    "AuditService",
]
