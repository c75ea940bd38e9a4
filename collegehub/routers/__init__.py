"""CollegeHub Routers Package"""

from collegehub.routers import (
    auth,
    users,
    colleges,
    reviews,
    admissions,
)

__all__ = [
    "auth",
    "users",
    "colleges",
    "reviews",
    "admissions",
]
