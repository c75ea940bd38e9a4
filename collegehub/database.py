"""
CollegeHub Database Module

MongoDB connection management and index setup.
"""

import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from collegehub.config import settings

logger = logging.getLogger(__name__)


class MongoDB:
    """MongoDB connection manager."""

    client: Optional[AsyncIOMotorClient] = None
    db: Optional[AsyncIOMotorDatabase] = None


mongo = MongoDB()


async def create_indexes(db: AsyncIOMotorDatabase):
    """Create the indexes every collection relies on."""
    # Users
    await db.users.create_index("user_id", unique=True)
    await db.users.create_index("email", unique=True)

    # Colleges
    await db.colleges.create_index("college_id", unique=True)
    await db.colleges.create_index("slug", unique=True)
    await db.colleges.create_index([("name", "text"), ("description", "text")])
    await db.colleges.create_index([("location.city", 1), ("location.state", 1)])
    await db.colleges.create_index([("type", 1), ("size", 1)])
    await db.colleges.create_index([("rating_summary.average_rating", -1)])

    # Reviews: one review per (user, college)
    await db.reviews.create_index("review_id", unique=True)
    await db.reviews.create_index([("user_id", 1), ("college_id", 1)], unique=True)
    await db.reviews.create_index([("college_id", 1), ("is_active", 1)])
    await db.reviews.create_index([("reported.count", -1), ("created_at", -1)])

    # Applications: one per (applicant, college, program)
    await db.applications.create_index("application_id", unique=True)
    await db.applications.create_index(
        [("applicant_id", 1), ("college_id", 1), ("program", 1)], unique=True
    )
    await db.applications.create_index("status")

    # Audit logs
    await db.audit_logs.create_index("log_id", unique=True)
    await db.audit_logs.create_index("timestamp")
    await db.audit_logs.create_index("actor_id")


async def init_db():
    """Initialize MongoDB connection and create indexes."""
    mongo.client = AsyncIOMotorClient(settings.mongodb_uri)
    mongo.db = mongo.client[settings.mongodb_database]
    await create_indexes(mongo.db)
    logger.info(f"Connected to MongoDB database '{settings.mongodb_database}'")


async def close_db():
    """Close MongoDB connection."""
    if mongo.client:
        mongo.client.close()


def get_db() -> AsyncIOMotorDatabase:
    """Get database instance."""
    if mongo.db is None:
        raise RuntimeError("Database not initialized")
    return mongo.db
