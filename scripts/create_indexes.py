"""
Database Index Creation Script

Creates the indexes the API relies on, including the unique
(user_id, college_id) review index and the unique college slug index.
Run this script after deployment or when setting up a new database.

Usage:
    python scripts/create_indexes.py
"""

import asyncio
import logging

from motor.motor_asyncio import AsyncIOMotorClient

from collegehub.config import settings
from collegehub.database import create_indexes

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def main():
    client = AsyncIOMotorClient(settings.mongodb_uri)
    db = client[settings.mongodb_database]

    logger.info("Creating database indexes...")
    await create_indexes(db)
    logger.info("All indexes created successfully!")

    client.close()


if __name__ == "__main__":
    asyncio.run(main())
