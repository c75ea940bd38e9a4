"""
Rebuild every college's rating summary from its active reviews.

Use after bulk imports or manual edits to the reviews collection.

Usage:
    python scripts/recompute_ratings.py
"""

import asyncio
import logging

from collegehub.database import close_db, init_db
from collegehub.services.audit_service import AuditService
from collegehub.services.rating_aggregator import RatingAggregator

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def main():
    await init_db()
    try:
        processed = await RatingAggregator().recompute_all()
        await AuditService().log_system_action(
            action="ratings_recomputed",
            metadata={"colleges": processed},
        )
        logger.info(f"Done: {processed} colleges")
    finally:
        await close_db()


if __name__ == "__main__":
    asyncio.run(main())
