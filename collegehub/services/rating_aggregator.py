"""
Rating Aggregator

Maintains the denormalized rating summary stored on each college.

Every code path that changes a college's set of active reviews (create,
update, soft-delete, moderation removal) calls `on_review_set_changed`,
which recomputes the whole summary from the active reviews and overwrites
the stored one.

Two overlapping writes for the same college may both recompute; whichever
writes last wins. Each write is a complete snapshot of the active set at
the time it was read, so the stored summary is always internally
consistent, at worst briefly stale.
"""

import logging
from typing import Any, Iterable, Mapping, Union

from collegehub.database import get_db
from collegehub.models.review import (
    BREAKDOWN_FIELDS,
    RatingBreakdown,
    RatingSummary,
    Review,
)
from collegehub.utils.rounding import round_half_up
from collegehub.utils.timezone_utils import utc_now

logger = logging.getLogger(__name__)

ReviewLike = Union[Review, Mapping[str, Any]]


def _as_dict(review: ReviewLike) -> Mapping[str, Any]:
    if isinstance(review, Review):
        return review.model_dump()
    return review


def compute_rating_summary(reviews: Iterable[ReviewLike]) -> RatingSummary:
    """
    Build a rating summary from a college's reviews.

    Inactive reviews are ignored. The overall average is rounded to one
    decimal; the per-category breakdown keeps full precision.
    """
    active = [r for r in map(_as_dict, reviews) if r.get("is_active", True)]
    if not active:
        return RatingSummary()

    total = len(active)
    overall = sum(r["ratings"]["overall"] for r in active) / total
    breakdown = {
        field: sum(r["ratings"][field] for r in active) / total
        for field in BREAKDOWN_FIELDS
    }

    return RatingSummary(
        average_rating=round_half_up(overall, 1),
        total_reviews=total,
        rating_breakdown=RatingBreakdown(**breakdown),
    )


class RatingAggregator:
    """Recomputes and persists college rating summaries."""

    async def recompute_college_rating(self, college_id: str) -> RatingSummary:
        """
        Recompute a college's rating summary and overwrite the stored one.

        The college's existence is not checked. Database errors propagate;
        the summary is fully computed before the single write.
        """
        db = get_db()

        reviews = await db.reviews.find(
            {"college_id": college_id, "is_active": True},
            {"ratings": 1, "is_active": 1},
        ).to_list(length=None)

        summary = compute_rating_summary(reviews)

        await db.colleges.update_one(
            {"college_id": college_id},
            {"$set": {"rating_summary": summary.model_dump(), "updated_at": utc_now()}},
        )

        logger.debug(
            f"Rating summary for {college_id}: avg={summary.average_rating} "
            f"total={summary.total_reviews}"
        )
        return summary

    async def on_review_set_changed(self, college_id: str) -> RatingSummary:
        """Single hook for any write that changes a college's active reviews."""
        return await self.recompute_college_rating(college_id)

    async def recompute_all(self) -> int:
        """Rebuild every college's summary. Returns the number of colleges processed."""
        db = get_db()
        college_ids = await db.colleges.distinct("college_id")

        for college_id in college_ids:
            await self.recompute_college_rating(college_id)

        logger.info(f"Recomputed rating summaries for {len(college_ids)} colleges")
        return len(college_ids)
