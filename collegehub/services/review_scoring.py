"""Review quality score and sentiment, used to rank and annotate review listings."""

from typing import Any, Mapping, Union

from collegehub.models.review import RATING_FIELDS, Review, ReviewQuality, Sentiment
from collegehub.utils.rounding import round_half_up

RATING_WEIGHTS = {
    "overall": 0.3,
    "academics": 0.2,
    "campus_life": 0.15,
    "facilities": 0.15,
    "location": 0.1,
    "value": 0.1,
}

HELPFUL_WEIGHT = 0.1
HELPFUL_CAP = 2.0
REPORT_WEIGHT = 0.5
REPORT_CAP = 3.0


def _vote_count(votes: Any) -> int:
    """Size of a voter set, tolerating missing or partial documents."""
    if not votes:
        return 0
    if isinstance(votes, Mapping):
        voters = votes.get("voters")
        if voters is not None:
            return len(set(voters))
        return int(votes.get("count") or 0)
    return votes.count


def score_review(review: Union[Review, Mapping[str, Any]]) -> ReviewQuality:
    """
    Score a single review snapshot.

    score = weighted ratings + helpful boost - report penalty + content score,
    floored at 0 and rounded to one decimal. Missing pros, cons, helpful and
    reported are treated as empty.
    """
    if isinstance(review, Review):
        review = review.model_dump()

    ratings = review["ratings"]
    pros = len(review.get("pros") or [])
    cons = len(review.get("cons") or [])

    weighted = sum(ratings[field] * weight for field, weight in RATING_WEIGHTS.items())
    helpful_boost = min(_vote_count(review.get("helpful")) * HELPFUL_WEIGHT, HELPFUL_CAP)
    report_penalty = min(_vote_count(review.get("reported")) * REPORT_WEIGHT, REPORT_CAP)
    content_score = min(len(review.get("content") or "") / 200 + (pros + cons) * 0.2, 1.0)

    score = max(0.0, weighted + helpful_boost - report_penalty + content_score)

    mean_rating = sum(ratings[field] for field in RATING_FIELDS) / len(RATING_FIELDS)
    recommends = bool(review.get("would_recommend"))

    if mean_rating >= 4 and recommends and pros > cons:
        sentiment = Sentiment.POSITIVE
    elif mean_rating <= 2 and not recommends and cons > pros:
        sentiment = Sentiment.NEGATIVE
    else:
        sentiment = Sentiment.NEUTRAL

    return ReviewQuality(score=round_half_up(score, 1), sentiment=sentiment)
