"""Mongo cursor mocks and sample documents shared by the service tests."""

from unittest.mock import AsyncMock, MagicMock


RATING_FIELDS = ("overall", "academics", "campus_life", "facilities", "location", "value")

TWENTY_WORDS = (
    "The engineering faculty were supportive and the campus library stayed open "
    "late during exam weeks which helped everyone study together"
)


def make_cursor(docs=None):
    """A motor cursor stand-in: chaining methods return itself, to_list returns `docs`."""
    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.skip.return_value = cursor
    cursor.limit.return_value = cursor
    cursor.to_list = AsyncMock(return_value=list(docs or []))
    return cursor


def review_doc(overall=4, college_id="college_1", is_active=True, **overrides):
    """A stored review document with every rating set to `overall` unless overridden."""
    ratings = {field: overall for field in RATING_FIELDS}
    ratings.update(overrides.pop("ratings", {}))
    doc = {
        "review_id": overrides.pop("review_id", "review_1"),
        "user_id": overrides.pop("user_id", "user_1"),
        "college_id": college_id,
        "ratings": ratings,
        "title": "Solid experience overall",
        "content": TWENTY_WORDS,
        "pros": [],
        "cons": [],
        "would_recommend": True,
        "student_type": "current",
        "helpful": {"voters": [], "count": 0},
        "reported": {"voters": [], "count": 0},
        "is_active": is_active,
    }
    doc.update(overrides)
    return doc
