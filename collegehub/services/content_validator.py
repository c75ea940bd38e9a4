"""
Content Validator

Heuristic spam and low-effort checks for review text. The validator only
reports problems; callers decide whether to reject.
"""

import re
from typing import Iterable, List, Optional

from collegehub.config import settings
from collegehub.models.review import ContentValidation

SPAM_MESSAGE = "Content appears to be spam"
WORD_COUNT_MESSAGE = "Review must contain at least 20 meaningful words"
LANGUAGE_MESSAGE = "Review contains inappropriate language"

MIN_MEANINGFUL_WORDS = 20

REPEATED_CHARS = re.compile(r"(.)\1{4,}")
ALL_CAPS = re.compile(r"[A-Z\s!]{20,}")
PROMOTIONAL = re.compile(
    r"(buy|sell|cheap|discount|offer|deal).{0,20}(now|today|click)", re.IGNORECASE
)


class ContentRejectedError(ValueError):
    """Raised when review text fails validation. Carries the individual reasons."""

    def __init__(self, errors: List[str]):
        super().__init__("Review content failed validation")
        self.errors = errors


def _is_spam(pattern: re.Pattern, text: str) -> bool:
    if pattern is ALL_CAPS:
        return pattern.fullmatch(text) is not None
    return pattern.search(text) is not None


def count_meaningful_words(content: str) -> int:
    """Whitespace-separated tokens longer than two characters."""
    return sum(1 for word in content.split() if len(word) > 2)


def validate_content(
    title: Optional[str],
    content: Optional[str],
    blocked_words: Optional[Iterable[str]] = None,
) -> ContentValidation:
    """
    Run the spam, length and language heuristics over a review.

    Each spam pattern that matches title or content adds its own spam
    message, so the same message can appear more than once. Never raises.
    """
    title = title or ""
    content = content or ""
    errors: List[str] = []

    for pattern in (REPEATED_CHARS, ALL_CAPS, PROMOTIONAL):
        if _is_spam(pattern, content) or _is_spam(pattern, title):
            errors.append(SPAM_MESSAGE)

    if count_meaningful_words(content) < MIN_MEANINGFUL_WORDS:
        errors.append(WORD_COUNT_MESSAGE)

    if blocked_words is None:
        blocked_words = settings.blocked_words_list

    lowered_title = title.lower()
    lowered_content = content.lower()
    if any(
        word and (word.lower() in lowered_content or word.lower() in lowered_title)
        for word in blocked_words
    ):
        errors.append(LANGUAGE_MESSAGE)

    return ContentValidation(is_valid=not errors, errors=errors)
