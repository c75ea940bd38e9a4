"""Review Model - Student reviews of colleges and the college rating summary."""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
)


RATING_FIELDS = ("overall", "academics", "campus_life", "facilities", "location", "value")
BREAKDOWN_FIELDS = ("academics", "campus_life", "facilities", "location", "value")


class StudentType(str, Enum):
    CURRENT = "current"
    ALUMNI = "alumni"
    PARENT = "parent"
    FACULTY = "faculty"


class ModerationAction(str, Enum):
    APPROVE = "approve"
    REMOVE = "remove"
    WARN = "warn"


class Sentiment(str, Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class Ratings(BaseModel):
    """Six 1-5 sub-scores of a review."""
    overall: int = Field(..., ge=1, le=5)
    academics: int = Field(..., ge=1, le=5)
    campus_life: int = Field(..., ge=1, le=5)
    facilities: int = Field(..., ge=1, le=5)
    location: int = Field(..., ge=1, le=5)
    value: int = Field(..., ge=1, le=5)


class RatingsUpdate(BaseModel):
    overall: Optional[int] = Field(None, ge=1, le=5)
    academics: Optional[int] = Field(None, ge=1, le=5)
    campus_life: Optional[int] = Field(None, ge=1, le=5)
    facilities: Optional[int] = Field(None, ge=1, le=5)
    location: Optional[int] = Field(None, ge=1, le=5)
    value: Optional[int] = Field(None, ge=1, le=5)


class VoterSet(BaseModel):
    """
    A set of user ids with a derived count.

    `count` is computed from the voters and is stored alongside them only so
    Mongo can sort and filter on it; any stored count is ignored on load.
    """
    voters: List[str] = Field(default_factory=list)

    @field_validator("voters")
    @classmethod
    def unique_voters(cls, v: List[str]) -> List[str]:
        return list(dict.fromkeys(v))

    @computed_field
    @property
    def count(self) -> int:
        return len(self.voters)

    def __contains__(self, user_id: str) -> bool:
        return user_id in self.voters

    def add(self, user_id: str) -> bool:
        """Add a voter. Returns False if they had already voted."""
        if user_id in self.voters:
            return False
        self.voters.append(user_id)
        return True

    def remove(self, user_id: str) -> bool:
        """Remove a voter. Returns False if they had not voted."""
        if user_id not in self.voters:
            return False
        self.voters.remove(user_id)
        return True


def _check_short_items(items: List[str]) -> List[str]:
    items = [item.strip() for item in items]
    if len(items) > 10:
        raise ValueError("Maximum 10 items allowed")
    for item in items:
        if not 3 <= len(item) <= 100:
            raise ValueError("Each item must be between 3 and 100 characters")
    return items


class Review(BaseModel):
    """
    Review model for MongoDB.

    One review per (user_id, college_id), enforced by a unique index.
    Inactive reviews are soft-deleted: hidden from listings and excluded
    from the college rating summary.
    """
    review_id: str = Field(..., description="Unique review ID")
    user_id: str = Field(..., description="Author")
    college_id: str = Field(..., description="Reviewed college")
    ratings: Ratings
    title: str = Field(..., min_length=5, max_length=100)
    content: str = Field(..., min_length=50, max_length=2000)
    pros: List[str] = Field(default_factory=list)
    cons: List[str] = Field(default_factory=list)
    would_recommend: bool
    graduation_year: Optional[int] = None
    major: Optional[str] = Field(None, max_length=100)
    student_type: StudentType
    verified: bool = False
    helpful: VoterSet = Field(default_factory=VoterSet)
    reported: VoterSet = Field(default_factory=VoterSet)
    is_active: bool = True
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = ConfigDict(use_enum_values=True)


class ReviewCreate(BaseModel):
    """Data required to submit a review."""
    college_id: str
    title: str = Field(..., min_length=5, max_length=100, pattern=r"^[a-zA-Z0-9\s.,!?'-]+$")
    content: str = Field(..., min_length=50, max_length=2000)
    ratings: Ratings
    pros: List[str] = Field(default_factory=list)
    cons: List[str] = Field(default_factory=list)
    would_recommend: bool
    student_type: StudentType
    graduation_year: Optional[int] = Field(None, ge=1950)
    major: Optional[str] = Field(None, max_length=100)

    model_config = ConfigDict(use_enum_values=True, str_strip_whitespace=True)

    @field_validator("pros", "cons")
    @classmethod
    def check_items(cls, v: List[str]) -> List[str]:
        return _check_short_items(v)

    @field_validator("graduation_year")
    @classmethod
    def check_graduation_year(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v > datetime.now(timezone.utc).year + 10:
            raise ValueError("Invalid graduation year")
        return v


class ReviewUpdate(BaseModel):
    """Fields the author may change. Ratings are merged field by field."""
    title: Optional[str] = Field(None, min_length=5, max_length=100)
    content: Optional[str] = Field(None, min_length=50, max_length=2000)
    ratings: Optional[RatingsUpdate] = None
    pros: Optional[List[str]] = None
    cons: Optional[List[str]] = None
    would_recommend: Optional[bool] = None
    graduation_year: Optional[int] = Field(None, ge=1950)
    major: Optional[str] = Field(None, max_length=100)

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("pros", "cons")
    @classmethod
    def check_items(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return None if v is None else _check_short_items(v)


class HelpfulVoteRequest(BaseModel):
    helpful: bool = True


class ReportRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class ModerateRequest(BaseModel):
    action: ModerationAction
    reason: Optional[str] = Field(None, max_length=500)


class RatingBreakdown(BaseModel):
    academics: float = Field(0, ge=0, le=5)
    campus_life: float = Field(0, ge=0, le=5)
    facilities: float = Field(0, ge=0, le=5)
    location: float = Field(0, ge=0, le=5)
    value: float = Field(0, ge=0, le=5)


class RatingSummary(BaseModel):
    """
    Denormalized rating summary stored on a college.

    Written only by the rating aggregator. With no active reviews every
    field is zero.
    """
    average_rating: float = Field(0, ge=0, le=5)
    total_reviews: int = Field(0, ge=0)
    rating_breakdown: RatingBreakdown = Field(default_factory=RatingBreakdown)


class ReviewQuality(BaseModel):
    score: float
    sentiment: Sentiment

    model_config = ConfigDict(use_enum_values=True)


class ContentValidation(BaseModel):
    is_valid: bool
    errors: List[str] = Field(default_factory=list)
