"""College Model - Defines the college schema for MongoDB persistence."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from collegehub.models.review import RatingSummary


class CollegeType(str, Enum):
    PUBLIC = "public"
    PRIVATE = "private"
    COMMUNITY = "community"


class CollegeSize(str, Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


class DegreeLevel(str, Enum):
    ASSOCIATE = "associate"
    BACHELOR = "bachelor"
    MASTER = "master"
    DOCTORAL = "doctoral"
    CERTIFICATE = "certificate"


class Coordinates(BaseModel):
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)


class Location(BaseModel):
    address: Optional[str] = None
    city: str
    state: str
    country: str = "USA"
    zip_code: Optional[str] = None
    coordinates: Optional[Coordinates] = None


class CollegeImage(BaseModel):
    url: str
    caption: Optional[str] = None
    is_main: bool = False


class Program(BaseModel):
    name: str
    degree: Optional[DegreeLevel] = None
    department: Optional[str] = None
    duration: Optional[str] = None
    credits: Optional[int] = None

    model_config = ConfigDict(use_enum_values=True)


class Academics(BaseModel):
    programs: List[Program] = Field(default_factory=list)
    faculty_student_ratio: Optional[str] = None
    average_class_size: Optional[int] = None
    graduation_rate: Optional[float] = Field(None, ge=0, le=100)
    employment_rate: Optional[float] = Field(None, ge=0, le=100)


class ApplicationDeadlines(BaseModel):
    early_decision: Optional[datetime] = None
    early_action: Optional[datetime] = None
    regular: Optional[datetime] = None
    transfer: Optional[datetime] = None


class ScoreRange(BaseModel):
    min: Optional[int] = None
    max: Optional[int] = None


class AdmissionRequirements(BaseModel):
    gpa_minimum: Optional[float] = Field(None, ge=0, le=5)
    sat_range: Optional[ScoreRange] = None
    act_range: Optional[ScoreRange] = None
    required_documents: List[str] = Field(default_factory=list)
    essay_required: bool = False
    interview_required: bool = False


class Admissions(BaseModel):
    application_deadlines: ApplicationDeadlines = Field(default_factory=ApplicationDeadlines)
    requirements: AdmissionRequirements = Field(default_factory=AdmissionRequirements)
    acceptance_rate: Optional[float] = Field(None, ge=0, le=100)
    application_fee: Optional[float] = Field(None, ge=0)


class Tuition(BaseModel):
    in_state: Optional[float] = Field(None, ge=0)
    out_of_state: Optional[float] = Field(None, ge=0)
    international: Optional[float] = Field(None, ge=0)


class Costs(BaseModel):
    tuition: Tuition = Field(default_factory=Tuition)
    fees: Dict[str, float] = Field(default_factory=dict)
    room_and_board: Optional[float] = None
    books: Optional[float] = None
    personal_expenses: Optional[float] = None
    total_estimated: Optional[float] = None


class Contact(BaseModel):
    phone: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    admissions_office: Dict[str, str] = Field(default_factory=dict)


class Stats(BaseModel):
    total_students: Optional[int] = Field(None, ge=0)
    undergraduate_students: Optional[int] = Field(None, ge=0)
    graduate_students: Optional[int] = Field(None, ge=0)
    international_students: Optional[int] = Field(None, ge=0)
    average_age: Optional[float] = None


class College(BaseModel):
    """
    College model for MongoDB.

    `rating_summary` is a denormalized cache of the college's active reviews.
    It is only ever written by the rating aggregator; create and update
    requests cannot set it.
    """
    college_id: str = Field(..., description="Unique college ID")
    name: str = Field(..., min_length=2, max_length=100)
    slug: str
    description: str = Field(..., max_length=2000)
    location: Location
    images: List[CollegeImage] = Field(default_factory=list)
    type: CollegeType
    size: CollegeSize
    established_year: Optional[int] = Field(None, ge=1600)
    accreditation: List[str] = Field(default_factory=list)
    rankings: Dict[str, Any] = Field(default_factory=dict)
    academics: Academics = Field(default_factory=Academics)
    admissions: Admissions = Field(default_factory=Admissions)
    costs: Costs = Field(default_factory=Costs)
    financial_aid: Dict[str, Any] = Field(default_factory=dict)
    campus_life: Dict[str, Any] = Field(default_factory=dict)
    contact: Contact = Field(default_factory=Contact)
    stats: Stats = Field(default_factory=Stats)
    rating_summary: RatingSummary = Field(default_factory=RatingSummary)
    is_active: bool = True
    featured: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = ConfigDict(use_enum_values=True)


class CollegeCreate(BaseModel):
    """Data required to create a college. Slug is derived from the name when omitted."""
    name: str = Field(..., min_length=2, max_length=100)
    slug: Optional[str] = None
    description: str = Field(..., min_length=50, max_length=2000)
    location: Location
    images: List[CollegeImage] = Field(default_factory=list)
    type: CollegeType
    size: CollegeSize
    established_year: Optional[int] = Field(None, ge=1600)
    accreditation: List[str] = Field(default_factory=list)
    rankings: Dict[str, Any] = Field(default_factory=dict)
    academics: Academics = Field(default_factory=Academics)
    admissions: Admissions = Field(default_factory=Admissions)
    costs: Costs = Field(default_factory=Costs)
    financial_aid: Dict[str, Any] = Field(default_factory=dict)
    campus_life: Dict[str, Any] = Field(default_factory=dict)
    contact: Contact = Field(default_factory=Contact)
    stats: Stats = Field(default_factory=Stats)
    featured: bool = False

    model_config = ConfigDict(use_enum_values=True, str_strip_whitespace=True)


class CollegeUpdate(BaseModel):
    """Partial college update. Nested blocks replace the stored block."""
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    slug: Optional[str] = None
    description: Optional[str] = Field(None, min_length=50, max_length=2000)
    location: Optional[Location] = None
    images: Optional[List[CollegeImage]] = None
    type: Optional[CollegeType] = None
    size: Optional[CollegeSize] = None
    established_year: Optional[int] = Field(None, ge=1600)
    accreditation: Optional[List[str]] = None
    rankings: Optional[Dict[str, Any]] = None
    academics: Optional[Academics] = None
    admissions: Optional[Admissions] = None
    costs: Optional[Costs] = None
    financial_aid: Optional[Dict[str, Any]] = None
    campus_life: Optional[Dict[str, Any]] = None
    contact: Optional[Contact] = None
    stats: Optional[Stats] = None
    featured: Optional[bool] = None
    is_active: Optional[bool] = None

    model_config = ConfigDict(use_enum_values=True, str_strip_whitespace=True)
