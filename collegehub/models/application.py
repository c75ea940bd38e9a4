"""Application Model - Student admission applications."""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from collegehub.models.user import Address, ExamScores


class ApplicationStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under-review"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    WAITLISTED = "waitlisted"


class ApplicationDegree(str, Enum):
    ASSOCIATE = "associate"
    BACHELOR = "bachelor"
    MASTER = "master"
    DOCTORAL = "doctoral"


class PersonalInfo(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    date_of_birth: Optional[datetime] = None
    address: Address = Field(default_factory=Address)


class Recommendation(BaseModel):
    recommender_name: str
    recommender_email: Optional[EmailStr] = None
    relationship: Optional[str] = None
    letter_url: Optional[str] = None


class AcademicInfo(BaseModel):
    current_education: Optional[str] = None
    gpa: Optional[float] = Field(None, ge=0, le=5)
    test_scores: ExamScores = Field(default_factory=ExamScores)
    transcripts: List[str] = Field(default_factory=list)
    recommendations: List[Recommendation] = Field(default_factory=list)


class Essay(BaseModel):
    question: str
    response: str = ""
    word_count: int = 0


class Extracurricular(BaseModel):
    activity: str
    role: Optional[str] = None
    duration: Optional[str] = None
    description: Optional[str] = None


class WorkExperience(BaseModel):
    company: str
    position: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    description: Optional[str] = None


class ApplicationData(BaseModel):
    personal_info: PersonalInfo = Field(default_factory=PersonalInfo)
    academic_info: AcademicInfo = Field(default_factory=AcademicInfo)
    essays: List[Essay] = Field(default_factory=list)
    extracurriculars: List[Extracurricular] = Field(default_factory=list)
    work_experience: List[WorkExperience] = Field(default_factory=list)


class ApplicationDocument(BaseModel):
    name: str
    type: str
    url: str
    uploaded_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ApplicationNote(BaseModel):
    content: str
    added_by: str
    added_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ApplicationFees(BaseModel):
    application_fee: float = 0
    paid: bool = False
    paid_at: Optional[datetime] = None
    transaction_id: Optional[str] = None


class Application(BaseModel):
    """
    Application model for MongoDB.

    One application per (applicant, college, program). Only drafts may be
    edited, submitted or deleted by the applicant; every later status is
    set by an admin.
    """
    application_id: str = Field(..., description="Unique application ID")
    application_number: str = Field(..., description="Human readable APP-XXXXXX-XXXXX")
    applicant_id: str
    college_id: str
    program: str = Field(..., min_length=2)
    degree_level: ApplicationDegree
    application_data: ApplicationData = Field(default_factory=ApplicationData)
    documents: List[ApplicationDocument] = Field(default_factory=list)
    status: ApplicationStatus = ApplicationStatus.DRAFT
    submitted_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
    decision_date: Optional[datetime] = None
    notes: List[ApplicationNote] = Field(default_factory=list)
    fees: ApplicationFees = Field(default_factory=ApplicationFees)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = ConfigDict(use_enum_values=True)


class ApplicationCreate(BaseModel):
    college_id: str
    program: str = Field(..., min_length=2)
    degree_level: ApplicationDegree

    model_config = ConfigDict(use_enum_values=True, str_strip_whitespace=True)


class ApplicationUpdate(BaseModel):
    """Draft edits. Sections of `application_data` present in the request replace the stored ones."""
    application_data: Optional[dict] = None
    documents: Optional[List[ApplicationDocument]] = None


class ApplicationStatusUpdate(BaseModel):
    status: ApplicationStatus
    notes: Optional[str] = Field(None, max_length=2000)

    model_config = ConfigDict(use_enum_values=True)


class ApplicationProgress(BaseModel):
    sections: dict
    completed_sections: int
    total_sections: int
    percentage: int
    is_complete: bool
