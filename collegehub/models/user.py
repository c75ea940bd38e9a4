"""User Model - Defines the user schema for MongoDB persistence."""

from datetime import datetime, timezone
from enum import Enum
import re
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class UserRole(str, Enum):
    """User roles for RBAC."""
    STUDENT = "student"
    ADMIN = "admin"


class EducationLevel(str, Enum):
    HIGH_SCHOOL = "high-school"
    UNDERGRADUATE = "undergraduate"
    GRADUATE = "graduate"
    OTHER = "other"


class Address(BaseModel):
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None


class ExamScores(BaseModel):
    sat: Optional[int] = Field(None, ge=400, le=1600)
    act: Optional[int] = Field(None, ge=1, le=36)
    gre: Optional[int] = Field(None, ge=260, le=340)
    gmat: Optional[int] = Field(None, ge=200, le=800)


class Education(BaseModel):
    current_level: Optional[EducationLevel] = None
    gpa: Optional[float] = Field(None, ge=0, le=5)
    test_scores: ExamScores = Field(default_factory=ExamScores)

    model_config = ConfigDict(use_enum_values=True)


class BudgetRange(BaseModel):
    min: Optional[int] = Field(None, ge=0)
    max: Optional[int] = Field(None, ge=0)


class Preferences(BaseModel):
    interested_majors: List[str] = Field(default_factory=list)
    preferred_locations: List[str] = Field(default_factory=list)
    budget_range: BudgetRange = Field(default_factory=BudgetRange)


class Profile(BaseModel):
    phone: Optional[str] = None
    date_of_birth: Optional[datetime] = None
    address: Address = Field(default_factory=Address)
    education: Education = Field(default_factory=Education)
    preferences: Preferences = Field(default_factory=Preferences)


class User(BaseModel):
    """
    User model for MongoDB.

    Fields:
    - user_id: Internal immutable UUID
    - email: Unique, stored lowercase
    - password_hash: bcrypt hash, never returned by the API
    - role: student or admin
    - profile: contact, education and preference details
    - saved_colleges: college_ids bookmarked by the user
    - applications: application_ids created by the user
    - is_email_verified / email_verification_token
    - password_reset_token / password_reset_expires
    """
    user_id: str = Field(..., description="Internal UUID")
    name: str = Field(..., min_length=2, max_length=50)
    email: EmailStr
    password_hash: str = Field(..., exclude=True)
    avatar: str = ""
    role: UserRole = Field(default=UserRole.STUDENT)
    profile: Profile = Field(default_factory=Profile)
    saved_colleges: List[str] = Field(default_factory=list)
    applications: List[str] = Field(default_factory=list)
    is_email_verified: bool = False
    email_verification_token: Optional[str] = Field(None, exclude=True)
    password_reset_token: Optional[str] = Field(None, exclude=True)
    password_reset_expires: Optional[datetime] = Field(None, exclude=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = ConfigDict(use_enum_values=True)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()

    def to_document(self) -> dict:
        """Full document for MongoDB, including the fields hidden from the API."""
        doc = self.model_dump()
        doc.update(
            password_hash=self.password_hash,
            email_verification_token=self.email_verification_token,
            password_reset_token=self.password_reset_token,
            password_reset_expires=self.password_reset_expires,
        )
        return doc


class UserSummary(BaseModel):
    """Minimal user shape returned by auth endpoints."""
    user_id: str
    name: str
    email: str
    role: str


class ProfileUpdate(BaseModel):
    """Fields a user may change on their own profile. Nested blocks are merged."""
    name: Optional[str] = Field(None, min_length=2, max_length=50)
    phone: Optional[str] = None
    date_of_birth: Optional[datetime] = None
    address: Optional[Address] = None
    education: Optional[Education] = None
    preferences: Optional[Preferences] = None


class PreferencesUpdate(BaseModel):
    interested_majors: Optional[List[str]] = None
    preferred_locations: Optional[List[str]] = None
    budget_range: Optional[BudgetRange] = None


def check_password_strength(password: str) -> str:
    if len(password) < 6:
        raise ValueError("Password must be at least 6 characters")
    if not (re.search(r"[a-z]", password) and re.search(r"[A-Z]", password) and re.search(r"\d", password)):
        raise ValueError("Password must contain at least one lowercase letter, one uppercase letter, and one number")
    return password


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=50)
    email: EmailStr
    password: str

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("password")
    @classmethod
    def strong_password(cls, v: str) -> str:
        return check_password_strength(v)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1)
    password: str

    @field_validator("password")
    @classmethod
    def strong_password(cls, v: str) -> str:
        return check_password_strength(v)


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str

    @field_validator("new_password")
    @classmethod
    def strong_password(cls, v: str) -> str:
        return check_password_strength(v)


class VerifyEmailRequest(BaseModel):
    token: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    token: str
    user: UserSummary
