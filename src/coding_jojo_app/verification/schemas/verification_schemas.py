from datetime import date, datetime
from typing import Dict, List, Optional
from uuid import UUID
from pydantic import BaseModel, Field, field_validator
from coding_jojo_app.verification.models.verification_models import (
    AdminReview, Address, EducationVerification, Portfolio, ProfessionalCertification,
    ProfessionalEducation, ProfessionalInfo, StepStates, StoredFile
)
from coding_jojo_app.verification.utils.verification_enums import (
    CertificateStatus, CertificateType, Gender, RecordStatus
)


class InitializeRequest(BaseModel):
    phone_number: str = Field(pattern=r"^\d{6,15}$")
    country_code: str = Field(default="+237", pattern=r"^\+\d{1,4}$")


class CodeRequest(BaseModel):
    code: str = Field(pattern=r"^\d{6}$")


class PersonalInfoRequest(BaseModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    date_of_birth: date
    gender: Optional[Gender] = None
    nationality: Optional[str] = Field(default=None, max_length=100)
    address: Optional[Address] = None

    @field_validator("first_name", "last_name")
    @classmethod
    def not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("date_of_birth")
    @classmethod
    def in_the_past(cls, value: date) -> date:
        if value >= date.today():
            raise ValueError("date of birth must be in the past")
        return value


class ProfessionalInfoRequest(BaseModel):
    expertise: List[str] = Field(default_factory=list, max_length=30)
    experience_years: int = Field(default=0, ge=0, le=80)
    education: List[ProfessionalEducation] = Field(default_factory=list, max_length=20)
    certifications: List[ProfessionalCertification] = Field(default_factory=list, max_length=50)
    portfolio: Portfolio = Field(default_factory=Portfolio)

    @field_validator("expertise")
    @classmethod
    def clean_expertise(cls, value: List[str]) -> List[str]:
        cleaned = []
        for item in value:
            item = item.strip()
            if item and item not in cleaned:
                cleaned.append(item)
        return cleaned


class CertificateUpdateRequest(BaseModel):
    certificate_type: Optional[CertificateType] = None
    institution_name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    field_of_study: Optional[str] = Field(default=None, min_length=1, max_length=200)
    graduation_year: Optional[int] = Field(default=None, ge=1900, le=2100)
    gpa: Optional[float] = Field(default=None, ge=0)


class CertificateResponse(BaseModel):
    id: UUID
    certificate_type: CertificateType
    institution_name: str
    field_of_study: str
    graduation_year: int
    gpa: Optional[float] = None
    document: Optional[StoredFile] = None
    verification_status: CertificateStatus
    verification_notes: Optional[str] = None
    verified_at: Optional[datetime] = None
    uploaded_at: datetime

    class Config:
        from_attributes = True


class VerificationStatusResponse(BaseModel):
    id: UUID
    verification_status: RecordStatus
    progress_percentage: int
    completed_count: int
    total_steps: int
    completed_steps: Dict[str, bool]
    step_states: StepStates
    education_verification: EducationVerification
    professional_info: Optional[ProfessionalInfo] = None
    admin_review: Optional[AdminReview] = None
    allow_resubmission: bool
    submitted_at: Optional[datetime] = None
    last_updated_at: datetime


class EducationSummaryResponse(BaseModel):
    certificates: List[CertificateResponse]
    overall_status: str
    minimum_requirement_met: bool
    requirement_message: Optional[str] = None
    progress_percentage: int
