from beanie import before_event, Insert, Replace, Save
from pymongo import ASCENDING, DESCENDING, IndexModel
from pydantic import BaseModel, Field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4
from coding_jojo_app.core.base.base import BaseCollection
from coding_jojo_app.verification.utils.education import sync_education
from coding_jojo_app.verification.utils.state_machine import completed_steps_from
from coding_jojo_app.verification.utils.verification_enums import (
    CertificateStatus, CertificateType, DocumentType, EducationStatus, Gender,
    RecordStatus, ReviewOutcome, StepState
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class StoredFile(BaseModel):
    url: str
    path: str
    size: int
    content_type: str
    uploaded_at: datetime = Field(default_factory=_now)


class ReviewInfo(BaseModel):
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[UUID] = None
    rejection_reason: Optional[str] = None


class CodeVerification(BaseModel):
    code_hash: Optional[str] = None
    code_expires_at: Optional[datetime] = None
    attempts: int = 0
    last_code_sent_at: Optional[datetime] = None
    verified_at: Optional[datetime] = None


class PhoneVerification(CodeVerification):
    phone_number: str
    country_code: str = "+237"

    @property
    def full_number(self) -> str:
        return f"{self.country_code}{self.phone_number}"


class Address(BaseModel):
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = None


class PersonalInfo(ReviewInfo):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    date_of_birth: Optional[datetime] = None
    gender: Optional[Gender] = None
    nationality: Optional[str] = None
    address: Optional[Address] = None
    submitted_at: Optional[datetime] = None


class IdDocuments(ReviewInfo):
    document_type: Optional[DocumentType] = None
    front_image: Optional[StoredFile] = None
    back_image: Optional[StoredFile] = None


class SelfieInfo(ReviewInfo):
    image: Optional[StoredFile] = None


class Certificate(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    certificate_type: CertificateType
    institution_name: str
    field_of_study: str
    graduation_year: int
    gpa: Optional[float] = None
    document: Optional[StoredFile] = None
    verification_status: CertificateStatus = CertificateStatus.PENDING
    verification_notes: Optional[str] = None
    verified_by: Optional[UUID] = None
    verified_at: Optional[datetime] = None
    uploaded_at: datetime = Field(default_factory=_now)


class EducationVerification(BaseModel):
    certificates: List[Certificate] = Field(default_factory=list)
    # derived by sync_education, never set from a request
    minimum_requirement_met: bool = False
    overall_status: EducationStatus = EducationStatus.PENDING
    admin_notes: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[UUID] = None

    def find_certificate(self, certificate_id: UUID) -> Optional[Certificate]:
        return next((cert for cert in self.certificates if cert.id == certificate_id), None)


class ProfessionalEducation(BaseModel):
    degree: str
    institution: str
    graduation_year: Optional[int] = None


class ProfessionalCertification(BaseModel):
    name: str
    issuer: Optional[str] = None
    issue_date: Optional[datetime] = None
    expiry_date: Optional[datetime] = None
    credential_url: Optional[str] = None


class PortfolioProject(BaseModel):
    title: str
    description: Optional[str] = None
    url: Optional[str] = None
    technologies: List[str] = Field(default_factory=list)


class Portfolio(BaseModel):
    website: Optional[str] = None
    github: Optional[str] = None
    linkedin: Optional[str] = None
    projects: List[PortfolioProject] = Field(default_factory=list)


class ProfessionalInfo(BaseModel):
    """Optional background shown to reviewers. Not one of the six steps."""
    expertise: List[str] = Field(default_factory=list)
    experience_years: int = 0
    education: List[ProfessionalEducation] = Field(default_factory=list)
    certifications: List[ProfessionalCertification] = Field(default_factory=list)
    portfolio: Portfolio = Field(default_factory=Portfolio)
    submitted_at: Optional[datetime] = None


class StepStates(BaseModel):
    email: StepState = StepState.NOT_STARTED
    phone: StepState = StepState.NOT_STARTED
    personal_info: StepState = StepState.NOT_STARTED
    id_document: StepState = StepState.NOT_STARTED
    selfie: StepState = StepState.NOT_STARTED
    education_certificate: StepState = StepState.NOT_STARTED


class AdminReview(BaseModel):
    reviewed_by: UUID
    reviewed_at: datetime = Field(default_factory=_now)
    outcome: ReviewOutcome
    notes: Optional[str] = None
    feedback: Optional[str] = None
    required_fields: List[str] = Field(default_factory=list)


class HistoryEntry(BaseModel):
    step: str
    action: str
    status: str
    details: Optional[Dict[str, Any]] = None
    performed_by: Optional[UUID] = None
    timestamp: datetime = Field(default_factory=_now)


class VerificationRecord(BaseCollection):
    """
    One instructor's verification progress. `completed_steps` and the
    education summary are derived on every write from `step_states` and the
    certificate list.
    """
    instructor: UUID

    step_states: StepStates = Field(default_factory=StepStates)
    completed_steps: Dict[str, bool] = Field(default_factory=lambda: completed_steps_from(StepStates()))

    email_verification: CodeVerification = Field(default_factory=CodeVerification)
    phone_verification: PhoneVerification
    personal_info: PersonalInfo = Field(default_factory=PersonalInfo)
    id_documents: IdDocuments = Field(default_factory=IdDocuments)
    selfie: SelfieInfo = Field(default_factory=SelfieInfo)
    education_verification: EducationVerification = Field(default_factory=EducationVerification)
    professional_info: Optional[ProfessionalInfo] = None

    verification_status: RecordStatus = RecordStatus.PENDING
    allow_resubmission: bool = True
    admin_review: Optional[AdminReview] = None
    suspension_reason: Optional[str] = None
    suspension_days: Optional[int] = None
    history: List[HistoryEntry] = Field(default_factory=list)

    submitted_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None
    suspended_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=_now)
    last_updated_at: datetime = Field(default_factory=_now)

    @before_event([Insert, Save, Replace])
    def refresh_derived_state(self):
        sync_education(self)
        self.completed_steps = completed_steps_from(self.step_states)
        self.last_updated_at = _now()

    def add_history(
        self,
        step: str,
        action: str,
        status: str,
        details: Optional[Dict[str, Any]] = None,
        performed_by: Optional[UUID] = None,
    ):
        self.history.append(HistoryEntry(
            step=step, action=action, status=status, details=details, performed_by=performed_by
        ))

    class Settings:
        name = "instructor_verifications"
        use_revision = True
        indexes = [
            IndexModel([("instructor", ASCENDING)], unique=True),
            IndexModel([("verification_status", ASCENDING)]),
            IndexModel([("created_at", DESCENDING)]),
        ]
