from typing import Dict, List, Optional
from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, Field, field_validator
from coding_jojo_app.verification.utils.verification_enums import (
    CertificateStatus, EducationStatus, RecordStatus, StepName
)


class CertificateReviewRequest(BaseModel):
    status: CertificateStatus
    notes: Optional[str] = Field(default=None, max_length=1000)

    @field_validator("status")
    @classmethod
    def decided(cls, value: CertificateStatus) -> CertificateStatus:
        if value == CertificateStatus.PENDING:
            raise ValueError("status must be verified, rejected or needs_clarification")
        return value


class ApproveRequest(BaseModel):
    feedback: Optional[str] = None
    notes: Optional[str] = None


class RejectRequest(BaseModel):
    reason: str = Field(min_length=1)
    feedback: Optional[str] = None
    allow_resubmission: bool = True
    rejected_steps: List[StepName] = Field(default_factory=list)


class InfoRequest(BaseModel):
    message: str = Field(min_length=1)
    required_fields: List[str] = Field(default_factory=list)


class SuspendRequest(BaseModel):
    reason: str = Field(min_length=1)
    duration_days: Optional[int] = Field(default=None, ge=1)


class VerificationSummary(BaseModel):
    id: UUID
    instructor_id: UUID
    instructor_name: Optional[str] = None
    instructor_email: Optional[str] = None
    verification_status: RecordStatus
    progress_percentage: int
    completed_steps: Dict[str, bool]
    education_certificates_count: int
    education_status: EducationStatus
    submitted_at: Optional[datetime] = None
    last_updated_at: datetime
    created_at: datetime


class Pagination(BaseModel):
    current: int
    pages: int
    total: int
    limit: int


class VerificationListResponse(BaseModel):
    verifications: List[VerificationSummary]
    pagination: Pagination
    statistics: Dict[str, int]


class ProcessingTime(BaseModel):
    average_processing_days: float = 0
    min_processing_days: float = 0
    max_processing_days: float = 0


class DailyCount(BaseModel):
    date: str
    status: RecordStatus
    count: int


class VerificationStatsResponse(BaseModel):
    total: Dict[str, int]
    created_in_period: int
    recent: List[DailyCount]
    processing_time: ProcessingTime
    period: str
