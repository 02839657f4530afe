from enum import Enum


class StepName(str, Enum):
    EMAIL = "email"
    PHONE = "phone"
    PERSONAL_INFO = "personal_info"
    ID_DOCUMENT = "id_document"
    SELFIE = "selfie"
    EDUCATION_CERTIFICATE = "education_certificate"


STEP_NAMES = tuple(step.value for step in StepName)


class StepState(str, Enum):
    NOT_STARTED = "not_started"
    SUBMITTED = "submitted"
    VERIFIED = "verified"
    REJECTED = "rejected"


class RecordStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"
    SUSPENDED = "suspended"


class CertificateType(str, Enum):
    HIGH_SCHOOL_DIPLOMA = "high_school_diploma"
    ASSOCIATE_DEGREE = "associate_degree"
    BACHELORS_DEGREE = "bachelors_degree"
    MASTERS_DEGREE = "masters_degree"
    PHD_DOCTORATE = "phd_doctorate"
    PROFESSIONAL_CERTIFICATION = "professional_certification"
    CODING_BOOTCAMP = "coding_bootcamp"
    INDUSTRY_CERTIFICATION = "industry_certification"
    TEACHING_QUALIFICATION = "teaching_qualification"
    TECHNICAL_DIPLOMA = "technical_diploma"
    ONLINE_COURSE_CERTIFICATE = "online_course_certificate"
    OTHER = "other"


class CertificateStatus(str, Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"
    NEEDS_CLARIFICATION = "needs_clarification"


class EducationStatus(str, Enum):
    PENDING = "pending"
    UNDER_REVIEW = "under_review"
    VERIFIED = "verified"
    REJECTED = "rejected"


class DocumentType(str, Enum):
    NATIONAL_ID = "national_id"
    PASSPORT = "passport"
    DRIVERS_LICENSE = "drivers_license"


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"
    PREFER_NOT_TO_SAY = "prefer-not-to-say"


class ReviewOutcome(str, Enum):
    APPROVED = "approved"
    REJECTED = "rejected"
    NEEDS_MORE_INFO = "needs_more_info"
    SUSPENDED = "suspended"
