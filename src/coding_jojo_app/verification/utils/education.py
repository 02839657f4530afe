"""
The one place that decides whether an instructor's education credentials
are sufficient. `sync_education` runs from the record's before-save hook, so
`minimum_requirement_met`, `overall_status` and the education step state are
recomputed on every write and never patched by hand.

Which certificate types can satisfy the requirement comes from
QUALIFYING_CERTIFICATE_TYPES. Its default leaves out
`online_course_certificate` and `other`; add them there to accept every type.
"""
from datetime import datetime, timezone
from typing import Iterable, Optional
from coding_jojo_app.core import config
from coding_jojo_app.verification.utils.state_machine import move_step
from coding_jojo_app.verification.utils.verification_enums import (
    CertificateStatus, EducationStatus, StepName, StepState
)

_COUNTING_STATUSES = (CertificateStatus.PENDING, CertificateStatus.VERIFIED)
_SENT_BACK_STATUSES = (CertificateStatus.REJECTED, CertificateStatus.NEEDS_CLARIFICATION)


def is_qualifying_type(certificate) -> bool:
    return certificate.certificate_type.value in config.QUALIFYING_CERTIFICATE_TYPES


def _meets_content_rules(certificate, current_year: Optional[int] = None) -> bool:
    current_year = current_year or datetime.now(timezone.utc).year
    return (
        is_qualifying_type(certificate)
        and certificate.document is not None
        and bool(certificate.document.url)
        and certificate.graduation_year <= current_year
    )


def certificate_qualifies(certificate, current_year: Optional[int] = None) -> bool:
    return (
        _meets_content_rules(certificate, current_year)
        and certificate.verification_status in _COUNTING_STATUSES
    )


def minimum_requirement_met(certificates: Iterable) -> bool:
    return any(certificate_qualifies(cert) for cert in certificates)


def overall_education_status(certificates) -> EducationStatus:
    statuses = [cert.verification_status for cert in certificates]
    if not statuses:
        return EducationStatus.PENDING
    if CertificateStatus.VERIFIED in statuses:
        return EducationStatus.VERIFIED
    if CertificateStatus.PENDING in statuses or CertificateStatus.NEEDS_CLARIFICATION in statuses:
        return EducationStatus.UNDER_REVIEW
    return EducationStatus.REJECTED


def education_step_state(certificates) -> StepState:
    qualifying = [cert for cert in certificates if certificate_qualifies(cert)]
    if any(cert.verification_status == CertificateStatus.VERIFIED for cert in qualifying):
        return StepState.VERIFIED
    if qualifying:
        return StepState.SUBMITTED
    if any(_meets_content_rules(cert) and cert.verification_status in _SENT_BACK_STATUSES for cert in certificates):
        return StepState.REJECTED
    return StepState.NOT_STARTED


def sync_education(record):
    education = record.education_verification
    certificates = education.certificates
    education.minimum_requirement_met = minimum_requirement_met(certificates)
    education.overall_status = overall_education_status(certificates)
    move_step(record.step_states, StepName.EDUCATION_CERTIFICATE, education_step_state(certificates))


def requirement_reason(certificates) -> Optional[str]:
    """Human readable reason the requirement is not met, None when it is."""
    if not certificates:
        return "At least one education certificate is required"
    if not minimum_requirement_met(certificates):
        accepted = ", ".join(config.QUALIFYING_CERTIFICATE_TYPES)
        return f"At least one completed, non-rejected certificate of an accepted type is required ({accepted})"
    return None
