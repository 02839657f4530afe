import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Literal, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query, status
from coding_jojo_app.admin.schemas import (
    ApproveRequest, CertificateReviewRequest, InfoRequest, Pagination, RejectRequest,
    SuspendRequest, VerificationListResponse, VerificationStatsResponse, VerificationSummary
)
from coding_jojo_app.admin.utils import (
    created_since, daily_counts, get_instructor, notify_instructor, processing_days,
    status_counts, users_by_id
)
from coding_jojo_app.core.exceptions import IncompleteSteps, InvalidTransition, NotFound, RecordLocked
from coding_jojo_app.users.models.user_models import UserModel
from coding_jojo_app.users.utils.email_config import (
    approval_body, info_request_body, rejection_body, suspension_body
)
from coding_jojo_app.users.utils.get_current_user import get_current_admin
from coding_jojo_app.users.utils.user_role import UserRole
from coding_jojo_app.verification.models.verification_models import AdminReview, VerificationRecord
from coding_jojo_app.verification.utils.education import certificate_qualifies, sync_education
from coding_jojo_app.verification.utils.progress import evaluate_progress
from coding_jojo_app.verification.utils.record_ops import apply_mutation, get_record_by_id, progress_payload
from coding_jojo_app.verification.utils.state_machine import missing_steps, move_record, move_step
from coding_jojo_app.verification.utils.verification_enums import (
    CertificateStatus, RecordStatus, ReviewOutcome, StepName, StepState
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/instructor-verifications", tags=["Admin Verification Review"])

_CODE_FIELDS = {"code_hash", "code_expires_at", "attempts"}


def _reviewed_parts(record: VerificationRecord) -> dict:
    return {
        StepName.PERSONAL_INFO: record.personal_info,
        StepName.ID_DOCUMENT: record.id_documents,
        StepName.SELFIE: record.selfie,
    }


def _require_status(record: VerificationRecord, allowed, target: RecordStatus):
    if record.verification_status not in allowed:
        raise InvalidTransition("verification status", record.verification_status.value, target.value)


def _ensure_reviewable(record: VerificationRecord):
    """Decided records keep the certificates they were decided on."""
    current = record.verification_status
    if current == RecordStatus.APPROVED:
        raise RecordLocked("Verification has already been approved")
    if current == RecordStatus.SUSPENDED:
        raise RecordLocked("Verification has been suspended")
    if current == RecordStatus.REJECTED and not record.allow_resubmission:
        raise RecordLocked("Verification was rejected and cannot be resubmitted")


@router.get("/", response_model=VerificationListResponse, status_code=status.HTTP_200_OK)
async def list_verifications(
    status_filter: Optional[RecordStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort_by: Literal["created_at", "submitted_at", "last_updated_at"] = "created_at",
    sort_order: Literal["asc", "desc"] = "desc",
    admin: UserModel = Depends(get_current_admin),
):
    """
    Paginated verification summaries with per-status statistics.
    """
    query = VerificationRecord.find(
        VerificationRecord.verification_status == status_filter
    ) if status_filter else VerificationRecord.find_all()

    total = await query.count()
    direction = "-" if sort_order == "desc" else "+"
    records = await query.sort(f"{direction}{sort_by}").skip((page - 1) * limit).limit(limit).to_list()
    users = await users_by_id(records)

    summaries = []
    for record in records:
        user = users.get(record.instructor)
        summaries.append(VerificationSummary(
            id=record.id,
            instructor_id=record.instructor,
            instructor_name=user.name if user else None,
            instructor_email=user.email if user else None,
            verification_status=record.verification_status,
            progress_percentage=evaluate_progress(record.completed_steps).percentage,
            completed_steps=record.completed_steps,
            education_certificates_count=len(record.education_verification.certificates),
            education_status=record.education_verification.overall_status,
            submitted_at=record.submitted_at,
            last_updated_at=record.last_updated_at,
            created_at=record.created_at,
        ))

    statistics = await status_counts()
    statistics["total"] = sum(statistics.values())

    return VerificationListResponse(
        verifications=summaries,
        pagination=Pagination(
            current=page,
            pages=math.ceil(total / limit),
            total=total,
            limit=limit,
        ),
        statistics=statistics,
    )


@router.get("/stats", response_model=VerificationStatsResponse, status_code=status.HTTP_200_OK)
async def get_verification_stats(
    period_days: int = Query(30, ge=1, le=365),
    admin: UserModel = Depends(get_current_admin),
):
    start = datetime.now(timezone.utc) - timedelta(days=period_days)
    records = await VerificationRecord.find_all().to_list()
    recent = created_since(records, start)
    decided = [
        record for record in records
        if record.verification_status in (RecordStatus.APPROVED, RecordStatus.REJECTED)
    ]

    return VerificationStatsResponse(
        total=await status_counts(),
        created_in_period=len(recent),
        recent=daily_counts(recent),
        processing_time=processing_days(decided),
        period=f"Last {period_days} days",
    )


@router.get("/{verification_id}", status_code=status.HTTP_200_OK)
async def get_verification(verification_id: UUID, admin: UserModel = Depends(get_current_admin)):
    """Full record with certificates and history. Code hashes never leave the server."""
    record = await get_record_by_id(verification_id)
    user = await get_instructor(record)

    data = record.model_dump(
        mode="json",
        exclude={"email_verification": _CODE_FIELDS, "phone_verification": _CODE_FIELDS},
    )
    data.update(progress_payload(record))
    data["instructor"] = {
        "id": str(record.instructor),
        "name": user.name if user else None,
        "email": user.email if user else None,
        "role": user.role.value if user else None,
    }
    return {"message": "Verification details", "data": data}


@router.put("/{verification_id}/certificates/{certificate_id}/verify", status_code=status.HTTP_200_OK)
async def review_certificate(
    verification_id: UUID,
    certificate_id: UUID,
    data: CertificateReviewRequest,
    admin: UserModel = Depends(get_current_admin),
):
    record = await get_record_by_id(verification_id)
    now = datetime.now(timezone.utc)

    def mutate(rec: VerificationRecord):
        _ensure_reviewable(rec)
        education = rec.education_verification
        certificate = education.find_certificate(certificate_id)
        if certificate is None:
            raise NotFound("Certificate not found")

        certificate.verification_status = data.status
        certificate.verification_notes = data.notes
        certificate.verified_by = admin.id
        certificate.verified_at = now
        education.reviewed_by = admin.id
        education.reviewed_at = now
        rec.add_history(
            StepName.EDUCATION_CERTIFICATE.value, "admin_review", data.status.value,
            {"certificate_id": str(certificate_id), "notes": data.notes},
            admin.id,
        )
        return certificate

    record, certificate = await apply_mutation(record, mutate)
    logger.info(f"Admin {admin.email} marked certificate {certificate_id} as {data.status.value}")

    education = record.education_verification
    return {
        "message": f"Certificate marked as {data.status.value}",
        "data": {
            "certificate_id": str(certificate.id),
            "verification_status": certificate.verification_status,
            "education_status": education.overall_status,
            "minimum_requirement_met": education.minimum_requirement_met,
            "education_step": record.step_states.education_certificate,
            **progress_payload(record),
        },
    }


@router.put("/{verification_id}/approve", status_code=status.HTTP_200_OK)
async def approve_verification(
    verification_id: UUID,
    data: ApproveRequest,
    admin: UserModel = Depends(get_current_admin),
):
    """
    Approve a submitted application. Submitted steps and pending qualifying
    certificates become verified and the applicant is promoted to instructor.
    """
    record = await get_record_by_id(verification_id)
    now = datetime.now(timezone.utc)

    def mutate(rec: VerificationRecord):
        _require_status(rec, (RecordStatus.UNDER_REVIEW,), RecordStatus.APPROVED)

        for certificate in rec.education_verification.certificates:
            if certificate.verification_status == CertificateStatus.PENDING and certificate_qualifies(certificate):
                certificate.verification_status = CertificateStatus.VERIFIED
                certificate.verified_by = admin.id
                certificate.verified_at = now

        for step in StepName:
            if step == StepName.EDUCATION_CERTIFICATE:
                continue
            if getattr(rec.step_states, step.value) == StepState.SUBMITTED:
                move_step(rec.step_states, step, StepState.VERIFIED)

        sync_education(rec)
        missing = missing_steps(rec.step_states)
        if missing:
            raise IncompleteSteps(missing)

        for part in _reviewed_parts(rec).values():
            part.reviewed_by = admin.id
            part.reviewed_at = now
            part.rejection_reason = None

        move_record(rec, RecordStatus.APPROVED)
        rec.approved_at = now
        rec.admin_review = AdminReview(
            reviewed_by=admin.id,
            outcome=ReviewOutcome.APPROVED,
            notes=data.notes,
            feedback=data.feedback or "Your instructor verification has been approved!",
        )
        rec.add_history("admin_review", "approve", "success",
                        {"notes": data.notes, "feedback": data.feedback}, admin.id)

    record, _ = await apply_mutation(record, mutate)
    logger.info(f"Admin {admin.email} approved verification {record.id}")

    user = await get_instructor(record)
    if user:
        if user.role == UserRole.STUDENT:
            user.role = UserRole.INSTRUCTOR
        user.is_verified_instructor = True
        await user.save()
        await notify_instructor(
            user, record,
            subject="Your Coding Jojo Instructor Application Has Been Approved!",
            title="Verification Approved",
            email_body=approval_body(user.name, data.feedback),
            message="Your instructor verification has been approved. You can now create courses.",
        )

    return {
        "message": "Instructor verification approved successfully",
        "data": {
            "verification_status": record.verification_status,
            "approved_at": record.approved_at,
            "instructor_name": user.name if user else None,
        },
    }


@router.put("/{verification_id}/reject", status_code=status.HTTP_200_OK)
async def reject_verification(
    verification_id: UUID,
    data: RejectRequest,
    admin: UserModel = Depends(get_current_admin),
):
    record = await get_record_by_id(verification_id)
    now = datetime.now(timezone.utc)

    def mutate(rec: VerificationRecord):
        _require_status(
            rec, (RecordStatus.PENDING, RecordStatus.IN_PROGRESS, RecordStatus.UNDER_REVIEW), RecordStatus.REJECTED
        )

        parts = _reviewed_parts(rec)
        for step in dict.fromkeys(data.rejected_steps):
            if step == StepName.EDUCATION_CERTIFICATE:
                # the step follows the certificates
                for certificate in rec.education_verification.certificates:
                    if certificate.verification_status == CertificateStatus.PENDING:
                        certificate.verification_status = CertificateStatus.REJECTED
                        certificate.verification_notes = data.reason
                        certificate.verified_by = admin.id
                        certificate.verified_at = now
                continue
            move_step(rec.step_states, step, StepState.REJECTED)
            if step in parts:
                parts[step].rejection_reason = data.reason
                parts[step].reviewed_by = admin.id
                parts[step].reviewed_at = now

        move_record(rec, RecordStatus.REJECTED)
        rec.rejected_at = now
        rec.allow_resubmission = data.allow_resubmission
        rec.admin_review = AdminReview(
            reviewed_by=admin.id,
            outcome=ReviewOutcome.REJECTED,
            notes=data.reason,
            feedback=data.feedback,
        )
        rec.add_history(
            "admin_review", "reject", "success",
            {
                "reason": data.reason,
                "allow_resubmission": data.allow_resubmission,
                "rejected_steps": [step.value for step in data.rejected_steps],
            },
            admin.id,
        )

    record, _ = await apply_mutation(record, mutate)
    logger.info(f"Admin {admin.email} rejected verification {record.id}")

    user = await get_instructor(record)
    if user:
        user.is_verified_instructor = False
        await user.save()
        await notify_instructor(
            user, record,
            subject="Coding Jojo Instructor Verification - Action Required",
            title="Verification Requires Attention",
            email_body=rejection_body(user.name, data.reason, data.feedback, data.allow_resubmission),
            message=f"Your instructor verification was rejected: {data.reason}",
        )

    return {
        "message": "Instructor verification rejected",
        "data": {
            "verification_status": record.verification_status,
            "rejected_at": record.rejected_at,
            "allow_resubmission": record.allow_resubmission,
            "step_states": record.step_states,
        },
    }


@router.put("/{verification_id}/request-info", status_code=status.HTTP_200_OK)
async def request_more_info(
    verification_id: UUID,
    data: InfoRequest,
    admin: UserModel = Depends(get_current_admin),
):
    record = await get_record_by_id(verification_id)

    def mutate(rec: VerificationRecord):
        _require_status(
            rec, (RecordStatus.PENDING, RecordStatus.IN_PROGRESS, RecordStatus.UNDER_REVIEW), RecordStatus.IN_PROGRESS
        )
        if rec.verification_status == RecordStatus.UNDER_REVIEW:
            move_record(rec, RecordStatus.IN_PROGRESS)
        rec.admin_review = AdminReview(
            reviewed_by=admin.id,
            outcome=ReviewOutcome.NEEDS_MORE_INFO,
            notes=data.message,
            required_fields=data.required_fields,
        )
        rec.add_history("admin_review", "request_info", "pending",
                        {"message": data.message, "required_fields": data.required_fields}, admin.id)

    record, _ = await apply_mutation(record, mutate)
    logger.info(f"Admin {admin.email} requested more information on verification {record.id}")

    user = await get_instructor(record)
    if user:
        await notify_instructor(
            user, record,
            subject="Additional Information Required - Coding Jojo Verification",
            title="More Information Needed",
            email_body=info_request_body(user.name, data.message),
            message=data.message,
        )

    return {
        "message": "Information request sent to instructor",
        "data": {
            "verification_status": record.verification_status,
            "required_fields": data.required_fields,
        },
    }


@router.put("/{verification_id}/suspend", status_code=status.HTTP_200_OK)
async def suspend_verification(
    verification_id: UUID,
    data: SuspendRequest,
    admin: UserModel = Depends(get_current_admin),
):
    record = await get_record_by_id(verification_id)
    now = datetime.now(timezone.utc)

    def mutate(rec: VerificationRecord):
        if rec.verification_status == RecordStatus.SUSPENDED:
            raise InvalidTransition("verification status", RecordStatus.SUSPENDED.value, RecordStatus.SUSPENDED.value)
        move_record(rec, RecordStatus.SUSPENDED)
        rec.suspended_at = now
        rec.suspension_reason = data.reason
        rec.suspension_days = data.duration_days
        rec.admin_review = AdminReview(
            reviewed_by=admin.id,
            outcome=ReviewOutcome.SUSPENDED,
            notes=data.reason,
        )
        rec.add_history("admin_review", "suspend", "success",
                        {"reason": data.reason, "duration_days": data.duration_days}, admin.id)

    record, _ = await apply_mutation(record, mutate)
    logger.info(f"Admin {admin.email} suspended verification {record.id}")

    user = await get_instructor(record)
    if user:
        if user.role == UserRole.INSTRUCTOR:
            user.role = UserRole.STUDENT
        user.is_verified_instructor = False
        await user.save()
        await notify_instructor(
            user, record,
            subject="Instructor Verification Suspended - Coding Jojo",
            title="Verification Suspended",
            email_body=suspension_body(user.name, data.reason, data.duration_days),
            message=f"Your instructor verification has been suspended: {data.reason}",
        )

    return {
        "message": "Instructor verification suspended",
        "data": {
            "verification_status": record.verification_status,
            "suspended_at": record.suspended_at,
            "reason": data.reason,
            "duration_days": data.duration_days,
        },
    }
