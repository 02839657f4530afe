import logging
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, File, Form, Response, UploadFile, status
from pymongo.errors import DuplicateKeyError
from coding_jojo_app.core import config
from coding_jojo_app.core.exceptions import (
    AlreadyVerified, CodeRejected, Forbidden, IncompleteSteps, NotFound, UpstreamFailure, ValidationFailed
)
from coding_jojo_app.users.models.user_models import UserModel
from coding_jojo_app.users.utils.email_config import (
    notify_by_email, send_verification_code_email, submission_body
)
from coding_jojo_app.users.utils.get_current_user import get_current_user
from coding_jojo_app.verification.models.verification_models import (
    Certificate, PhoneVerification, ProfessionalInfo, VerificationRecord
)
from coding_jojo_app.verification.schemas.verification_schemas import (
    CertificateResponse, CertificateUpdateRequest, CodeRequest, EducationSummaryResponse,
    InitializeRequest, PersonalInfoRequest, ProfessionalInfoRequest, VerificationStatusResponse
)
from coding_jojo_app.verification.utils.codes import check_code, ensure_can_send, issue_code, reset_limits
from coding_jojo_app.verification.utils.education import requirement_reason
from coding_jojo_app.verification.utils.record_ops import (
    apply_mutation, ensure_mutable, get_record_for, open_for_changes, progress_payload
)
from coding_jojo_app.verification.utils.sms_config import send_sms
from coding_jojo_app.verification.utils.state_machine import missing_steps, move_record, move_step
from coding_jojo_app.verification.utils.storage import delete_upload, save_upload
from coding_jojo_app.verification.utils.verification_enums import (
    CertificateStatus, CertificateType, DocumentType, RecordStatus, StepName, StepState
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/teacher/verification", tags=["Instructor Verification"])


def _status_payload(record: VerificationRecord) -> dict:
    return VerificationStatusResponse(
        id=record.id,
        verification_status=record.verification_status,
        step_states=record.step_states,
        education_verification=record.education_verification,
        professional_info=record.professional_info,
        admin_review=record.admin_review,
        allow_resubmission=record.allow_resubmission,
        submitted_at=record.submitted_at,
        last_updated_at=record.last_updated_at,
        **progress_payload(record),
    ).model_dump(mode="json")


def _check_graduation_year(year: int):
    if year > datetime.now(timezone.utc).year:
        raise ValidationFailed("graduation_year", "Graduation year cannot be in the future")


def _channel(record: VerificationRecord, step: StepName):
    return record.phone_verification if step == StepName.PHONE else record.email_verification


async def _send_code(record: VerificationRecord, step: StepName, deliver):
    now = datetime.now(timezone.utc)

    def mutate(rec: VerificationRecord) -> str:
        ensure_mutable(rec)
        if getattr(rec.step_states, step.value) == StepState.VERIFIED:
            raise AlreadyVerified(f"{step.value.capitalize()} is already verified")
        channel = _channel(rec, step)
        ensure_can_send(channel, now)
        code = issue_code(channel, now)
        rec.add_history(step.value, "send_code", "success")
        return code

    record, code = await apply_mutation(record, mutate)

    try:
        await deliver(record, code)
    except UpstreamFailure:
        # delivery failed, let the user ask again right away
        def release(rec: VerificationRecord):
            _channel(rec, step).last_code_sent_at = None
            rec.add_history(step.value, "send_code", "failed")

        await apply_mutation(record, release)
        raise

    logger.info(f"{step.value} code issued for verification {record.id}")
    return record


async def _verify_code(record: VerificationRecord, step: StepName, code: str, user: UserModel):
    now = datetime.now(timezone.utc)

    def mutate(rec: VerificationRecord) -> Optional[str]:
        ensure_mutable(rec)
        if getattr(rec.step_states, step.value) == StepState.VERIFIED:
            raise AlreadyVerified(f"{step.value.capitalize()} is already verified")
        reason = check_code(_channel(rec, step), code, now)
        if reason:
            rec.add_history(step.value, "verify", "failed", {"reason": reason}, user.id)
            return reason
        open_for_changes(rec)
        move_step(rec.step_states, step, StepState.VERIFIED)
        rec.add_history(step.value, "verify", "success", performed_by=user.id)
        return None

    # failed attempts are saved before the error goes out
    record, reason = await apply_mutation(record, mutate)
    if reason:
        raise CodeRejected(reason)
    return record


@router.post("/initialize", status_code=status.HTTP_201_CREATED)
async def initialize_verification(
    data: InitializeRequest,
    response: Response,
    current_user: UserModel = Depends(get_current_user),
):
    """
    Start the verification process for the current user.
    Calling it again returns the existing record instead of creating a new one.
    """
    existing = await VerificationRecord.find_one(VerificationRecord.instructor == current_user.id)
    if existing is None:
        record = VerificationRecord(
            instructor=current_user.id,
            phone_verification=PhoneVerification(
                phone_number=data.phone_number,
                country_code=data.country_code,
            ),
        )
        record.add_history("initialization", "create", "success", performed_by=current_user.id)
        try:
            await record.insert()
            logger.info(f"Verification {record.id} initialized for {current_user.email}")
            return {"message": "Verification initialized", "already_initialized": False,
                    "data": _status_payload(record)}
        except DuplicateKeyError:
            existing = await VerificationRecord.find_one(VerificationRecord.instructor == current_user.id)
            if existing is None:
                raise

    response.status_code = status.HTTP_200_OK
    return {"message": "Verification already initialized", "already_initialized": True,
            "data": _status_payload(existing)}


@router.get("/status", status_code=status.HTTP_200_OK)
async def get_verification_status(current_user: UserModel = Depends(get_current_user)):
    record = await get_record_for(current_user)
    return {"message": "Verification status", "data": _status_payload(record)}


@router.post("/email/send-code", status_code=status.HTTP_200_OK)
async def send_email_code(current_user: UserModel = Depends(get_current_user)):
    record = await get_record_for(current_user)

    async def deliver(_: VerificationRecord, code: str):
        await send_verification_code_email(current_user.email, code)

    await _send_code(record, StepName.EMAIL, deliver)
    return {"message": f"Verification code sent to {current_user.email}",
            "data": {"expires_in_minutes": config.CODE_TTL_MINUTES}}


@router.post("/email/verify", status_code=status.HTTP_200_OK)
async def verify_email_code(data: CodeRequest, current_user: UserModel = Depends(get_current_user)):
    record = await get_record_for(current_user)
    record = await _verify_code(record, StepName.EMAIL, data.code, current_user)
    return {"message": "Email verified successfully", "data": progress_payload(record)}


@router.post("/phone/send-code", status_code=status.HTTP_200_OK)
async def send_phone_code(current_user: UserModel = Depends(get_current_user)):
    record = await get_record_for(current_user)

    async def deliver(rec: VerificationRecord, code: str):
        message = (
            f"Your Coding Jojo verification code is {code}. "
            f"It expires in {config.CODE_TTL_MINUTES} minutes."
        )
        await send_sms(rec.phone_verification.full_number, message)

    record = await _send_code(record, StepName.PHONE, deliver)
    return {"message": f"Verification code sent to {record.phone_verification.full_number}",
            "data": {"expires_in_minutes": config.CODE_TTL_MINUTES}}


@router.post("/phone/verify", status_code=status.HTTP_200_OK)
async def verify_phone_code(data: CodeRequest, current_user: UserModel = Depends(get_current_user)):
    record = await get_record_for(current_user)
    record = await _verify_code(record, StepName.PHONE, data.code, current_user)
    return {"message": "Phone number verified successfully", "data": progress_payload(record)}


@router.post("/personal-info", status_code=status.HTTP_200_OK)
async def submit_personal_info(data: PersonalInfoRequest, current_user: UserModel = Depends(get_current_user)):
    record = await get_record_for(current_user)
    now = datetime.now(timezone.utc)
    dob = data.date_of_birth

    def mutate(rec: VerificationRecord):
        open_for_changes(rec)
        info = rec.personal_info
        info.first_name = data.first_name
        info.last_name = data.last_name
        info.date_of_birth = datetime(dob.year, dob.month, dob.day, tzinfo=timezone.utc)
        info.gender = data.gender
        info.nationality = data.nationality
        info.address = data.address
        info.submitted_at = now
        info.rejection_reason = None
        move_step(rec.step_states, StepName.PERSONAL_INFO, StepState.SUBMITTED)
        rec.add_history(StepName.PERSONAL_INFO.value, "submit", "success", performed_by=current_user.id)

    record, _ = await apply_mutation(record, mutate)
    return {"message": "Personal information saved", "data": progress_payload(record)}


@router.post("/id-documents", status_code=status.HTTP_200_OK)
async def upload_id_documents(
    document_type: DocumentType = Form(...),
    front_image: UploadFile = File(...),
    back_image: Optional[UploadFile] = File(None),
    current_user: UserModel = Depends(get_current_user),
):
    record = await get_record_for(current_user)
    ensure_mutable(record)

    front = await save_upload(front_image, current_user.id, "id_documents", "front_image")
    back = None
    try:
        if back_image is not None:
            back = await save_upload(back_image, current_user.id, "id_documents", "back_image")
    except Exception:
        delete_upload(front)
        raise

    replaced = []

    def mutate(rec: VerificationRecord):
        open_for_changes(rec)
        docs = rec.id_documents
        replaced[:] = [docs.front_image, docs.back_image]
        docs.document_type = document_type
        docs.front_image = front
        docs.back_image = back
        docs.rejection_reason = None
        move_step(rec.step_states, StepName.ID_DOCUMENT, StepState.SUBMITTED)
        rec.add_history(StepName.ID_DOCUMENT.value, "upload", "success",
                        {"document_type": document_type.value}, current_user.id)

    try:
        record, _ = await apply_mutation(record, mutate)
    except Exception:
        delete_upload(front)
        delete_upload(back)
        raise

    for old in replaced:
        delete_upload(old)
    return {"message": "ID documents uploaded", "data": progress_payload(record)}


@router.post("/selfie", status_code=status.HTTP_200_OK)
async def upload_selfie(
    selfie: UploadFile = File(...),
    current_user: UserModel = Depends(get_current_user),
):
    record = await get_record_for(current_user)
    ensure_mutable(record)

    stored = await save_upload(selfie, current_user.id, "selfie", "selfie")
    replaced = []

    def mutate(rec: VerificationRecord):
        open_for_changes(rec)
        replaced[:] = [rec.selfie.image]
        rec.selfie.image = stored
        rec.selfie.rejection_reason = None
        move_step(rec.step_states, StepName.SELFIE, StepState.SUBMITTED)
        rec.add_history(StepName.SELFIE.value, "upload", "success", performed_by=current_user.id)

    try:
        record, _ = await apply_mutation(record, mutate)
    except Exception:
        delete_upload(stored)
        raise

    for old in replaced:
        delete_upload(old)
    return {"message": "Selfie uploaded", "data": progress_payload(record)}


@router.post("/professional-info", status_code=status.HTTP_200_OK)
async def submit_professional_info(
    data: ProfessionalInfoRequest,
    current_user: UserModel = Depends(get_current_user),
):
    """
    Optional background for reviewers. Replaces whatever was sent before and
    does not count towards progress.
    """
    record = await get_record_for(current_user)
    now = datetime.now(timezone.utc)

    def mutate(rec: VerificationRecord):
        ensure_mutable(rec)
        rec.professional_info = ProfessionalInfo(**data.model_dump(), submitted_at=now)
        rec.add_history(
            "professional_info", "submit", "success",
            {
                "expertise_count": len(data.expertise),
                "education_count": len(data.education),
                "certification_count": len(data.certifications),
            },
            current_user.id,
        )

    record, _ = await apply_mutation(record, mutate)
    return {
        "message": "Professional information submitted successfully",
        "data": {
            "professional_info": record.professional_info.model_dump(mode="json"),
            **progress_payload(record),
        },
    }


@router.post("/education-certificate", status_code=status.HTTP_201_CREATED)
async def upload_education_certificate(
    certificate_type: CertificateType = Form(...),
    institution_name: str = Form(..., min_length=1, max_length=200),
    field_of_study: str = Form(..., min_length=1, max_length=200),
    graduation_year: int = Form(..., ge=1900, le=2100),
    gpa: Optional[float] = Form(None, ge=0),
    certificate_document: UploadFile = File(...),
    current_user: UserModel = Depends(get_current_user),
):
    """
    Append a certificate. The education summary and step are re-derived
    from the full certificate list when the record is saved.
    """
    _check_graduation_year(graduation_year)
    record = await get_record_for(current_user)
    ensure_mutable(record)

    stored = await save_upload(
        certificate_document, current_user.id, "education_certificates", "certificate_document",
        allow_pdf=True,
    )
    certificate = Certificate(
        certificate_type=certificate_type,
        institution_name=institution_name.strip(),
        field_of_study=field_of_study.strip(),
        graduation_year=graduation_year,
        gpa=gpa,
        document=stored,
    )

    def mutate(rec: VerificationRecord):
        open_for_changes(rec)
        rec.education_verification.certificates.append(certificate)
        rec.add_history(
            StepName.EDUCATION_CERTIFICATE.value, "upload", "success",
            {
                "certificate_id": str(certificate.id),
                "certificate_type": certificate_type.value,
                "institution": certificate.institution_name,
                "graduation_year": graduation_year,
            },
            current_user.id,
        )

    try:
        record, _ = await apply_mutation(record, mutate)
    except Exception:
        delete_upload(stored)
        raise

    education = record.education_verification
    return {
        "message": "Education certificate uploaded successfully",
        "data": {
            "certificate": CertificateResponse.model_validate(certificate).model_dump(mode="json"),
            "education_status": education.overall_status,
            "minimum_requirement_met": education.minimum_requirement_met,
            **progress_payload(record),
        },
    }


@router.get("/education-certificates", status_code=status.HTTP_200_OK)
async def get_education_certificates(current_user: UserModel = Depends(get_current_user)):
    record = await get_record_for(current_user)
    education = record.education_verification
    summary = EducationSummaryResponse(
        certificates=[CertificateResponse.model_validate(cert) for cert in education.certificates],
        overall_status=education.overall_status.value,
        minimum_requirement_met=education.minimum_requirement_met,
        requirement_message=requirement_reason(education.certificates),
        progress_percentage=progress_payload(record)["progress_percentage"],
    )
    return {"message": "Education certificates", "data": summary}


@router.put("/education-certificate/{certificate_id}", status_code=status.HTTP_200_OK)
async def update_education_certificate(
    certificate_id: UUID,
    data: CertificateUpdateRequest,
    current_user: UserModel = Depends(get_current_user),
):
    record = await get_record_for(current_user)
    updates = data.model_dump(exclude_unset=True, exclude_none=True)
    if "graduation_year" in updates:
        _check_graduation_year(updates["graduation_year"])

    def mutate(rec: VerificationRecord) -> Certificate:
        certificate = rec.education_verification.find_certificate(certificate_id)
        if certificate is None:
            raise NotFound("Certificate not found")
        if certificate.verification_status == CertificateStatus.VERIFIED:
            raise AlreadyVerified("Cannot update a verified certificate")
        open_for_changes(rec)
        for key, value in updates.items():
            setattr(certificate, key, value)
        # edited details go back to the review queue
        certificate.verification_status = CertificateStatus.PENDING
        certificate.verification_notes = None
        certificate.verified_by = None
        certificate.verified_at = None
        rec.add_history(
            StepName.EDUCATION_CERTIFICATE.value, "update", "success",
            {"certificate_id": str(certificate_id), "updated_fields": sorted(updates)},
            current_user.id,
        )
        return certificate

    record, certificate = await apply_mutation(record, mutate)
    return {
        "message": "Education certificate updated successfully",
        "data": {
            "certificate": CertificateResponse.model_validate(certificate).model_dump(mode="json"),
            "education_status": record.education_verification.overall_status,
            "minimum_requirement_met": record.education_verification.minimum_requirement_met,
        },
    }


@router.delete("/education-certificate/{certificate_id}", status_code=status.HTTP_200_OK)
async def remove_education_certificate(
    certificate_id: UUID,
    current_user: UserModel = Depends(get_current_user),
):
    record = await get_record_for(current_user)

    def mutate(rec: VerificationRecord) -> Certificate:
        certificate = rec.education_verification.find_certificate(certificate_id)
        if certificate is None:
            raise NotFound("Certificate not found")
        if certificate.verification_status == CertificateStatus.VERIFIED:
            raise AlreadyVerified("Cannot remove a verified certificate")
        open_for_changes(rec)
        rec.education_verification.certificates.remove(certificate)
        rec.add_history(
            StepName.EDUCATION_CERTIFICATE.value, "remove", "success",
            {"certificate_id": str(certificate_id), "certificate_type": certificate.certificate_type.value},
            current_user.id,
        )
        return certificate

    record, removed = await apply_mutation(record, mutate)
    delete_upload(removed.document)

    return {
        "message": "Education certificate removed successfully",
        "data": {
            "education_status": record.education_verification.overall_status,
            "minimum_requirement_met": record.education_verification.minimum_requirement_met,
            **progress_payload(record),
        },
    }


@router.post("/submit", status_code=status.HTTP_200_OK)
async def submit_for_review(current_user: UserModel = Depends(get_current_user)):
    record = await get_record_for(current_user)
    now = datetime.now(timezone.utc)

    def mutate(rec: VerificationRecord):
        ensure_mutable(rec)
        missing = missing_steps(rec.step_states)
        if missing:
            raise IncompleteSteps(missing)
        open_for_changes(rec)
        move_record(rec, RecordStatus.UNDER_REVIEW)
        rec.submitted_at = now
        rec.add_history("submission", "submit", "success", performed_by=current_user.id)

    record, _ = await apply_mutation(record, mutate)
    logger.info(f"Verification {record.id} submitted for review by {current_user.email}")

    progress = progress_payload(record)
    await notify_by_email(
        config.ADMIN_EMAIL,
        f"New Instructor Verification - {current_user.name}",
        "New Verification Submission",
        submission_body(
            current_user.name,
            current_user.email,
            progress["progress_percentage"],
            len(record.education_verification.certificates),
        ),
    )

    return {
        "message": "Verification submitted for review",
        "data": {
            "verification_status": record.verification_status,
            "submitted_at": record.submitted_at,
            **progress,
        },
    }


@router.post("/reset-limits", status_code=status.HTTP_200_OK)
async def reset_code_limits(current_user: UserModel = Depends(get_current_user)):
    """Development helper: clears resend cooldowns and attempt counters."""
    if not config.DEBUG:
        raise Forbidden("Only available in debug mode")
    record = await get_record_for(current_user)

    def mutate(rec: VerificationRecord):
        reset_limits(rec.email_verification)
        reset_limits(rec.phone_verification)
        rec.add_history("debug", "reset_limits", "success", performed_by=current_user.id)

    await apply_mutation(record, mutate)
    return {"message": "Verification limits reset"}
