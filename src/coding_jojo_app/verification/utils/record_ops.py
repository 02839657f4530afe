import inspect
import logging
from typing import Any, Callable, Tuple
from beanie.exceptions import RevisionIdWasChanged
from coding_jojo_app.core import config
from coding_jojo_app.core.exceptions import ConcurrentModification, NotFound, NotInitialized, RecordLocked
from coding_jojo_app.users.models.user_models import UserModel
from coding_jojo_app.verification.models.verification_models import VerificationRecord
from coding_jojo_app.verification.utils.progress import evaluate_progress
from coding_jojo_app.verification.utils.state_machine import move_record
from coding_jojo_app.verification.utils.verification_enums import RecordStatus

logger = logging.getLogger(__name__)

_LOCKED_MESSAGES = {
    RecordStatus.UNDER_REVIEW: "Verification is under review and cannot be modified",
    RecordStatus.APPROVED: "Verification has already been approved",
    RecordStatus.SUSPENDED: "Verification has been suspended",
}


async def get_record_for(user: UserModel) -> VerificationRecord:
    record = await VerificationRecord.find_one(VerificationRecord.instructor == user.id)
    if record is None:
        raise NotInitialized()
    return record


async def get_record_by_id(record_id) -> VerificationRecord:
    record = await VerificationRecord.get(record_id)
    if record is None:
        raise NotFound("Verification not found")
    return record


def ensure_mutable(record: VerificationRecord):
    """Instructor-side changes are only accepted while the application is open."""
    status = record.verification_status
    if status in _LOCKED_MESSAGES:
        raise RecordLocked(_LOCKED_MESSAGES[status])
    if status == RecordStatus.REJECTED and not record.allow_resubmission:
        raise RecordLocked("Verification was rejected and cannot be resubmitted")


def open_for_changes(record: VerificationRecord):
    ensure_mutable(record)
    if record.verification_status in (RecordStatus.PENDING, RecordStatus.REJECTED):
        move_record(record, RecordStatus.IN_PROGRESS)


async def apply_mutation(
    record: VerificationRecord,
    mutate: Callable[[VerificationRecord], Any],
) -> Tuple[VerificationRecord, Any]:
    """
    Apply `mutate` to the record and save it with a revision check.

    When another request saved the record in between, the record is reloaded
    and `mutate` is applied again to the fresh copy, up to
    MUTATION_RETRY_LIMIT attempts. Exceptions raised by `mutate` propagate
    without saving. Returns the saved record and whatever `mutate` returned.
    """
    attempts = 0
    while True:
        result = mutate(record)
        if inspect.isawaitable(result):
            result = await result

        try:
            await record.save()
            return record, result
        except RevisionIdWasChanged:
            attempts += 1
            logger.warning(f"Revision conflict on verification {record.id} (attempt {attempts})")
            if attempts >= config.MUTATION_RETRY_LIMIT:
                raise ConcurrentModification()

        fresh = await VerificationRecord.get(record.id)
        if fresh is None:
            raise NotInitialized()
        record = fresh


def progress_payload(record: VerificationRecord) -> dict:
    progress = evaluate_progress(record.completed_steps)
    return {
        "progress_percentage": progress.percentage,
        "completed_count": progress.completed_count,
        "total_steps": progress.total_steps,
        "completed_steps": record.completed_steps,
    }
