import logging
from collections import Counter
from datetime import datetime
from typing import Dict, List, Optional
from beanie.operators import In
from coding_jojo_app.notifications.models import NotificationType
from coding_jojo_app.notifications.utils import send_notification
from coding_jojo_app.users.models.user_models import UserModel
from coding_jojo_app.users.utils.email_config import notify_by_email
from coding_jojo_app.verification.models.verification_models import VerificationRecord
from coding_jojo_app.verification.utils.codes import as_utc
from coding_jojo_app.verification.utils.verification_enums import RecordStatus

logger = logging.getLogger(__name__)


async def status_counts() -> Dict[str, int]:
    """
    Number of records per verification status, every status present.
    """
    pipeline = [
        {
            "$group": {
                "_id": "$verification_status",
                "count": {"$sum": 1}
            }
        }
    ]
    results = await VerificationRecord.get_motor_collection().aggregate(pipeline).to_list(length=None)
    counts = {item["_id"]: item["count"] for item in results}
    return {record_status.value: counts.get(record_status.value, 0) for record_status in RecordStatus}


def processing_days(records: List[VerificationRecord]) -> Dict[str, float]:
    """Days between submission and decision for approved or rejected records."""
    durations = []
    for record in records:
        submitted = as_utc(record.submitted_at)
        decided = as_utc(record.approved_at or record.rejected_at)
        if submitted is None or decided is None:
            continue
        durations.append((decided - submitted).total_seconds() / 86400)

    if not durations:
        return {"average_processing_days": 0, "min_processing_days": 0, "max_processing_days": 0}
    return {
        "average_processing_days": round(sum(durations) / len(durations), 2),
        "min_processing_days": round(min(durations), 2),
        "max_processing_days": round(max(durations), 2),
    }


def daily_counts(records: List[VerificationRecord]) -> List[dict]:
    counter = Counter(
        (as_utc(record.created_at).strftime("%Y-%m-%d"), record.verification_status)
        for record in records
    )
    return [
        {"date": day, "status": record_status, "count": count}
        for (day, record_status), count in sorted(counter.items())
    ]


async def users_by_id(records: List[VerificationRecord]) -> Dict:
    ids = list({record.instructor for record in records})
    if not ids:
        return {}
    users = await UserModel.find(In(UserModel.id, ids)).to_list()
    return {user.id: user for user in users}


async def get_instructor(record: VerificationRecord) -> Optional[UserModel]:
    user = await UserModel.get(record.instructor)
    if user is None:
        logger.warning(f"Verification {record.id} points at missing user {record.instructor}")
    return user


async def notify_instructor(
    user: UserModel,
    record: VerificationRecord,
    subject: str,
    title: str,
    email_body: str,
    message: str,
):
    """
    Tell the instructor about a review outcome, in-app and by email.
    Runs after the review is saved; email failures are only logged.
    """
    await send_notification(
        user,
        title=title,
        body=message,
        type=NotificationType.VERIFICATION,
        related_entity_id=str(record.id),
    )
    await notify_by_email(user.email, subject, title, email_body)


def created_since(records: List[VerificationRecord], start: datetime) -> List[VerificationRecord]:
    return [record for record in records if as_utc(record.created_at) >= start]
