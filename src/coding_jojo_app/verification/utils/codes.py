import math
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional
from coding_jojo_app.core import config
from coding_jojo_app.core.exceptions import RateLimited
from coding_jojo_app.users.utils.password import hash_password, verify_password


def generate_code() -> str:
    """6 digit one-time code."""
    return str(100000 + secrets.randbelow(900000))


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # Mongo hands datetimes back naive
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def ensure_can_send(verification, now: datetime):
    last_sent = as_utc(verification.last_code_sent_at)
    if last_sent is None:
        return
    elapsed = (now - last_sent).total_seconds()
    cooldown = config.CODE_RESEND_COOLDOWN_SECONDS
    if elapsed < cooldown:
        raise RateLimited(retry_after=max(1, math.ceil(cooldown - elapsed)))


def issue_code(verification, now: datetime) -> str:
    code = generate_code()
    verification.code_hash = hash_password(code)
    verification.code_expires_at = now + timedelta(minutes=config.CODE_TTL_MINUTES)
    verification.last_code_sent_at = now
    verification.attempts = 0
    return code


def check_code(verification, code: str, now: datetime) -> Optional[str]:
    """
    Check a submitted code and update the attempt bookkeeping in place.
    Returns None on success, otherwise the reason the code was refused.
    """
    if not verification.code_hash:
        return "No verification code found"
    expires_at = as_utc(verification.code_expires_at)
    if expires_at is None or expires_at < now:
        return "Verification code has expired"
    if verification.attempts >= config.MAX_CODE_ATTEMPTS:
        return "Maximum verification attempts exceeded"
    if not verify_password(code, verification.code_hash):
        verification.attempts += 1
        return "Invalid verification code"

    verification.verified_at = now
    verification.code_hash = None
    verification.code_expires_at = None
    verification.attempts = 0
    return None


def reset_limits(verification):
    verification.last_code_sent_at = None
    verification.attempts = 0
