from typing import Any, Dict, List, Optional
from fastapi import HTTPException, status


class AppException(HTTPException):
    """
    Base for every error the API raises on purpose.
    `error` is a stable machine-readable code and `extra` is merged into
    the JSON error body by the http exception handler.
    """
    error: str = "error"

    def __init__(
        self,
        detail: str,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        extra: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.extra = extra or {}


class Unauthenticated(AppException):
    error = "unauthenticated"

    def __init__(self, detail: str = "Could not validate credentials"):
        super().__init__(
            detail,
            status_code=status.HTTP_401_UNAUTHORIZED,
            headers={"WWW-Authenticate": "Bearer"},
        )


class Forbidden(AppException):
    error = "forbidden"

    def __init__(self, detail: str = "Not authorized"):
        super().__init__(detail, status_code=status.HTTP_403_FORBIDDEN)


class NotInitialized(AppException):
    error = "not_initialized"

    def __init__(self, detail: str = "Verification process not initialized"):
        super().__init__(detail, status_code=status.HTTP_404_NOT_FOUND)


class NotFound(AppException):
    error = "not_found"

    def __init__(self, detail: str = "Resource not found"):
        super().__init__(detail, status_code=status.HTTP_404_NOT_FOUND)


class ValidationFailed(AppException):
    error = "validation_error"

    def __init__(self, field: str, detail: str):
        super().__init__(
            detail,
            status_code=422,
            extra={"field": field},
        )
        self.field = field


class IncompleteSteps(AppException):
    error = "incomplete_steps"

    def __init__(self, missing_steps: List[str]):
        super().__init__(
            f"Please complete the following steps: {', '.join(missing_steps)}",
            extra={"missing_steps": missing_steps},
        )
        self.missing_steps = missing_steps


class CodeRejected(AppException):
    error = "code_rejected"


class AlreadyVerified(AppException):
    error = "already_verified"


class RecordLocked(AppException):
    error = "record_locked"

    def __init__(self, detail: str):
        super().__init__(detail, status_code=status.HTTP_409_CONFLICT)


class InvalidTransition(AppException):
    error = "invalid_transition"

    def __init__(self, subject: str, current: str, target: str):
        super().__init__(
            f"Cannot move {subject} from '{current}' to '{target}'",
            status_code=status.HTTP_409_CONFLICT,
            extra={"subject": subject, "current": current, "target": target},
        )


class ConcurrentModification(AppException):
    error = "concurrent_modification"

    def __init__(self, detail: str = "The record was modified concurrently, please retry"):
        super().__init__(detail, status_code=status.HTTP_409_CONFLICT)


class RateLimited(AppException):
    error = "rate_limited"

    def __init__(self, retry_after: int):
        super().__init__(
            f"Please wait {retry_after} seconds before requesting another code",
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            extra={"retry_after": retry_after},
            headers={"Retry-After": str(retry_after)},
        )
        self.retry_after = retry_after


class UpstreamFailure(AppException):
    error = "upstream_failure"

    def __init__(self, provider: str, detail: str):
        super().__init__(
            f"{provider} error: {detail}",
            status_code=status.HTTP_502_BAD_GATEWAY,
            extra={"provider": provider},
        )
        self.provider = provider
