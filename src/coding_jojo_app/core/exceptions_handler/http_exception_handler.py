from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from coding_jojo_app.core.exceptions import AppException
import logging

logger = logging.getLogger(__name__)


# Handler for specific HTTP exceptions (e.g., 404, 403, 401)
async def http_exception_handler(_: Request, exc: Exception):
    """
    Global handler for Starlette/FastAPI HTTPExceptions.
    This ensures that all manual 'raise HTTPException' calls
    return a consistent JSON format.
    """

    if isinstance(exc, StarletteHTTPException):
        logger.warning(f"HTTP Error: {exc.status_code} - {exc.detail}")

        content = {
            "status": "error",
            "message": exc.detail,
            "code": exc.status_code,
        }
        if isinstance(exc, AppException):
            content["error"] = exc.error
            content.update(exc.extra)

        return JSONResponse(
            status_code=exc.status_code,
            content=content,
            headers=getattr(exc, "headers", None),
        )

    # Fallback for generic internal server errors if they reach this handler
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "status": "fail",
            "message": "An unexpected internal error occurred."
        }
    )


async def validation_exception_handler(_: Request, exc: RequestValidationError):
    """
    Request body/query/form validation errors, reported in the same envelope
    with the first offending field.
    """
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path", "form")]
    field = ".".join(location) or None
    message = first.get("msg", "Invalid request")
    logger.warning(f"Validation Error: {field} - {message}")

    return JSONResponse(
        status_code=422,
        content={
            "status": "error",
            "message": f"{field}: {message}" if field else message,
            "code": 422,
            "error": "validation_error",
            "field": field,
            "errors": [
                {
                    "field": ".".join(str(p) for p in e.get("loc", ())),
                    "message": e.get("msg"),
                }
                for e in errors
            ],
        },
    )
