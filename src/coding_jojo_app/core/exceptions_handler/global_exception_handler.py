from fastapi import Request, status
from fastapi.responses import JSONResponse
import logging

logger = logging.getLogger(__name__)


# Anything that escaped the routers and the AppException handler
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc!r}", exc_info=True)

    content = {
        "status": "error",
        "message": "An unexpected internal server error occurred. Please contact support.",
        "code": status.HTTP_500_INTERNAL_SERVER_ERROR,
        "error": "internal_error",
    }
    if request.app.debug:
        content["error_details"] = str(exc)

    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)
