"""Global exception handlers for consistent error responses.

Every error leaves the API as ``{"error": {"code", "message", "request_id",
"details"?}}`` with a status derived from the error type:

- ValidationAppError (incl. InvalidIdentifierError) -> 400
- NotFoundAppError -> 404
- SourceUnavailableError -> 502
- any other AppError, StoreAppError included -> 500
- unexpected Exception -> generic 500
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from nif_lookup.core.errors import (
    AppError,
    NotFoundAppError,
    SourceUnavailableError,
    ValidationAppError,
)
from nif_lookup.core.logging import get_request_id

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: tuple[tuple[type[AppError], int], ...] = (
    (ValidationAppError, 400),
    (NotFoundAppError, 404),
    (SourceUnavailableError, 502),
)


def status_for(exc: AppError) -> int:
    """Map a domain error to its HTTP status code."""
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return 500


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with consistent JSON format.

    Client faults (400/404) are logged at info, server faults at error.

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with the mapped status code and error body.
    """
    status_code = status_for(exc)

    logger.log(
        logging.ERROR if status_code >= 500 else logging.INFO,
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_path": request.url.path,
            "request_id": get_request_id(),
        },
    )

    error_content = {
        "code": exc.code,
        "message": exc.message,
        "request_id": get_request_id(),
    }
    if exc.details:
        error_content["details"] = exc.details

    return JSONResponse(
        status_code=status_code,
        content={"error": error_content},
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors.

    Logs the failure with its traceback and returns a generic message, so no
    implementation details reach the client.
    """
    logger.error(
        "unhandled_exception",
        exc_info=exc,
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
            "request_id": get_request_id(),
        },
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "internal_server_error",
                "message": "An unexpected error occurred. Please try again later.",
                "request_id": get_request_id(),
            }
        },
    )


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with FastAPI app.

    Args:
        app: FastAPI application instance.
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(Exception)(general_exception_handler)
