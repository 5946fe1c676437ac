"""Exception types and handlers that shape every error the API returns.

Body format, for all failures:

    {"error": "Email already registered", "code": "DUPLICATE_EMAIL"}

`error` is written for the applicant and is shown by the wizard verbatim;
`code` is for programs. Validation failures add `details.errors`.
"""

import logging
from typing import Union

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError, OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

APPLY_FAILURE = "Failed to submit application"
UNEXPECTED_FAILURE = "An unexpected error occurred. Please try again later."


class LibraryException(Exception):
    """Base for errors raised deliberately by the service."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code = "INTERNAL_ERROR"

    def __init__(self, message: str, error_code: str | None = None):
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code


class ApplicationRejected(LibraryException):
    """The request cannot be accepted as sent (missing, invalid or duplicate data)."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "APPLICATION_REJECTED"


class ResourceNotFoundError(LibraryException):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = "RESOURCE_NOT_FOUND"

    def __init__(self, resource: str, identifier: str):
        super().__init__(f"{resource} not found: {identifier}")


def create_error_response(
    status_code: int,
    message: str,
    error_code: str,
    details: Union[dict, None] = None,
) -> JSONResponse:
    content = {"error": message, "code": error_code}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


def _request_context(request: Request) -> dict:
    return {"path": request.url.path, "method": request.method}


# ── Handlers ─────────────────────────────────────────────────

async def library_exception_handler(request: Request, exc: LibraryException) -> JSONResponse:
    logger.warning(
        "%s on %s: %s", exc.error_code, request.url.path, exc.message,
        extra=_request_context(request),
    )
    return create_error_response(exc.status_code, exc.message, exc.error_code)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"HTTP {exc.status_code}: {exc.detail}", extra=_request_context(request))
    return create_error_response(exc.status_code, str(exc.detail), f"HTTP_{exc.status_code}")


def _validation_message(error: dict) -> str:
    # Messages raised inside field validators arrive wrapped in ctx
    if error["type"] == "value_error" and "error" in error.get("ctx", {}):
        return str(error["ctx"]["error"])
    return error["msg"]


async def validation_exception_handler(
    request: Request,
    exc: Union[RequestValidationError, ValidationError],
) -> JSONResponse:
    """422 with the first field message as `error` and the full list in details."""
    errors = [
        {
            "field": ".".join(str(part) for part in error["loc"]),
            "message": _validation_message(error),
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    logger.warning(
        f"Validation failed on {request.url.path}: {len(errors)} error(s)",
        extra=_request_context(request),
    )
    return create_error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        errors[0]["message"] if errors else "Validation error",
        "VALIDATION_ERROR",
        details={"errors": errors},
    )


async def integrity_exception_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    """A constraint the request handlers did not anticipate (e.g. a reference collision)."""
    logger.error(f"Integrity error on {request.url.path}: {exc.orig}", extra=_request_context(request))
    if "unique" in str(exc.orig).lower():
        message, code = "A record with this value already exists", "DUPLICATE_RECORD"
    else:
        message, code = "Database constraint violation", "INTEGRITY_ERROR"
    return create_error_response(status.HTTP_409_CONFLICT, message, code)


async def operational_exception_handler(request: Request, exc: OperationalError) -> JSONResponse:
    logger.error(f"Database unavailable on {request.url.path}: {exc}", extra=_request_context(request))
    return create_error_response(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "Database temporarily unavailable. Please try again.",
        "DATABASE_UNAVAILABLE",
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled exception on {request.url.path}", extra=_request_context(request))
    # Internals stay in the log
    message = APPLY_FAILURE if request.url.path.endswith("/apply") else UNEXPECTED_FAILURE
    return create_error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, message, "INTERNAL_SERVER_ERROR"
    )


def register_exception_handlers(app):
    """Register all custom exception handlers with FastAPI app."""
    app.add_exception_handler(LibraryException, library_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(ValidationError, validation_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_exception_handler)
    app.add_exception_handler(OperationalError, operational_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
