"""
Exception Handlers
==================

Maps application exceptions to HTTP responses.

Every error body has the same shape:
``{detail, error, correlation_id, details}``.
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from servicedesk.core import (
    ApplicationException,
    AuthorizationException,
    ExternalServiceException,
    OperationTimeoutException,
    PersistenceException,
    ResourceNotFoundException,
    ValidationException,
)
from servicedesk.shared.api.middleware import correlation_id_of, global_exception_handler
from servicedesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

# Most specific first; the first isinstance match wins
_STATUS_MAP = (
    (ValidationException, status.HTTP_400_BAD_REQUEST, "validation_error"),
    (AuthorizationException, status.HTTP_403_FORBIDDEN, "forbidden"),
    (ResourceNotFoundException, status.HTTP_404_NOT_FOUND, "not_found"),
    (OperationTimeoutException, status.HTTP_504_GATEWAY_TIMEOUT, "timeout"),
    (ExternalServiceException, status.HTTP_502_BAD_GATEWAY, "external_service_error"),
    (PersistenceException, status.HTTP_500_INTERNAL_SERVER_ERROR, "persistence_error"),
)


def status_for(exc: ApplicationException) -> tuple:
    for exc_type, code, error in _STATUS_MAP:
        if isinstance(exc, exc_type):
            return code, error
    return status.HTTP_500_INTERNAL_SERVER_ERROR, "application_error"


def _body(request: Request, detail: str, error: str, details: dict) -> dict:
    return {
        "detail": detail,
        "error": error,
        "correlation_id": correlation_id_of(request),
        "details": details,
    }


def register_exception_handlers(app: FastAPI) -> None:
    """Registers all exception handlers on the FastAPI app."""

    @app.exception_handler(ApplicationException)
    async def application_exception_handler(request: Request, exc: ApplicationException):
        code, error = status_for(exc)
        log = logger.error if code >= 500 else logger.info
        log(
            "Request rejected",
            extra={
                "correlation_id": correlation_id_of(request),
                "path": request.url.path,
                "status_code": code,
                "error": error,
                "error_message": exc.message,
            }
        )
        return JSONResponse(status_code=code, content=_body(request, exc.message, error, exc.details))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = [
            {"loc": list(e.get("loc", ())), "msg": e.get("msg", "")}
            for e in exc.errors()
        ]
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_body(request, "Invalid request", "validation_error", {"errors": errors}),
        )

    app.add_exception_handler(Exception, global_exception_handler)
