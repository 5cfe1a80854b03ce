"""Global exception handlers for the management API."""

import traceback
from datetime import datetime, timezone
from typing import Optional, Union

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError

from jzapi.exceptions import AdminRateLimitError, BaseAPIException, DatabaseError
from jzapi.schemas.errors import ErrorDetail, ErrorResponse
from jzapi.utils.logger import get_logger, get_request_id

log = get_logger(__name__)


def _error_response(
    status_code: int,
    code: str,
    message: str,
    details: Optional[dict] = None,
    headers: Optional[dict[str, str]] = None,
) -> JSONResponse:
    body = ErrorResponse(
        error=ErrorDetail(code=code, message=message, details=details),
        request_id=get_request_id(),
        timestamp=datetime.now(timezone.utc),
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json"),
        headers=headers,
    )


async def base_exception_handler(request: Request, exc: BaseAPIException) -> JSONResponse:
    """Handle application exceptions."""
    log_method = log.error if exc.status_code >= 500 else log.warning
    log_method(
        "api exception",
        error_code=exc.error_code,
        message=exc.message,
        status_code=exc.status_code,
        details=exc.details,
    )

    headers = None
    if isinstance(exc, AdminRateLimitError):
        headers = {"Retry-After": str(exc.retry_after)}

    return _error_response(
        exc.status_code, exc.error_code, exc.message, exc.details, headers=headers
    )


async def validation_exception_handler(
    request: Request, exc: Union[RequestValidationError, PydanticValidationError]
) -> JSONResponse:
    """Handle Pydantic validation errors from request parsing."""
    log.warning("validation error", errors=exc.errors())

    # ctx may hold raw exception instances, which are not JSON serializable
    errors = [{k: v for k, v in e.items() if k != "ctx"} for e in exc.errors()]

    return _error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "VALIDATION_ERROR",
        "Request validation failed",
        {"errors": errors},
    )


async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Handle SQLAlchemy database errors."""
    log.error("database error", error=str(exc), traceback=traceback.format_exc())

    db_error = DatabaseError(message="Database operation failed")
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, db_error.error_code, db_error.message
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    log.critical(
        "unhandled exception",
        error_type=type(exc).__name__,
        error=str(exc),
        traceback=traceback.format_exc(),
    )

    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "INTERNAL_SERVER_ERROR",
        "An unexpected error occurred",
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with FastAPI application."""
    app.add_exception_handler(BaseAPIException, base_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(PydanticValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, generic_exception_handler)  # type: ignore[arg-type]

    log.info("exception handlers registered")
