"""Error handling middleware and exception handlers."""

import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException

from studio_space.services.exceptions import StudioSpaceError

logger = logging.getLogger(__name__)


class ErrorResponse:
    """Standardized error response format.

    The top-level ``message`` mirrors ``error.message`` for clients that only
    read that key.
    """

    @staticmethod
    def create(
        error_type: str,
        message: str,
        details: str | dict | list | None = None,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        extra: dict | None = None,
        headers: dict | None = None,
    ) -> JSONResponse:
        """Create error response.

        Args:
            error_type: Error type identifier
            message: Human-readable error message
            details: Additional error details
            status_code: HTTP status code
            extra: Additional top-level keys
            headers: Response headers

        Returns:
            JSONResponse with error information
        """
        content = {
            "error": {
                "type": error_type,
                "message": message,
            },
            "message": message,
        }

        if details:
            content["error"]["details"] = details

        if extra:
            content.update(extra)

        return JSONResponse(
            status_code=status_code,
            content=content,
            headers=headers,
        )


async def studio_space_exception_handler(request: Request, exc: StudioSpaceError) -> JSONResponse:
    """Handle domain errors raised by the service layer.

    Dict details are also copied to the top level (e.g. ``password_required``).
    """
    if exc.status_code >= 500:
        logger.error(f"Service error: {exc.message}")
    else:
        logger.info(f"{exc.error_type}: {exc.message}")

    return ErrorResponse.create(
        error_type=exc.error_type,
        message=exc.message,
        details=exc.details,
        status_code=exc.status_code,
        extra=exc.details if isinstance(exc.details, dict) else None,
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle request validation errors.

    Args:
        request: FastAPI request
        exc: Validation error

    Returns:
        JSON error response
    """
    logger.warning(f"Validation error: {exc}")

    errors = [
        {key: value for key, value in error.items() if key in ("type", "loc", "msg")}
        for error in exc.errors()
    ]
    message = errors[0]["msg"] if len(errors) == 1 else "Request validation failed"

    return ErrorResponse.create(
        error_type="validation_error",
        message=message,
        details=errors,
        status_code=status.HTTP_400_BAD_REQUEST,
    )


async def integrity_exception_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    """Handle unique and foreign key violations that escaped the managers."""
    logger.warning(f"Integrity error: {exc.orig}")

    return ErrorResponse.create(
        error_type="conflict",
        message="The resource already exists or there's a conflict",
        status_code=status.HTTP_409_CONFLICT,
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Wrap HTTPExceptions (rate limiting, 404 routes) in the error envelope."""
    detail = exc.detail
    if isinstance(detail, dict):
        message = detail.get("message", str(detail))
        details = detail
    else:
        message = str(detail)
        details = None

    error_type = {
        status.HTTP_404_NOT_FOUND: "not_found",
        status.HTTP_405_METHOD_NOT_ALLOWED: "method_not_allowed",
        status.HTTP_429_TOO_MANY_REQUESTS: "rate_limited",
    }.get(exc.status_code, "http_error")

    return ErrorResponse.create(
        error_type=error_type,
        message=message,
        details=details,
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


async def permission_exception_handler(request: Request, exc: PermissionError) -> JSONResponse:
    """Handle permission errors.

    Args:
        request: FastAPI request
        exc: Permission error

    Returns:
        JSON error response
    """
    logger.warning(f"Permission denied: {exc}")

    return ErrorResponse.create(
        error_type="permission_denied",
        message=str(exc),
        status_code=status.HTTP_403_FORBIDDEN,
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions.

    Args:
        request: FastAPI request
        exc: Any exception

    Returns:
        JSON error response
    """
    logger.error(f"Unexpected error: {exc}", exc_info=True)

    return ErrorResponse.create(
        error_type="internal_error",
        message="An unexpected error occurred. Please try again later.",
        details=str(exc) if logger.isEnabledFor(logging.DEBUG) else None,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
