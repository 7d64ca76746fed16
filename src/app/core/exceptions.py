"""Centralized exception hierarchy and handlers for the application.

This module provides a unified exception system that maps all application errors
to appropriate HTTP status codes and response formats. Services and routes
should raise exceptions from this hierarchy rather than generic exceptions or
HTTPException directly.

Exception Hierarchy:
    AppException (base)
    ├── ValidationError (400)
    ├── NotFoundError (404)
    ├── ConflictError (409)
    └── StorageError (500)

Usage in Services:
    from app.core.exceptions import NotFoundError

    async def get_snapshot_details(db: AsyncSession, snapshot_id: UUID):
        snapshot = await repo.get(snapshot_id)
        if snapshot is None:
            raise NotFoundError(f"Snapshot {snapshot_id} not found")
        ...

Reconstruction code (price lookup, strategy resolution) never raises for
missing data; it falls back to documented defaults so that reports stay
viewable on incomplete history.

The exception handler automatically converts these to HTTP responses.
"""

import logging
from typing import Any

from fastapi import Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppException(Exception):
    """
    Base exception class for all application errors.

    Provides standard structure for application exceptions that can be
    automatically converted to HTTP responses with appropriate status codes.

    Attributes:
        status_code: HTTP status code for this error type
        detail: User-facing error message
        error_code: Machine-readable error code (optional)
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail: str = "Internal server error"
    error_code: str | None = None

    def __init__(
        self,
        detail: str | None = None,
        *,
        error_code: str | None = None,
    ) -> None:
        """
        Initialize the exception.

        Args:
            detail: Custom error message (overrides class default)
            error_code: Machine-readable error identifier
        """
        self.detail = detail or self.__class__.detail
        self.error_code = error_code or self.__class__.error_code
        super().__init__(self.detail)


class ValidationError(AppException):
    """
    Raised when input validation fails.

    Used for malformed snapshot payloads, invalid dates, or weights outside
    their allowed range. Maps to HTTP 400 Bad Request.
    """

    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Validation error"
    error_code = "VALIDATION_ERROR"


class NotFoundError(AppException):
    """
    Raised when a requested resource is not found.

    Used for unknown snapshot, strategy, or asset ids.
    Maps to HTTP 404 Not Found.
    """

    status_code = status.HTTP_404_NOT_FOUND
    detail = "Resource not found"
    error_code = "NOT_FOUND"


class ConflictError(AppException):
    """
    Raised when there's a conflict in the operation.

    Used when deleting an asset that the ledger or a strategy still refers to.
    Maps to HTTP 409 Conflict.
    """

    status_code = status.HTTP_409_CONFLICT
    detail = "Resource conflict"
    error_code = "CONFLICT"


class StorageError(AppException):
    """
    Raised when a database transaction or query fails.

    The underlying driver error is logged with operation context by the
    service that caught it; the client only ever sees the generic detail.
    Maps to HTTP 500 Internal Server Error.
    """

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail = "Storage operation failed"
    error_code = "STORAGE_ERROR"


async def app_exception_handler(
    request: Request,
    exc: AppException,
) -> JSONResponse:
    """
    Handle application exceptions and convert to HTTP responses.

    This handler is registered with FastAPI to automatically convert
    AppException instances to properly formatted JSON responses with
    appropriate HTTP status codes.

    Args:
        request: FastAPI request object
        exc: The exception instance

    Returns:
        JSONResponse with error details and HTTP status code

    Response Format:
        {
            "detail": "User-facing error message",
            "error_code": "MACHINE_READABLE_CODE"  # optional
        }
    """
    if exc.status_code >= 500:
        logger.error(
            f"{exc.__class__.__name__}: {exc.detail}",
            exc_info=True,
            extra={
                "status_code": exc.status_code,
                "error_code": exc.error_code,
                "request_path": request.url.path,
            },
        )
    else:
        logger.warning(
            f"{exc.__class__.__name__}: {exc.detail}",
            extra={
                "status_code": exc.status_code,
                "error_code": exc.error_code,
                "request_path": request.url.path,
            },
        )

    response_body: dict[str, Any] = {"detail": exc.detail}
    if exc.error_code:
        response_body["error_code"] = exc.error_code

    return JSONResponse(
        status_code=exc.status_code,
        content=response_body,
    )
