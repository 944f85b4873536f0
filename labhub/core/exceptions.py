"""
Global exception handling for the application.
Standardizes error responses as {"error": {code, message, details, path}}.
"""

from typing import Any, Dict, List, Optional

import structlog
from fastapi import Request, status
from fastapi.responses import JSONResponse

logger = structlog.get_logger(__name__)


class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(AppError):
    """Resource not found error."""
    def __init__(self, message: str = "Not found", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_404_NOT_FOUND, details)


class UnauthenticatedError(AppError):
    """Authentication failure error."""
    def __init__(self, message: str = "Unauthorized", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_401_UNAUTHORIZED, details)


class ForbiddenError(AppError):
    """Authorization failure error (role or ownership)."""
    def __init__(self, message: str = "Forbidden", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_403_FORBIDDEN, details)


class MissingFieldsError(AppError):
    """One or more required form fields are absent or blank."""
    def __init__(self, fields: List[str]):
        self.fields = list(fields)
        super().__init__(
            f"Missing required fields: {', '.join(self.fields)}",
            status.HTTP_400_BAD_REQUEST,
            {"fields": self.fields},
        )


class InvalidFieldError(AppError):
    """A submitted field could not be coerced to its declared type."""
    def __init__(self, field: str, reason: str = "invalid value"):
        self.field = field
        super().__init__(
            f"Invalid {field} value: {reason}",
            status.HTTP_400_BAD_REQUEST,
            {"field": field},
        )


class DuplicateTitleError(AppError):
    """Lab title uniqueness violation."""
    def __init__(self, title: str):
        super().__init__(
            "A lab with this title already exists",
            status.HTTP_400_BAD_REQUEST,
            {"title": title},
        )


class ProfileExistsError(AppError):
    """A profile already exists for the user."""
    def __init__(self, message: str = "Profile already exists"):
        super().__init__(message, status.HTTP_409_CONFLICT)


class StorageError(AppError):
    """Object storage write/delete failure, or an upload over the size ceiling."""
    def __init__(
        self,
        message: str = "Object storage operation failed",
        details: Optional[Dict[str, Any]] = None,
        status_code: int = status.HTTP_502_BAD_GATEWAY,
    ):
        super().__init__(message, status_code, details)


class StorageConfigurationError(AppError):
    """Object storage settings are incomplete."""
    def __init__(self, missing: List[str]):
        super().__init__(
            "Object storage is not configured",
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            {"missing": list(missing)},
        )


class DependencyTimeoutError(AppError):
    """An external dependency (storage, database) did not answer in time."""
    def __init__(self, dependency: str):
        super().__init__(
            f"{dependency} did not respond in time",
            status.HTTP_504_GATEWAY_TIMEOUT,
            {"dependency": dependency},
        )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle all uncaught exceptions globally."""

    if isinstance(exc, AppError):
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": {
                    "code": exc.__class__.__name__,
                    "message": exc.message,
                    "details": exc.details,
                    "path": request.url.path,
                }
            },
        )

    logger.error("Unexpected error occurred", path=request.url.path, exc_info=exc)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": {
                "code": "InternalServerError",
                "message": "An unexpected error occurred. Please try again later.",
                "path": request.url.path,
            }
        },
    )


async def database_timeout_handler(request: Request, exc: Exception) -> JSONResponse:
    """Connection pool exhaustion surfaces as a dependency timeout."""
    logger.error("Database timeout", path=request.url.path, error=str(exc))
    return await global_exception_handler(request, DependencyTimeoutError("database"))


# SQLSTATE raised when statement_timeout cancels a query
QUERY_CANCELED = "57014"


def is_database_timeout(exc: Exception) -> bool:
    """True for a driver error caused by statement_timeout or connect_timeout."""
    orig = getattr(exc, "orig", None)
    if getattr(orig, "pgcode", None) == QUERY_CANCELED:
        return True
    return "timeout expired" in str(orig or "")


async def database_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Driver timeouts become 504; any other operational error is a plain 500."""
    if is_database_timeout(exc):
        return await database_timeout_handler(request, exc)
    return await global_exception_handler(request, exc)
