"""
Exception classes for the Movie API.

This module provides the AppException class and factory functions for the
error conditions the movie and health endpoints can report.
"""

from typing import Any, Optional

from errors.codes import ErrorCode, get_default_status_code


class AppException(Exception):
    """
    Base exception class for all application-specific errors.

    Carries a stable error code, a human-readable message, the HTTP status
    to answer with, and optional structured details.

    Example:
        raise AppException(
            error_code=ErrorCode.BAD_REQUEST,
            message="duration must be between 1 and 1000",
            details={"field": "duration"}
        )
    """

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[dict[str, Any]] = None
    ):
        self.error_code = error_code
        self.message = message
        self.status_code = status_code or get_default_status_code(error_code)
        self.details = details
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert the exception to the ``{code, message, details}`` envelope."""
        result = {
            "code": self.error_code.value,
            "message": self.message,
        }
        if self.details is not None:
            result["details"] = self.details
        return result

    def __repr__(self) -> str:
        return (
            f"AppException(error_code={self.error_code.value!r}, "
            f"message={self.message!r}, status_code={self.status_code}, "
            f"details={self.details!r})"
        )


def bad_request(
    message: str,
    details: Optional[dict[str, Any]] = None
) -> AppException:
    """Create a bad request exception."""
    return AppException(
        error_code=ErrorCode.BAD_REQUEST,
        message=message,
        details=details
    )


def data_not_found(
    message: str,
    details: Optional[dict[str, Any]] = None
) -> AppException:
    """Create a data not found exception."""
    return AppException(
        error_code=ErrorCode.DATA_NOT_FOUND,
        message=message,
        details=details
    )


def database_unavailable(
    message: str = "Database connection failed",
    details: Optional[dict[str, Any]] = None
) -> AppException:
    """Create a database unavailable exception."""
    return AppException(
        error_code=ErrorCode.DATABASE_UNAVAILABLE,
        message=message,
        details=details
    )


def server_error(
    message: str = "An unexpected error occurred",
    details: Optional[dict[str, Any]] = None
) -> AppException:
    """Create a server error exception."""
    return AppException(
        error_code=ErrorCode.SERVER_ERROR,
        message=message,
        details=details
    )
