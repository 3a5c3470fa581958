"""
Error code catalog for the Movie API.

The codes are the ones clients already see in the ``code`` field of error
envelopes, so their string values must stay stable.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """
    Enumeration of all error codes used in the application.

    - Client errors (4xx): malformed requests and missing data
    - Server errors (5xx): database failures and unexpected errors
    """

    BAD_REQUEST = "BAD_REQUEST"
    """Request payload or path parameter is invalid (HTTP 400)"""

    DATA_NOT_FOUND = "DATA_NOT_FOUND"
    """Requested record does not exist (HTTP 404)"""

    ENDPOINT_NOT_FOUND = "ENDPOINT_NOT_FOUND"
    """No route matches the request (HTTP 404)"""

    DATABASE_UNAVAILABLE = "DATABASE_UNAVAILABLE"
    """Master or slave database connection failed (HTTP 503)"""

    SERVER_ERROR = "SERVER_ERROR"
    """Unexpected server error (HTTP 500)"""


ERROR_CODE_STATUS_MAP: dict[ErrorCode, int] = {
    ErrorCode.BAD_REQUEST: 400,
    ErrorCode.DATA_NOT_FOUND: 404,
    ErrorCode.ENDPOINT_NOT_FOUND: 404,
    ErrorCode.DATABASE_UNAVAILABLE: 503,
    ErrorCode.SERVER_ERROR: 500,
}


def get_default_status_code(error_code: ErrorCode) -> int:
    """
    Get the default HTTP status code for an error code.

    Args:
        error_code: The error code to look up

    Returns:
        The default HTTP status code for the error code
    """
    return ERROR_CODE_STATUS_MAP.get(error_code, 500)
