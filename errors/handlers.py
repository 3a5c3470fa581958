"""
Exception handlers for the Movie API.

This module provides FastAPI exception handlers that convert exceptions into
the JSON error envelope ``{code, message, details?, request_id}``.

Unexpected exceptions are logged with their full stack trace and answered
with a generic message so internal details never reach the client.
"""

import logging
import traceback
import uuid
from typing import Any, Optional

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from errors.codes import ErrorCode
from errors.exceptions import AppException

logger = logging.getLogger(__name__)


class ErrorResponse(BaseModel):
    """
    Structured error response model.

    All error responses from the API follow this format so clients can
    branch on ``code`` instead of parsing messages.
    """
    code: str
    message: str
    details: Optional[dict[str, Any]] = None
    request_id: str


def get_request_id(request: Request) -> str:
    """
    Get the request ID from the request state or generate a new one.

    Args:
        request: The FastAPI request object

    Returns:
        The request ID string
    """
    if hasattr(request.state, "request_id"):
        return request.state.request_id

    return str(uuid.uuid4())


def _error_json(status_code: int, error_response: ErrorResponse) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=error_response.model_dump(exclude_none=True),
    )


async def handle_app_exception(request: Request, exc: AppException) -> JSONResponse:
    """
    Handle known application exceptions and convert to structured response.

    Args:
        request: The FastAPI request object
        exc: The AppException that was raised

    Returns:
        JSONResponse with the structured error envelope
    """
    request_id = get_request_id(request)

    logger.warning(
        "Application error occurred",
        extra={
            "extra_data": {
                "error_code": exc.error_code.value,
                "error_message": exc.message,
                "status_code": exc.status_code,
                "details": exc.details,
                "path": request.url.path,
                "method": request.method,
            }
        }
    )

    return _error_json(
        exc.status_code,
        ErrorResponse(
            code=exc.error_code.value,
            message=exc.message,
            details=exc.details,
            request_id=request_id,
        ),
    )


async def handle_validation_exception(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Convert FastAPI request validation failures into a 400 BAD_REQUEST.

    Only the location and message of each failure are exposed; the raw
    pydantic error context may hold objects that are not JSON serializable.
    """
    request_id = get_request_id(request)

    errors = [
        {
            "field": ".".join(str(loc) for loc in error.get("loc", ()) if loc != "body"),
            "message": error.get("msg", ""),
        }
        for error in exc.errors()
    ]
    message = "; ".join(
        f"{error['field']}: {error['message']}" if error["field"] else error["message"]
        for error in errors
    ) or "Invalid request"

    logger.info(
        "Request validation failed",
        extra={"extra_data": {"path": request.url.path, "errors": errors}}
    )

    return _error_json(
        400,
        ErrorResponse(
            code=ErrorCode.BAD_REQUEST.value,
            message=message,
            details={"errors": errors},
            request_id=request_id,
        ),
    )


async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """
    Handle routing-level HTTP errors raised by Starlette.

    Unknown paths are answered with ``ENDPOINT_NOT_FOUND``; other statuses
    keep their code and carry the exception detail as message.
    """
    request_id = get_request_id(request)

    if exc.status_code == 404:
        code = ErrorCode.ENDPOINT_NOT_FOUND.value
        message = "Endpoint not found"
    else:
        code = ErrorCode.SERVER_ERROR.value if exc.status_code >= 500 else ErrorCode.BAD_REQUEST.value
        message = str(exc.detail)

    response = _error_json(
        exc.status_code,
        ErrorResponse(code=code, message=message, request_id=request_id),
    )
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def handle_unexpected_exception(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected exceptions safely without exposing internal details.

    Args:
        request: The FastAPI request object
        exc: The unexpected exception that was raised

    Returns:
        JSONResponse with a generic SERVER_ERROR envelope
    """
    request_id = get_request_id(request)

    logger.error(
        "Unexpected error occurred",
        extra={
            "extra_data": {
                "error_code": ErrorCode.SERVER_ERROR.value,
                "path": request.url.path,
                "method": request.method,
                "exception_type": type(exc).__name__,
                "exception_message": str(exc),
                "stack_trace": traceback.format_exc(),
            }
        },
        exc_info=True,
    )

    return _error_json(
        500,
        ErrorResponse(
            code=ErrorCode.SERVER_ERROR.value,
            message="An unexpected error occurred. Please try again later.",
            request_id=request_id,
        ),
    )


def register_exception_handlers(app) -> None:
    """
    Register all exception handlers with the FastAPI application.

    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(AppException, handle_app_exception)
    app.add_exception_handler(RequestValidationError, handle_validation_exception)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(Exception, handle_unexpected_exception)

    logger.debug("Exception handlers registered")
