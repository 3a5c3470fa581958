"""
Unit tests for error handlers.

Tests the error response model and exception handlers to ensure
they produce the ``{code, message, details?, request_id}`` envelope.
"""

import json

import pytest
from unittest.mock import MagicMock
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from errors.codes import ErrorCode, get_default_status_code
from errors.exceptions import (
    AppException,
    bad_request,
    data_not_found,
    database_unavailable,
    server_error,
)
from errors.handlers import (
    ErrorResponse,
    get_request_id,
    handle_app_exception,
    handle_http_exception,
    handle_unexpected_exception,
    handle_validation_exception,
    register_exception_handlers,
)


def _mock_request(request_id: str = "test-request-id", path: str = "/v1/movies", method: str = "GET"):
    request = MagicMock(spec=Request)
    request.state.request_id = request_id
    request.url.path = path
    request.method = method
    return request


def _body(response: JSONResponse) -> dict:
    return json.loads(response.body.decode("utf-8"))


class TestErrorResponse:
    """Tests for the ErrorResponse model."""

    def test_error_response_with_all_fields(self):
        response = ErrorResponse(
            code="BAD_REQUEST",
            message="name: value is required",
            details={"errors": [{"field": "name", "message": "value is required"}]},
            request_id="req-123",
        )

        assert response.code == "BAD_REQUEST"
        assert response.message == "name: value is required"
        assert response.details == {"errors": [{"field": "name", "message": "value is required"}]}
        assert response.request_id == "req-123"

    def test_error_response_model_dump_excludes_none(self):
        response = ErrorResponse(
            code="SERVER_ERROR",
            message="An error occurred",
            request_id="req-789",
        )

        dumped = response.model_dump(exclude_none=True)
        assert "details" not in dumped
        assert dumped == {
            "code": "SERVER_ERROR",
            "message": "An error occurred",
            "request_id": "req-789",
        }


class TestErrorCodes:
    """Tests for the error code catalog and exception factories."""

    @pytest.mark.parametrize("code,status", [
        (ErrorCode.BAD_REQUEST, 400),
        (ErrorCode.DATA_NOT_FOUND, 404),
        (ErrorCode.ENDPOINT_NOT_FOUND, 404),
        (ErrorCode.DATABASE_UNAVAILABLE, 503),
        (ErrorCode.SERVER_ERROR, 500),
    ])
    def test_default_status_codes(self, code, status):
        assert get_default_status_code(code) == status

    def test_factories_set_code_and_status(self):
        assert bad_request("bad").status_code == 400
        assert data_not_found("missing").error_code == ErrorCode.DATA_NOT_FOUND
        assert database_unavailable().status_code == 503
        assert server_error().message == "An unexpected error occurred"

    def test_explicit_status_code_wins(self):
        exc = AppException(ErrorCode.BAD_REQUEST, "teapot", status_code=418)
        assert exc.status_code == 418

    def test_to_dict_omits_missing_details(self):
        assert data_not_found("Movie 7 not found").to_dict() == {
            "code": "DATA_NOT_FOUND",
            "message": "Movie 7 not found",
        }
        assert data_not_found("Movie 7 not found", details={"id": 7}).to_dict()["details"] == {"id": 7}


class TestGetRequestId:
    """Tests for the get_request_id function."""

    def test_get_request_id_from_state(self):
        request = MagicMock(spec=Request)
        request.state.request_id = "existing-request-id"

        assert get_request_id(request) == "existing-request-id"

    def test_get_request_id_generates_uuid_when_not_set(self):
        request = MagicMock(spec=Request)
        del request.state.request_id

        result = get_request_id(request)

        assert len(result) == 36
        assert result.count("-") == 4


class TestHandleAppException:
    """Tests for the handle_app_exception handler."""

    @pytest.mark.asyncio
    async def test_handle_app_exception_returns_json_response(self):
        exc = bad_request("duration must be between 1 and 1000", details={"field": "duration"})

        response = await handle_app_exception(_mock_request(method="POST"), exc)

        assert isinstance(response, JSONResponse)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_handle_app_exception_includes_all_fields(self):
        exc = data_not_found("Movie 123 not found", details={"id": 123})

        response = await handle_app_exception(_mock_request(path="/v1/movies/123"), exc)
        data = _body(response)

        assert response.status_code == 404
        assert data["code"] == "DATA_NOT_FOUND"
        assert data["message"] == "Movie 123 not found"
        assert data["details"] == {"id": 123}
        assert data["request_id"] == "test-request-id"

    @pytest.mark.asyncio
    async def test_handle_app_exception_without_details(self):
        response = await handle_app_exception(_mock_request(), database_unavailable())
        data = _body(response)

        assert response.status_code == 503
        assert data["code"] == "DATABASE_UNAVAILABLE"
        assert "details" not in data


class TestHandleValidationException:
    """Tests for the handle_validation_exception handler."""

    @pytest.mark.asyncio
    async def test_validation_errors_become_bad_request(self):
        exc = RequestValidationError([
            {"loc": ("body", "duration"), "msg": "Input should be less than or equal to 1000", "type": "less_than_equal"},
            {"loc": ("body", "name"), "msg": "Field required", "type": "missing"},
        ])

        response = await handle_validation_exception(_mock_request(method="POST"), exc)
        data = _body(response)

        assert response.status_code == 400
        assert data["code"] == "BAD_REQUEST"
        assert data["message"] == (
            "duration: Input should be less than or equal to 1000; name: Field required"
        )
        assert data["details"]["errors"][1] == {"field": "name", "message": "Field required"}

    @pytest.mark.asyncio
    async def test_path_parameter_errors_keep_location(self):
        exc = RequestValidationError([
            {"loc": ("path", "movie_id"), "msg": "Input should be a valid integer", "type": "int_parsing"},
        ])

        response = await handle_validation_exception(_mock_request(path="/v1/movies/abc"), exc)

        assert _body(response)["message"] == "path.movie_id: Input should be a valid integer"

    @pytest.mark.asyncio
    async def test_whole_body_error_has_no_field_prefix(self):
        exc = RequestValidationError([
            {"loc": ("body",), "msg": "JSON decode error", "type": "json_invalid"},
        ])

        response = await handle_validation_exception(_mock_request(method="POST"), exc)

        assert _body(response)["message"] == "JSON decode error"


class TestHandleHttpException:
    """Tests for the handle_http_exception handler."""

    @pytest.mark.asyncio
    async def test_not_found_becomes_endpoint_not_found(self):
        exc = StarletteHTTPException(status_code=404, detail="Not Found")

        response = await handle_http_exception(_mock_request(path="/v1/unknown"), exc)
        data = _body(response)

        assert response.status_code == 404
        assert data["code"] == "ENDPOINT_NOT_FOUND"
        assert data["message"] == "Endpoint not found"

    @pytest.mark.asyncio
    async def test_method_not_allowed_keeps_status_and_headers(self):
        exc = StarletteHTTPException(status_code=405, detail="Method Not Allowed", headers={"Allow": "GET"})

        response = await handle_http_exception(_mock_request(method="DELETE"), exc)
        data = _body(response)

        assert response.status_code == 405
        assert data["code"] == "BAD_REQUEST"
        assert data["message"] == "Method Not Allowed"
        assert response.headers["allow"] == "GET"


class TestHandleUnexpectedException:
    """Tests for the handle_unexpected_exception handler."""

    @pytest.mark.asyncio
    async def test_handle_unexpected_exception_returns_500(self):
        response = await handle_unexpected_exception(_mock_request(), ValueError("Something went wrong internally"))

        assert isinstance(response, JSONResponse)
        assert response.status_code == 500

    @pytest.mark.asyncio
    async def test_handle_unexpected_exception_hides_internal_details(self):
        exc = RuntimeError("Database connection string: mysql://root:secret@db/movies")

        response = await handle_unexpected_exception(_mock_request(method="POST"), exc)
        data = _body(response)

        assert "mysql" not in data["message"]
        assert "secret" not in data["message"]
        assert data["code"] == "SERVER_ERROR"
        assert "unexpected error" in data["message"].lower()
        assert data["request_id"] == "test-request-id"
        assert "details" not in data


class TestRegisterExceptionHandlers:
    """Tests for the register_exception_handlers function."""

    def test_register_exception_handlers_adds_handlers(self):
        mock_app = MagicMock()

        register_exception_handlers(mock_app)

        assert mock_app.add_exception_handler.call_count == 4
        exception_types = [call[0][0] for call in mock_app.add_exception_handler.call_args_list]
        assert exception_types == [
            AppException,
            RequestValidationError,
            StarletteHTTPException,
            Exception,
        ]
