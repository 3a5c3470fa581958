"""
Unit tests for request ID middleware.

Tests the RequestIDMiddleware to ensure it correctly generates,
extracts, and propagates request IDs for correlation.
"""

import uuid

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from errors.exceptions import AppException, data_not_found
from errors.handlers import handle_app_exception
from middleware.request_id import (
    REQUEST_ID_HEADER,
    RequestIDMiddleware,
    get_request_id,
    normalize_request_id,
    request_id_var,
)


class TestRequestIDMiddleware:
    """Tests for the RequestIDMiddleware class."""

    @pytest.fixture
    def app_with_middleware(self):
        app = FastAPI()
        app.add_middleware(RequestIDMiddleware)

        @app.get("/test")
        async def test_endpoint(request: Request):
            return {
                "request_id_from_state": request.state.request_id,
                "request_id_from_context": request_id_var.get(),
            }

        return app

    @pytest.fixture
    def client(self, app_with_middleware):
        return TestClient(app_with_middleware)

    def test_generates_request_id_when_not_provided(self, client):
        response = client.get("/test")

        assert response.status_code == 200
        request_id = response.headers[REQUEST_ID_HEADER]
        assert str(uuid.UUID(request_id)) == request_id

    def test_uses_existing_request_id_from_header(self, client):
        response = client.get("/test", headers={REQUEST_ID_HEADER: "existing-request-id-12345"})

        assert response.headers[REQUEST_ID_HEADER] == "existing-request-id-12345"

    def test_stores_request_id_in_state_and_context(self, client):
        response = client.get("/test", headers={REQUEST_ID_HEADER: "state-test-request-id"})

        data = response.json()
        assert data["request_id_from_state"] == "state-test-request-id"
        assert data["request_id_from_context"] == "state-test-request-id"

    def test_context_variable_reset_after_request(self, client):
        client.get("/test", headers={REQUEST_ID_HEADER: "first-request-id"})

        assert request_id_var.get() == ""

    def test_different_requests_get_different_ids(self, client):
        first = client.get("/test").headers[REQUEST_ID_HEADER]
        second = client.get("/test").headers[REQUEST_ID_HEADER]

        assert first != second

    def test_unsafe_request_id_is_replaced(self, client):
        response = client.get("/test", headers={REQUEST_ID_HEADER: "bad id with spaces"})

        request_id = response.headers[REQUEST_ID_HEADER]
        assert request_id != "bad id with spaces"
        assert len(request_id) == 36


class TestNormalizeRequestId:
    """Tests for normalize_request_id."""

    @pytest.mark.parametrize("candidate", ["abc-123", "trace.span:1", "A_B", "x" * 128])
    def test_safe_ids_are_kept(self, candidate):
        assert normalize_request_id(candidate) == candidate

    @pytest.mark.parametrize("candidate", [None, "", "x" * 129, "has space", "quote\"d", "new\nline"])
    def test_unsafe_ids_are_replaced(self, candidate):
        result = normalize_request_id(candidate)

        assert result != candidate
        assert str(uuid.UUID(result)) == result


class TestGetRequestIdFunction:
    """Tests for the get_request_id helper function."""

    def test_get_request_id_returns_current_context_value(self):
        token = request_id_var.set("test-context-id")
        try:
            assert get_request_id() == "test-context-id"
        finally:
            request_id_var.reset(token)

    def test_get_request_id_returns_empty_string_when_not_set(self):
        assert get_request_id() == ""


class TestRequestIDMiddlewareWithExceptions:
    """Tests for middleware behavior when exceptions occur."""

    @pytest.fixture
    def client(self):
        app = FastAPI()
        app.add_middleware(RequestIDMiddleware)
        app.add_exception_handler(AppException, handle_app_exception)

        @app.get("/error")
        async def error_endpoint():
            raise ValueError("Test error")

        @app.get("/missing")
        async def missing_endpoint():
            raise data_not_found("Movie 1 not found")

        @app.get("/success")
        async def success_endpoint(request: Request):
            return {"request_id": request.state.request_id}

        return TestClient(app, raise_server_exceptions=False)

    def test_context_variable_reset_even_on_exception(self, client):
        client.get("/error", headers={REQUEST_ID_HEADER: "error-request-id"})

        assert request_id_var.get() == ""

    def test_subsequent_request_works_after_exception(self, client):
        client.get("/error", headers={REQUEST_ID_HEADER: "error-request-id"})

        response = client.get("/success", headers={REQUEST_ID_HEADER: "success-request-id"})

        assert response.status_code == 200
        assert response.json()["request_id"] == "success-request-id"

    def test_error_response_includes_request_id_from_middleware(self, client):
        response = client.get("/missing", headers={REQUEST_ID_HEADER: "error-handler-test-id"})

        assert response.status_code == 404
        assert response.json()["request_id"] == "error-handler-test-id"
        assert response.headers[REQUEST_ID_HEADER] == "error-handler-test-id"
