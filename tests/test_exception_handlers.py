"""Tests for global exception handlers.

Validates that all exception types are handled consistently with
proper HTTP status codes, error format, and no information leakage.
"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient
from pydantic import BaseModel

from app.core.errors import (
    AppError,
    AuthenticationAppError,
    ConflictAppError,
    ExternalServiceAppError,
    NotFoundAppError,
    PermissionAppError,
    RateLimitAppError,
    ValidationAppError,
)
from app.core.exception_handlers import setup_exception_handlers, status_code_for


@pytest.fixture
def app_with_handlers() -> FastAPI:
    """Create FastAPI app with exception handlers registered."""
    app = FastAPI()
    setup_exception_handlers(app)
    return app


@pytest.fixture
def client(app_with_handlers: FastAPI) -> TestClient:
    """Create test client with handlers enabled."""
    return TestClient(app_with_handlers)


class TestStatusMapping:
    """Domain error → HTTP status."""

    @pytest.mark.parametrize(
        "error_type,expected",
        [
            (ValidationAppError, 400),
            (AuthenticationAppError, 401),
            (PermissionAppError, 403),
            (NotFoundAppError, 404),
            (ConflictAppError, 409),
            (RateLimitAppError, 429),
            (ExternalServiceAppError, 502),
            (AppError, 400),
        ],
    )
    def test_status_code_for(self, error_type, expected) -> None:
        assert status_code_for(error_type(code="x", message="y")) == expected


class TestAppErrorHandler:
    """Test handler for AppError and subclasses."""

    def test_not_found_error_returns_404(self, client: TestClient, app_with_handlers: FastAPI):
        """Verify NotFoundAppError returns HTTP 404 with the envelope."""
        @app_with_handlers.get("/test-not-found")
        async def test_endpoint():
            raise NotFoundAppError(code="book_not_found", message="Book not found")

        response = client.get("/test-not-found")

        assert response.status_code == 404
        error = response.json()["error"]
        assert error["code"] == "book_not_found"
        assert error["message"] == "Book not found"
        assert "request_id" in error
        assert "details" not in error

    def test_details_are_included(self, client: TestClient, app_with_handlers: FastAPI):
        """Verify structured details reach the client."""
        @app_with_handlers.get("/test-conflict")
        async def test_endpoint():
            raise ConflictAppError(
                code="author_exists",
                message="Author with this name already exists",
                details={"author": {"id": 1, "name": "Roald Dahl"}},
            )

        response = client.get("/test-conflict")

        assert response.status_code == 409
        assert response.json()["error"]["details"]["author"]["name"] == "Roald Dahl"

    def test_rate_limit_error_sets_retry_after(self, client: TestClient, app_with_handlers: FastAPI):
        """Verify RateLimitAppError carries a Retry-After header."""
        @app_with_handlers.get("/test-rate-limit")
        async def test_endpoint():
            raise RateLimitAppError(
                code="openlibrary_rate_limited",
                message="Too many requests to OpenLibrary. Please try again later.",
                details={"retry_after": 42},
            )

        response = client.get("/test-rate-limit")

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "42"

    def test_external_service_error_returns_502(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-upstream")
        async def test_endpoint():
            raise ExternalServiceAppError(code="openlibrary_unavailable", message="Failed to reach OpenLibrary")

        response = client.get("/test-upstream")

        assert response.status_code == 502


class TestFrameworkErrors:
    """HTTPException and request validation use the same envelope."""

    def test_unknown_route(self, client: TestClient):
        response = client.get("/nope")

        assert response.status_code == 404
        error = response.json()["error"]
        assert error["code"] == "not_found"
        assert error["message"] == "Route not found"
        assert "request_id" in error

    def test_http_exception_headers_are_kept(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-throttled")
        async def test_endpoint():
            raise HTTPException(status_code=429, detail="Slow down", headers={"Retry-After": "5"})

        response = client.get("/test-throttled")

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "5"
        assert response.json()["error"]["code"] == "rate_limit_exceeded"
        assert response.json()["error"]["message"] == "Slow down"

    def test_method_not_allowed(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-get-only")
        async def test_endpoint():
            return {}

        response = client.delete("/test-get-only")

        assert response.status_code == 405
        assert response.json()["error"]["code"] == "method_not_allowed"

    def test_validation_error_returns_400(self, client: TestClient, app_with_handlers: FastAPI):
        class Payload(BaseModel):
            rating: int

        @app_with_handlers.post("/test-validation")
        async def test_endpoint(payload: Payload):
            return payload

        response = client.post("/test-validation", json={"rating": "five"})

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "invalid_request"
        assert error["message"].startswith("rating:")
        assert error["details"]["errors"][0]["field"] == "rating"


class TestGeneralExceptionHandler:
    """Test fallback handler for unexpected exceptions."""

    def test_unexpected_exception_handler_registered(self, app_with_handlers: FastAPI):
        """Verify fallback exception handler is registered."""
        assert Exception in app_with_handlers.exception_handlers

    def test_general_exception_handler_logic(self):
        """Verify general_exception_handler returns correct structure."""
        from app.core.exception_handlers import general_exception_handler

        request = AsyncMock()
        request.url.path = "/test"
        request.method = "GET"

        exc = RuntimeError("no such table: books")
        response = asyncio.run(general_exception_handler(request, exc))

        data = json.loads(bytes(response.body).decode())
        assert response.status_code == 500
        assert data["error"]["code"] == "internal_server_error"
        # Original error message should NOT be in response
        assert "no such table" not in data["error"]["message"]
        assert "request_id" in data["error"]

    def test_unhandled_error_in_route_returns_500(self, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-crash")
        async def test_endpoint():
            raise ValueError("Test error with details")

        response = TestClient(app_with_handlers, raise_server_exceptions=False).get("/test-crash")

        assert response.status_code == 500
        assert "Traceback" not in response.text
        assert "ValueError" not in response.text


class TestErrorHandlerIntegration:
    """Integration tests for exception handler setup."""

    def test_setup_exception_handlers_registers_handlers(self, app_with_handlers: FastAPI):
        """Verify setup_exception_handlers properly registers handlers."""
        assert AppError in app_with_handlers.exception_handlers
        assert Exception in app_with_handlers.exception_handlers

    def test_multiple_handler_setups_does_not_fail(self):
        """Verify calling setup_exception_handlers multiple times is safe."""
        app = FastAPI()

        setup_exception_handlers(app)
        setup_exception_handlers(app)

        assert AppError in app.exception_handlers
