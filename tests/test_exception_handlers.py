"""Tests for global exception handlers.

Validates that all exception types are rendered as the flat
``{"error", "code", "request_id"}`` body with the right status code and
no information leakage.
"""

import asyncio
import json
from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.core.config import settings
from app.core.errors import (
    AdmissionDeniedAppError,
    AppError,
    ConfigurationAppError,
    UpstreamAppError,
    ValidationAppError,
)
from app.core.exception_handlers import general_exception_handler, setup_exception_handlers, status_for


@pytest.fixture
def app_with_handlers() -> FastAPI:
    """Create FastAPI app with exception handlers registered."""
    app = FastAPI()
    setup_exception_handlers(app)
    return app


@pytest.fixture
def client(app_with_handlers: FastAPI) -> TestClient:
    return TestClient(app_with_handlers)


class TestAppErrorHandler:
    """Test handler for AppError and subclasses."""

    def test_validation_error_returns_400(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-validation")
        async def endpoint():
            raise ValidationAppError(code="message_required", message="Message required")

        response = client.get("/test-validation")

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "Message required"
        assert data["code"] == "message_required"
        assert "request_id" in data

    def test_admission_denied_returns_429_with_retry_after(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-429")
        async def endpoint():
            raise AdmissionDeniedAppError(
                code="rate_limited",
                message="Too many requests. Please retry later.",
                details={"http_status": 429, "retry_after": 12},
            )

        response = client.get("/test-429")

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "12"
        assert response.json()["error"].startswith("Too many requests")

    def test_configuration_error_returns_500(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-config")
        async def endpoint():
            raise ConfigurationAppError(code="api_key_not_configured", message="API key not configured")

        response = client.get("/test-config")

        assert response.status_code == 500
        assert response.json()["error"] == "API key not configured"

    def test_error_response_never_nests_details(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-details")
        async def endpoint():
            raise ValidationAppError(
                code="message_too_long",
                message="Message too long (max 2000 characters)",
                details={"max_value": 2000, "actual_value": 2500},
            )

        data = client.get("/test-details").json()

        assert set(data) == {"error", "code", "request_id"}


class TestStatusMapping:
    @pytest.mark.parametrize(
        ("exc", "expected"),
        [
            (ValidationAppError(code="x", message="x"), 400),
            (AdmissionDeniedAppError(code="x", message="x"), 429),
            (ConfigurationAppError(code="x", message="x"), 500),
            (UpstreamAppError(code="x", message="x"), 500),
            (UpstreamAppError(code="x", message="x", details={"http_status": 502}), 502),
            (UpstreamAppError(code="x", message="x", details={"http_status": 429}), 500),
            (AppError(code="x", message="x"), 400),
        ],
    )
    def test_status_for(self, exc: AppError, expected: int) -> None:
        assert status_for(exc) == expected


class TestRoutingErrors:
    def test_unknown_path_returns_404(self, client: TestClient):
        response = client.get("/nope")

        assert response.status_code == 404
        assert response.json()["error"] == "Not found"

    def test_wrong_method_returns_405(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.post("/only-post")
        async def endpoint():
            return {}

        response = client.get("/only-post")

        assert response.status_code == 405
        assert response.json()["error"] == "Method not allowed"


class TestGeneralExceptionHandler:
    """Test fallback handler for unexpected exceptions."""

    def test_general_exception_handler_logic(self):
        request = MagicMock()
        request.url.path = "/chat"
        request.method = "POST"
        request.app.state.settings = settings

        exc = RuntimeError("Unexpected error: upstream socket closed")
        response = asyncio.run(general_exception_handler(request, exc))

        data = json.loads(bytes(response.body).decode())
        assert response.status_code == 500
        assert data["code"] == "internal_server_error"
        assert "socket" not in data["error"]
        assert response.headers["Access-Control-Allow-Origin"] == "*"

    def test_general_exception_handler_uses_request_state_id(self):
        request = MagicMock()
        request.url.path = "/chat"
        request.method = "POST"
        request.app.state.settings = settings
        request.state.request_id = "req-state-1"

        response = asyncio.run(general_exception_handler(request, RuntimeError("boom")))

        data = json.loads(bytes(response.body).decode())
        assert data["request_id"] == "req-state-1"
        assert response.headers[settings.log.request_id_header] == "req-state-1"

    def test_general_exception_handler_never_leaks_stack_trace(self):
        request = MagicMock()
        request.url.path = "/chat"
        request.method = "POST"
        request.app.state.settings = settings

        response = asyncio.run(general_exception_handler(request, ValueError("Test error")))

        response_text = bytes(response.body).decode()
        assert "Traceback" not in response_text
        assert "ValueError" not in response_text

    def test_setup_exception_handlers_registers_handlers(self, app_with_handlers: FastAPI):
        assert AppError in app_with_handlers.exception_handlers
        assert Exception in app_with_handlers.exception_handlers
