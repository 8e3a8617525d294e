"""Tests for client identifier derivation and admission enforcement."""

from unittest.mock import MagicMock

import pytest
from starlette.requests import Request

from app.adapters.rate_limit.in_memory import InMemoryAdmissionController
from app.core.config import AppSettings
from app.core.errors import AdmissionDeniedAppError
from app.core.rate_limit import (
    build_admission_controller,
    client_identifier,
    enforce_admission,
    hash_identifier,
)


def _request(headers: dict[str, str] | None = None, client: tuple[str, int] | None = ("9.9.9.9", 1234)) -> Request:
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/chat",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": client,
    }
    return Request(scope)


def test_prefers_first_forwarded_hop() -> None:
    request = _request({"X-Forwarded-For": "1.2.3.4, 10.0.0.1"})

    assert client_identifier(request) == "1.2.3.4"


def test_falls_back_to_real_ip_header() -> None:
    request = _request({"X-Real-IP": "5.6.7.8"})

    assert client_identifier(request) == "5.6.7.8"


def test_falls_back_to_peer_address() -> None:
    assert client_identifier(_request()) == "9.9.9.9"


def test_unknown_when_no_address() -> None:
    assert client_identifier(_request(client=None)) == "unknown"


def test_hash_identifier_is_stable_and_opaque() -> None:
    hashed = hash_identifier("1.2.3.4")

    assert hashed == hash_identifier("1.2.3.4")
    assert "1.2.3.4" not in hashed
    assert len(hashed) == 16


def test_enforce_admission_returns_allowed_decision() -> None:
    controller = InMemoryAdmissionController()

    decision = enforce_admission(_request(), controller)

    assert decision.allowed is True
    assert controller.get_quota("9.9.9.9") is not None


def test_enforce_admission_raises_on_denial() -> None:
    controller = InMemoryAdmissionController(max_requests_per_window=1)
    enforce_admission(_request(), controller)

    with pytest.raises(AdmissionDeniedAppError) as exc_info:
        enforce_admission(_request(), controller)

    assert exc_info.value.code == "rate_limited"
    assert exc_info.value.details["retry_after"] >= 1


def test_enforce_admission_can_omit_retry_after() -> None:
    controller = MagicMock()
    controller.check_admission.return_value = MagicMock(
        allowed=False, reason="Too many requests", remaining=5, retry_after_seconds=30
    )

    with pytest.raises(AdmissionDeniedAppError) as exc_info:
        enforce_admission(_request(), controller, include_headers=False)

    assert "retry_after" not in exc_info.value.details


def test_build_admission_controller_uses_settings() -> None:
    controller = build_admission_controller(
        AppSettings(rate_limit_requests=3, rate_limit_daily_requests=7)
    )

    assert controller.max_requests_per_window == 3
    assert controller.max_requests_per_day == 7
