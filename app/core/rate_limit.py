"""Admission control wiring for FastAPI routes.

This module connects the admission controller adapter to the HTTP layer:
- the controller is built once per application and stored on ``app.state``;
- routes receive it through ``get_admission_controller`` (overridable in tests);
- ``enforce_admission`` derives the client identifier and raises
  AdmissionDeniedAppError (HTTP 429) when the controller says no.

Client identifier: first X-Forwarded-For hop, then X-Real-IP, then the socket
peer address. Requests with none of these share the "unknown" quota.
"""

from __future__ import annotations

import hashlib
import logging

from fastapi import Request

from app.adapters.rate_limit.base import (
    DAILY_LIMIT_REASON,
    UNKNOWN_IDENTIFIER,
    AbstractAdmissionController,
    AdmissionDecision,
)
from app.adapters.rate_limit.in_memory import InMemoryAdmissionController
from app.core.config import AppSettings
from app.core.errors import AdmissionDeniedAppError

logger = logging.getLogger(__name__)


def build_admission_controller(app_settings: AppSettings) -> AbstractAdmissionController:
    """Create the process-local admission controller from APP_RATE_LIMIT_* settings."""

    return InMemoryAdmissionController(
        window_seconds=app_settings.rate_limit_window_seconds,
        max_requests_per_window=app_settings.rate_limit_requests,
        max_requests_per_day=app_settings.rate_limit_daily_requests,
        day_seconds=app_settings.rate_limit_day_seconds,
    )


def get_admission_controller(request: Request) -> AbstractAdmissionController:
    """FastAPI dependency returning the application's admission controller."""

    return request.app.state.admission_controller


def client_identifier(request: Request) -> str:
    """Derive the rate-limit identifier from the client's network address.

    Args:
        request: FastAPI request.

    Returns:
        str: IP address string, or "unknown" when none can be determined.
    """

    forwarded_for = request.headers.get("x-forwarded-for", "")
    first_hop = forwarded_for.split(",")[0].strip()
    if first_hop:
        return first_hop

    real_ip = request.headers.get("x-real-ip", "").strip()
    if real_ip:
        return real_ip

    if request.client and request.client.host:
        return request.client.host

    return UNKNOWN_IDENTIFIER


def hash_identifier(identifier: str) -> str:
    """Hash the identifier for logging without exposing client addresses."""
    return hashlib.sha256(identifier.encode()).hexdigest()[:16]


def enforce_admission(
    request: Request,
    controller: AbstractAdmissionController,
    *,
    include_headers: bool = True,
) -> AdmissionDecision:
    """Run the admission check for the current request.

    Args:
        request: FastAPI request (source of the client identifier).
        controller: Admission controller owned by the app.
        include_headers: Attach Retry-After to the 429 response.

    Returns:
        AdmissionDecision: The allowed decision (with remaining daily budget).

    Raises:
        AdmissionDeniedAppError: When the request is denied.
    """

    identifier = client_identifier(request)
    if identifier == UNKNOWN_IDENTIFIER:
        logger.warning("admission.unknown_identifier")

    decision = controller.check_admission(identifier)
    key_hash = hash_identifier(identifier)

    if decision.allowed:
        logger.info(
            "admission.allowed",
            extra={"key_hash": key_hash, "remaining": decision.remaining},
        )
        return decision

    logger.warning(
        "admission.denied",
        extra={
            "key_hash": key_hash,
            "reason": decision.reason,
            "remaining": decision.remaining,
            "retry_after_s": decision.retry_after_seconds,
        },
    )

    details = {"http_status": 429}
    if include_headers and decision.retry_after_seconds is not None:
        details["retry_after"] = decision.retry_after_seconds

    raise AdmissionDeniedAppError(
        code="daily_limit_exceeded" if decision.reason == DAILY_LIMIT_REASON else "rate_limited",
        message=decision.reason or "Too many requests",
        details=details,
    )
