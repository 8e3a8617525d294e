"""HTTP middleware for request correlation and CORS.

request_id_middleware:
- Accepts incoming X-Request-ID header or generates a UUID
- Stores request_id in contextvars for access throughout the request lifecycle
- Injects request_id and total duration into response headers

cors_middleware:
- Answers every OPTIONS request with an empty 200 (browser preflight)
- Adds the fixed CORS header set to every response, errors included

Usage:
    app.middleware("http")(request_id_middleware)
    app.middleware("http")(cors_middleware)
"""

from __future__ import annotations

import time
import uuid

from fastapi import Request, Response

from app.core.config import settings
from app.core.logging import clear_request_id, set_request_id

CORS_ALLOW_METHODS = "GET,OPTIONS,PATCH,DELETE,POST,PUT"
CORS_ALLOW_HEADERS = (
    "X-CSRF-Token, X-Requested-With, Accept, Accept-Version, Content-Length, "
    "Content-MD5, Content-Type, Date, X-Api-Version"
)


def _settings_for(request: Request):
    return getattr(request.app.state, "settings", settings)


def cors_headers(allow_origin: str = "*") -> dict[str, str]:
    """Build the CORS header set attached to every response."""

    return {
        "Access-Control-Allow-Credentials": "true",
        "Access-Control-Allow-Origin": allow_origin,
        "Access-Control-Allow-Methods": CORS_ALLOW_METHODS,
        "Access-Control-Allow-Headers": CORS_ALLOW_HEADERS,
    }


async def request_id_middleware(request: Request, call_next) -> Response:
    """Propagate a correlation id through logs and back to the client.

    If the client provides the configured request id header (LOG_REQUEST_ID_HEADER,
    default X-Request-ID) that value is used, otherwise a UUID4 is generated.

    Args:
        request: The incoming HTTP request object.
        call_next: The next middleware/route handler in the stack.

    Returns:
        Response: The downstream response with X-Request-ID and
            X-Request-Duration-ms headers added.
    """

    header_name = _settings_for(request).log.request_id_header
    request_id = request.headers.get(header_name) or str(uuid.uuid4())
    set_request_id(request_id)
    # ServerErrorMiddleware renders unhandled errors after the contextvar is cleared
    request.state.request_id = request_id
    start = time.perf_counter()
    try:
        response: Response = await call_next(request)
    finally:
        clear_request_id()

    duration_ms = (time.perf_counter() - start) * 1000
    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
    return response


async def cors_middleware(request: Request, call_next) -> Response:
    """Short-circuit OPTIONS and stamp CORS headers on every response."""

    headers = cors_headers(_settings_for(request).app.cors_allow_origin)

    if request.method == "OPTIONS":
        return Response(status_code=200, headers=headers)

    response: Response = await call_next(request)
    for name, value in headers.items():
        response.headers[name] = value
    return response
