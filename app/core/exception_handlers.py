"""Global exception handlers for consistent error responses.

Every error leaves the service as a flat JSON body:

    {"error": "<human message>", "code": "<machine code>", "request_id": "..."}

Design:
- AppError subclasses → 400 / 429 / 500 (or upstream 5xx passthrough)
- Starlette HTTPException (404, 405) → same body shape
- Request validation errors → 400
- Unexpected Exception → generic 500 (safety net, nothing leaked)
"""

import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.core.errors import (
    AdmissionDeniedAppError,
    AppError,
    ConfigurationAppError,
    UpstreamAppError,
)
from app.core.logging import get_request_id
from app.core.middleware import cors_headers

logger = logging.getLogger(__name__)

HTTP_ERROR_MESSAGES = {
    404: "Not found",
    405: "Method not allowed",
}


def _error_body(message: str, code: str) -> dict:
    return {"error": message, "code": code, "request_id": get_request_id()}


def status_for(exc: AppError) -> int:
    """Map an AppError to its HTTP status code.

    - AdmissionDeniedAppError → 429 Too Many Requests
    - UpstreamAppError → upstream status when it is a 5xx, else 500
    - ConfigurationAppError → 500
    - anything else (ValidationAppError) → 400
    """
    if isinstance(exc, AdmissionDeniedAppError):
        return 429
    if isinstance(exc, UpstreamAppError):
        upstream_status = (exc.details or {}).get("http_status")
        if isinstance(upstream_status, int) and 500 <= upstream_status <= 599:
            return upstream_status
        return 500
    if isinstance(exc, ConfigurationAppError):
        return 500
    return 400


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with the flat JSON error format.

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with the mapped status code. 429 responses carry a
        Retry-After header when the controller suggested one.
    """
    status_code = status_for(exc)

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_path": request.url.path,
        },
    )

    headers: dict[str, str] = {}
    retry_after = (exc.details or {}).get("retry_after")
    if isinstance(exc, AdmissionDeniedAppError) and retry_after is not None:
        headers["Retry-After"] = str(int(retry_after))

    return JSONResponse(
        status_code=status_code,
        content=_error_body(exc.message, exc.code),
        headers=headers or None,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render routing errors (unknown path, wrong method) in the same shape."""
    message = HTTP_ERROR_MESSAGES.get(exc.status_code, str(exc.detail))
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(message, f"http_{exc.status_code}"),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render FastAPI request validation failures as 400."""
    logger.warning(
        "request_validation_failed",
        extra={"request_path": request.url.path, "error_count": len(exc.errors())},
    )
    return JSONResponse(
        status_code=400,
        content=_error_body("Invalid request", "invalid_request"),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Logs the exception type for debugging while returning a generic message.
    This handler runs outside the user middleware stack, so the CORS headers
    and the request id header are attached here as well. The request id is
    read from ``request.state`` because the contextvar is already cleared.

    Args:
        request: FastAPI request object.
        exc: Exception instance (unexpected).

    Returns:
        JSONResponse with a generic 500 body.
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
        },
    )

    cfg = getattr(request.app.state, "settings", settings)
    headers = cors_headers(cfg.app.cors_allow_origin)

    request_id = getattr(request.state, "request_id", None)
    if not isinstance(request_id, str):
        request_id = get_request_id()
    if request_id:
        headers[cfg.log.request_id_header] = request_id

    return JSONResponse(
        status_code=500,
        content={
            "error": "Server error",
            "code": "internal_server_error",
            "request_id": request_id,
        },
        headers=headers,
    )


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with the FastAPI app.

    Args:
        app: FastAPI application instance.

    Example:
        >>> from fastapi import FastAPI
        >>> from app.core.exception_handlers import setup_exception_handlers
        >>> app = FastAPI()
        >>> setup_exception_handlers(app)
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(StarletteHTTPException)(http_exception_handler)
    app.exception_handler(RequestValidationError)(validation_exception_handler)
    app.exception_handler(Exception)(general_exception_handler)
