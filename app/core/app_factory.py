"""Application factory for the FastAPI app.

Centralizes app construction (metadata, state, middleware, handlers, routers).
Every call returns an independent app with its own admission controller, so
tests get fresh quotas and a host can swap in a shared store.
"""

from __future__ import annotations

from fastapi import FastAPI

from app.adapters.llm.base import AbstractLLMClient
from app.adapters.rate_limit.base import AbstractAdmissionController
from app.api.routes import chat_router, health_router
from app.core.config import Settings, settings as default_settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import cors_middleware, request_id_middleware
from app.core.rate_limit import build_admission_controller


def create_app(
    settings: Settings | None = None,
    *,
    admission_controller: AbstractAdmissionController | None = None,
    llm_client: AbstractLLMClient | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        settings: Settings to use; defaults to the environment-derived globals.
        admission_controller: Pre-built controller; built from settings if omitted.
        llm_client: Pre-built LLM client; built lazily on the first chat request
            if omitted.

    Returns:
        Configured FastAPI app with state, middleware, handlers and routers.
    """
    cfg = settings or default_settings

    # Logging first so subsequent init logs are formatted as desired
    configure_logging(cfg.log)

    app = FastAPI(
        title="Persona Chat API",
        description=(
            "Forwards visitor chat messages to Gemini wrapped in a fixed persona "
            "prompt and returns the reply. Per-client sliding-window and daily "
            "quotas protect the upstream API key."
        ),
        version="0.1.0",
        debug=cfg.app.debug,
    )

    app.state.settings = cfg
    app.state.admission_controller = admission_controller or build_admission_controller(cfg.app)
    app.state.llm_client = llm_client

    # Last registered runs first: request id wraps CORS handling
    app.middleware("http")(cors_middleware)
    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(chat_router)
    app.include_router(chat_router, prefix="/api")
    app.include_router(health_router)

    return app
