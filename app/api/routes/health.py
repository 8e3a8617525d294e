from __future__ import annotations

from fastapi import APIRouter

from app.schemas.chat import HealthResponse

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Liveness probe.

    Unlike ``GET /chat`` it reports nothing about configuration, so it is
    safe to expose to load balancers and uptime monitors.
    """

    return HealthResponse()
