import json
from datetime import datetime, timezone
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request

from app.adapters.llm.base import AbstractLLMClient
from app.adapters.llm.factory import create_llm_client, ensure_configured
from app.adapters.rate_limit.base import AbstractAdmissionController
from app.core.errors import ValidationAppError
from app.core.rate_limit import enforce_admission, get_admission_controller
from app.schemas.chat import ChatHealthResponse, ChatResponse
from app.services.chat_service import ChatService

router = APIRouter(tags=["Chat"])


def get_llm_client(request: Request) -> AbstractLLMClient:
    """Return the app's LLM client, building it on first use.

    The API key is checked on every call so a missing key yields HTTP 500
    before the request body or the admission state is looked at.

    Raises:
        ConfigurationAppError: If GEMINI_API_KEY is not configured.
    """
    gemini_settings = request.app.state.settings.gemini
    ensure_configured(gemini_settings)

    client = request.app.state.llm_client
    if client is None:
        client = create_llm_client(gemini_settings)
        request.app.state.llm_client = client
    return client


async def read_json_body(request: Request) -> Any:
    """Decode the request body; an empty body decodes to None."""
    raw = await request.body()
    if not raw.strip():
        return None
    try:
        return json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ValidationAppError(code="invalid_json", message="Invalid JSON body") from exc


@router.get("/chat", response_model=ChatHealthResponse)
def chat_health(request: Request) -> ChatHealthResponse:
    """Report that the chat function is up and whether the API key is set."""
    return ChatHealthResponse(
        status="OK",
        timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        has_key=bool(request.app.state.settings.gemini.api_key),
    )


@router.post("/chat", response_model=ChatResponse, response_model_exclude_none=True)
async def chat(
    request: Request,
    llm: Annotated[AbstractLLMClient, Depends(get_llm_client)],
    controller: Annotated[AbstractAdmissionController, Depends(get_admission_controller)],
) -> ChatResponse:
    """Answer a visitor message in the persona's voice.

    Checks run in order: configuration (dependency), body validation and
    prompt screening, admission control, upstream call. Admission state is
    only touched once the message has passed validation.

    Returns:
        ChatResponse: Reply text plus the caller's remaining daily quota.

    Raises:
        ValidationAppError: 400 for missing/invalid/oversized/flagged messages.
        AdmissionDeniedAppError: 429 when the caller is over a limit.
        UpstreamAppError: 500 (or upstream 5xx) when the model call fails.
    """
    app_settings = request.app.state.settings.app
    service = ChatService(llm=llm, app_settings=app_settings)

    message = service.prepare(await read_json_body(request))

    remaining = None
    if app_settings.rate_limit_enabled:
        decision = enforce_admission(
            request,
            controller,
            include_headers=app_settings.rate_limit_include_headers,
        )
        remaining = decision.remaining

    reply = await service.reply(message)
    return ChatResponse(reply=reply, remaining=remaining)
