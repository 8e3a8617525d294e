"""Pydantic schemas for the chat endpoint."""

from pydantic import BaseModel, ConfigDict, Field


class ChatResponse(BaseModel):
    """Successful chat reply."""

    reply: str = Field(..., description="The persona's reply to the visitor message.")
    remaining: int | None = Field(
        None,
        ge=0,
        description="Requests left in the caller's daily quota (omitted when rate limiting is off).",
    )


class ChatHealthResponse(BaseModel):
    """Health payload served by ``GET /chat``."""

    model_config = ConfigDict(populate_by_name=True)

    status: str = Field("OK", description="Always 'OK' when the function is reachable.")
    timestamp: str = Field(..., description="Server time (ISO-8601, UTC).")
    has_key: bool = Field(
        ...,
        alias="hasKey",
        description="Whether GEMINI_API_KEY is configured.",
    )


class HealthResponse(BaseModel):
    status: str = "ok"
