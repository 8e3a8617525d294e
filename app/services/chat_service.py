"""Chat service turning a visitor message into a persona reply.

Responsibilities:
- Validate the raw request payload (presence, type, length)
- Screen the message for obvious prompt-injection attempts
- Wrap the message in the persona prompt and call the LLM
- Substitute a fallback text when the model returns nothing
"""

import logging
from typing import Any

from app.adapters.llm.base import AbstractLLMClient
from app.core.config import AppSettings
from app.core.errors import ValidationAppError
from app.services.persona import build_prompt
from app.services.prompt_guard import find_injection

logger = logging.getLogger(__name__)

FALLBACK_REPLY = "Sorry, no response"


def validate_message(payload: Any, max_chars: int) -> str:
    """Extract and validate the ``message`` field of a request body.

    Args:
        payload: Decoded JSON body (anything; only a dict can be valid).
        max_chars: Maximum message length in characters.

    Returns:
        The stripped message.

    Raises:
        ValidationAppError: If the message is missing, not a string, blank
            or longer than ``max_chars``.
    """
    message = payload.get("message") if isinstance(payload, dict) else None

    if message is None or message == "":
        raise ValidationAppError(code="message_required", message="Message required")
    if not isinstance(message, str):
        raise ValidationAppError(code="invalid_message", message="Invalid message")
    if not message.strip():
        raise ValidationAppError(code="message_required", message="Message required")
    if len(message) > max_chars:
        raise ValidationAppError(
            code="message_too_long",
            message=f"Message too long (max {max_chars} characters)",
            details={"max_value": max_chars, "actual_value": len(message)},
        )
    return message.strip()


class ChatService:
    """Orchestrates validation, screening and the upstream call for one app."""

    def __init__(self, llm: AbstractLLMClient, app_settings: AppSettings) -> None:
        self.llm = llm
        self.settings = app_settings

    def prepare(self, payload: Any) -> str:
        """Validate and screen a request body, returning the message to send.

        Raises:
            ValidationAppError: On invalid input or a flagged message.
        """
        message = validate_message(payload, self.settings.max_message_chars)

        if self.settings.prompt_guard_enabled:
            pattern = find_injection(message)
            if pattern is not None:
                logger.warning(
                    "chat.prompt_injection_blocked",
                    extra={"pattern": pattern, "message_chars": len(message)},
                )
                raise ValidationAppError(
                    code="prompt_injection_detected",
                    message="Invalid message content",
                )

        return message

    async def reply(self, message: str) -> str:
        """Send the persona-wrapped message upstream and return the reply.

        Raises:
            UpstreamAppError: Propagated from the LLM client.
        """
        prompt = build_prompt(message, self.settings.persona_prompt)
        text = await self.llm.generate_text(prompt)

        if not text:
            logger.warning("chat.empty_reply")
            return FALLBACK_REPLY

        logger.info(
            "chat.reply_generated",
            extra={"message_chars": len(message), "reply_chars": len(text)},
        )
        return text
