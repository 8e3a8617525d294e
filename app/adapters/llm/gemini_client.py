"""Gemini LLM client adapter.

Gemini exposes an OpenAI-compatible chat completions endpoint, so the official
OpenAI Python SDK is reused with a Gemini ``base_url``.
"""

import logging
from typing import Any

from openai import APIConnectionError, APIStatusError, AsyncOpenAI, OpenAIError

from app.adapters.llm.base import AbstractLLMClient
from app.core.errors import UpstreamAppError

logger = logging.getLogger(__name__)


class GeminiClient(AbstractLLMClient):
    """Client for calling Gemini chat completions and returning the reply text."""

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str,
        timeout_seconds: float = 30.0,
        temperature: float = 0.7,
        max_output_tokens: int = 500,
    ) -> None:
        """Initialize the async client.

        Args:
            api_key: Gemini API key.
            model: Model name (e.g., "gemini-2.0-flash").
            base_url: OpenAI-compatible Gemini endpoint.
            timeout_seconds: Timeout for requests in seconds.
            temperature: Default sampling temperature.
            max_output_tokens: Default reply length cap.
        """
        # The SDK retries by default; upstream failures surface immediately here
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout_seconds,
            max_retries=0,
        )
        self.model = model
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens

    async def generate_text(self, prompt: str, **kwargs: Any) -> str:
        """Send ``prompt`` as a single user message and return the reply text.

        Args:
            prompt: Persona-wrapped prompt.
            **kwargs: Overrides for temperature / max_tokens / top_p.

        Returns:
            str: Stripped reply text ("" when the model returned no content).

        Raises:
            UpstreamAppError: On non-2xx status, connection failure or a
                response without choices.
        """
        request_params: dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": kwargs.pop("temperature", self.temperature),
            "max_tokens": kwargs.pop("max_tokens", self.max_output_tokens),
        }
        if "top_p" in kwargs:
            request_params["top_p"] = kwargs["top_p"]

        try:
            response = await self.client.chat.completions.create(**request_params)
        except APIStatusError as exc:
            logger.error(
                "llm.upstream_error",
                extra={"http_status": exc.status_code, "model": self.model},
            )
            raise UpstreamAppError(
                code="upstream_status_error",
                message="AI service error",
                details={"http_status": exc.status_code, "model": self.model},
            ) from exc
        except APIConnectionError as exc:
            logger.error(
                "llm.upstream_unreachable",
                extra={"error_type": type(exc).__name__, "model": self.model},
            )
            raise UpstreamAppError(
                code="upstream_unreachable",
                message="AI service error",
                details={"model": self.model},
            ) from exc
        except OpenAIError as exc:
            raise UpstreamAppError(
                code="upstream_error",
                message="AI service error",
                details={"model": self.model},
            ) from exc

        choices = getattr(response, "choices", None)
        if not choices:
            raise UpstreamAppError(
                code="upstream_malformed_response",
                message="AI service error",
                details={"model": self.model},
            )

        content = choices[0].message.content
        return (content or "").strip()
