"""Factory for creating LLM client instances."""

from app.adapters.llm.base import AbstractLLMClient
from app.adapters.llm.gemini_client import GeminiClient
from app.core.config import GeminiSettings
from app.core.errors import ConfigurationAppError


def ensure_configured(gemini_settings: GeminiSettings) -> str:
    """Return the configured API key.

    Raises:
        ConfigurationAppError: If GEMINI_API_KEY is not configured.
    """
    if not gemini_settings.api_key:
        raise ConfigurationAppError(
            code="api_key_not_configured",
            message="API key not configured",
            details={"hint": "Set the GEMINI_API_KEY environment variable"},
        )
    return gemini_settings.api_key


def create_llm_client(gemini_settings: GeminiSettings) -> AbstractLLMClient:
    """Instantiate the Gemini client from settings.

    Args:
        gemini_settings: Resolved GEMINI_* settings.

    Returns:
        AbstractLLMClient: Configured client instance.

    Raises:
        ConfigurationAppError: If GEMINI_API_KEY is not configured.
    """
    return GeminiClient(
        api_key=ensure_configured(gemini_settings),
        model=gemini_settings.model,
        base_url=gemini_settings.base_url,
        timeout_seconds=gemini_settings.timeout_seconds,
        temperature=gemini_settings.temperature,
        max_output_tokens=gemini_settings.max_output_tokens,
    )
