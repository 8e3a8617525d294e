"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
- TESTING=true skips .env loading entirely (pytest sets it in conftest)
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Serverless hosts inject secrets as env vars, so the file is optional
_env_file = str(_env_path) if _env_path.is_file() else None

# Nested BaseSettings don't inherit env_file, so populate os.environ first
if _env_file and os.getenv("TESTING", "").lower() != "true":
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


GEMINI_OPENAI_COMPAT_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"


class GeminiSettings(BaseSettings):
    """Upstream generative-language configuration.

    The API key is optional at start-up: a missing key is reported per request
    (HTTP 500) instead of preventing the process from booting, so the health
    endpoint can still report ``hasKey: false``.
    """

    api_key: str | None = Field(
        None,
        description="Gemini API key (GEMINI_API_KEY)",
    )
    model: str = Field(
        "gemini-2.0-flash",
        description="Model name used for chat completions",
    )
    base_url: str = Field(
        GEMINI_OPENAI_COMPAT_URL,
        description="OpenAI-compatible Gemini endpoint",
    )
    timeout_seconds: float = Field(
        30.0,
        description="Request timeout in seconds",
    )
    temperature: float = Field(
        0.7,
        description="Sampling temperature",
        ge=0.0,
        le=2.0,
    )
    max_output_tokens: int = Field(
        500,
        description="Maximum tokens in the model reply",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    max_message_chars: int = Field(
        2000,
        description="Maximum chat message length in characters",
        ge=1,
    )
    prompt_guard_enabled: bool = Field(
        True,
        description="Reject messages that look like prompt-injection attempts",
    )
    persona_prompt: str | None = Field(
        None,
        description="Override for the persona prompt template (must contain {message})",
    )
    cors_allow_origin: str = Field(
        "*",
        description="Value of the Access-Control-Allow-Origin header",
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable per-client admission control on POST /chat",
    )
    rate_limit_requests: int = Field(
        10,
        description="Maximum number of requests allowed per sliding window (per client)",
        ge=1,
    )
    rate_limit_window_seconds: float = Field(
        60,
        description="Sliding window size in seconds",
        gt=0,
    )
    rate_limit_daily_requests: int = Field(
        100,
        description="Maximum number of requests allowed per day (per client)",
        ge=1,
    )
    rate_limit_day_seconds: float = Field(
        86400,
        description="Length of the rolling daily quota period in seconds",
        gt=0,
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include the Retry-After header when throttling",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )

    @field_validator("persona_prompt")
    @classmethod
    def _check_persona_prompt(cls, value: str | None) -> str | None:
        """Reject templates that would fail to render on every request.

        Literal braces must be doubled ({{ }}) and {message} must appear.
        """
        if value is None:
            return value
        marker = "\x00message\x00"
        try:
            rendered = value.format(message=marker)
        except (KeyError, IndexError, ValueError) as exc:
            raise ValueError(
                f"persona_prompt is not a valid template ({exc!r}); escape literal braces as {{{{ }}}}"
            ) from exc
        if marker not in rendered:
            raise ValueError("persona_prompt must contain the {message} placeholder")
        return value


class LogSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log output: stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(
        0,
        description="Rotate the log file at this size (0 disables rotation)",
        ge=0,
    )
    backup_count: int = Field(3, description="Number of rotated files to keep", ge=0)
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to propagate the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Nested groups are created via default_factory so each one reads its own
    environment prefix. Tests build their own instance and pass it to
    ``create_app(settings=...)``.
    """

    app_env: str = APP_ENV
    gemini: GeminiSettings = Field(default_factory=GeminiSettings)
    app: AppSettings = Field(default_factory=AppSettings)
    log: LogSettings = Field(default_factory=LogSettings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


settings = Settings()
