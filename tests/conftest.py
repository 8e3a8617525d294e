"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It sets TESTING=true so no .env file is loaded, and provides a fake LLM
client plus a factory building a fresh app (fresh quotas) per test.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["TESTING"] = "true"

os.environ.setdefault("GEMINI_API_KEY", "test-gemini-key")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from typing import Any, Callable

import pytest
from fastapi.testclient import TestClient

from app.adapters.llm.base import AbstractLLMClient
from app.adapters.rate_limit.base import AbstractAdmissionController
from app.core.app_factory import create_app
from app.core.config import AppSettings, GeminiSettings, Settings


class FakeLLMClient(AbstractLLMClient):
    """Records prompts and returns a canned reply (or raises ``error``)."""

    def __init__(self, reply: str = "안녕하세요, 박상돈입니다.") -> None:
        self.reply = reply
        self.error: Exception | None = None
        self.prompts: list[str] = []

    async def generate_text(self, prompt: str, **kwargs: Any) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def fake_llm() -> FakeLLMClient:
    return FakeLLMClient()


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    """Build Settings with per-group overrides (init kwargs beat env vars)."""

    def _make(*, app: dict | None = None, gemini: dict | None = None) -> Settings:
        return Settings(
            app=AppSettings(**(app or {})),
            gemini=GeminiSettings(**(gemini or {})),
        )

    return _make


@pytest.fixture
def make_client(fake_llm: FakeLLMClient, make_settings) -> Callable[..., TestClient]:
    """Return a factory producing a TestClient over a freshly built app."""

    def _make(
        *,
        app: dict | None = None,
        gemini: dict | None = None,
        admission_controller: AbstractAdmissionController | None = None,
        raise_server_exceptions: bool = True,
    ) -> TestClient:
        application = create_app(
            make_settings(app=app, gemini=gemini),
            admission_controller=admission_controller,
            llm_client=fake_llm,
        )
        return TestClient(application, raise_server_exceptions=raise_server_exceptions)

    return _make


@pytest.fixture
def client(make_client) -> TestClient:
    return make_client()
