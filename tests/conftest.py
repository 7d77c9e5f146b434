"""Shared pytest fixtures and configuration."""

from collections.abc import AsyncGenerator
from typing import Any

import pytest
from fastapi.testclient import TestClient

from crm_assistant.clients.model import ModelClientError
from crm_assistant.core.config import Settings
from crm_assistant.schemas.requests import ModelContent

DATA_API_URL = "http://data-api.test"


class FakeModelClient:
    """Stands in for GeminiClient, replaying a fixed list of fragments.

    With ``fail_after`` set, raises ModelClientError once that many fragments
    were produced. ``pulled`` counts the fragments actually handed out.
    """

    def __init__(self, fragments: list[str], fail_after: int | None = None):
        self.fragments = fragments
        self.fail_after = fail_after
        self.pulled = 0
        self.calls: list[dict[str, Any]] = []

    async def stream_generate(
        self,
        contents: list[ModelContent],
        temperature: float = 0.7,
        max_output_tokens: int = 1500,
    ) -> AsyncGenerator[str, None]:
        self.calls.append(
            {
                "contents": contents,
                "temperature": temperature,
                "max_output_tokens": max_output_tokens,
            }
        )
        for index, fragment in enumerate(self.fragments):
            if self.fail_after is not None and index >= self.fail_after:
                raise ModelClientError("upstream exploded")
            self.pulled += 1
            yield fragment
        if self.fail_after is not None and self.fail_after >= len(self.fragments):
            raise ModelClientError("upstream exploded")


@pytest.fixture
def settings() -> Settings:
    """Settings pointing at a fake data API."""
    return Settings(data_api_url=DATA_API_URL, gemini_api_key="test-key")


@pytest.fixture
def fake_model() -> FakeModelClient:
    """A model answering 'Olá' in two fragments."""
    return FakeModelClient(["Ol", "á"])


@pytest.fixture
def client() -> TestClient:
    """Test client over the real application."""
    from crm_assistant.main import app

    return TestClient(app)
