# tests/integration/conftest.py — v8
"""Shared fixtures for integration tests.

The full stack runs for real (settings, cache, scheduler, LLMAnalyzer,
retry); only the LLM provider is replaced by MockLLMClient, which answers
per analyzed text.
"""

from __future__ import annotations

import json
from typing import Any

import pytest
from pydantic import BaseModel

from proofline.llm.base_client import BaseLLMClient
from proofline.llm.models import LLMResponse, Message


class MockLLMClient(BaseLLMClient):
    """Mock LLM client for integration testing without real LLM services.

    Responses are looked up by the analyzed text (the part of the user
    message after ``Text:``). Texts listed in ``failing`` raise a server
    error, which the retry policy classifies as transient.
    """

    def __init__(
        self,
        responses: dict[str, list[dict[str, Any]]] | None = None,
        failing: set[str] | None = None,
        model: str = "mock-model",
    ) -> None:
        self._responses = responses or {}
        self._failing = failing or set()
        self._model = model
        self.calls: list[dict[str, Any]] = []

    async def complete(
        self,
        messages: list[Message],
        system: str | None = None,
        max_tokens: int = 1024,
        temperature: float = 0.0,
        response_format: type[BaseModel] | None = None,
    ) -> LLMResponse:
        text = messages[-1].content.split("Text:\n", 1)[-1]
        self.calls.append({
            "text": text, "system": system,
            "max_tokens": max_tokens, "response_format": response_format,
        })
        if text in self._failing:
            raise ConnectionError("503 service unavailable")
        content = json.dumps({"issues": self._responses.get(text, [])})
        return LLMResponse(
            content=content, input_tokens=50, output_tokens=len(content) // 4,
            model=self._model, provider="mock", latency_ms=10,
        )

    @property
    def provider_name(self) -> str:
        return "mock"

    @property
    def model_name(self) -> str:
        return self._model

    @property
    def texts(self) -> list[str]:
        return [c["text"] for c in self.calls]


@pytest.fixture
def mock_llm() -> MockLLMClient:
    return MockLLMClient(responses={
        "Teh cat": [
            {"issue_text": "Teh", "suggestion": "The", "category": "spelling",
             "confidence": 0.95, "start": 0, "end": 3},
        ],
        "Sumbit": [
            {"issue_text": "Sumbit", "suggestion": "Submit", "category": "spelling",
             "confidence": 0.9},
        ],
        "Its a nice day": [
            {"issue_text": "Its", "suggestion": "It's", "category": "grammar",
             "confidence": 0.8, "start": 0, "end": 3},
        ],
    })
