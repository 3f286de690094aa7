# tests/conftest.py — v2
"""Shared test fixtures for all unit and integration tests.

Provides a controllable clock, sample fragments and issues, a scripted
analyzer and a mock LLM client. No external dependencies — all I/O is mocked.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from proofline.analyzers.base_analyzer import BaseAnalyzer
from proofline.cache.memory_store import MemoryCacheStore
from proofline.config.settings import Settings
from proofline.core.models import Fragment, Issue, IssuePosition
from proofline.llm.models import LLMResponse


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class ScriptedAnalyzer(BaseAnalyzer):
    """Analyzer returning canned issues; texts listed in ``fail_on`` raise."""

    def __init__(
        self,
        issues_by_text: dict[str, list[Issue]] | None = None,
        fail_on: set[str] | None = None,
        delay: float = 0.0,
        model: str = "test-model",
    ) -> None:
        self.issues_by_text = issues_by_text or {}
        self.fail_on = fail_on or set()
        self.delay = delay
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._model = model

    @property
    def model_id(self) -> str:
        return self._model

    async def analyze(self, text: str, locale: str, model: str) -> list[Issue]:
        self.calls.append(text)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if text in self.fail_on:
                raise RuntimeError(f"service unavailable for {text!r}")
            return list(self.issues_by_text.get(text, []))
        finally:
            self.in_flight -= 1


def make_issue(
    issue_text: str = "Teh",
    suggestion: str = "The",
    category: str = "spelling",
    start: int = 0,
    confidence: float = 0.9,
    original_text: str = "Teh cat",
) -> Issue:
    return Issue(
        original_text=original_text,
        issue_text=issue_text,
        suggestion=suggestion,
        category=category,
        confidence=confidence,
        position=IssuePosition(start=start, end=start + len(issue_text)),
    )


# === FIXTURES: Sample data ===


@pytest.fixture
def teh_issue() -> Issue:
    """Spelling issue for 'Teh cat'."""
    return make_issue()


@pytest.fixture
def duplicate_fragments() -> list[Fragment]:
    """Three fragments differing only by case and spacing."""
    return [
        Fragment(id="a", text="Teh cat"),
        Fragment(id="b", text="teh cat"),
        Fragment(id="c", text="Teh  cat"),
    ]


@pytest.fixture
def mixed_fragments() -> list[Fragment]:
    """Fragments with duplicates, a numeric label and blank text."""
    return [
        Fragment(id="btn1", text="Sumbit"),
        Fragment(id="price", text="42"),
        Fragment(id="title", text="Welcome to teh app"),
        Fragment(id="btn2", text=" Sumbit "),
        Fragment(id="blank", text="   "),
    ]


# === FIXTURES: Infrastructure ===


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache_store(clock: FakeClock) -> MemoryCacheStore:
    """Cache store on the fake clock, prompt 2.0 / ruleset 1.0."""
    return MemoryCacheStore(max_entries=100, clock=clock)


@pytest.fixture
def fast_settings() -> Settings:
    """Settings without inter-batch pauses, isolated from any .env file."""
    return Settings(_env_file=None, batch_delay_ms=0, batch_concurrency=4)


@pytest.fixture
def scripted_analyzer(teh_issue: Issue) -> ScriptedAnalyzer:
    return ScriptedAnalyzer(issues_by_text={"Teh cat": [teh_issue]})


# === FIXTURES: Mock LLM ===


@pytest.fixture
def mock_llm_response() -> LLMResponse:
    """LLM response reporting one spelling issue in 'Teh cat'."""
    return LLMResponse(
        content=(
            '{"issues": [{"issue_text": "Teh", "suggestion": "The", '
            '"category": "spelling", "confidence": 0.95, "start": 0, "end": 3}]}'
        ),
        input_tokens=100,
        output_tokens=40,
        model="gpt-4o-mini",
        provider="openai",
        latency_ms=300,
    )


@pytest.fixture
def mock_llm_client(mock_llm_response: LLMResponse) -> AsyncMock:
    """Mock BaseLLMClient with default response."""
    client = AsyncMock()
    client.complete = AsyncMock(return_value=mock_llm_response)
    client.provider_name = "mock"
    client.model_name = "gpt-4o-mini"
    return client
