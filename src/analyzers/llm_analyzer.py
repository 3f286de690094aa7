# src/analyzers/llm_analyzer.py — v1
"""LLM-backed analyzer: one structured completion per text.

The model is asked for a JSON list of findings. Findings are validated
against the analyzed text: unknown categories and offsets that cannot be
resolved are dropped rather than failing the whole call.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field, ValidationError

from proofline.analyzers.base_analyzer import BaseAnalyzer
from proofline.core.models import ISSUE_CATEGORIES, Issue, IssuePosition
from proofline.llm.models import Message
from proofline.llm.retry import RetryConfig, with_retry

if TYPE_CHECKING:
    from proofline.llm.base_client import BaseLLMClient

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You proofread short user-interface texts. Report spelling, grammar, "
    "style and punctuation problems only. For each problem give the exact "
    "offending substring, a replacement, a category, a confidence between 0 "
    "and 1, and the character offsets of the substring in the text. "
    "Return an empty list when the text is correct."
)


class AnalyzerResponseError(Exception):
    """Raised when the LLM response cannot be parsed as an issue list."""


class RawFinding(BaseModel):
    """One finding as returned by the model."""

    issue_text: str
    suggestion: str
    category: str
    confidence: float = 0.8
    start: int | None = None
    end: int | None = None


class IssueListResponse(BaseModel):
    """Structured response schema requested from the model."""

    issues: list[RawFinding] = Field(default_factory=list)


class LLMAnalyzer(BaseAnalyzer):
    """Analyzer calling a BaseLLMClient with a fixed instruction prompt."""

    def __init__(
        self,
        client: BaseLLMClient,
        max_tokens: int = 1024,
        temperature: float = 0.0,
        retry_configs: dict[str, RetryConfig] | None = None,
    ) -> None:
        self._client = client
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._retry_configs = retry_configs

    @property
    def model_id(self) -> str:
        return self._client.model_name

    async def analyze(self, text: str, locale: str, model: str) -> list[Issue]:
        if not text.strip():
            return []

        messages = [
            Message(role="user", content=f"Locale: {locale}\nText:\n{text}"),
        ]
        response = await with_retry(
            self._complete_and_parse,
            messages,
            operation=f"analyze:{self._client.provider_name}",
            retry_configs=self._retry_configs,
        )
        issues = self._to_issues(text, response)
        logger.debug(
            "%s found %d issues in %r", model, len(issues), text[:50],
        )
        return issues

    async def _complete_and_parse(self, messages: list[Message]) -> IssueListResponse:
        response = await self._client.complete(
            messages,
            system=SYSTEM_PROMPT,
            max_tokens=self._max_tokens,
            temperature=self._temperature,
            response_format=IssueListResponse,
        )
        return parse_response(response.content)

    @staticmethod
    def _to_issues(text: str, response: IssueListResponse) -> list[Issue]:
        issues: list[Issue] = []
        for finding in response.issues:
            category = finding.category.strip().lower()
            if category not in ISSUE_CATEGORIES:
                logger.debug("Dropping finding with category %r", finding.category)
                continue
            position = resolve_position(text, finding)
            if position is None:
                logger.debug("Dropping unlocatable finding %r", finding.issue_text)
                continue
            issues.append(
                Issue(
                    original_text=text,
                    issue_text=finding.issue_text,
                    suggestion=finding.suggestion,
                    category=category,  # type: ignore[arg-type]
                    confidence=min(max(finding.confidence, 0.0), 1.0),
                    position=position,
                )
            )
        return issues


def parse_response(content: str) -> IssueListResponse:
    """Parse model output into IssueListResponse.

    Accepts either ``{"issues": [...]}`` or a bare list, optionally wrapped
    in a Markdown code fence.

    Raises:
        AnalyzerResponseError: If the content is not valid JSON of that shape.
    """
    cleaned = content.strip()
    if cleaned.startswith("```"):
        cleaned = cleaned.strip("`")
        cleaned = cleaned.split("\n", 1)[1] if "\n" in cleaned else ""
    try:
        data = json.loads(cleaned) if cleaned else {"issues": []}
        if isinstance(data, list):
            data = {"issues": data}
        return IssueListResponse.model_validate(data)
    except (json.JSONDecodeError, ValidationError) as e:
        raise AnalyzerResponseError(f"Unparseable analyzer response (json): {e}") from e


def resolve_position(text: str, finding: RawFinding) -> IssuePosition | None:
    """Return offsets of the finding in ``text``.

    Model-provided offsets are trusted only if they point at the reported
    substring; otherwise the first occurrence is used.
    """
    start, end = finding.start, finding.end
    if (
        start is not None and end is not None
        and 0 <= start < end <= len(text)
        and text[start:end] == finding.issue_text
    ):
        return IssuePosition(start=start, end=end)

    if not finding.issue_text:
        return None
    found = text.find(finding.issue_text)
    if found < 0:
        return None
    return IssuePosition(start=found, end=found + len(finding.issue_text))
