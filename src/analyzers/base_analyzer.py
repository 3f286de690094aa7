# src/analyzers/base_analyzer.py — v1
"""Abstract analyzer interface: text in, issue list out."""

from __future__ import annotations

from abc import ABC, abstractmethod

from proofline.core.models import Issue


class BaseAnalyzer(ABC):
    """External grammar/spelling/style analysis service.

    Implementations may raise any exception; the scheduler treats every
    failure as "no issues available for this text now".
    """

    @abstractmethod
    async def analyze(self, text: str, locale: str, model: str) -> list[Issue]:
        """Analyze a single text and return its issues (offsets into ``text``)."""

    @property
    @abstractmethod
    def model_id(self) -> str:
        """Model identifier, used as the model component of cache keys."""
