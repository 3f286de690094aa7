# src/batch/models.py — v2
"""Batch processing models: GroupOutcome, ProgressEvent."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from proofline.core.models import Issue


class GroupOutcome(BaseModel):
    """Result of one scheduled analyzer call for a normalized group."""

    normalized_key: str
    issues: list[Issue] = Field(default_factory=list)
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None


class ProgressEvent(BaseModel):
    """Progress notification emitted by the scheduler.

    ``batch`` events fire after each batch; ``group`` events fire as soon as
    a single group's result is available.
    """

    kind: Literal["batch", "group"]
    completed: int
    total: int
    normalized_key: str | None = None
    failed: bool = False
