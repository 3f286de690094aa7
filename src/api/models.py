# src/api/models.py — v2
"""API-level models: CheckRequest, ConfigOverrides."""

from __future__ import annotations

from pydantic import BaseModel, Field

from proofline.core.models import Fragment


class ConfigOverrides(BaseModel):
    """Per-run overrides — validated subset of Settings."""

    analyzer_locale: str | None = None
    batch_concurrency: int | None = None
    batch_delay_ms: int | None = None
    analyzer_timeout_s: float | None = None
    min_text_length: int | None = None
    symbolic_min_length: int | None = None


class CheckRequest(BaseModel):
    """Input of a check run, as read from JSON by the CLI."""

    fragments: list[Fragment] = Field(default_factory=list)
    locale: str | None = None
    config_overrides: ConfigOverrides | None = None
