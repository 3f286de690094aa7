# src/pipeline/models.py — v1
"""Pipeline run models: RunSummary, CheckRunResult."""

from __future__ import annotations

from pydantic import BaseModel, Field

from proofline.cache.models import CacheStats
from proofline.core.models import FragmentResult, Issue


class RunSummary(BaseModel):
    """Aggregate figures for one check run."""

    total_fragments: int
    analyzable_fragments: int
    groups: int
    cache_hits: int
    stale_entries: int = 0
    analyzed_groups: int
    failed_groups: int
    skipped_fragments: int
    duration_seconds: float
    stats: CacheStats = Field(default_factory=CacheStats)


class CheckRunResult(BaseModel):
    """Return value of CheckPipeline.run() — one result per input fragment."""

    run_id: str
    locale: str
    model: str
    fragments: list[FragmentResult] = Field(default_factory=list)
    summary: RunSummary

    @property
    def issues(self) -> list[Issue]:
        """All stamped issues, in fragment order."""
        return [issue for result in self.fragments for issue in result.issues]

    @property
    def all_failed(self) -> bool:
        """True when every scheduled group failed (and at least one was scheduled)."""
        s = self.summary
        return s.failed_groups > 0 and s.analyzed_groups == 0
