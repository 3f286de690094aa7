# src/api/facade.py — v2
"""Public API facade — single entry point for checking text fragments.

Usage:
    from proofline.api.facade import check_fragments
    result = await check_fragments(fragments)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Sequence

from proofline.api.models import ConfigOverrides
from proofline.config.settings import Settings
from proofline.pipeline.models import CheckRunResult
from proofline.pipeline.runner import CheckPipeline

if TYPE_CHECKING:
    from proofline.analyzers.base_analyzer import BaseAnalyzer
    from proofline.batch.progress import ProgressSink
    from proofline.cache.base_cache_store import BaseCacheStore
    from proofline.core.models import Fragment

logger = logging.getLogger(__name__)


async def check_fragments(
    fragments: Sequence[Fragment],
    settings: Settings | None = None,
    analyzer: BaseAnalyzer | None = None,
    cache_store: BaseCacheStore | None = None,
    fallback_analyzer: BaseAnalyzer | None = None,
    progress_sink: ProgressSink | None = None,
    locale: str | None = None,
    overrides: ConfigOverrides | None = None,
) -> CheckRunResult:
    """Check fragments end-to-end and return one result per fragment.

    Args:
        fragments: Fragments to check, in caller order.
        settings: Global settings. Loaded from .env if None.
        analyzer: Primary analyzer. Built from settings if None.
        cache_store: Cache shared across calls. A fresh one if None.
        fallback_analyzer: Used for the failed fragments when every
            scheduled group of the primary run failed.
        progress_sink: Optional observer for progress events.
        locale: Target locale. Defaults to settings.analyzer_locale.
        overrides: Per-run settings overrides.

    Returns:
        CheckRunResult with per-fragment results and run summary.

    Raises:
        ConfigurationError: If the analyzer cannot be configured.
    """
    settings = _apply_overrides(settings or Settings(), overrides)

    if analyzer is None:
        from proofline.analyzers.analyzer_factory import create_analyzer
        analyzer = create_analyzer(settings)
    if cache_store is None:
        from proofline.cache.cache_factory import create_cache_store
        cache_store = create_cache_store(settings)

    pipeline = CheckPipeline(analyzer, cache_store, settings, progress_sink)
    result = await pipeline.run(fragments, locale=locale)

    if fallback_analyzer is not None and result.all_failed:
        logger.warning(
            "Primary analyzer failed for all %d groups, retrying with fallback %s",
            result.summary.failed_groups, fallback_analyzer.model_id,
        )
        result = await _run_fallback(
            result, fragments, fallback_analyzer, cache_store, settings, progress_sink,
        )

    return result


async def _run_fallback(
    primary: CheckRunResult,
    fragments: Sequence[Fragment],
    fallback_analyzer: BaseAnalyzer,
    cache_store: BaseCacheStore,
    settings: Settings,
    progress_sink: ProgressSink | None,
) -> CheckRunResult:
    """Re-check the failed fragments with the fallback and merge results."""
    failed_ids = {r.fragment_id for r in primary.fragments if r.status == "failed"}
    retry = [f for f in fragments if f.id in failed_ids]

    pipeline = CheckPipeline(fallback_analyzer, cache_store, settings, progress_sink)
    secondary = await pipeline.run(retry, locale=primary.locale)
    replaced = {r.fragment_id: r for r in secondary.fragments}

    merged = [replaced.get(r.fragment_id, r) for r in primary.fragments]
    summary = primary.summary.model_copy(
        update={
            "cache_hits": primary.summary.cache_hits + secondary.summary.cache_hits,
            "analyzed_groups": secondary.summary.analyzed_groups,
            "failed_groups": secondary.summary.failed_groups,
            "duration_seconds": (
                primary.summary.duration_seconds + secondary.summary.duration_seconds
            ),
            "stats": secondary.summary.stats,
        }
    )
    return primary.model_copy(update={"fragments": merged, "summary": summary})


def _apply_overrides(settings: Settings, overrides: ConfigOverrides | None) -> Settings:
    """Apply per-run config overrides if provided."""
    if overrides is None:
        return settings
    values = overrides.model_dump(exclude_none=True)
    if not values:
        return settings
    current = settings.model_dump()
    current.update(values)
    return Settings(_env_file=None, **current)
