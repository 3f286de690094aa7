# src/pipeline/runner.py — v2
"""Check pipeline — normalize, group, consult cache, schedule, distribute.

One CheckPipeline.run() call processes a fragment list end to end:
  1. Group analyzable fragments by normalized text
  2. Record the fragment ids of each group in the cache's reverse index
  3. Look every group up in the cache; fresh hits are reused
  4. Schedule the misses (absent or stale) in paced concurrent batches
  5. Distribute group results back to every fragment, in input order
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import TYPE_CHECKING, Sequence

from proofline.batch.distributor import distribute
from proofline.batch.grouper import group_fragments
from proofline.batch.scheduler import BatchScheduler
from proofline.config.settings import ConfigurationError, Settings
from proofline.logging.context import clear_context, set_run_context
from proofline.pipeline.models import CheckRunResult, RunSummary

if TYPE_CHECKING:
    from proofline.analyzers.base_analyzer import BaseAnalyzer
    from proofline.batch.progress import ProgressSink
    from proofline.cache.base_cache_store import BaseCacheStore
    from proofline.core.models import Fragment, Issue, NormalizedGroup

logger = logging.getLogger(__name__)


class CheckPipeline:
    """Deduplicating, caching driver around an analyzer.

    Args:
        analyzer: External analyzer collaborator.
        cache_store: Cache shared across runs.
        settings: Batch sizing, pacing, filter thresholds and defaults.
        progress_sink: Optional observer for progress events.

    Raises:
        ConfigurationError: If no analyzer or cache store is provided.
    """

    def __init__(
        self,
        analyzer: BaseAnalyzer,
        cache_store: BaseCacheStore,
        settings: Settings | None = None,
        progress_sink: ProgressSink | None = None,
    ) -> None:
        if analyzer is None:
            raise ConfigurationError("CheckPipeline requires an analyzer")
        if cache_store is None:
            raise ConfigurationError("CheckPipeline requires a cache store")
        self._analyzer = analyzer
        self._cache_store = cache_store
        self._settings = settings or Settings(_env_file=None)
        self._progress_sink = progress_sink

    async def run(
        self,
        fragments: Sequence[Fragment],
        locale: str | None = None,
        model: str | None = None,
    ) -> CheckRunResult:
        """Check every fragment and return per-fragment results.

        Args:
            fragments: Fragments to check, in caller order.
            locale: Target locale. Defaults to settings.analyzer_locale.
            model: Model component of cache keys. Defaults to the analyzer's.
        """
        settings = self._settings
        locale = locale or settings.analyzer_locale
        model = model or self._analyzer.model_id
        run_id = uuid.uuid4().hex[:12]
        t0 = time.perf_counter()

        set_run_context(run_id, locale, model)
        try:
            groups = group_fragments(
                fragments,
                min_length=settings.min_text_length,
                symbolic_min_length=settings.symbolic_min_length,
            )
            cache_hits, pending, stale = self._consult_cache(groups, locale, model)

            logger.info(
                "Run %s: %d fragments, %d groups, %d cached, %d to analyze",
                run_id, len(fragments), len(groups), len(cache_hits), len(pending),
            )

            scheduler = BatchScheduler(
                analyzer=self._analyzer,
                cache_store=self._cache_store,
                concurrency=settings.batch_concurrency,
                inter_batch_delay=settings.batch_delay_s,
                call_timeout=settings.analyzer_timeout_s,
                progress_sink=self._progress_sink,
            )
            outcomes = await scheduler.process(pending, locale, model)
            results = distribute(fragments, groups, cache_hits, outcomes)

            failed = sum(1 for o in outcomes.values() if o.failed)
            stats = self._cache_store.stats()
            summary = RunSummary(
                total_fragments=len(fragments),
                analyzable_fragments=sum(len(g.fragment_ids) for g in groups.values()),
                groups=len(groups),
                cache_hits=len(cache_hits),
                stale_entries=stale,
                analyzed_groups=len(outcomes) - failed,
                failed_groups=failed,
                skipped_fragments=sum(1 for r in results if r.status == "skipped"),
                duration_seconds=time.perf_counter() - t0,
                stats=stats,
            )
            logger.info(
                "Run %s complete: %d analyzed, %d failed, hit rate %.1f%%, %.2fs",
                run_id, summary.analyzed_groups, failed,
                stats.hit_rate * 100, summary.duration_seconds,
            )
            return CheckRunResult(
                run_id=run_id,
                locale=locale,
                model=model,
                fragments=results,
                summary=summary,
            )
        finally:
            clear_context()

    def _consult_cache(
        self,
        groups: dict[str, NormalizedGroup],
        locale: str,
        model: str,
    ) -> tuple[dict[str, list[Issue]], list[NormalizedGroup], int]:
        """Split groups into fresh cache hits and groups needing analysis."""
        cache_hits: dict[str, list[Issue]] = {}
        pending: list[NormalizedGroup] = []
        stale = 0

        for key, group in groups.items():
            self._cache_store.map_fragments(key, group.fragment_ids)
            entry = self._cache_store.lookup(key, locale, model)
            if entry is not None and entry.status == "hit":
                cache_hits[key] = entry.result
                continue
            if entry is not None:
                stale += 1
            pending.append(group)

        return cache_hits, pending, stale
