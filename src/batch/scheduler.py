# src/batch/scheduler.py — v1
"""Batch scheduler — bounded-concurrency analyzer calls with pacing.

Workflow:
    1. Split groups into consecutive batches of at most ``concurrency``
    2. Run each batch's analyzer calls concurrently, wait for all of them
    3. Store every success in the cache as soon as it completes
    4. Sleep ``inter_batch_delay`` seconds before the next batch
    5. Emit a batch progress event after each batch

A failing call only affects its own group: it is logged, recorded with its
error and an empty issue list, and is not cached.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Sequence

from pydantic import TypeAdapter

from proofline.batch.models import GroupOutcome, ProgressEvent
from proofline.batch.progress import ProgressSink, emit
from proofline.core.models import Issue
from proofline.logging.context import set_batch_context

if TYPE_CHECKING:
    from proofline.analyzers.base_analyzer import BaseAnalyzer
    from proofline.cache.base_cache_store import BaseCacheStore
    from proofline.core.models import NormalizedGroup

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 4
DEFAULT_INTER_BATCH_DELAY_S = 0.2

_ISSUE_LIST = TypeAdapter(list[Issue])


def make_batches(
    groups: Sequence[NormalizedGroup], size: int,
) -> list[list[NormalizedGroup]]:
    """Split groups into consecutive batches of at most ``size``."""
    return [list(groups[i : i + size]) for i in range(0, len(groups), size)]


class BatchScheduler:
    """Run analyzer calls for cache-missing groups, batch by batch.

    Args:
        analyzer: External analyzer collaborator.
        cache_store: Cache receiving each successful result.
        concurrency: Maximum concurrent calls (batch size).
        inter_batch_delay: Pause between batches, in seconds.
        call_timeout: Per-call timeout in seconds (None = no timeout).
        progress_sink: Optional observer for progress events.
    """

    def __init__(
        self,
        analyzer: BaseAnalyzer,
        cache_store: BaseCacheStore | None = None,
        concurrency: int = DEFAULT_CONCURRENCY,
        inter_batch_delay: float = DEFAULT_INTER_BATCH_DELAY_S,
        call_timeout: float | None = None,
        progress_sink: ProgressSink | None = None,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        if inter_batch_delay < 0:
            raise ValueError("inter_batch_delay must be >= 0")
        self._analyzer = analyzer
        self._cache_store = cache_store
        self._concurrency = concurrency
        self._delay = inter_batch_delay
        self._call_timeout = call_timeout
        self._progress_sink = progress_sink

    async def process(
        self,
        groups: Sequence[NormalizedGroup],
        locale: str,
        model: str,
    ) -> dict[str, GroupOutcome]:
        """Analyze every group and return outcomes keyed by normalized text.

        Never raises for analyzer failures; those are reported per group.
        """
        outcomes: dict[str, GroupOutcome] = {}
        total = len(groups)
        if total == 0:
            return outcomes

        batches = make_batches(groups, self._concurrency)
        completed = 0
        finished = 0
        t0 = time.perf_counter()

        async def run_one(group: NormalizedGroup) -> GroupOutcome:
            nonlocal finished
            outcome = await self._analyze_group(group, locale, model)
            finished += 1
            emit(
                self._progress_sink,
                ProgressEvent(
                    kind="group", completed=finished, total=total,
                    normalized_key=outcome.normalized_key, failed=outcome.failed,
                ),
            )
            return outcome

        for index, batch in enumerate(batches):
            set_batch_context(index + 1, len(batches))
            logger.debug(
                "Batch %d/%d: analyzing %d groups",
                index + 1, len(batches), len(batch),
            )

            results = await asyncio.gather(*(run_one(g) for g in batch))
            for outcome in results:
                outcomes[outcome.normalized_key] = outcome

            completed += len(batch)
            emit(
                self._progress_sink,
                ProgressEvent(kind="batch", completed=completed, total=total),
            )

            if index < len(batches) - 1 and self._delay > 0:
                await asyncio.sleep(self._delay)

        failed = sum(1 for o in outcomes.values() if o.failed)
        logger.info(
            "Scheduler complete: %d groups in %d batches, %d failed, %.2fs",
            total, len(batches), failed, time.perf_counter() - t0,
        )
        return outcomes

    async def _analyze_group(
        self, group: NormalizedGroup, locale: str, model: str,
    ) -> GroupOutcome:
        """Run one analyzer call; failures become an empty, uncached outcome."""
        key = group.normalized_key
        try:
            call = self._analyzer.analyze(group.representative_text, locale, model)
            if self._call_timeout is not None:
                issues = await asyncio.wait_for(call, timeout=self._call_timeout)
            else:
                issues = await call
            # Malformed analyzer output fails this group only
            issues = _ISSUE_LIST.validate_python(issues)
        except Exception as exc:
            logger.warning(
                "Analysis failed for %r (%d fragments): %s",
                group.representative_text[:50], len(group.fragment_ids), exc,
            )
            return GroupOutcome(
                normalized_key=key,
                error=f"{type(exc).__name__}: {exc}",
            )

        if self._cache_store is not None:
            self._cache_store.store(key, issues, locale, model)
        return GroupOutcome(normalized_key=key, issues=issues)
