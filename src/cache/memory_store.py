# src/cache/memory_store.py — v1
"""In-memory, versioned analysis cache (default CACHE_BACKEND=memory).

Entries are keyed by the full CacheKey tuple. Freshness rules:
  - version mismatch (prompt/ruleset/model/locale) → stale
  - age past max_age → stale
  - otherwise → hit, last_used_at refreshed
Stale entries are kept until eviction, invalidate_stale() or clear().

Eviction is LRU-approximate: when the entry count exceeds max_entries, the
oldest 20% by last_used_at are deleted in one pass.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable

from proofline.cache.base_cache_store import BaseCacheStore
from proofline.cache.models import CacheEntry, CacheEntryMeta, CacheKey, CacheStats
from proofline.core.models import Issue
from proofline.tracking.cost_calculator import estimate_cost_saved, estimate_tokens_saved

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 10_000
DEFAULT_MAX_AGE = timedelta(hours=24)
DEFAULT_PROMPT_VERSION = "2.0"
DEFAULT_RULESET_VERSION = "1.0"
EVICTION_FRACTION = 0.2


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MemoryCacheStore(BaseCacheStore):
    """Single-process cache with injected clock and current versions."""

    def __init__(
        self,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        max_age: timedelta = DEFAULT_MAX_AGE,
        prompt_version: str = DEFAULT_PROMPT_VERSION,
        ruleset_version: str = DEFAULT_RULESET_VERSION,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self._max_entries = max_entries
        self._max_age = max_age
        self._prompt_version = prompt_version
        self._ruleset_version = ruleset_version
        self._clock = clock or _utc_now
        self._lock = threading.RLock()

        self._entries: dict[CacheKey, CacheEntry] = {}
        # (text, locale, model) → most recently written key, any version
        self._slots: dict[tuple[str, str, str], CacheKey] = {}
        self._fragments: dict[str, dict[str, None]] = {}
        self._stats = CacheStats()

    @property
    def prompt_version(self) -> str:
        return self._prompt_version

    @property
    def ruleset_version(self) -> str:
        return self._ruleset_version

    def __len__(self) -> int:
        return len(self._entries)

    def key_for(self, normalized_key: str, locale: str, model: str) -> CacheKey:
        """Build the cache key for a text under the current versions."""
        return CacheKey(
            normalized_key, locale, model,
            self._prompt_version, self._ruleset_version,
        )

    def lookup(self, normalized_key: str, locale: str, model: str) -> CacheEntry | None:
        """Return a hit or stale entry, or None when nothing is cached."""
        with self._lock:
            self._stats.total_requests += 1

            key = self.key_for(normalized_key, locale, model)
            entry = self._entries.get(key)
            if entry is None:
                # Same text/locale/model written under an older version?
                previous = self._slots.get(key.slot)
                if previous is not None:
                    entry = self._entries.get(previous)

            if entry is None:
                self._stats.misses += 1
                self._update_hit_rate()
                return None

            now = self._clock()
            if self._is_stale(entry, locale, model, now):
                entry.status = "stale"
                self._stats.misses += 1
                self._update_hit_rate()
                logger.debug("Stale cache entry for %r", normalized_key[:50])
                return entry

            entry.meta.last_used_at = now
            entry.status = "hit"
            self._stats.hits += 1
            self._stats.tokens_saved += estimate_tokens_saved(normalized_key)
            self._stats.estimated_cost_saved += estimate_cost_saved(normalized_key, model)
            self._update_hit_rate()
            return entry

    def store(
        self, normalized_key: str, result: list[Issue], locale: str, model: str,
    ) -> CacheEntry:
        """Write a result under the current versions, evicting if over capacity."""
        with self._lock:
            key = self.key_for(normalized_key, locale, model)
            now = self._clock()
            entry = CacheEntry(
                status="hit",
                input=normalized_key,
                result=list(result),
                meta=CacheEntryMeta(
                    model=model,
                    prompt_version=self._prompt_version,
                    ruleset_version=self._ruleset_version,
                    locale=locale,
                    created_at=now,
                    last_used_at=now,
                ),
            )
            self._entries[key] = entry
            self._slots[key.slot] = key

            if len(self._entries) > self._max_entries:
                self._evict_oldest()
            self._stats.cache_size = len(self._entries)
            return entry

    def invalidate_stale(self) -> int:
        """Delete entries whose prompt/ruleset versions are not current."""
        with self._lock:
            outdated = [
                key for key, entry in self._entries.items()
                if entry.meta.prompt_version != self._prompt_version
                or entry.meta.ruleset_version != self._ruleset_version
            ]
            for key in outdated:
                self._delete(key)
            self._stats.cache_size = len(self._entries)

        logger.info("Invalidated %d stale cache entries", len(outdated))
        return len(outdated)

    def upgrade(
        self,
        prompt_version: str | None = None,
        ruleset_version: str | None = None,
    ) -> None:
        """Switch the current analysis versions; older entries become stale."""
        with self._lock:
            if prompt_version is not None:
                self._prompt_version = prompt_version
            if ruleset_version is not None:
                self._ruleset_version = ruleset_version
        logger.info(
            "Cache versions now prompt=%s ruleset=%s",
            self._prompt_version, self._ruleset_version,
        )

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._slots.clear()
            self._fragments.clear()
            self._stats = CacheStats()
        logger.info("Cache cleared")

    def reset_stats(self) -> None:
        """Zero the counters without dropping entries."""
        with self._lock:
            self._stats = CacheStats(cache_size=len(self._entries))

    def stats(self) -> CacheStats:
        with self._lock:
            return self._stats.model_copy()

    def map_fragments(self, normalized_key: str, fragment_ids: list[str]) -> None:
        with self._lock:
            index = self._fragments.setdefault(normalized_key, {})
            index.update(dict.fromkeys(fragment_ids))

    def fragments_for(self, normalized_key: str) -> list[str]:
        with self._lock:
            return list(self._fragments.get(normalized_key, ()))

    # --- Internal helpers ---

    def _is_stale(self, entry: CacheEntry, locale: str, model: str, now: datetime) -> bool:
        meta = entry.meta
        return (
            meta.prompt_version != self._prompt_version
            or meta.ruleset_version != self._ruleset_version
            or meta.model != model
            or meta.locale != locale
            or now - meta.created_at > self._max_age
        )

    def _evict_oldest(self) -> None:
        ordered = sorted(self._entries.items(), key=lambda kv: kv[1].meta.last_used_at)
        to_remove = int(len(ordered) * EVICTION_FRACTION)
        for key, _ in ordered[:to_remove]:
            self._delete(key)
        logger.info("Evicted %d old cache entries", to_remove)

    def _delete(self, key: CacheKey) -> None:
        self._entries.pop(key, None)
        if self._slots.get(key.slot) == key:
            del self._slots[key.slot]

    def _update_hit_rate(self) -> None:
        total = self._stats.total_requests
        self._stats.hit_rate = self._stats.hits / total if total else 0.0
