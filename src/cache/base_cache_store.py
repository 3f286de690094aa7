# src/cache/base_cache_store.py — v2
"""Abstract cache store interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from proofline.cache.models import CacheEntry, CacheStats
from proofline.core.models import Issue


class BaseCacheStore(ABC):
    """Unified interface for analysis result caches."""

    @abstractmethod
    def lookup(self, normalized_key: str, locale: str, model: str) -> CacheEntry | None:
        """Return the entry for a text (status hit or stale), or None."""

    @abstractmethod
    def store(
        self, normalized_key: str, result: list[Issue], locale: str, model: str,
    ) -> CacheEntry:
        """Insert or overwrite the entry for a text under current versions."""

    @abstractmethod
    def invalidate_stale(self) -> int:
        """Delete entries written under other prompt/ruleset versions."""

    @abstractmethod
    def clear(self) -> None:
        """Drop all entries, the fragment index and the counters."""

    @abstractmethod
    def stats(self) -> CacheStats:
        """Snapshot of hit/miss counters."""

    @abstractmethod
    def map_fragments(self, normalized_key: str, fragment_ids: list[str]) -> None:
        """Record which fragments requested a normalized text."""

    @abstractmethod
    def fragments_for(self, normalized_key: str) -> list[str]:
        """Fragment ids recorded for a normalized text."""
