# src/cache/models.py — v2
"""Cache domain models: CacheKey, CacheEntryMeta, CacheEntry, CacheStats."""

from __future__ import annotations

import hashlib
from datetime import datetime
from typing import Literal, NamedTuple

from pydantic import BaseModel, Field

from proofline.core.models import Issue

CacheStatus = Literal["hit", "miss", "stale"]


class CacheKey(NamedTuple):
    """Composite cache key.

    The full tuple is used as the dictionary key, so distinct
    locale/model/version combinations can never collide.
    """

    normalized_key: str
    locale: str
    model: str
    prompt_version: str
    ruleset_version: str

    @property
    def slot(self) -> tuple[str, str, str]:
        """Version-independent part of the key."""
        return (self.normalized_key, self.locale, self.model)

    @property
    def digest(self) -> str:
        """128-bit BLAKE2b hex digest, for logs and external references."""
        payload = "\x1f".join(self).encode("utf-8")
        return hashlib.blake2b(payload, digest_size=16).hexdigest()


class CacheEntryMeta(BaseModel):
    """Provenance and freshness data of a cache entry."""

    model: str
    prompt_version: str
    ruleset_version: str
    locale: str
    created_at: datetime
    last_used_at: datetime


class CacheEntry(BaseModel):
    """Cached analyzer result for one normalized text."""

    status: CacheStatus = "miss"
    input: str
    result: list[Issue] = Field(default_factory=list)
    meta: CacheEntryMeta


class CacheStats(BaseModel):
    """Process-lifetime cache counters (read-only snapshot)."""

    hits: int = 0
    misses: int = 0
    total_requests: int = 0
    hit_rate: float = 0.0
    cache_size: int = 0
    tokens_saved: int = 0
    estimated_cost_saved: float = 0.0
