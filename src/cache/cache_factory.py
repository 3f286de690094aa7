# src/cache/cache_factory.py — v3
"""Factory for cache store instantiation."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable

from proofline.cache.base_cache_store import BaseCacheStore
from proofline.config.settings import Settings


def create_cache_store(
    settings: Settings | None = None,
    clock: Callable[[], datetime] | None = None,
) -> BaseCacheStore:
    """Instantiate the configured cache backend.

    Args:
        settings: Application settings. Defaults to Settings() values.
        clock: Time source for freshness checks (tests inject a fake one).

    Returns:
        Configured BaseCacheStore implementation.
    """
    settings = settings or Settings(_env_file=None)
    backend = settings.cache_backend

    if backend == "memory":
        from proofline.cache.memory_store import MemoryCacheStore
        return MemoryCacheStore(
            max_entries=settings.cache_max_entries,
            max_age=timedelta(hours=settings.cache_max_age_hours),
            prompt_version=settings.prompt_version,
            ruleset_version=settings.ruleset_version,
            clock=clock,
        )

    raise ValueError(f"Unsupported cache backend: {backend!r}")
