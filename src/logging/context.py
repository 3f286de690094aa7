# src/logging/context.py — v2
"""Contextual logging support — attach run_id, locale, model, batch to log records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Context variables for structured logging, set per check run.
_run_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "run_id", default=None
)
_locale: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "locale", default=None
)
_model: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "model", default=None
)
_batch: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "batch", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    run_id: str | None = None
    locale: str | None = None
    model: str | None = None
    batch: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        run_id=_run_id.get(),
        locale=_locale.get(),
        model=_model.get(),
        batch=_batch.get(),
    )


def set_run_context(run_id: str, locale: str, model: str) -> None:
    """Set run-level context (called once per check run)."""
    _run_id.set(run_id)
    _locale.set(locale)
    _model.set(model)


def set_batch_context(index: int, total: int) -> None:
    """Set batch-level context (called before each batch)."""
    _batch.set(f"{index}/{total}")


def clear_context() -> None:
    """Reset all context variables."""
    _run_id.set(None)
    _locale.set(None)
    _model.set(None)
    _batch.set(None)
