# src/batch/progress.py — v1
"""Progress sinks: observers notified by the scheduler.

A sink is any callable taking a ProgressEvent. Sinks are called
synchronously and must not block; a failing sink is logged and ignored.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from proofline.batch.models import ProgressEvent

logger = logging.getLogger(__name__)

ProgressSink = Callable[[ProgressEvent], None]


class QueueProgressSink:
    """Publish events on an asyncio.Queue (message channel for a UI task)."""

    def __init__(self, queue: asyncio.Queue[ProgressEvent] | None = None) -> None:
        self.queue: asyncio.Queue[ProgressEvent] = queue or asyncio.Queue()

    def __call__(self, event: ProgressEvent) -> None:
        self.queue.put_nowait(event)

    def drain(self) -> list[ProgressEvent]:
        """Return and remove every queued event."""
        events: list[ProgressEvent] = []
        while not self.queue.empty():
            events.append(self.queue.get_nowait())
        return events


class BatchProgressCallback:
    """Adapt a plain ``(completed, total)`` callback to batch events only."""

    def __init__(self, callback: Callable[[int, int], None]) -> None:
        self._callback = callback

    def __call__(self, event: ProgressEvent) -> None:
        if event.kind == "batch":
            self._callback(event.completed, event.total)


def emit(sink: ProgressSink | None, event: ProgressEvent) -> None:
    """Deliver an event to a sink without letting it disturb the caller."""
    if sink is None:
        return
    try:
        sink(event)
    except Exception:
        logger.warning("Progress sink failed on %s event", event.kind, exc_info=True)
