# tests/unit/batch/test_unit_scheduler.py — v1
"""Tests for batch/scheduler.py — batching, pacing, concurrency, isolation."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from proofline.batch.models import ProgressEvent
from proofline.batch.scheduler import BatchScheduler, make_batches
from proofline.core.models import NormalizedGroup
from tests.conftest import ScriptedAnalyzer, make_issue

LOCALE = "en-US"
MODEL = "test-model"


def _groups(*texts: str) -> list[NormalizedGroup]:
    return [
        NormalizedGroup(normalized_key=t.lower(), representative_text=t, fragment_ids=[f"f{i}"])
        for i, t in enumerate(texts)
    ]


class _Recorder:
    def __init__(self) -> None:
        self.events: list[ProgressEvent] = []

    def __call__(self, event: ProgressEvent) -> None:
        self.events.append(event)

    def of(self, kind: str) -> list[ProgressEvent]:
        return [e for e in self.events if e.kind == kind]


class TestMakeBatches:
    def test_consecutive_chunks(self):
        groups = _groups(*[f"text {i}" for i in range(10)])
        batches = make_batches(groups, 4)
        assert [len(b) for b in batches] == [4, 4, 2]
        flat = [g.representative_text for b in batches for g in b]
        assert flat == [g.representative_text for g in groups]

    def test_empty(self):
        assert make_batches([], 4) == []


class TestConstruction:
    def test_rejects_zero_concurrency(self):
        with pytest.raises(ValueError):
            BatchScheduler(ScriptedAnalyzer(), concurrency=0)

    def test_rejects_negative_delay(self):
        with pytest.raises(ValueError):
            BatchScheduler(ScriptedAnalyzer(), inter_batch_delay=-1)


class TestProcess:
    @pytest.mark.asyncio
    async def test_empty_input_makes_no_calls(self):
        analyzer = ScriptedAnalyzer()
        outcomes = await BatchScheduler(analyzer, inter_batch_delay=0).process([], LOCALE, MODEL)
        assert outcomes == {}
        assert analyzer.calls == []

    @pytest.mark.asyncio
    async def test_one_call_per_group(self):
        analyzer = ScriptedAnalyzer()
        groups = _groups("Alpha", "Beta", "Gamma")
        outcomes = await BatchScheduler(analyzer, inter_batch_delay=0).process(
            groups, LOCALE, MODEL,
        )
        assert sorted(analyzer.calls) == ["Alpha", "Beta", "Gamma"]
        assert set(outcomes) == {"alpha", "beta", "gamma"}

    @pytest.mark.asyncio
    async def test_concurrency_never_exceeded(self):
        analyzer = ScriptedAnalyzer(delay=0.01)
        groups = _groups(*[f"Text {i}" for i in range(10)])
        await BatchScheduler(analyzer, concurrency=4, inter_batch_delay=0).process(
            groups, LOCALE, MODEL,
        )
        assert analyzer.max_in_flight == 4

    @pytest.mark.asyncio
    async def test_batches_start_in_order(self):
        analyzer = ScriptedAnalyzer(delay=0.01)
        groups = _groups(*[f"Text {i}" for i in range(6)])
        await BatchScheduler(analyzer, concurrency=2, inter_batch_delay=0).process(
            groups, LOCALE, MODEL,
        )
        assert sorted(analyzer.calls[:2]) == ["Text 0", "Text 1"]
        assert sorted(analyzer.calls[2:4]) == ["Text 2", "Text 3"]
        assert sorted(analyzer.calls[4:]) == ["Text 4", "Text 5"]

    @pytest.mark.asyncio
    async def test_delay_between_batches_only(self, monkeypatch):
        sleep = AsyncMock()
        monkeypatch.setattr("proofline.batch.scheduler.asyncio.sleep", sleep)
        groups = _groups(*[f"Text {i}" for i in range(10)])

        await BatchScheduler(
            ScriptedAnalyzer(), concurrency=4, inter_batch_delay=0.2,
        ).process(groups, LOCALE, MODEL)

        # three batches, two pauses, none after the last
        assert sleep.await_count == 2
        sleep.assert_awaited_with(0.2)

    @pytest.mark.asyncio
    async def test_zero_delay_never_sleeps(self, monkeypatch):
        sleep = AsyncMock()
        monkeypatch.setattr("proofline.batch.scheduler.asyncio.sleep", sleep)
        await BatchScheduler(
            ScriptedAnalyzer(), concurrency=1, inter_batch_delay=0,
        ).process(_groups("One", "Two"), LOCALE, MODEL)
        sleep.assert_not_awaited()


class TestFailureIsolation:
    @pytest.mark.asyncio
    async def test_failing_group_does_not_affect_others(self, cache_store):
        issue = make_issue()
        analyzer = ScriptedAnalyzer(
            issues_by_text={"One": [issue], "Three": [issue]},
            fail_on={"Two"},
        )
        outcomes = await BatchScheduler(
            analyzer, cache_store, inter_batch_delay=0,
        ).process(_groups("One", "Two", "Three"), LOCALE, MODEL)

        assert outcomes["one"].issues == [issue]
        assert outcomes["three"].issues == [issue]
        assert outcomes["two"].failed
        assert outcomes["two"].issues == []
        assert outcomes["two"].error.startswith("RuntimeError")

    @pytest.mark.asyncio
    async def test_failures_are_not_cached(self, cache_store):
        analyzer = ScriptedAnalyzer(fail_on={"Two"})
        await BatchScheduler(analyzer, cache_store, inter_batch_delay=0).process(
            _groups("One", "Two"), LOCALE, MODEL,
        )
        assert cache_store.lookup("one", LOCALE, MODEL).status == "hit"
        assert cache_store.lookup("two", LOCALE, MODEL) is None

    @pytest.mark.asyncio
    async def test_successes_cached_with_issues(self, cache_store):
        issue = make_issue()
        analyzer = ScriptedAnalyzer(issues_by_text={"Teh cat": [issue]})
        await BatchScheduler(analyzer, cache_store, inter_batch_delay=0).process(
            _groups("Teh cat"), LOCALE, MODEL,
        )
        assert cache_store.lookup("teh cat", LOCALE, MODEL).result == [issue]

    @pytest.mark.asyncio
    async def test_malformed_result_is_a_group_failure(self, cache_store):
        analyzer = ScriptedAnalyzer(issues_by_text={"Two": [{"issue_text": "x"}]})
        outcomes = await BatchScheduler(analyzer, cache_store, inter_batch_delay=0).process(
            _groups("One", "Two", "Three"), LOCALE, MODEL,
        )

        assert outcomes["two"].failed
        assert outcomes["two"].error.startswith("ValidationError")
        assert not outcomes["one"].failed
        assert not outcomes["three"].failed
        assert cache_store.lookup("two", LOCALE, MODEL) is None
        assert cache_store.lookup("one", LOCALE, MODEL).status == "hit"

    @pytest.mark.asyncio
    async def test_non_list_result_is_a_group_failure(self):
        class NoneAnalyzer(ScriptedAnalyzer):
            async def analyze(self, text, locale, model):
                return None

        outcomes = await BatchScheduler(NoneAnalyzer(), inter_batch_delay=0).process(
            _groups("One"), LOCALE, MODEL,
        )
        assert outcomes["one"].failed
        assert outcomes["one"].issues == []

    @pytest.mark.asyncio
    async def test_timeout_is_a_group_failure(self):
        analyzer = ScriptedAnalyzer(delay=1.0)
        outcomes = await BatchScheduler(
            analyzer, inter_batch_delay=0, call_timeout=0.01,
        ).process(_groups("Slow"), LOCALE, MODEL)
        assert outcomes["slow"].failed
        assert "TimeoutError" in outcomes["slow"].error


class TestProgress:
    @pytest.mark.asyncio
    async def test_batch_events_are_monotonic(self):
        recorder = _Recorder()
        groups = _groups(*[f"Text {i}" for i in range(10)])
        await BatchScheduler(
            ScriptedAnalyzer(), concurrency=4, inter_batch_delay=0, progress_sink=recorder,
        ).process(groups, LOCALE, MODEL)

        batch_events = recorder.of("batch")
        assert [(e.completed, e.total) for e in batch_events] == [(4, 10), (8, 10), (10, 10)]

    @pytest.mark.asyncio
    async def test_group_events_per_result(self):
        recorder = _Recorder()
        await BatchScheduler(
            ScriptedAnalyzer(fail_on={"Two"}), inter_batch_delay=0, progress_sink=recorder,
        ).process(_groups("One", "Two", "Three"), LOCALE, MODEL)

        group_events = recorder.of("group")
        assert [e.completed for e in group_events] == [1, 2, 3]
        failed = {e.normalized_key for e in group_events if e.failed}
        assert failed == {"two"}

    @pytest.mark.asyncio
    async def test_broken_sink_does_not_stop_processing(self):
        def broken(event):
            raise RuntimeError("sink down")

        outcomes = await BatchScheduler(
            ScriptedAnalyzer(), inter_batch_delay=0, progress_sink=broken,
        ).process(_groups("One", "Two"), LOCALE, MODEL)
        assert not any(o.failed for o in outcomes.values())
