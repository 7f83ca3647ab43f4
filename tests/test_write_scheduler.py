from __future__ import annotations

import logging
import sqlite3
from collections.abc import Callable
from typing import Any

import pytest

from greenlight.adapters.memory_snapshot_store import InMemorySnapshotStore
from greenlight.application.write_scheduler import DebouncedSnapshotWriter


class FakeTimer:
    def __init__(self, delay_seconds: float, callback: Callable[[], None]) -> None:
        self.delay_seconds = delay_seconds
        self.callback = callback
        self.started = False
        self.cancelled = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        self.callback()


class TimerRecorder:
    def __init__(self) -> None:
        self.timers: list[FakeTimer] = []

    def __call__(self, delay_seconds: float, callback: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(delay_seconds, callback)
        self.timers.append(timer)
        return timer


class FlakyStore(InMemorySnapshotStore):
    def __init__(self, failures: int) -> None:
        super().__init__()
        self.failures = failures

    def save(self, snapshot: dict[str, Any]) -> None:
        if self.failures > 0:
            self.failures -= 1
            raise sqlite3.OperationalError("database is locked")
        super().save(snapshot)


def _writer(store: InMemorySnapshotStore) -> tuple[DebouncedSnapshotWriter, TimerRecorder]:
    timers = TimerRecorder()
    return DebouncedSnapshotWriter(store, delay_seconds=0.5, timer_factory=timers), timers


def test_only_trailing_snapshot_is_written() -> None:
    store = InMemorySnapshotStore()
    writer, timers = _writer(store)
    writer.schedule({"step": 1})
    writer.schedule({"step": 2})
    writer.schedule({"step": 3})

    assert len(timers.timers) == 3
    assert [timer.cancelled for timer in timers.timers] == [True, True, False]
    assert all(timer.delay_seconds == 0.5 for timer in timers.timers)

    timers.timers[0].fire()
    assert store.load() is None
    timers.timers[-1].fire()
    assert store.load() == {"step": 3}
    assert writer.pending is False


def test_flush_writes_pending_snapshot_immediately() -> None:
    store = InMemorySnapshotStore()
    writer, timers = _writer(store)
    assert writer.flush() is False
    writer.schedule({"step": 1})
    assert writer.pending is True
    assert writer.flush() is True
    assert store.load() == {"step": 1}
    assert timers.timers[0].cancelled is True
    timers.timers[0].fire()
    assert store.load() == {"step": 1}


def test_cancel_drops_pending_snapshot() -> None:
    store = InMemorySnapshotStore()
    writer, timers = _writer(store)
    writer.schedule({"step": 1})
    writer.cancel()
    timers.timers[0].fire()
    assert store.load() is None
    assert writer.flush() is False


def test_close_flushes_and_refuses_new_work() -> None:
    store = InMemorySnapshotStore()
    writer, _ = _writer(store)
    writer.schedule({"step": 1})
    writer.close()
    assert store.load() == {"step": 1}
    with pytest.raises(RuntimeError, match="closed"):
        writer.schedule({"step": 2})


def test_timer_write_failure_is_logged_and_keeps_snapshot(
    caplog: pytest.LogCaptureFixture,
) -> None:
    store = FlakyStore(failures=1)
    writer, timers = _writer(store)
    writer.schedule({"step": 1})
    with caplog.at_level(logging.ERROR, logger="greenlight.application.write_scheduler"):
        timers.timers[0].fire()
    assert "snapshot.write_failed" in caplog.text
    assert writer.pending is True
    assert writer.flush() is True
    assert store.load() == {"step": 1}


def test_flush_failure_propagates_and_retry_writes_latest() -> None:
    store = FlakyStore(failures=1)
    writer, _ = _writer(store)
    writer.schedule({"step": 1})
    with pytest.raises(sqlite3.OperationalError):
        writer.flush()
    assert writer.pending is True
    assert writer.flush() is True
    assert store.load() == {"step": 1}
    assert writer.pending is False


def test_close_marks_writer_closed_even_when_final_flush_fails() -> None:
    writer, _ = _writer(FlakyStore(failures=5))
    writer.schedule({"step": 1})
    with pytest.raises(sqlite3.OperationalError):
        writer.close()
    with pytest.raises(RuntimeError, match="closed"):
        writer.schedule({"step": 2})
