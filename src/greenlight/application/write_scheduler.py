"""Trailing-edge debounced persistence of casting snapshots."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from functools import partial
from typing import Any, Protocol

from greenlight.domain.ports import SnapshotStore

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def start(self) -> None: ...

    def cancel(self) -> None: ...


TimerFactory = Callable[[float, Callable[[], None]], TimerHandle]


def _daemon_timer(delay_seconds: float, callback: Callable[[], None]) -> TimerHandle:
    timer = threading.Timer(delay_seconds, callback)
    timer.daemon = True
    return timer


class DebouncedSnapshotWriter:
    """Coalesce snapshot writes so only the last one after a quiet period is saved.

    Every ``schedule`` cancels the pending timer and starts a new one. The
    timer thread and callers share the pending snapshot under a lock; a
    generation counter discards timers that fired after being superseded. A
    failed save keeps the snapshot pending until the next flush or close.
    """

    def __init__(
        self,
        store: SnapshotStore,
        *,
        delay_seconds: float = 0.5,
        timer_factory: TimerFactory = _daemon_timer,
    ) -> None:
        self._store = store
        self._delay_seconds = max(0.0, delay_seconds)
        self._timer_factory = timer_factory
        self._lock = threading.Lock()
        self._pending: dict[str, Any] | None = None
        self._timer: TimerHandle | None = None
        self._generation = 0
        self._closed = False

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._pending is not None

    def schedule(self, snapshot: dict[str, Any]) -> None:
        with self._lock:
            if self._closed:
                raise RuntimeError("Snapshot writer is closed.")
            self._cancel_timer()
            self._pending = snapshot
            self._generation += 1
            self._timer = self._timer_factory(
                self._delay_seconds, partial(self._fire, self._generation)
            )
            self._timer.start()

    def flush(self) -> bool:
        """Write the pending snapshot now. Returns whether anything was written.

        A failed save leaves the snapshot pending so a later flush retries it.
        """
        with self._lock:
            self._cancel_timer()
            snapshot = self._pending
            if snapshot is None:
                return False
            self._store.save(snapshot)
            self._pending = None
        logger.debug("snapshot.flushed")
        return True

    def cancel(self) -> None:
        with self._lock:
            self._cancel_timer()
            self._pending = None

    def close(self) -> None:
        try:
            self.flush()
        finally:
            with self._lock:
                self._closed = True

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _fire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or self._pending is None:
                return
            self._timer = None
            try:
                self._store.save(self._pending)
            except Exception:  # noqa: BLE001
                logger.exception("snapshot.write_failed generation=%s", generation)
                return
            self._pending = None
        logger.debug("snapshot.written generation=%s", generation)
