"""Dispatch/subscribe container owning the single casting state root."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from types import TracebackType
from typing import Any

from greenlight.application.write_scheduler import DebouncedSnapshotWriter
from greenlight.core.commands import ClearCache, CommandModel, LoadFromStorage, parse_command
from greenlight.core.defaults import default_state
from greenlight.core.schedule_conflicts import detect_schedule_conflicts
from greenlight.core.snapshot import persistable_snapshot
from greenlight.core.transition import transition
from greenlight.domain.models import CastingState, RedFlag, now_ms
from greenlight.domain.ports import SnapshotStore
from greenlight.domain.traversal import state_performers

logger = logging.getLogger(__name__)

Listener = Callable[[CastingState], None]

# Commands whose result is never written back to the gateway.
_UNPERSISTED = (LoadFromStorage, ClearCache)


class CastingStore:
    """Apply commands one at a time, notify subscribers, and persist with debounce."""

    def __init__(
        self,
        gateway: SnapshotStore,
        *,
        writer: DebouncedSnapshotWriter | None = None,
        initial_state: CastingState | None = None,
        save_debounce_seconds: float = 0.5,
        conflict_checks: bool = True,
    ) -> None:
        self._gateway = gateway
        self._writer = writer or DebouncedSnapshotWriter(
            gateway, delay_seconds=save_debounce_seconds
        )
        self._state = initial_state or default_state()
        self._listeners: list[Listener] = []
        self._conflict_checks = conflict_checks

    @property
    def state(self) -> CastingState:
        return self._state

    def hydrate(self) -> CastingState:
        """Load and repair the persisted snapshot, if any."""
        snapshot = self._gateway.load()
        if snapshot is None:
            logger.info("store.hydrate.empty")
            return self._state
        return self.dispatch(LoadFromStorage(snapshot=snapshot))

    def dispatch(self, command: CommandModel | Mapping[str, Any]) -> CastingState:
        parsed = parse_command(command)
        if parsed is None:
            return self._state
        # The wall clock is read here and nowhere below.
        parsed = parsed.stamped(now_ms())
        next_state = transition(self._state, parsed)
        if isinstance(parsed, ClearCache):
            self._writer.cancel()
            self._gateway.clear()
        if next_state is self._state:
            return self._state
        self._state = next_state
        if not isinstance(parsed, _UNPERSISTED):
            self._writer.schedule(persistable_snapshot(next_state))
        for listener in list(self._listeners):
            listener(next_state)
        return next_state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; the returned callable removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def schedule_conflicts(self) -> dict[str, list[RedFlag]]:
        return detect_schedule_conflicts(
            self._state.schedule_entries, state_performers(self._state), self._conflict_checks
        )

    def storage_size(self) -> str:
        return self._gateway.size_of()

    def flush(self) -> bool:
        return self._writer.flush()

    def close(self) -> None:
        self._writer.close()

    def __enter__(self) -> CastingStore:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()
