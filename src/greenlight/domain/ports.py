"""Ports for snapshot persistence."""

from __future__ import annotations

from typing import Any, Protocol


class SnapshotStore(Protocol):
    """Opaque key-value gateway holding one serialized casting snapshot."""

    def load(self) -> dict[str, Any] | None:
        ...

    def save(self, snapshot: dict[str, Any]) -> None:
        ...

    def clear(self) -> None:
        ...

    def size_of(self) -> str:
        ...
