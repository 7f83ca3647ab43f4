"""Process-local snapshot gateway."""

from __future__ import annotations

from typing import Any

from greenlight.adapters.snapshot_codec import decode_snapshot, encode_snapshot, payload_size


class InMemorySnapshotStore:
    """Keep the encoded snapshot in memory so reads never alias the caller's dict."""

    def __init__(self, payload: str | None = None) -> None:
        self._payload = payload

    def load(self) -> dict[str, Any] | None:
        return decode_snapshot(self._payload, source="memory")

    def save(self, snapshot: dict[str, Any]) -> None:
        self._payload = encode_snapshot(snapshot)

    def clear(self) -> None:
        self._payload = None

    def size_of(self) -> str:
        return payload_size(self._payload)
