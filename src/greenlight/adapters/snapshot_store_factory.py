"""Factory for selecting the snapshot persistence gateway."""

from __future__ import annotations

from greenlight.adapters.memory_snapshot_store import InMemorySnapshotStore
from greenlight.adapters.settings import RuntimeSettings, load_runtime_settings
from greenlight.adapters.sqlite_snapshot_store import SQLiteSnapshotStore
from greenlight.domain.ports import SnapshotStore


def create_snapshot_store(settings: RuntimeSettings | None = None) -> SnapshotStore:
    """Build the configured snapshot gateway."""
    resolved = settings or load_runtime_settings()
    backend = resolved.store_backend.strip().lower()
    if backend in {"", "sqlite"}:
        return SQLiteSnapshotStore(db_path=resolved.db_path, key=resolved.snapshot_key)
    if backend == "memory":
        return InMemorySnapshotStore()
    raise RuntimeError("Unsupported GREENLIGHT_STORE_BACKEND value. Expected sqlite or memory.")
