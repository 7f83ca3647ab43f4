from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

import pytest

from greenlight.adapters.memory_snapshot_store import InMemorySnapshotStore
from greenlight.adapters.snapshot_codec import decode_snapshot, human_readable_size
from greenlight.adapters.sqlite_snapshot_store import SQLiteSnapshotStore
from greenlight.core.defaults import default_state
from greenlight.core.repair import repair
from greenlight.core.snapshot import persistable_snapshot


def test_memory_store_round_trip_is_isolated_from_caller() -> None:
    store = InMemorySnapshotStore()
    assert store.load() is None
    assert store.size_of() == "0 B"

    snapshot = persistable_snapshot(default_state())
    store.save(snapshot)
    snapshot["users"] = []
    loaded = store.load()
    assert loaded is not None
    assert len(loaded["users"]) == 3
    assert repair(loaded) == default_state()

    store.clear()
    assert store.load() is None


def test_sqlite_store_write_and_read_latest(tmp_path: Path) -> None:
    db_path = tmp_path / "nested" / "greenlight.db"
    store = SQLiteSnapshotStore(db_path=db_path)
    store.save({"users": [{"id": "1"}]})
    store.save({"users": [{"id": "2"}]})
    assert store.load() == {"users": [{"id": "2"}]}

    with sqlite3.connect(str(db_path)) as connection:
        rows = connection.execute("SELECT storage_key FROM snapshot_entries").fetchall()
    assert rows == [("gogreenlight-casting-state",)]


def test_sqlite_store_keys_are_independent(tmp_path: Path) -> None:
    db_path = tmp_path / "greenlight.db"
    first = SQLiteSnapshotStore(db_path=db_path, key="first")
    second = SQLiteSnapshotStore(db_path=db_path, key="second")
    first.save({"owner": "first"})
    assert second.load() is None
    second.save({"owner": "second"})
    first.clear()
    assert first.load() is None
    assert second.load() == {"owner": "second"}
    assert second.key == "second"


def test_sqlite_store_reads_corrupt_payload_as_absent(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    db_path = tmp_path / "greenlight.db"
    store = SQLiteSnapshotStore(db_path=db_path)
    store.save({"users": []})
    with sqlite3.connect(str(db_path)) as connection:
        connection.execute("UPDATE snapshot_entries SET payload_json = '{not json'")

    with caplog.at_level(logging.WARNING, logger="greenlight.adapters.snapshot_codec"):
        assert store.load() is None
    assert "snapshot.decode_failed" in caplog.text
    assert store.size_of() == "9 B"


def test_decode_rejects_non_object_payloads(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="greenlight.adapters.snapshot_codec"):
        assert decode_snapshot("[1, 2]", source="test") is None
    assert "not_an_object" in caplog.text
    assert decode_snapshot(None, source="test") is None


@pytest.mark.parametrize(
    ("num_bytes", "expected"),
    [(0, "0 B"), (1023, "1023 B"), (1536, "1.50 KB"), (5 * 1024 * 1024, "5.00 MB")],
)
def test_human_readable_size(num_bytes: int, expected: str) -> None:
    assert human_readable_size(num_bytes) == expected
