"""SQLite key-value gateway for casting snapshots."""

from __future__ import annotations

import logging
import sqlite3
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from greenlight.adapters.settings import DEFAULT_SNAPSHOT_KEY
from greenlight.adapters.snapshot_codec import decode_snapshot, encode_snapshot, payload_size

logger = logging.getLogger(__name__)


class SQLiteSnapshotStore:
    """Persist one JSON snapshot per storage key."""

    def __init__(self, db_path: Path, key: str = DEFAULT_SNAPSHOT_KEY) -> None:
        self._db_path = db_path
        self._key = key
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._initialize_schema()

    @property
    def key(self) -> str:
        return self._key

    def _connect(self) -> sqlite3.Connection:
        connection = sqlite3.connect(str(self._db_path))
        connection.row_factory = sqlite3.Row
        return connection

    def _initialize_schema(self) -> None:
        with self._connect() as connection:
            connection.execute(
                """
                CREATE TABLE IF NOT EXISTS snapshot_entries (
                    storage_key TEXT PRIMARY KEY,
                    payload_json TEXT NOT NULL,
                    updated_at_utc TEXT NOT NULL
                )
                """
            )

    def _read_payload(self) -> str | None:
        with self._connect() as connection:
            row = connection.execute(
                """
                SELECT payload_json
                FROM snapshot_entries
                WHERE storage_key = ?
                """,
                (self._key,),
            ).fetchone()
        if row is None:
            return None
        return str(row["payload_json"])

    def load(self) -> dict[str, Any] | None:
        return decode_snapshot(self._read_payload(), source=f"sqlite:{self._key}")

    def save(self, snapshot: dict[str, Any]) -> None:
        payload = encode_snapshot(snapshot)
        with self._connect() as connection:
            connection.execute(
                """
                INSERT INTO snapshot_entries (storage_key, payload_json, updated_at_utc)
                VALUES (?, ?, ?)
                ON CONFLICT(storage_key) DO UPDATE SET
                    payload_json = excluded.payload_json,
                    updated_at_utc = excluded.updated_at_utc
                """,
                (self._key, payload, datetime.now(UTC).isoformat()),
            )
        logger.debug("snapshot.saved key=%s bytes=%s", self._key, len(payload.encode("utf-8")))

    def clear(self) -> None:
        with self._connect() as connection:
            connection.execute(
                "DELETE FROM snapshot_entries WHERE storage_key = ?",
                (self._key,),
            )
        logger.info("snapshot.cleared key=%s", self._key)

    def size_of(self) -> str:
        return payload_size(self._read_payload())
