"""Environment-driven runtime settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_DB_PATH = "work/local/greenlight.db"
DEFAULT_SNAPSHOT_KEY = "gogreenlight-casting-state"
DEFAULT_SAVE_DEBOUNCE_MS = 500


def int_env(name: str, default: int, *, minimum: int, maximum: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return max(minimum, min(maximum, value))


def env_flag(name: str, *, default: bool = False) -> bool:
    raw = os.environ.get(name, "").strip().lower()
    if not raw:
        return default
    return raw in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class RuntimeSettings:
    """Process configuration for persistence and conflict detection."""

    store_backend: str = "sqlite"
    db_path: Path = Path(DEFAULT_DB_PATH)
    snapshot_key: str = DEFAULT_SNAPSHOT_KEY
    save_debounce_ms: int = DEFAULT_SAVE_DEBOUNCE_MS
    conflict_checks: bool = True

    @property
    def save_debounce_seconds(self) -> float:
        return self.save_debounce_ms / 1000


def load_runtime_settings() -> RuntimeSettings:
    """Read ``GREENLIGHT_*`` variables, falling back to defaults for blank or bad values."""
    return RuntimeSettings(
        store_backend=os.environ.get("GREENLIGHT_STORE_BACKEND", "sqlite").strip().lower()
        or "sqlite",
        db_path=Path(
            os.environ.get("GREENLIGHT_DB_PATH", DEFAULT_DB_PATH).strip() or DEFAULT_DB_PATH
        ),
        snapshot_key=os.environ.get("GREENLIGHT_SNAPSHOT_KEY", DEFAULT_SNAPSHOT_KEY).strip()
        or DEFAULT_SNAPSHOT_KEY,
        save_debounce_ms=int_env(
            "GREENLIGHT_SAVE_DEBOUNCE_MS", DEFAULT_SAVE_DEBOUNCE_MS, minimum=0, maximum=60_000
        ),
        conflict_checks=env_flag("GREENLIGHT_CONFLICT_CHECKS", default=True),
    )
