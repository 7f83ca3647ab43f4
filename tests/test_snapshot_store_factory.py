from __future__ import annotations

from pathlib import Path

import pytest

from greenlight.adapters.memory_snapshot_store import InMemorySnapshotStore
from greenlight.adapters.settings import (
    DEFAULT_SNAPSHOT_KEY,
    RuntimeSettings,
    load_runtime_settings,
)
from greenlight.adapters.snapshot_store_factory import create_snapshot_store
from greenlight.adapters.sqlite_snapshot_store import SQLiteSnapshotStore

_ENV_NAMES = (
    "GREENLIGHT_STORE_BACKEND",
    "GREENLIGHT_DB_PATH",
    "GREENLIGHT_SNAPSHOT_KEY",
    "GREENLIGHT_SAVE_DEBOUNCE_MS",
    "GREENLIGHT_CONFLICT_CHECKS",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_NAMES:
        monkeypatch.delenv(name, raising=False)


def test_settings_defaults() -> None:
    settings = load_runtime_settings()
    assert settings == RuntimeSettings()
    assert settings.snapshot_key == DEFAULT_SNAPSHOT_KEY
    assert settings.save_debounce_seconds == 0.5
    assert settings.conflict_checks is True


def test_settings_read_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("GREENLIGHT_STORE_BACKEND", " Memory ")
    monkeypatch.setenv("GREENLIGHT_DB_PATH", str(tmp_path / "casting.db"))
    monkeypatch.setenv("GREENLIGHT_SNAPSHOT_KEY", "team-a")
    monkeypatch.setenv("GREENLIGHT_SAVE_DEBOUNCE_MS", "250")
    monkeypatch.setenv("GREENLIGHT_CONFLICT_CHECKS", "off")
    settings = load_runtime_settings()
    assert settings.store_backend == "memory"
    assert settings.db_path == tmp_path / "casting.db"
    assert settings.snapshot_key == "team-a"
    assert settings.save_debounce_seconds == 0.25
    assert settings.conflict_checks is False


@pytest.mark.parametrize(("raw", "expected"), [("abc", 500), ("-5", 0), ("999999", 60_000)])
def test_debounce_is_clamped(monkeypatch: pytest.MonkeyPatch, raw: str, expected: int) -> None:
    monkeypatch.setenv("GREENLIGHT_SAVE_DEBOUNCE_MS", raw)
    assert load_runtime_settings().save_debounce_ms == expected


def test_factory_defaults_to_sqlite_backend(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("GREENLIGHT_DB_PATH", str(tmp_path / "greenlight.db"))
    store = create_snapshot_store()
    assert isinstance(store, SQLiteSnapshotStore)
    assert (tmp_path / "greenlight.db").exists()


def test_factory_supports_memory_backend() -> None:
    store = create_snapshot_store(RuntimeSettings(store_backend="memory"))
    assert isinstance(store, InMemorySnapshotStore)


def test_factory_rejects_unknown_backend() -> None:
    with pytest.raises(RuntimeError, match="GREENLIGHT_STORE_BACKEND"):
        create_snapshot_store(RuntimeSettings(store_backend="mongo"))
