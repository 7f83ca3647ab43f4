from __future__ import annotations

import logging
from collections.abc import Iterator
from logging.handlers import RotatingFileHandler
from pathlib import Path

import pytest

from greenlight.adapters import observability


@pytest.fixture
def _restore_root_logger(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    command_levels = {
        name: logging.getLogger(name).level for name in observability.COMMAND_LOGGERS
    }
    monkeypatch.setattr(observability, "_CONFIGURED", False)
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    for name, command_level in command_levels.items():
        logging.getLogger(name).setLevel(command_level)


@pytest.mark.usefixtures("_restore_root_logger")
def test_configure_runtime_logging_installs_bounded_file_handler(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    log_path = tmp_path / "logs" / "greenlight.log"
    monkeypatch.setenv("GREENLIGHT_LOG_PATH", str(log_path))
    monkeypatch.setenv("GREENLIGHT_LOG_LEVEL", "debug")
    monkeypatch.setenv("GREENLIGHT_LOG_MAX_BYTES", "1")
    monkeypatch.setenv("GREENLIGHT_LOG_BACKUP_COUNT", "500")

    observability.configure_runtime_logging()

    root = logging.getLogger()
    assert root.level == logging.DEBUG
    file_handlers = [item for item in root.handlers if isinstance(item, RotatingFileHandler)]
    assert len(file_handlers) == 1
    assert file_handlers[0].maxBytes == 64 * 1024
    assert file_handlers[0].backupCount == 120
    assert log_path.parent.is_dir()

    observability.configure_runtime_logging()
    assert len(root.handlers) == 2


@pytest.mark.usefixtures("_restore_root_logger")
def test_command_loggers_get_their_own_level_and_records_are_tagged(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("GREENLIGHT_LOG_PATH", str(tmp_path / "greenlight.log"))
    monkeypatch.setenv("GREENLIGHT_LOG_LEVEL", "not-a-level")
    monkeypatch.setenv("GREENLIGHT_COMMAND_LOG_LEVEL", "error")

    observability.configure_runtime_logging()

    assert logging.getLogger().level == logging.INFO
    for name in observability.COMMAND_LOGGERS:
        assert logging.getLogger(name).level == logging.ERROR
    formatter = logging.getLogger().handlers[0].formatter
    assert formatter is not None
    record = logging.LogRecord("greenlight.cli", logging.INFO, __file__, 1, "hello", None, None)
    assert "greenlight[" in formatter.format(record)
    assert formatter.format(record).endswith("[greenlight.cli] hello")
