"""Runtime logging configuration with bounded retention."""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

from greenlight.adapters.settings import int_env

logger = logging.getLogger(__name__)

_CONFIGURED = False

DEFAULT_LOG_PATH = "work/logs/greenlight.log"
LOG_FORMAT = "%(asctime)s %(levelname)s greenlight[%(process)d] [%(name)s] %(message)s"

# Loggers that report every rejected or unhandled command.
COMMAND_LOGGERS = ("greenlight.core.commands", "greenlight.core.transition")


def _level(name: str, default: str) -> int:
    level_name = os.environ.get(name, default).strip().upper() or default
    level = logging.getLevelName(level_name)
    return level if isinstance(level, int) else logging.getLevelName(default)


def configure_runtime_logging() -> None:
    """Configure console + rotating file logs once per process.

    ``GREENLIGHT_COMMAND_LOG_LEVEL`` tunes the command rejection chatter
    separately from ``GREENLIGHT_LOG_LEVEL`` so batch dispatches of noisy
    input do not flood the file.
    """
    global _CONFIGURED
    if _CONFIGURED:
        return

    level = _level("GREENLIGHT_LOG_LEVEL", "INFO")
    log_path = Path(
        os.environ.get("GREENLIGHT_LOG_PATH", DEFAULT_LOG_PATH).strip() or DEFAULT_LOG_PATH
    )
    max_bytes = int_env(
        "GREENLIGHT_LOG_MAX_BYTES", 5 * 1024 * 1024, minimum=64 * 1024, maximum=100 * 1024 * 1024
    )
    backup_count = int_env("GREENLIGHT_LOG_BACKUP_COUNT", 10, minimum=1, maximum=120)

    log_path.parent.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S%z")
    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)

    file_handler = RotatingFileHandler(
        filename=log_path,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    file_handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(stream_handler)
    root.addHandler(file_handler)

    command_level = _level("GREENLIGHT_COMMAND_LOG_LEVEL", "WARNING")
    for name in COMMAND_LOGGERS:
        logging.getLogger(name).setLevel(command_level)

    _CONFIGURED = True
    logger.debug("logging.configured path=%s level=%s", log_path, logging.getLevelName(level))
