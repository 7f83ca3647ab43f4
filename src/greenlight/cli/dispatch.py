"""CLI for applying a batch of wire commands to the persisted casting state."""

from __future__ import annotations

import argparse
import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Any

from greenlight.adapters.observability import configure_runtime_logging
from greenlight.adapters.settings import load_runtime_settings
from greenlight.adapters.snapshot_store_factory import create_snapshot_store
from greenlight.application.store import CastingStore

logger = logging.getLogger(__name__)


def _read_commands(path: Path) -> list[Any]:
    if not path.exists():
        raise SystemExit(f"Command file not found: {path}")
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise SystemExit(f"Command file is not valid JSON: {exc.msg}") from exc
    if isinstance(payload, dict):
        payload = [payload]
    if not isinstance(payload, list):
        raise SystemExit("Command file must hold a JSON object or a list of objects.")
    return payload


def build_arg_parser() -> argparse.ArgumentParser:
    """Define CLI flags for batch dispatch."""
    parser = argparse.ArgumentParser(description="Apply casting commands and persist the result.")
    parser.add_argument("--commands", required=True, help="JSON list of {type, payload} commands.")
    parser.add_argument("--db-path", default="", help="Override GREENLIGHT_DB_PATH.")
    parser.add_argument("--snapshot-key", default="", help="Override GREENLIGHT_SNAPSHOT_KEY.")
    return parser


def main(argv: list[str] | None = None) -> None:
    """Hydrate the store, dispatch every command in order, and flush."""
    configure_runtime_logging()
    parser = build_arg_parser()
    parsed = parser.parse_args(argv)

    settings = load_runtime_settings()
    if str(parsed.db_path).strip():
        settings = replace(settings, db_path=Path(str(parsed.db_path)))
    if str(parsed.snapshot_key).strip():
        settings = replace(settings, snapshot_key=str(parsed.snapshot_key).strip())
    messages = _read_commands(Path(str(parsed.commands)))

    gateway = create_snapshot_store(settings)
    applied = 0
    with CastingStore(
        gateway,
        save_debounce_seconds=settings.save_debounce_seconds,
        conflict_checks=settings.conflict_checks,
    ) as store:
        store.hydrate()
        for message in messages:
            before = store.state
            if store.dispatch(message) is not before:
                applied += 1
        state = store.state
    logger.info("dispatch.completed commands=%s applied=%s", len(messages), applied)

    print(f"Commands applied: {applied}/{len(messages)}")
    print(f"Projects: {len(state.projects)}")
    print(f"Notifications: {len(state.notifications)}")
    print(f"Storage size: {gateway.size_of()}")


if __name__ == "__main__":
    main()
