"""CLI for listing schedule red flags in a casting snapshot."""

from __future__ import annotations

import argparse
import json
from pathlib import Path

from greenlight.cli.repair import read_snapshot_file
from greenlight.core.repair import repair
from greenlight.core.schedule_conflicts import detect_schedule_conflicts
from greenlight.domain.traversal import state_performers


def build_arg_parser() -> argparse.ArgumentParser:
    """Define CLI flags for conflict detection."""
    parser = argparse.ArgumentParser(description="Detect schedule conflicts in a snapshot.")
    parser.add_argument("--input", required=True, help="Snapshot JSON to inspect.")
    parser.add_argument(
        "--no-checks",
        action="store_true",
        help="Only report manual red flags (conflict detection disabled).",
    )
    parser.add_argument("--json", action="store_true", help="Print flags as JSON.")
    return parser


def main(argv: list[str] | None = None) -> None:
    """Print red flags per schedule entry."""
    parser = build_arg_parser()
    parsed = parser.parse_args(argv)

    state = repair(read_snapshot_file(Path(str(parsed.input))))
    flags = detect_schedule_conflicts(
        state.schedule_entries,
        state_performers(state),
        enabled=not bool(parsed.no_checks),
    )
    if parsed.json:
        payload = {
            entry_id: [flag.model_dump(by_alias=True, mode="json") for flag in entry_flags]
            for entry_id, entry_flags in flags.items()
        }
        print(json.dumps(payload, indent=2))
        return

    flagged = [entry for entry in state.schedule_entries if flags.get(entry.id)]
    if not flagged:
        print("No schedule conflicts detected.")
        return
    for entry in flagged:
        print(f"{entry.date} {entry.title or entry.id}")
        for flag in flags[entry.id]:
            performer = f" actor={flag.actor_id}" if flag.actor_id else ""
            print(f"  [{flag.kind}] {flag.message}{performer}")
    print(f"Entries with flags: {len(flagged)}")


if __name__ == "__main__":
    main()
