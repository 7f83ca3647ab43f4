"""CLI for healing a persisted casting snapshot file."""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any

from greenlight.core.repair import repair
from greenlight.core.snapshot import persistable_snapshot


def read_snapshot_file(path: Path) -> Any:
    """Read JSON from ``path``; undecodable content is handed to repair as ``None``."""
    if not path.exists():
        raise SystemExit(f"Snapshot not found: {path}")
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError:
        print(f"Warning: {path} is not valid JSON; starting from defaults.")
        return None


def build_arg_parser() -> argparse.ArgumentParser:
    """Define CLI flags for snapshot repair."""
    parser = argparse.ArgumentParser(description="Repair a casting snapshot of any vintage.")
    parser.add_argument("--input", required=True, help="Snapshot JSON to repair.")
    parser.add_argument(
        "--output",
        default="",
        help="Write the repaired snapshot here instead of printing it.",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """Repair one snapshot and print or write the result."""
    parser = build_arg_parser()
    parsed = parser.parse_args(argv)

    state = repair(read_snapshot_file(Path(str(parsed.input))))
    payload = json.dumps(persistable_snapshot(state), indent=2) + "\n"
    output = str(parsed.output).strip()
    if not output:
        print(payload, end="")
        return

    output_path = Path(output)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(payload, encoding="utf-8")
    characters = sum(len(project.characters) for project in state.projects)
    performers = sum(
        len(character.performers)
        for project in state.projects
        for character in project.characters
    )
    print(f"Repaired snapshot: {output_path}")
    print(f"Projects: {len(state.projects)}")
    print(f"Characters: {characters}")
    print(f"Performers: {performers}")
    print(f"Schedule entries: {len(state.schedule_entries)}")


if __name__ == "__main__":
    main()
