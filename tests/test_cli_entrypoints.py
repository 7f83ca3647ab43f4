from __future__ import annotations

import json
import shutil
from pathlib import Path

import pytest

from greenlight.adapters.sqlite_snapshot_store import SQLiteSnapshotStore
from greenlight.cli import conflicts, dispatch
from greenlight.cli import repair as repair_cli
from greenlight.core.defaults import default_state
from greenlight.core.repair import repair
from greenlight.core.snapshot import persistable_snapshot

FIXTURE = Path(__file__).resolve().parent / "fixtures" / "legacy_casting_snapshot.json"


def _write_json(path: Path, payload: object) -> Path:
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_repair_main_prints_repaired_snapshot(capsys: pytest.CaptureFixture[str]) -> None:
    repair_cli.main(["--input", str(FIXTURE)])
    printed = json.loads(capsys.readouterr().out)
    assert printed["schemaVersion"] == "casting_state.v1"
    assert printed["currentUser"]["id"] == "2"
    assert printed["currentFocus"]["playerView"]["isOpen"] is False


def test_repair_main_writes_output_file(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    source = tmp_path / "legacy.json"
    shutil.copyfile(FIXTURE, source)
    output = tmp_path / "out" / "repaired.json"
    repair_cli.main(["--input", str(source), "--output", str(output)])
    captured = capsys.readouterr().out
    assert f"Repaired snapshot: {output}" in captured
    assert "Projects: 1" in captured
    assert "Characters: 1" in captured
    assert "Performers: 4" in captured
    assert "Schedule entries: 1" in captured
    assert repair(json.loads(output.read_text(encoding="utf-8"))) == repair(
        json.loads(source.read_text(encoding="utf-8"))
    )


def test_repair_main_treats_invalid_json_as_empty(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    source = tmp_path / "broken.json"
    source.write_text("{oops", encoding="utf-8")
    repair_cli.main(["--input", str(source)])
    out = capsys.readouterr().out
    assert "is not valid JSON" in out
    payload = json.loads(out.split("\n", 1)[1])
    assert repair(payload) == default_state()


def test_repair_main_rejects_missing_input(tmp_path: Path) -> None:
    with pytest.raises(SystemExit, match="Snapshot not found"):
        repair_cli.main(["--input", str(tmp_path / "missing.json")])


def _schedule_snapshot() -> dict[str, object]:
    snapshot = persistable_snapshot(default_state())
    snapshot["projects"] = [
        {
            "id": "p1",
            "characters": [
                {
                    "id": "c1",
                    "actors": {
                        "longList": [
                            {
                                "id": "a1",
                                "availabilityDates": [
                                    {"date": "2024-03-04", "status": "unavailable"}
                                ],
                            }
                        ]
                    },
                }
            ],
        }
    ]
    snapshot["scheduleEntries"] = [
        {"id": "e1", "title": "Rooftop", "date": "2024-03-04", "actorIds": ["a1"]},
        {"id": "e2", "title": "Precinct", "date": "2024-03-04", "actorIds": ["a1"]},
        {"id": "e3", "title": "Diner", "date": "2024-03-05", "actorIds": []},
    ]
    return snapshot


def test_conflicts_main_lists_flagged_entries(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    source = _write_json(tmp_path / "snapshot.json", _schedule_snapshot())
    conflicts.main(["--input", str(source)])
    out = capsys.readouterr().out
    assert '[conflict] Already scheduled for "Precinct" actor=a1' in out
    assert "[warning] Marked unavailable actor=a1" in out
    assert "Diner" not in out
    assert "Entries with flags: 2" in out


def test_conflicts_main_json_and_disabled_checks(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    source = _write_json(tmp_path / "snapshot.json", _schedule_snapshot())
    conflicts.main(["--input", str(source), "--json"])
    payload = json.loads(capsys.readouterr().out)
    assert [flag["id"] for flag in payload["e2"]] == [
        "conflict-e2-a1-e1",
        "unavailable-e2-a1",
    ]
    assert payload["e2"][0]["type"] == "conflict"

    conflicts.main(["--input", str(source), "--no-checks"])
    assert capsys.readouterr().out.strip() == "No schedule conflicts detected."


def test_dispatch_main_applies_commands_and_persists(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr("greenlight.cli.dispatch.configure_runtime_logging", lambda: None)
    monkeypatch.delenv("GREENLIGHT_STORE_BACKEND", raising=False)
    db_path = tmp_path / "greenlight.db"
    commands = _write_json(
        tmp_path / "commands.json",
        [
            {"type": "CREATE_PROJECT", "payload": {"id": "p1", "name": "Night Shift"}},
            {"type": "ADD_CHARACTER", "payload": {"character": {"id": "c1", "name": "Reyes"}}},
            {"type": "SUMMON_DRAGON", "payload": {}},
        ],
    )
    dispatch.main(
        ["--commands", str(commands), "--db-path", str(db_path), "--snapshot-key", "team-a"]
    )
    out = capsys.readouterr().out
    assert "Commands applied: 2/3" in out
    assert "Projects: 1" in out
    assert "Notifications: 1" in out

    stored = SQLiteSnapshotStore(db_path=db_path, key="team-a").load()
    assert stored is not None
    state = repair(stored)
    assert [project.id for project in state.projects] == ["p1"]
    assert state.current_focus.character_id == "c1"


def test_dispatch_main_accepts_single_command_object(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr("greenlight.cli.dispatch.configure_runtime_logging", lambda: None)
    monkeypatch.setenv("GREENLIGHT_STORE_BACKEND", "memory")
    commands = _write_json(tmp_path / "one.json", {"type": "SET_SEARCH_TERM", "payload": "Sam"})
    dispatch.main(["--commands", str(commands)])
    out = capsys.readouterr().out
    assert "Commands applied: 1/1" in out
    assert "Storage size:" in out


def test_dispatch_main_rejects_bad_command_files(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr("greenlight.cli.dispatch.configure_runtime_logging", lambda: None)
    monkeypatch.setenv("GREENLIGHT_STORE_BACKEND", "memory")
    with pytest.raises(SystemExit, match="Command file not found"):
        dispatch.main(["--commands", str(tmp_path / "missing.json")])
    scalar = _write_json(tmp_path / "scalar.json", 42)
    with pytest.raises(SystemExit, match="must hold a JSON object"):
        dispatch.main(["--commands", str(scalar)])
