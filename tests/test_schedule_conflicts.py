from __future__ import annotations

from greenlight.core.schedule_conflicts import (
    CONFLICT_COLOR,
    WARNING_COLOR,
    detect_conflicts,
    detect_schedule_conflicts,
)
from greenlight.domain.models import Performer, RedFlag, ScheduleEntry


def _entries() -> list[ScheduleEntry]:
    return [
        ScheduleEntry(
            id="e1",
            title="Rooftop chase",
            date="2024-03-04",
            actor_ids=["a1", "a2"],
            red_flags=[RedFlag(id="manual", kind="important", message="Permit pending")],
        ),
        ScheduleEntry(id="e2", title="Precinct", date="2024-03-04", actor_ids=["a1"]),
        ScheduleEntry(id="e3", title="Diner", date="2024-03-05", actor_ids=["a1"]),
    ]


def _performers() -> list[Performer]:
    return [
        Performer.model_validate(
            {
                "id": "a2",
                "name": "Kim Park",
                "availabilityDates": [{"date": "2024-03-04", "status": "unavailable"}],
            }
        ),
        Performer(id="a1", name="Sam Lee"),
    ]


def test_double_booking_flags_both_entries() -> None:
    entries = _entries()
    flags = detect_conflicts(entries[1], entries, _performers())
    assert [flag.id for flag in flags] == ["conflict-e2-a1-e1"]
    assert flags[0].kind == "conflict"
    assert flags[0].message == 'Already scheduled for "Rooftop chase"'
    assert flags[0].color == CONFLICT_COLOR
    assert flags[0].actor_id == "a1"


def test_manual_flags_come_first_then_derived_flags() -> None:
    entries = _entries()
    flags = detect_conflicts(entries[0], entries, _performers())
    assert [flag.id for flag in flags] == ["manual", "conflict-e1-a1-e2", "unavailable-e1-a2"]
    warning = flags[-1]
    assert warning.kind == "warning"
    assert warning.message == "Marked unavailable"
    assert warning.color == WARNING_COLOR


def test_disabled_detection_returns_only_manual_flags() -> None:
    entries = _entries()
    flags = detect_conflicts(entries[0], entries, _performers(), enabled=False)
    assert [flag.id for flag in flags] == ["manual"]


def test_entry_on_free_day_has_no_flags() -> None:
    entries = _entries()
    assert detect_conflicts(entries[2], entries, _performers()) == []


def test_unknown_performer_ids_are_ignored_for_availability() -> None:
    entry = ScheduleEntry(id="solo", date="2024-03-04", actor_ids=["ghost"])
    assert detect_conflicts(entry, [entry], _performers()) == []


def test_detect_schedule_conflicts_keys_every_entry() -> None:
    flags = detect_schedule_conflicts(_entries(), iter(_performers()))
    assert list(flags) == ["e1", "e2", "e3"]
    assert len(flags["e1"]) == 3
    assert flags["e3"] == []


def test_double_booking_of_unknown_performer_is_not_flagged() -> None:
    first = ScheduleEntry(id="e1", date="2024-03-04", actor_ids=["ghost"])
    second = ScheduleEntry(id="e2", date="2024-03-04", actor_ids=["ghost"])
    assert detect_conflicts(first, [first, second], _performers()) == []


def test_first_availability_record_for_the_date_wins() -> None:
    performer = Performer.model_validate(
        {
            "id": "a3",
            "availabilityDates": [
                {"date": "2024-03-04", "status": "available"},
                {"date": "2024-03-04", "status": "unavailable"},
            ],
        }
    )
    entry = ScheduleEntry(id="e1", date="2024-03-04", actor_ids=["a3"])
    assert detect_conflicts(entry, [entry], [performer]) == []
