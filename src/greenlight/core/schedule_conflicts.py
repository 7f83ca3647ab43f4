"""Derive double-booking and availability red flags for schedule entries.

Flags are advisory and recomputed on demand; only the manual flags stored
on an entry are ever persisted. Assigned ids with no performer record are
skipped.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from greenlight.domain.models import Performer, RedFlag, ScheduleEntry

CONFLICT_COLOR = "bg-red-100 text-red-800"
WARNING_COLOR = "bg-yellow-100 text-yellow-800"


def _unavailable_on(performer: Performer, date: str) -> bool:
    """Only the first availability record for a date counts."""
    record = next((item for item in performer.availability_dates if item.date == date), None)
    return record is not None and record.status == "unavailable"


def detect_conflicts(
    entry: ScheduleEntry,
    all_entries: Sequence[ScheduleEntry],
    all_performers: Iterable[Performer],
    enabled: bool = True,
) -> list[RedFlag]:
    """Return the entry's manual flags followed by derived conflict and warning flags."""
    flags = list(entry.red_flags)
    if not enabled:
        return flags
    performers: dict[str, Performer] = {}
    for performer in all_performers:
        performers.setdefault(performer.id, performer)
    same_day = [
        other for other in all_entries if other.id != entry.id and other.date == entry.date
    ]
    for performer_id in entry.actor_ids:
        performer = performers.get(performer_id)
        if performer is None:
            continue
        for other in same_day:
            if performer_id in other.actor_ids:
                flags.append(
                    RedFlag(
                        id=f"conflict-{entry.id}-{performer_id}-{other.id}",
                        kind="conflict",
                        message=f'Already scheduled for "{other.title}"',
                        color=CONFLICT_COLOR,
                        actor_id=performer_id,
                    )
                )
        if _unavailable_on(performer, entry.date):
            flags.append(
                RedFlag(
                    id=f"unavailable-{entry.id}-{performer_id}",
                    kind="warning",
                    message="Marked unavailable",
                    color=WARNING_COLOR,
                    actor_id=performer_id,
                )
            )
    return flags


def detect_schedule_conflicts(
    entries: Sequence[ScheduleEntry],
    performers: Iterable[Performer],
    enabled: bool = True,
) -> dict[str, list[RedFlag]]:
    """Run the detector for every entry, keyed by entry id."""
    roster = list(performers)
    return {entry.id: detect_conflicts(entry, entries, roster, enabled) for entry in entries}
