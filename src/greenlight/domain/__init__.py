"""Domain models and ports for casting workspaces."""

from greenlight.domain.models import (
    CastingState,
    Character,
    ListLocation,
    Note,
    Notification,
    Performer,
    ProductionPhase,
    Project,
    RedFlag,
    ScheduleEntry,
    ShortList,
    User,
)
from greenlight.domain.ports import SnapshotStore

__all__ = [
    "CastingState",
    "Character",
    "ListLocation",
    "Note",
    "Notification",
    "Performer",
    "ProductionPhase",
    "Project",
    "RedFlag",
    "ScheduleEntry",
    "ShortList",
    "SnapshotStore",
    "User",
]
