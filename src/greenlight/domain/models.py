"""Casting roster, schedule, and workspace state models."""

from __future__ import annotations

import time
from collections.abc import Mapping
from hashlib import sha256
from typing import Any, Final, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

SCHEMA_VERSION: Final[Literal["casting_state.v1"]] = "casting_state.v1"

LONG_LIST: Final = "longList"
AUDITION: Final = "audition"
APPROVAL: Final = "approval"
SHORT_LISTS: Final = "shortLists"
RESERVED_LIST_KEYS: Final[tuple[str, ...]] = (LONG_LIST, AUDITION, APPROVAL)
REORDER_LOCKED_TABS: Final[frozenset[str]] = frozenset({LONG_LIST, APPROVAL})

VoteValue = Literal["yes", "no", "maybe"]
DisplayMode = Literal["detailed", "compact", "player"]
InsertPosition = Literal["before", "after"]
NotificationKind = Literal["system", "user", "vote"]
NotificationPriority = Literal["low", "medium", "high"]
RedFlagKind = Literal["conflict", "warning", "important", "custom"]
SceneSetting = Literal["INT", "EXT", "INT/EXT"]


def now_ms() -> int:
    """Return the current wall clock as epoch milliseconds."""
    return int(time.time() * 1000)


def stable_id(*, prefix: str, text: str, length: int = 12) -> str:
    """Build deterministic identifier from normalized text payload."""
    digest = sha256(text.encode("utf-8")).hexdigest()[:length]
    return f"{prefix}_{digest}"


class RecordModel(BaseModel):
    """Snapshot record configuration: snake_case attributes, camelCase wire keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        coerce_numbers_to_str=True,
    )


class User(RecordModel):
    """Team member who votes and writes notes."""

    id: str = Field(min_length=1)
    name: str = ""
    initials: str = ""
    email: str = ""
    role: str = ""
    bg_color: str = "#3B82F6"
    color: str = "#FFFFFF"


class Status(RecordModel):
    """Tag attached to a performer (availability, interest, contact)."""

    id: str = Field(min_length=1)
    name: str | None = None
    label: str = ""
    color: str | None = None
    bg_color: str = ""
    text_color: str = ""
    category: str | None = None
    is_custom: bool = False
    timestamp: int | None = None
    template_used: str | None = None


class PermissionLevel(RecordModel):
    id: str = Field(min_length=1)
    label: str = ""
    description: str = ""


class Note(RecordModel):
    """Append-only remark on a performer, editable by its author only."""

    id: str = Field(min_length=1)
    user_id: str = ""
    user_name: str = ""
    timestamp: int = 0
    text: str = ""


class AvailabilityDate(RecordModel):
    date: str
    status: Literal["available", "unavailable"]


class SubmissionVideo(RecordModel):
    url: str = ""
    embed_url: str = ""
    platform: str = ""


class ProjectAssignment(RecordModel):
    """Record that a performer was put forward for a role in some project."""

    project_id: str = Field(min_length=1)
    project_name: str = ""
    character_id: str = Field(min_length=1)
    character_name: str = ""
    assigned_date: int = 0


class Performer(RecordModel):
    """Candidate actor record placed in exactly one list of a character."""

    id: str = Field(min_length=1)
    name: str = ""
    age: str | None = None
    playing_age: str | None = None
    location: str | None = None
    agent: str | None = None
    gender: str | None = None
    ethnicity: str | None = None
    contact_phone: str | None = None
    contact_email: str | None = None
    imdb_url: str | None = None
    skills: list[str] = Field(default_factory=list)
    headshots: list[str] = Field(default_factory=list)
    current_card_headshot_index: int = 0
    user_votes: dict[str, VoteValue] = Field(default_factory=dict)
    statuses: list[Status] = Field(default_factory=list)
    notes: list[Note] = Field(default_factory=list)
    availability_dates: list[AvailabilityDate] = Field(default_factory=list)
    submission_videos: list[SubmissionVideo] = Field(default_factory=list)
    project_assignments: list[ProjectAssignment] = Field(default_factory=list)
    submission_id: str | None = None
    submission_source: Literal["form", "manual", "import"] | None = None
    current_list_key: str = LONG_LIST
    current_shortlist_id: str | None = None
    date_added: int = 0
    sort_order: int | None = None
    last_contact_date: int | None = None
    last_contact_type: str | None = None
    ready_for_approval: bool = False
    approval_move_date: int | None = None


class ShortList(RecordModel):
    """Named sub-bucket stored under the reserved ``shortLists`` key."""

    id: str = Field(min_length=1)
    name: str = ""
    description: str | None = None
    color: str | None = None
    created_at: int = 0
    performer_ids: list[str] = Field(default_factory=list)


def default_lists() -> dict[str, list[str]]:
    return {key: [] for key in RESERVED_LIST_KEYS}


class Character(RecordModel):
    """A role being cast.

    Performer records live once in ``performers``; ``lists`` maps every list
    key (reserved and custom tabs) to an ordered id sequence and
    ``short_lists`` holds the named shortlists. An id is placed in exactly
    one of those sequences.
    """

    id: str = Field(min_length=1)
    name: str = ""
    description: str | None = None
    attributes: dict[str, Any] = Field(default_factory=dict)
    performers: dict[str, Performer] = Field(default_factory=dict)
    lists: dict[str, list[str]] = Field(default_factory=default_lists)
    short_lists: list[ShortList] = Field(default_factory=list)


class TermForms(RecordModel):
    singular: str
    plural: str


class Terminology(RecordModel):
    actor: TermForms = Field(default_factory=lambda: TermForms(singular="Actor", plural="Actors"))
    character: TermForms = Field(
        default_factory=lambda: TermForms(singular="Character", plural="Characters")
    )


class Project(RecordModel):
    """Top-level production container."""

    id: str = Field(min_length=1)
    name: str = ""
    description: str | None = None
    created_date: int = 0
    modified_date: int = 0
    terminology: Terminology = Field(default_factory=Terminology)
    characters: list[Character] = Field(default_factory=list)


class TabDefinition(RecordModel):
    key: str = Field(min_length=1)
    name: str = ""
    is_custom: bool = True


class Notification(RecordModel):
    """Feed entry describing a noteworthy user or system action."""

    id: str = Field(min_length=1)
    kind: NotificationKind = Field(default="system", alias="type")
    title: str = ""
    message: str = ""
    timestamp: int = 0
    read: bool = False
    priority: NotificationPriority = "low"
    actor_id: str | None = None
    character_id: str | None = None
    user_id: str | None = None


class RedFlag(RecordModel):
    """Conflict or warning annotation attached to a schedule entry."""

    id: str = Field(min_length=1)
    kind: RedFlagKind = Field(default="custom", alias="type")
    message: str = ""
    color: str = ""
    actor_id: str | None = None


class ScheduleEntry(RecordModel):
    """One shoot day on the production calendar."""

    id: str = Field(min_length=1)
    title: str = ""
    date: str = ""
    phase_id: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    location: str | None = None
    scene_type: SceneSetting | None = None
    scene_notes: str | None = None
    props: list[str] = Field(default_factory=list)
    actor_ids: list[str] = Field(default_factory=list)
    crew_members: list[str] = Field(default_factory=list)
    red_flags: list[RedFlag] = Field(default_factory=list)
    notes: str | None = None
    created_at: int = 0
    updated_at: int = 0


class Scene(RecordModel):
    """Script scene slotted into a shoot day."""

    id: str = Field(min_length=1)
    scene_number: str = ""
    pages: str = ""
    int_ext: SceneSetting = "INT"
    location: str = ""
    day_night: Literal["Day", "Night"] = "Day"
    cast: list[str] = Field(default_factory=list)
    description: str | None = None
    shoot_day_id: str = ""
    order: int = 0
    custom_color: str | None = None
    created_at: int = 0
    updated_at: int = 0


class ProductionPhase(RecordModel):
    id: str = Field(min_length=1)
    name: str = ""
    start_date: str = ""
    color: str = ""
    bg_color: str = ""


class PlayerView(RecordModel):
    is_open: bool = False
    current_index: int = 0
    current_headshot_index: int = 0


class SearchTag(RecordModel):
    id: str = Field(min_length=1)
    text: str = ""
    color: str | None = None


class SavedSearch(RecordModel):
    """Named search term plus tags that can be restored later."""

    id: str = Field(min_length=1)
    name: str = ""
    tags: list[SearchTag] = Field(default_factory=list)
    search_term: str = ""
    created_at: int = 0
    last_used: int = 0
    is_global: bool = False


class AgeRange(RecordModel):
    min: int = 0
    max: int = 100


class Filters(RecordModel):
    show_filters: bool = False
    status: list[str] = Field(default_factory=list)
    age_range: AgeRange = Field(default_factory=AgeRange)
    location: list[str] = Field(default_factory=list)


class CurrentFocus(RecordModel):
    """Selection cursor for the workspace."""

    current_project_id: str | None = None
    character_id: str | None = None
    active_tab_key: str = LONG_LIST
    card_display_mode: DisplayMode = "detailed"
    current_sort_option: str = "alphabetical"
    search_term: str = ""
    search_tags: list[SearchTag] = Field(default_factory=list)
    saved_searches: list[SavedSearch] = Field(default_factory=list)
    filters: Filters = Field(default_factory=Filters)
    player_view: PlayerView = Field(default_factory=PlayerView)


class ListLocation(RecordModel):
    """Address of one ordered performer list inside a character.

    ``key`` is a reserved or custom list key, or ``shortLists`` together with
    ``shortlist_id``.
    """

    model_config = ConfigDict(frozen=True)

    key: str = Field(min_length=1)
    shortlist_id: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _accept_typed_location(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"key": data}
        if isinstance(data, Mapping) and data.get("type") == "shortlist":
            shortlist_id = data.get("shortlistId", data.get("shortlist_id", data.get("id")))
            return {"key": SHORT_LISTS, "shortlistId": shortlist_id}
        if isinstance(data, Mapping) and "key" not in data and "type" in data:
            return {"key": data["type"]}
        return data

    @property
    def is_shortlist(self) -> bool:
        return self.key == SHORT_LISTS


class CastingState(RecordModel):
    """Root of the casting workspace. Only the transition function builds new ones."""

    schema_version: Literal["casting_state.v1"] = SCHEMA_VERSION
    users: list[User] = Field(default_factory=list)
    current_user_id: str | None = None
    projects: list[Project] = Field(default_factory=list)
    notifications: list[Notification] = Field(default_factory=list)
    tab_definitions: list[TabDefinition] = Field(default_factory=list)
    tab_display_names: dict[str, str] = Field(default_factory=dict)
    predefined_statuses: list[Status] = Field(default_factory=list)
    permission_levels: list[PermissionLevel] = Field(default_factory=list)
    current_focus: CurrentFocus = Field(default_factory=CurrentFocus)
    terminology: Terminology = Field(default_factory=Terminology)
    schedule_entries: list[ScheduleEntry] = Field(default_factory=list)
    scenes: list[Scene] = Field(default_factory=list)
    production_phases: list[ProductionPhase] = Field(default_factory=list)
