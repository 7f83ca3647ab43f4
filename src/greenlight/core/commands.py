"""Typed commands accepted by the transition function.

Each command is a pydantic model tagged by its wire ``type``. Wire messages
look like ``{"type": "CAST_VOTE", "payload": {...}}``; commands whose payload
is a single scalar or a whole record name the field it lands on through
``payload_field``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, ClassVar, Literal, Self, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from greenlight.domain.models import (
    LONG_LIST,
    AgeRange,
    DisplayMode,
    InsertPosition,
    ListLocation,
    VoteValue,
)

logger = logging.getLogger(__name__)

TermKey = Literal["actor", "character"]


def _performer_id_field() -> Any:
    return Field(validation_alias=AliasChoices("actorId", "performerId", "performer_id"))


def _performer_ids_field() -> Any:
    return Field(
        min_length=1,
        validation_alias=AliasChoices("actorIds", "performerIds", "performer_ids"),
    )


class CommandModel(BaseModel):
    """Base command: camelCase wire keys, immutable.

    ``issued_at`` is epoch milliseconds. It stays ``None`` until the dispatch
    edge stamps the command, so building a command never reads the clock.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    payload_field: ClassVar[str | None] = None
    wraps_payload: ClassVar[bool] = False
    payload_aliases: ClassVar[dict[str, str]] = {}

    issued_at: int | None = None

    @property
    def issued_ms(self) -> int:
        return self.issued_at or 0

    def stamped(self, issued_at: int) -> Self:
        """Return this command with ``issued_at`` filled in when it is missing."""
        if self.issued_at is not None:
            return self
        return self.model_copy(update={"issued_at": issued_at})

    @classmethod
    def payload_data(cls, payload: object) -> dict[str, Any]:
        """Map a wire payload onto this command's fields."""
        scalar = not isinstance(payload, Mapping)
        if cls.payload_field is not None and (cls.wraps_payload or scalar):
            if payload is None and not cls.wraps_payload:
                return {}
            return {cls.payload_field: payload}
        if not isinstance(payload, Mapping):
            return {}
        data = {str(key): value for key, value in payload.items()}
        for source, target in cls.payload_aliases.items():
            if source in data:
                data[target] = data.pop(source)
        return data


# Selection


class SelectProject(CommandModel):
    payload_field: ClassVar[str | None] = "project_id"
    type: Literal["SELECT_PROJECT"] = "SELECT_PROJECT"
    project_id: str


class SelectCharacter(CommandModel):
    payload_field: ClassVar[str | None] = "character_id"
    type: Literal["SELECT_CHARACTER"] = "SELECT_CHARACTER"
    character_id: str


class SelectTab(CommandModel):
    payload_field: ClassVar[str | None] = "tab_key"
    type: Literal["SELECT_TAB"] = "SELECT_TAB"
    tab_key: str = Field(validation_alias=AliasChoices("tabKey", "key", "tab_key"))


class SetSearchTerm(CommandModel):
    payload_field: ClassVar[str | None] = "term"
    type: Literal["SET_SEARCH_TERM"] = "SET_SEARCH_TERM"
    term: str = ""


class SetViewMode(CommandModel):
    payload_field: ClassVar[str | None] = "mode"
    type: Literal["SET_VIEW_MODE"] = "SET_VIEW_MODE"
    mode: DisplayMode


class SetSortOption(CommandModel):
    payload_field: ClassVar[str | None] = "option"
    type: Literal["SET_SORT_OPTION"] = "SET_SORT_OPTION"
    option: str


class OpenPlayerView(CommandModel):
    payload_field: ClassVar[str | None] = "index"
    type: Literal["OPEN_PLAYER_VIEW"] = "OPEN_PLAYER_VIEW"
    index: int = 0


class ClosePlayerView(CommandModel):
    type: Literal["CLOSE_PLAYER_VIEW"] = "CLOSE_PLAYER_VIEW"


class NavigatePlayerView(CommandModel):
    payload_field: ClassVar[str | None] = "index"
    type: Literal["NAVIGATE_PLAYER_VIEW"] = "NAVIGATE_PLAYER_VIEW"
    index: int


class SetPlayerHeadshot(CommandModel):
    payload_field: ClassVar[str | None] = "index"
    type: Literal["SET_PLAYER_HEADSHOT"] = "SET_PLAYER_HEADSHOT"
    index: int = Field(ge=0)


# Search tags, saved searches and filters


class SetSearchTags(CommandModel):
    payload_field: ClassVar[str | None] = "tags"
    type: Literal["SET_SEARCH_TAGS"] = "SET_SEARCH_TAGS"
    tags: list[Any]


class AddSearchTag(CommandModel):
    payload_field: ClassVar[str | None] = "tag"
    wraps_payload: ClassVar[bool] = True
    type: Literal["ADD_SEARCH_TAG"] = "ADD_SEARCH_TAG"
    tag: dict[str, Any]


class RemoveSearchTag(CommandModel):
    payload_field: ClassVar[str | None] = "tag_id"
    type: Literal["REMOVE_SEARCH_TAG"] = "REMOVE_SEARCH_TAG"
    tag_id: str = Field(validation_alias=AliasChoices("tagId", "id", "tag_id"))


class ClearSearchTags(CommandModel):
    type: Literal["CLEAR_SEARCH_TAGS"] = "CLEAR_SEARCH_TAGS"


class SaveCurrentSearch(CommandModel):
    type: Literal["SAVE_CURRENT_SEARCH"] = "SAVE_CURRENT_SEARCH"
    name: str = Field(min_length=1)
    is_global: bool = False
    search_id: str | None = Field(
        default=None, validation_alias=AliasChoices("searchId", "id", "search_id")
    )


class LoadSavedSearch(CommandModel):
    payload_field: ClassVar[str | None] = "search_id"
    type: Literal["LOAD_SAVED_SEARCH"] = "LOAD_SAVED_SEARCH"
    search_id: str = Field(validation_alias=AliasChoices("searchId", "id", "search_id"))


class UpdateSavedSearch(CommandModel):
    type: Literal["UPDATE_SAVED_SEARCH"] = "UPDATE_SAVED_SEARCH"
    search_id: str = Field(validation_alias=AliasChoices("searchId", "id", "search_id"))
    updates: dict[str, Any]


class DeleteSavedSearch(CommandModel):
    payload_field: ClassVar[str | None] = "search_id"
    type: Literal["DELETE_SAVED_SEARCH"] = "DELETE_SAVED_SEARCH"
    search_id: str = Field(validation_alias=AliasChoices("searchId", "id", "search_id"))


class SetStatusFilter(CommandModel):
    payload_field: ClassVar[str | None] = "status"
    type: Literal["SET_STATUS_FILTER"] = "SET_STATUS_FILTER"
    status: list[str]


class SetAgeRangeFilter(CommandModel):
    payload_field: ClassVar[str | None] = "age_range"
    wraps_payload: ClassVar[bool] = True
    type: Literal["SET_AGE_RANGE_FILTER"] = "SET_AGE_RANGE_FILTER"
    age_range: AgeRange


class SetLocationFilter(CommandModel):
    payload_field: ClassVar[str | None] = "location"
    type: Literal["SET_LOCATION_FILTER"] = "SET_LOCATION_FILTER"
    location: list[str]


class ClearAllFilters(CommandModel):
    type: Literal["CLEAR_ALL_FILTERS"] = "CLEAR_ALL_FILTERS"


class ToggleFilters(CommandModel):
    type: Literal["TOGGLE_FILTERS"] = "TOGGLE_FILTERS"


# Users


class SetCurrentUser(CommandModel):
    payload_field: ClassVar[str | None] = "user_id"
    type: Literal["SET_CURRENT_USER"] = "SET_CURRENT_USER"
    user_id: str = Field(validation_alias=AliasChoices("userId", "id", "user_id"))


class UpdateUser(CommandModel):
    type: Literal["UPDATE_USER"] = "UPDATE_USER"
    user_id: str = Field(validation_alias=AliasChoices("userId", "id", "user_id"))
    updates: dict[str, Any]


# Projects and terminology


class CreateProject(CommandModel):
    payload_field: ClassVar[str | None] = "project"
    wraps_payload: ClassVar[bool] = True
    type: Literal["CREATE_PROJECT"] = "CREATE_PROJECT"
    project: dict[str, Any]


class UpdateProject(CommandModel):
    type: Literal["UPDATE_PROJECT"] = "UPDATE_PROJECT"
    project_id: str
    updates: dict[str, Any]


class DeleteProject(CommandModel):
    payload_field: ClassVar[str | None] = "project_id"
    type: Literal["DELETE_PROJECT"] = "DELETE_PROJECT"
    project_id: str


class UpdateProjectTerminology(CommandModel):
    payload_aliases: ClassVar[dict[str, str]] = {"type": "term"}
    type: Literal["UPDATE_PROJECT_TERMINOLOGY"] = "UPDATE_PROJECT_TERMINOLOGY"
    term: TermKey
    singular: str = Field(min_length=1)
    plural: str = Field(min_length=1)


class UpdateTerminology(CommandModel):
    payload_aliases: ClassVar[dict[str, str]] = {"type": "term"}
    type: Literal["UPDATE_TERMINOLOGY"] = "UPDATE_TERMINOLOGY"
    term: TermKey
    singular: str = Field(min_length=1)
    plural: str = Field(min_length=1)


# Characters


class AddCharacter(CommandModel):
    type: Literal["ADD_CHARACTER"] = "ADD_CHARACTER"
    character: dict[str, Any]
    project_id: str | None = None


class UpdateCharacter(CommandModel):
    type: Literal["UPDATE_CHARACTER"] = "UPDATE_CHARACTER"
    character_id: str
    updates: dict[str, Any]


class DeleteCharacter(CommandModel):
    payload_field: ClassVar[str | None] = "character_id"
    type: Literal["DELETE_CHARACTER"] = "DELETE_CHARACTER"
    character_id: str


# Performers


class AddActor(CommandModel):
    type: Literal["ADD_ACTOR"] = "ADD_ACTOR"
    character_id: str
    performer: dict[str, Any] = Field(validation_alias=AliasChoices("actor", "performer"))
    list_key: str = Field(default=LONG_LIST, min_length=1)
    shortlist_id: str | None = None


class UpdateActor(CommandModel):
    type: Literal["UPDATE_ACTOR"] = "UPDATE_ACTOR"
    performer_id: str = _performer_id_field()
    character_id: str
    updates: dict[str, Any]


class DeleteActor(CommandModel):
    type: Literal["DELETE_ACTOR"] = "DELETE_ACTOR"
    performer_id: str = _performer_id_field()
    character_id: str


class MoveActor(CommandModel):
    type: Literal["MOVE_ACTOR"] = "MOVE_ACTOR"
    performer_id: str = _performer_id_field()
    character_id: str
    source: ListLocation = Field(validation_alias=AliasChoices("sourceLocation", "source"))
    destination: ListLocation = Field(
        validation_alias=AliasChoices("destinationLocation", "destination")
    )
    move_reason: str | None = None


class MoveMultipleActors(CommandModel):
    type: Literal["MOVE_MULTIPLE_ACTORS"] = "MOVE_MULTIPLE_ACTORS"
    performer_ids: list[str] = _performer_ids_field()
    character_id: str
    source: ListLocation = Field(validation_alias=AliasChoices("sourceLocation", "source"))
    destination: ListLocation = Field(
        validation_alias=AliasChoices("destinationLocation", "destination")
    )
    move_reason: str | None = None


class MoveActorToCharacter(CommandModel):
    type: Literal["MOVE_ACTOR_TO_CHARACTER"] = "MOVE_ACTOR_TO_CHARACTER"
    performer_id: str = _performer_id_field()
    source_character_id: str
    destination_character_id: str


class ReorderActors(CommandModel):
    type: Literal["REORDER_ACTORS"] = "REORDER_ACTORS"
    character_id: str
    location: ListLocation
    performer_id: str = _performer_id_field()
    target_id: str
    position: InsertPosition = "before"


class ReorderMultipleActors(CommandModel):
    type: Literal["REORDER_MULTIPLE_ACTORS"] = "REORDER_MULTIPLE_ACTORS"
    character_id: str
    location: ListLocation
    performer_ids: list[str] = _performer_ids_field()
    target_id: str
    position: InsertPosition = "before"


class AddContactStatus(CommandModel):
    type: Literal["ADD_CONTACT_STATUS"] = "ADD_CONTACT_STATUS"
    performer_id: str = _performer_id_field()
    character_id: str
    contact_type: str


class AssignActorToProjectCharacter(CommandModel):
    type: Literal["ASSIGN_ACTOR_TO_PROJECT_CHARACTER"] = "ASSIGN_ACTOR_TO_PROJECT_CHARACTER"
    performer_id: str = _performer_id_field()
    project_id: str = Field(min_length=1)
    project_name: str = ""
    character_id: str = Field(min_length=1)
    character_name: str = ""


class RemoveActorAssignment(CommandModel):
    type: Literal["REMOVE_ACTOR_ASSIGNMENT"] = "REMOVE_ACTOR_ASSIGNMENT"
    performer_id: str = _performer_id_field()
    project_id: str = Field(min_length=1)
    character_id: str = Field(min_length=1)


# Votes


class CastVote(CommandModel):
    type: Literal["CAST_VOTE"] = "CAST_VOTE"
    performer_id: str = _performer_id_field()
    character_id: str
    vote: VoteValue
    user_id: str


class RetractVote(CommandModel):
    type: Literal["RETRACT_VOTE"] = "RETRACT_VOTE"
    performer_id: str = _performer_id_field()
    character_id: str
    user_id: str


# Notes


class AddNote(CommandModel):
    type: Literal["ADD_NOTE"] = "ADD_NOTE"
    performer_id: str = _performer_id_field()
    character_id: str
    text: str = Field(min_length=1)
    user_id: str | None = None


class UpdateNote(CommandModel):
    type: Literal["UPDATE_NOTE"] = "UPDATE_NOTE"
    performer_id: str = _performer_id_field()
    character_id: str
    note_id: str
    text: str = Field(min_length=1)
    user_id: str | None = None


class DeleteNote(CommandModel):
    type: Literal["DELETE_NOTE"] = "DELETE_NOTE"
    performer_id: str = _performer_id_field()
    character_id: str
    note_id: str
    user_id: str | None = None


# Shortlists


class AddShortlist(CommandModel):
    type: Literal["ADD_SHORTLIST"] = "ADD_SHORTLIST"
    character_id: str
    name: str = Field(min_length=1)
    shortlist_id: str | None = None
    description: str | None = None
    color: str | None = None


class RenameShortlist(CommandModel):
    type: Literal["RENAME_SHORTLIST"] = "RENAME_SHORTLIST"
    character_id: str
    shortlist_id: str
    name: str = Field(min_length=1)


class DeleteShortlist(CommandModel):
    type: Literal["DELETE_SHORTLIST"] = "DELETE_SHORTLIST"
    character_id: str
    shortlist_id: str


# Tabs


class AddTab(CommandModel):
    type: Literal["ADD_TAB"] = "ADD_TAB"
    key: str = Field(min_length=1)
    name: str = Field(min_length=1)


class RenameTab(CommandModel):
    type: Literal["RENAME_TAB"] = "RENAME_TAB"
    key: str = Field(validation_alias=AliasChoices("oldKey", "key"))
    name: str = Field(min_length=1, validation_alias=AliasChoices("newName", "name"))
    new_key: str | None = None


class DeleteTab(CommandModel):
    payload_field: ClassVar[str | None] = "key"
    type: Literal["DELETE_TAB"] = "DELETE_TAB"
    key: str = Field(validation_alias=AliasChoices("tabKey", "key"))


class ReorderTabs(CommandModel):
    type: Literal["REORDER_TABS"] = "REORDER_TABS"
    dragged_key: str = Field(validation_alias=AliasChoices("draggedTabKey", "draggedKey"))
    target_key: str = Field(validation_alias=AliasChoices("targetTabKey", "targetKey"))
    position: InsertPosition


class UpdateTabDisplayName(CommandModel):
    type: Literal["UPDATE_TAB_DISPLAY_NAME"] = "UPDATE_TAB_DISPLAY_NAME"
    key: str = Field(validation_alias=AliasChoices("tabKey", "key"))
    name: str = Field(min_length=1, validation_alias=AliasChoices("displayName", "name"))


class ResetTabDisplayName(CommandModel):
    payload_field: ClassVar[str | None] = "key"
    type: Literal["RESET_TAB_DISPLAY_NAME"] = "RESET_TAB_DISPLAY_NAME"
    key: str = Field(validation_alias=AliasChoices("tabKey", "key"))


class UpdateTabDefinitions(CommandModel):
    payload_field: ClassVar[str | None] = "definitions"
    type: Literal["UPDATE_TAB_DEFINITIONS"] = "UPDATE_TAB_DEFINITIONS"
    definitions: list[Any]


# Notifications


class AddNotification(CommandModel):
    payload_field: ClassVar[str | None] = "notification"
    wraps_payload: ClassVar[bool] = True
    type: Literal["ADD_NOTIFICATION"] = "ADD_NOTIFICATION"
    notification: dict[str, Any]


class MarkNotificationRead(CommandModel):
    payload_field: ClassVar[str | None] = "notification_id"
    type: Literal["MARK_NOTIFICATION_READ"] = "MARK_NOTIFICATION_READ"
    notification_id: str = Field(validation_alias=AliasChoices("notificationId", "id"))


class MarkAllNotificationsRead(CommandModel):
    type: Literal["MARK_ALL_NOTIFICATIONS_READ"] = "MARK_ALL_NOTIFICATIONS_READ"


class DeleteNotification(CommandModel):
    payload_field: ClassVar[str | None] = "notification_id"
    type: Literal["DELETE_NOTIFICATION"] = "DELETE_NOTIFICATION"
    notification_id: str = Field(validation_alias=AliasChoices("notificationId", "id"))


class DeleteSelectedNotifications(CommandModel):
    payload_field: ClassVar[str | None] = "notification_ids"
    type: Literal["DELETE_SELECTED_NOTIFICATIONS"] = "DELETE_SELECTED_NOTIFICATIONS"
    notification_ids: list[str] = Field(
        validation_alias=AliasChoices("notificationIds", "ids")
    )


# Schedule and phases


class AddScheduleEntry(CommandModel):
    payload_field: ClassVar[str | None] = "entry"
    wraps_payload: ClassVar[bool] = True
    type: Literal["ADD_SCHEDULE_ENTRY"] = "ADD_SCHEDULE_ENTRY"
    entry: dict[str, Any]


class UpdateScheduleEntry(CommandModel):
    type: Literal["UPDATE_SCHEDULE_ENTRY"] = "UPDATE_SCHEDULE_ENTRY"
    entry_id: str = Field(validation_alias=AliasChoices("entryId", "id"))
    updates: dict[str, Any]


class DeleteScheduleEntry(CommandModel):
    payload_field: ClassVar[str | None] = "entry_id"
    type: Literal["DELETE_SCHEDULE_ENTRY"] = "DELETE_SCHEDULE_ENTRY"
    entry_id: str = Field(validation_alias=AliasChoices("entryId", "id"))


class AddProductionPhase(CommandModel):
    payload_field: ClassVar[str | None] = "phase"
    wraps_payload: ClassVar[bool] = True
    type: Literal["ADD_PRODUCTION_PHASE"] = "ADD_PRODUCTION_PHASE"
    phase: dict[str, Any]


class UpdateProductionPhase(CommandModel):
    type: Literal["UPDATE_PRODUCTION_PHASE"] = "UPDATE_PRODUCTION_PHASE"
    phase_id: str = Field(validation_alias=AliasChoices("phaseId", "id"))
    updates: dict[str, Any]


class DeleteProductionPhase(CommandModel):
    payload_field: ClassVar[str | None] = "phase_id"
    type: Literal["DELETE_PRODUCTION_PHASE"] = "DELETE_PRODUCTION_PHASE"
    phase_id: str = Field(validation_alias=AliasChoices("phaseId", "id"))


class AddScene(CommandModel):
    payload_field: ClassVar[str | None] = "scene"
    wraps_payload: ClassVar[bool] = True
    type: Literal["ADD_SCENE"] = "ADD_SCENE"
    scene: dict[str, Any]


class UpdateScene(CommandModel):
    type: Literal["UPDATE_SCENE"] = "UPDATE_SCENE"
    scene_id: str = Field(validation_alias=AliasChoices("sceneId", "id", "scene_id"))
    updates: dict[str, Any]


class DeleteScene(CommandModel):
    payload_field: ClassVar[str | None] = "scene_id"
    type: Literal["DELETE_SCENE"] = "DELETE_SCENE"
    scene_id: str = Field(validation_alias=AliasChoices("sceneId", "id", "scene_id"))


class ReorderScenes(CommandModel):
    """New scene order, given as scene records or bare ids."""

    payload_field: ClassVar[str | None] = "scenes"
    type: Literal["REORDER_SCENES"] = "REORDER_SCENES"
    scenes: list[Any]


# Storage


class LoadFromStorage(CommandModel):
    payload_field: ClassVar[str | None] = "snapshot"
    wraps_payload: ClassVar[bool] = True
    type: Literal["LOAD_FROM_STORAGE"] = "LOAD_FROM_STORAGE"
    snapshot: Any = None


class LoadDemoData(CommandModel):
    payload_field: ClassVar[str | None] = "snapshot"
    wraps_payload: ClassVar[bool] = True
    type: Literal["LOAD_DEMO_DATA"] = "LOAD_DEMO_DATA"
    snapshot: Any = None


class ClearCache(CommandModel):
    type: Literal["CLEAR_CACHE"] = "CLEAR_CACHE"


Command = Union[
    SelectProject,
    SelectCharacter,
    SelectTab,
    SetSearchTerm,
    SetViewMode,
    SetSortOption,
    OpenPlayerView,
    ClosePlayerView,
    NavigatePlayerView,
    SetPlayerHeadshot,
    SetSearchTags,
    AddSearchTag,
    RemoveSearchTag,
    ClearSearchTags,
    SaveCurrentSearch,
    LoadSavedSearch,
    UpdateSavedSearch,
    DeleteSavedSearch,
    SetStatusFilter,
    SetAgeRangeFilter,
    SetLocationFilter,
    ClearAllFilters,
    ToggleFilters,
    SetCurrentUser,
    UpdateUser,
    CreateProject,
    UpdateProject,
    DeleteProject,
    UpdateProjectTerminology,
    UpdateTerminology,
    AddCharacter,
    UpdateCharacter,
    DeleteCharacter,
    AddActor,
    UpdateActor,
    DeleteActor,
    MoveActor,
    MoveMultipleActors,
    MoveActorToCharacter,
    ReorderActors,
    ReorderMultipleActors,
    AddContactStatus,
    AssignActorToProjectCharacter,
    RemoveActorAssignment,
    CastVote,
    RetractVote,
    AddNote,
    UpdateNote,
    DeleteNote,
    AddShortlist,
    RenameShortlist,
    DeleteShortlist,
    AddTab,
    RenameTab,
    DeleteTab,
    ReorderTabs,
    UpdateTabDisplayName,
    ResetTabDisplayName,
    UpdateTabDefinitions,
    AddNotification,
    MarkNotificationRead,
    MarkAllNotificationsRead,
    DeleteNotification,
    DeleteSelectedNotifications,
    AddScheduleEntry,
    UpdateScheduleEntry,
    DeleteScheduleEntry,
    AddProductionPhase,
    UpdateProductionPhase,
    DeleteProductionPhase,
    AddScene,
    UpdateScene,
    DeleteScene,
    ReorderScenes,
    LoadFromStorage,
    LoadDemoData,
    ClearCache,
]

COMMAND_TYPES: dict[str, type[CommandModel]] = {
    command_type.model_fields["type"].default: command_type
    for command_type in Command.__args__
}


def parse_command(message: object) -> CommandModel | None:
    """Build a command from its wire form, or ``None`` for unknown or invalid messages."""
    if isinstance(message, CommandModel):
        return message
    if not isinstance(message, Mapping):
        logger.warning("command.rejected reason=not_a_mapping type=%s", type(message).__name__)
        return None
    tag = message.get("type")
    command_type = COMMAND_TYPES.get(tag) if isinstance(tag, str) else None
    if command_type is None:
        logger.warning("command.unknown type=%s", tag)
        return None
    data = command_type.payload_data(message.get("payload"))
    for key in ("issuedAt", "issued_at"):
        if key in message:
            data["issuedAt"] = message[key]
    data["type"] = tag
    try:
        return command_type.model_validate(data)
    except ValidationError as exc:
        logger.warning("command.invalid type=%s errors=%s", tag, exc.error_count())
        return None
