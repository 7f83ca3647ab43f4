"""Pure transition function: ``(state, command) -> new state``.

Handlers never mutate their input; they rebuild the touched branches with
``model_copy`` and share the rest. Commands that reference missing records
are no-ops and return the input state object itself.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any, TypeVar

from greenlight.core.commands import (
    AddActor,
    AddCharacter,
    AddContactStatus,
    AddNote,
    AddNotification,
    AddProductionPhase,
    AddScene,
    AddScheduleEntry,
    AddSearchTag,
    AddShortlist,
    AddTab,
    AssignActorToProjectCharacter,
    CastVote,
    ClearAllFilters,
    ClearCache,
    ClearSearchTags,
    ClosePlayerView,
    CommandModel,
    CreateProject,
    DeleteActor,
    DeleteCharacter,
    DeleteNote,
    DeleteNotification,
    DeleteProductionPhase,
    DeleteProject,
    DeleteSavedSearch,
    DeleteScene,
    DeleteScheduleEntry,
    DeleteSelectedNotifications,
    DeleteShortlist,
    DeleteTab,
    LoadDemoData,
    LoadFromStorage,
    LoadSavedSearch,
    MarkAllNotificationsRead,
    MarkNotificationRead,
    MoveActor,
    MoveActorToCharacter,
    MoveMultipleActors,
    NavigatePlayerView,
    OpenPlayerView,
    RemoveActorAssignment,
    RemoveSearchTag,
    RenameShortlist,
    RenameTab,
    ReorderActors,
    ReorderMultipleActors,
    ReorderScenes,
    ReorderTabs,
    ResetTabDisplayName,
    RetractVote,
    SaveCurrentSearch,
    SelectCharacter,
    SelectProject,
    SelectTab,
    SetAgeRangeFilter,
    SetCurrentUser,
    SetLocationFilter,
    SetPlayerHeadshot,
    SetSearchTags,
    SetSearchTerm,
    SetSortOption,
    SetStatusFilter,
    SetViewMode,
    ToggleFilters,
    UpdateActor,
    UpdateCharacter,
    UpdateNote,
    UpdateProductionPhase,
    UpdateProject,
    UpdateProjectTerminology,
    UpdateSavedSearch,
    UpdateScene,
    UpdateScheduleEntry,
    UpdateTabDefinitions,
    UpdateTabDisplayName,
    UpdateTerminology,
    UpdateUser,
    parse_command,
)
from greenlight.core.consensus import format_vote_message
from greenlight.core.defaults import CONTACT_TEMPLATES, default_state
from greenlight.core.repair import (
    coerce_record,
    coerce_records,
    merge_record,
    repair,
    repair_character,
    repair_performer,
    repair_project,
    repair_tab_definitions,
    unique_by,
)
from greenlight.core.snapshot import CHARACTER_CORE_KEYS
from greenlight.domain.models import (
    APPROVAL,
    LONG_LIST,
    RESERVED_LIST_KEYS,
    SHORT_LISTS,
    AgeRange,
    CastingState,
    Character,
    ListLocation,
    Note,
    Notification,
    NotificationKind,
    NotificationPriority,
    Performer,
    PlayerView,
    ProductionPhase,
    Project,
    ProjectAssignment,
    SavedSearch,
    Scene,
    ScheduleEntry,
    SearchTag,
    ShortList,
    Status,
    TabDefinition,
    TermForms,
    stable_id,
)
from greenlight.domain.traversal import (
    active_list_ids,
    find_character,
    find_character_anywhere,
    find_project,
    find_user,
    focused_project,
    latest_timestamp,
    list_ids,
    locate_performer,
)

logger = logging.getLogger(__name__)

CommandT = TypeVar("CommandT", bound=CommandModel)
Handler = Callable[[CastingState, Any], CastingState]

_HANDLERS: dict[type[CommandModel], Handler] = {}


def handles(
    command_type: type[CommandT],
) -> Callable[[Callable[[CastingState, CommandT], CastingState]], Handler]:
    def register(handler: Callable[[CastingState, CommandT], CastingState]) -> Handler:
        _HANDLERS[command_type] = handler
        return handler

    return register


def transition(state: CastingState, command: CommandModel | Mapping[str, Any]) -> CastingState:
    """Apply one command. Unknown or invalid commands return ``state`` unchanged.

    Unstamped commands are dated at the newest timestamp already in ``state``
    so the result depends on nothing but the arguments.
    """
    parsed = parse_command(command)
    if parsed is None:
        return state
    parsed = parsed.stamped(latest_timestamp(state))
    handler = _HANDLERS.get(type(parsed))
    if handler is None:
        logger.warning("transition.unhandled type=%s", type(parsed).__name__)
        return state
    return handler(state, parsed)


# Shared helpers


def _notify(
    state: CastingState,
    command: CommandModel,
    *,
    title: str,
    message: str,
    kind: NotificationKind = "user",
    priority: NotificationPriority = "low",
    actor_id: str | None = None,
    character_id: str | None = None,
    user_id: str | None = None,
) -> CastingState:
    command_type = getattr(command, "type", type(command).__name__)
    notification = Notification(
        id=stable_id(
            prefix="ntf",
            text=f"{command_type}:{command.issued_ms}:{len(state.notifications)}:{title}",
        ),
        kind=kind,
        title=title,
        message=message,
        timestamp=command.issued_ms,
        priority=priority,
        actor_id=actor_id,
        character_id=character_id,
        user_id=user_id,
    )
    return state.model_copy(update={"notifications": [notification, *state.notifications]})


def _focus(state: CastingState, **updates: Any) -> CastingState:
    return state.model_copy(
        update={"current_focus": state.current_focus.model_copy(update=updates)}
    )


def _put_project(state: CastingState, project: Project) -> CastingState:
    return state.model_copy(
        update={
            "projects": [project if item.id == project.id else item for item in state.projects]
        }
    )


def _put_character(state: CastingState, project: Project, character: Character) -> CastingState:
    characters = [character if item.id == character.id else item for item in project.characters]
    return _put_project(state, project.model_copy(update={"characters": characters}))


def _map_characters(state: CastingState, change: Callable[[Character], Character]) -> CastingState:
    projects = [
        project.model_copy(
            update={"characters": [change(character) for character in project.characters]}
        )
        for project in state.projects
    ]
    return state.model_copy(update={"projects": projects})


def _performer_name(performer: Performer) -> str:
    return performer.name or performer.id


def _tab_name(state: CastingState, key: str) -> str:
    display_name = state.tab_display_names.get(key)
    if display_name:
        return display_name
    for definition in state.tab_definitions:
        if definition.key == key:
            return definition.name or key
    return key


def _location_name(state: CastingState, character: Character, location: ListLocation) -> str:
    if location.is_shortlist:
        for shortlist in character.short_lists:
            if shortlist.id == location.shortlist_id:
                return f'shortlist "{shortlist.name}"'
        return "shortlist"
    return _tab_name(state, location.key)


def _put_ids(character: Character, location: ListLocation, ids: list[str]) -> Character:
    if location.is_shortlist:
        short_lists = [
            shortlist.model_copy(update={"performer_ids": ids})
            if shortlist.id == location.shortlist_id
            else shortlist
            for shortlist in character.short_lists
        ]
        return character.model_copy(update={"short_lists": short_lists})
    return character.model_copy(update={"lists": {**character.lists, location.key: ids}})


def _put_performer(character: Character, performer: Performer) -> Character:
    return character.model_copy(
        update={"performers": {**character.performers, performer.id: performer}}
    )


def _detach(character: Character, performer_id: str) -> Character:
    """Remove an id from whichever list holds it; the record stays."""
    location = locate_performer(character, performer_id)
    if location is None:
        return character
    ids = list_ids(character, location) or []
    return _put_ids(character, location, [item for item in ids if item != performer_id])


def _without_performer(character: Character, performer_id: str) -> Character:
    detached = _detach(character, performer_id)
    performers = {key: value for key, value in detached.performers.items() if key != performer_id}
    return detached.model_copy(update={"performers": performers})


def _placed(performer: Performer, location: ListLocation, **updates: Any) -> Performer:
    return performer.model_copy(
        update={
            "current_list_key": location.key,
            "current_shortlist_id": location.shortlist_id,
            **updates,
        }
    )


def _moved_performer(
    performer: Performer,
    destination: ListLocation,
    move_reason: str | None,
    issued_at: int,
) -> Performer:
    if move_reason == "reset" and destination.key == LONG_LIST:
        return _placed(
            performer,
            destination,
            user_votes={},
            statuses=[status for status in performer.statuses if status.category != "contact"],
            last_contact_date=None,
            last_contact_type=None,
        )
    if move_reason == "final_review" and destination.key == APPROVAL:
        return _placed(
            performer, destination, ready_for_approval=True, approval_move_date=issued_at
        )
    return _placed(performer, destination, user_votes={})


def _relocate(
    character: Character,
    performer_ids: Iterable[str],
    source: ListLocation,
    destination: ListLocation,
    move_reason: str | None,
    issued_at: int,
) -> Character | None:
    """Move ids found in ``source`` to the end of ``destination``; ``None`` when nothing moved."""
    if source == destination:
        return None
    source_ids = list_ids(character, source)
    destination_ids = list_ids(character, destination)
    if source_ids is None or destination_ids is None:
        return None
    moving = [
        performer_id
        for performer_id in dict.fromkeys(performer_ids)
        if performer_id in source_ids and performer_id in character.performers
    ]
    if not moving:
        return None
    updated = _put_ids(
        character, source, [item for item in source_ids if item not in moving]
    )
    updated = _put_ids(updated, destination, [*destination_ids, *moving])
    performers = dict(updated.performers)
    for performer_id in moving:
        performers[performer_id] = _moved_performer(
            performers[performer_id], destination, move_reason, issued_at
        )
    return updated.model_copy(update={"performers": performers})


def _reorder_ids(
    ids: list[str],
    moving: list[str],
    target_id: str,
    position: str,
) -> list[str] | None:
    if target_id not in ids or target_id in moving or not moving:
        return None
    remaining = [item for item in ids if item not in moving]
    index = remaining.index(target_id) + (1 if position == "after" else 0)
    return [*remaining[:index], *moving, *remaining[index:]]


def _apply_order(
    character: Character, location: ListLocation, ids: list[str]
) -> Character:
    updated = _put_ids(character, location, ids)
    performers = dict(updated.performers)
    for index, performer_id in enumerate(ids):
        if performer_id in performers:
            performers[performer_id] = performers[performer_id].model_copy(
                update={"sort_order": index}
            )
    return updated.model_copy(update={"performers": performers})


def _update_performer(
    state: CastingState,
    character_id: str,
    performer_id: str,
    change: Callable[[Performer], Performer | None],
) -> tuple[CastingState, Character, Performer] | None:
    """Apply ``change`` to one performer; ``None`` when it is missing or unchanged."""
    context = find_character_anywhere(state, character_id)
    if context is None:
        return None
    project, character = context
    performer = character.performers.get(performer_id)
    if performer is None:
        return None
    updated = change(performer)
    if updated is None or updated == performer:
        return None
    new_character = _put_performer(character, updated)
    return _put_character(state, project, new_character), new_character, updated


# Selection


@handles(SelectProject)
def _select_project(state: CastingState, command: SelectProject) -> CastingState:
    project = find_project(state, command.project_id)
    if project is None:
        return state
    return _focus(
        state,
        current_project_id=project.id,
        character_id=project.characters[0].id if project.characters else None,
        active_tab_key=LONG_LIST,
        search_term="",
        player_view=PlayerView(),
    )


@handles(SelectCharacter)
def _select_character(state: CastingState, command: SelectCharacter) -> CastingState:
    if find_character(focused_project(state), command.character_id) is None:
        return state
    return _focus(
        state,
        character_id=command.character_id,
        active_tab_key=LONG_LIST,
        search_term="",
        player_view=PlayerView(),
    )


@handles(SelectTab)
def _select_tab(state: CastingState, command: SelectTab) -> CastingState:
    known = {definition.key for definition in state.tab_definitions} | {SHORT_LISTS}
    if command.tab_key not in known:
        return state
    return _focus(state, active_tab_key=command.tab_key, player_view=PlayerView())


@handles(SetSearchTerm)
def _set_search_term(state: CastingState, command: SetSearchTerm) -> CastingState:
    return _focus(state, search_term=command.term)


@handles(SetViewMode)
def _set_view_mode(state: CastingState, command: SetViewMode) -> CastingState:
    return _focus(
        state,
        card_display_mode=command.mode,
        player_view=PlayerView(is_open=command.mode == "player"),
    )


@handles(SetSortOption)
def _set_sort_option(state: CastingState, command: SetSortOption) -> CastingState:
    return _focus(state, current_sort_option=command.option)


def _clamp_index(state: CastingState, index: int) -> int:
    count = len(active_list_ids(state))
    return max(0, min(index, count - 1)) if count else 0


@handles(OpenPlayerView)
def _open_player_view(state: CastingState, command: OpenPlayerView) -> CastingState:
    index = _clamp_index(state, command.index)
    return _focus(state, player_view=PlayerView(is_open=True, current_index=index))


@handles(ClosePlayerView)
def _close_player_view(state: CastingState, command: ClosePlayerView) -> CastingState:
    return _focus(
        state, player_view=state.current_focus.player_view.model_copy(update={"is_open": False})
    )


@handles(NavigatePlayerView)
def _navigate_player_view(state: CastingState, command: NavigatePlayerView) -> CastingState:
    view = state.current_focus.player_view.model_copy(
        update={"current_index": _clamp_index(state, command.index), "current_headshot_index": 0}
    )
    return _focus(state, player_view=view)


@handles(SetPlayerHeadshot)
def _set_player_headshot(state: CastingState, command: SetPlayerHeadshot) -> CastingState:
    view = state.current_focus.player_view.model_copy(
        update={"current_headshot_index": command.index}
    )
    return _focus(state, player_view=view)


# Search tags, saved searches and filters


@handles(SetSearchTags)
def _set_search_tags(state: CastingState, command: SetSearchTags) -> CastingState:
    tags = unique_by(coerce_records(SearchTag, command.tags), lambda tag: tag.id)
    if tags == state.current_focus.search_tags:
        return state
    return _focus(state, search_tags=tags)


@handles(AddSearchTag)
def _add_search_tag(state: CastingState, command: AddSearchTag) -> CastingState:
    tag = coerce_record(SearchTag, command.tag)
    tags = state.current_focus.search_tags
    if tag is None or any(item.id == tag.id for item in tags):
        return state
    return _focus(state, search_tags=[*tags, tag])


@handles(RemoveSearchTag)
def _remove_search_tag(state: CastingState, command: RemoveSearchTag) -> CastingState:
    tags = state.current_focus.search_tags
    remaining = [tag for tag in tags if tag.id != command.tag_id]
    if len(remaining) == len(tags):
        return state
    return _focus(state, search_tags=remaining)


@handles(ClearSearchTags)
def _clear_search_tags(state: CastingState, command: ClearSearchTags) -> CastingState:
    if not state.current_focus.search_tags:
        return state
    return _focus(state, search_tags=[])


def _find_saved_search(state: CastingState, search_id: str) -> SavedSearch | None:
    return next(
        (item for item in state.current_focus.saved_searches if item.id == search_id), None
    )


def _put_saved_search(state: CastingState, saved: SavedSearch, **updates: Any) -> CastingState:
    saved_searches = [
        saved if item.id == saved.id else item for item in state.current_focus.saved_searches
    ]
    return _focus(state, saved_searches=saved_searches, **updates)


@handles(SaveCurrentSearch)
def _save_current_search(state: CastingState, command: SaveCurrentSearch) -> CastingState:
    focus = state.current_focus
    search_id = command.search_id or stable_id(
        prefix="search",
        text=f"{command.name}:{command.issued_ms}:{len(focus.saved_searches)}",
    )
    if _find_saved_search(state, search_id) is not None:
        return state
    saved = SavedSearch(
        id=search_id,
        name=command.name,
        tags=list(focus.search_tags),
        search_term=focus.search_term,
        created_at=command.issued_ms,
        last_used=command.issued_ms,
        is_global=command.is_global,
    )
    return _focus(state, saved_searches=[*focus.saved_searches, saved])


@handles(LoadSavedSearch)
def _load_saved_search(state: CastingState, command: LoadSavedSearch) -> CastingState:
    saved = _find_saved_search(state, command.search_id)
    if saved is None:
        return state
    return _put_saved_search(
        state,
        saved.model_copy(update={"last_used": command.issued_ms}),
        search_term=saved.search_term,
        search_tags=list(saved.tags),
    )


@handles(UpdateSavedSearch)
def _update_saved_search(state: CastingState, command: UpdateSavedSearch) -> CastingState:
    saved = _find_saved_search(state, command.search_id)
    if saved is None:
        return state
    updated = merge_record(saved, command.updates, protected={"id"})
    if updated == saved:
        return state
    return _put_saved_search(state, updated)


@handles(DeleteSavedSearch)
def _delete_saved_search(state: CastingState, command: DeleteSavedSearch) -> CastingState:
    saved_searches = state.current_focus.saved_searches
    remaining = [item for item in saved_searches if item.id != command.search_id]
    if len(remaining) == len(saved_searches):
        return state
    return _focus(state, saved_searches=remaining)


def _refilter(state: CastingState, **updates: Any) -> CastingState:
    filters = state.current_focus.filters
    updated = filters.model_copy(update=updates)
    if updated == filters:
        return state
    return _focus(state, filters=updated)


@handles(SetStatusFilter)
def _set_status_filter(state: CastingState, command: SetStatusFilter) -> CastingState:
    return _refilter(state, status=list(dict.fromkeys(command.status)))


@handles(SetAgeRangeFilter)
def _set_age_range_filter(state: CastingState, command: SetAgeRangeFilter) -> CastingState:
    low, high = sorted((command.age_range.min, command.age_range.max))
    return _refilter(state, age_range=AgeRange(min=low, max=high))


@handles(SetLocationFilter)
def _set_location_filter(state: CastingState, command: SetLocationFilter) -> CastingState:
    return _refilter(state, location=list(dict.fromkeys(command.location)))


@handles(ClearAllFilters)
def _clear_all_filters(state: CastingState, command: ClearAllFilters) -> CastingState:
    # The panel stays open or closed as it was.
    return _refilter(state, status=[], age_range=AgeRange(), location=[])


@handles(ToggleFilters)
def _toggle_filters(state: CastingState, command: ToggleFilters) -> CastingState:
    return _refilter(state, show_filters=not state.current_focus.filters.show_filters)


# Users


@handles(SetCurrentUser)
def _set_current_user(state: CastingState, command: SetCurrentUser) -> CastingState:
    if find_user(state, command.user_id) is None:
        return state
    return state.model_copy(update={"current_user_id": command.user_id})


def _rename_note_author(user_id: str, name: str) -> Callable[[Character], Character]:
    def change(character: Character) -> Character:
        performers = {
            performer_id: performer.model_copy(
                update={
                    "notes": [
                        note.model_copy(update={"user_name": name})
                        if note.user_id == user_id
                        else note
                        for note in performer.notes
                    ]
                }
            )
            if any(note.user_id == user_id for note in performer.notes)
            else performer
            for performer_id, performer in character.performers.items()
        }
        return character.model_copy(update={"performers": performers})

    return change


@handles(UpdateUser)
def _update_user(state: CastingState, command: UpdateUser) -> CastingState:
    user = find_user(state, command.user_id)
    if user is None:
        return state
    updated = merge_record(user, command.updates, protected={"id"})
    if updated == user:
        return state
    next_state = state.model_copy(
        update={"users": [updated if item.id == user.id else item for item in state.users]}
    )
    if updated.name != user.name:
        next_state = _map_characters(next_state, _rename_note_author(user.id, updated.name))
        if user.name:
            notifications = [
                notification.model_copy(
                    update={
                        "title": notification.title.replace(user.name, updated.name),
                        "message": notification.message.replace(user.name, updated.name),
                    }
                )
                if notification.user_id == user.id
                else notification
                for notification in next_state.notifications
            ]
            next_state = next_state.model_copy(update={"notifications": notifications})
    message = f'User profile has been updated - now known as "{updated.name}"'
    if updated.email != user.email:
        message += f' with email "{updated.email}"'
    return _notify(
        next_state,
        command,
        title="User Profile Updated",
        message=message,
        kind="system",
        user_id=user.id,
    )


# Projects and terminology


@handles(CreateProject)
def _create_project(state: CastingState, command: CreateProject) -> CastingState:
    data = dict(command.project)
    data.setdefault(
        "id", stable_id(prefix="prj", text=f"{data.get('name', '')}:{command.issued_ms}")
    )
    data.setdefault("createdDate", command.issued_ms)
    data.setdefault("modifiedDate", command.issued_ms)
    tab_keys = [definition.key for definition in state.tab_definitions]
    project = repair_project(data, tab_keys)
    if project is None or find_project(state, project.id) is not None:
        return state
    next_state = state.model_copy(update={"projects": [project, *state.projects]})
    if state.current_focus.current_project_id is None:
        next_state = _focus(
            next_state,
            current_project_id=project.id,
            character_id=project.characters[0].id if project.characters else None,
        )
    return next_state


@handles(UpdateProject)
def _update_project(state: CastingState, command: UpdateProject) -> CastingState:
    project = find_project(state, command.project_id)
    if project is None:
        return state
    updated = merge_record(
        project, command.updates, protected={"id", "characters", "created_date"}
    )
    if updated == project:
        return state
    return _put_project(state, updated.model_copy(update={"modified_date": command.issued_ms}))


@handles(DeleteProject)
def _delete_project(state: CastingState, command: DeleteProject) -> CastingState:
    if find_project(state, command.project_id) is None:
        return state
    remaining = [project for project in state.projects if project.id != command.project_id]
    next_state = state.model_copy(update={"projects": remaining})
    if state.current_focus.current_project_id != command.project_id:
        return next_state
    first = remaining[0] if remaining else None
    return _focus(
        next_state,
        current_project_id=first.id if first else None,
        character_id=first.characters[0].id if first and first.characters else None,
        active_tab_key=LONG_LIST,
        player_view=PlayerView(),
    )


@handles(UpdateProjectTerminology)
def _update_project_terminology(
    state: CastingState, command: UpdateProjectTerminology
) -> CastingState:
    project = focused_project(state)
    if project is None:
        return state
    forms = TermForms(singular=command.singular, plural=command.plural)
    terminology = project.terminology.model_copy(update={command.term: forms})
    return _put_project(
        state,
        project.model_copy(
            update={"terminology": terminology, "modified_date": command.issued_ms}
        ),
    )


@handles(UpdateTerminology)
def _update_terminology(state: CastingState, command: UpdateTerminology) -> CastingState:
    forms = TermForms(singular=command.singular, plural=command.plural)
    return state.model_copy(
        update={"terminology": state.terminology.model_copy(update={command.term: forms})}
    )


# Characters


@handles(AddCharacter)
def _add_character(state: CastingState, command: AddCharacter) -> CastingState:
    project = (
        find_project(state, command.project_id)
        if command.project_id is not None
        else focused_project(state)
    )
    if project is None:
        return state
    data = dict(command.character)
    data.setdefault(
        "id", stable_id(prefix="chr", text=f"{data.get('name', '')}:{command.issued_ms}")
    )
    character = repair_character(data, [definition.key for definition in state.tab_definitions])
    if character is None or find_character(project, character.id) is not None:
        return state
    next_state = _put_project(
        state, project.model_copy(update={"characters": [*project.characters, character]})
    )
    if state.current_focus.character_id is None:
        next_state = _focus(
            next_state, current_project_id=project.id, character_id=character.id
        )
    return _notify(
        next_state,
        command,
        title="New Character Added",
        message=f'Character "{character.name}" was added to the project',
        priority="medium",
        character_id=character.id,
    )


@handles(UpdateCharacter)
def _update_character(state: CastingState, command: UpdateCharacter) -> CastingState:
    context = find_character_anywhere(state, command.character_id)
    if context is None:
        return state
    project, character = context
    updated = merge_record(
        character,
        command.updates,
        protected={"id", "attributes", "performers", "lists", "short_lists"},
    )
    field_keys = {
        key
        for name, info in Character.model_fields.items()
        for key in (name, info.alias)
        if key is not None
    }
    extra = {
        key: value
        for key, value in command.updates.items()
        if key not in CHARACTER_CORE_KEYS and key not in field_keys
    }
    if extra:
        updated = updated.model_copy(update={"attributes": {**updated.attributes, **extra}})
    if updated == character:
        return state
    return _put_character(state, project, updated)


@handles(DeleteCharacter)
def _delete_character(state: CastingState, command: DeleteCharacter) -> CastingState:
    context = find_character_anywhere(state, command.character_id)
    if context is None:
        return state
    project, _ = context
    remaining = [item for item in project.characters if item.id != command.character_id]
    next_state = _put_project(state, project.model_copy(update={"characters": remaining}))
    focus = state.current_focus
    if focus.current_project_id != project.id or focus.character_id != command.character_id:
        return next_state
    return _focus(
        next_state,
        character_id=remaining[0].id if remaining else None,
        active_tab_key=LONG_LIST,
        player_view=PlayerView(),
    )


# Performers


@handles(AddActor)
def _add_actor(state: CastingState, command: AddActor) -> CastingState:
    context = find_character_anywhere(state, command.character_id)
    performer = repair_performer(command.performer)
    if context is None or performer is None:
        return state
    project, character = context
    if performer.id in character.performers:
        return state
    location = ListLocation(
        key=command.list_key,
        shortlist_id=command.shortlist_id if command.list_key == SHORT_LISTS else None,
    )
    ids = list_ids(character, location)
    if ids is None:
        return state
    placed = _placed(performer, location, date_added=performer.date_added or command.issued_ms)
    updated = _put_ids(_put_performer(character, placed), location, [placed.id, *ids])
    next_state = _put_character(state, project, updated)
    if placed.submission_source == "form":
        return _notify(
            next_state,
            command,
            title="New Form Submission Processed",
            message=(
                f"{_performer_name(placed)} was added to {character.name} "
                "from a form submission"
            ),
            priority="medium",
            actor_id=placed.id,
            character_id=character.id,
        )
    return _notify(
        next_state,
        command,
        title="New Actor Added",
        message=f"{_performer_name(placed)} was added to {character.name}",
        actor_id=placed.id,
        character_id=character.id,
    )


@handles(UpdateActor)
def _update_actor(state: CastingState, command: UpdateActor) -> CastingState:
    result = _update_performer(
        state,
        command.character_id,
        command.performer_id,
        lambda performer: merge_record(
            performer,
            command.updates,
            protected={"id", "current_list_key", "current_shortlist_id"},
        ),
    )
    return state if result is None else result[0]


@handles(DeleteActor)
def _delete_actor(state: CastingState, command: DeleteActor) -> CastingState:
    context = find_character_anywhere(state, command.character_id)
    if context is None:
        return state
    project, character = context
    performer = character.performers.get(command.performer_id)
    if performer is None:
        return state
    next_state = _put_character(state, project, _without_performer(character, performer.id))
    return _notify(
        next_state,
        command,
        title="Actor Deleted",
        message=f"{_performer_name(performer)} was removed from {character.name}",
        actor_id=performer.id,
        character_id=character.id,
    )


def _move_notice(
    state: CastingState,
    character: Character,
    names: str,
    source: ListLocation,
    destination: ListLocation,
) -> tuple[str, str, NotificationPriority]:
    if destination.key == APPROVAL:
        return (
            "Moved to Approval",
            f"{names} was moved to Approval for final review on {character.name}",
            "medium",
        )
    if destination.key == LONG_LIST:
        return (
            "Moved to Long List",
            f"{names} was moved to Long List for fresh evaluation on {character.name}",
            "low",
        )
    return (
        "Actor Moved",
        f"{names} was moved from {_location_name(state, character, source)} "
        f"to {_location_name(state, character, destination)} for {character.name}",
        "low",
    )


@handles(MoveActor)
def _move_actor(state: CastingState, command: MoveActor) -> CastingState:
    context = find_character_anywhere(state, command.character_id)
    if context is None:
        return state
    project, character = context
    updated = _relocate(
        character,
        [command.performer_id],
        command.source,
        command.destination,
        command.move_reason,
        command.issued_ms,
    )
    if updated is None:
        return state
    title, message, priority = _move_notice(
        state,
        character,
        _performer_name(updated.performers[command.performer_id]),
        command.source,
        command.destination,
    )
    return _notify(
        _put_character(state, project, updated),
        command,
        title=title,
        message=message,
        priority=priority,
        actor_id=command.performer_id,
        character_id=character.id,
    )


@handles(MoveMultipleActors)
def _move_multiple_actors(state: CastingState, command: MoveMultipleActors) -> CastingState:
    context = find_character_anywhere(state, command.character_id)
    if context is None:
        return state
    project, character = context
    source_ids = list_ids(character, command.source) or []
    moved = [
        performer_id
        for performer_id in dict.fromkeys(command.performer_ids)
        if performer_id in source_ids and performer_id in character.performers
    ]
    updated = _relocate(
        character,
        moved,
        command.source,
        command.destination,
        command.move_reason,
        command.issued_ms,
    )
    if updated is None:
        return state
    if len(moved) == 1:
        title, message, priority = _move_notice(
            state,
            character,
            _performer_name(character.performers[moved[0]]),
            command.source,
            command.destination,
        )
    else:
        title, priority = "Actors Moved", "low"
        message = (
            f"{len(moved)} actors were moved from "
            f"{_location_name(state, character, command.source)} to "
            f"{_location_name(state, character, command.destination)} for {character.name}"
        )
    return _notify(
        _put_character(state, project, updated),
        command,
        title=title,
        message=message,
        priority=priority,
        character_id=character.id,
    )


@handles(MoveActorToCharacter)
def _move_actor_to_character(state: CastingState, command: MoveActorToCharacter) -> CastingState:
    if command.source_character_id == command.destination_character_id:
        return state
    source_context = find_character_anywhere(state, command.source_character_id)
    target_context = find_character_anywhere(state, command.destination_character_id)
    if source_context is None or target_context is None:
        return state
    source_project, source = source_context
    performer = source.performers.get(command.performer_id)
    if performer is None or performer.id in target_context[1].performers:
        return state

    next_state = _put_character(state, source_project, _without_performer(source, performer.id))
    # Re-resolve: both characters may live in the same project.
    context = find_character_anywhere(next_state, command.destination_character_id)
    if context is None:
        return state
    destination_project, destination = context
    location = ListLocation(key=LONG_LIST)
    landed = _placed(performer, location, user_votes={})
    destination = _put_ids(
        _put_performer(destination, landed),
        location,
        [landed.id, *destination.lists.get(LONG_LIST, [])],
    )
    next_state = _put_character(next_state, destination_project, destination)
    return _notify(
        next_state,
        command,
        title="Actor Moved to Different Character",
        message=(
            f"{_performer_name(performer)} was moved from {source.name} to {destination.name}"
        ),
        priority="medium",
        actor_id=performer.id,
        character_id=destination.id,
    )


def _reorder(
    state: CastingState,
    character_id: str,
    location: ListLocation,
    moving: list[str],
    target_id: str,
    position: str,
) -> CastingState:
    context = find_character_anywhere(state, character_id)
    if context is None:
        return state
    project, character = context
    ids = list_ids(character, location)
    if ids is None:
        return state
    present = [performer_id for performer_id in dict.fromkeys(moving) if performer_id in ids]
    reordered = _reorder_ids(ids, present, target_id, position)
    if reordered is None or reordered == ids:
        return state
    return _put_character(state, project, _apply_order(character, location, reordered))


@handles(ReorderActors)
def _reorder_actors(state: CastingState, command: ReorderActors) -> CastingState:
    return _reorder(
        state,
        command.character_id,
        command.location,
        [command.performer_id],
        command.target_id,
        command.position,
    )


@handles(ReorderMultipleActors)
def _reorder_multiple_actors(state: CastingState, command: ReorderMultipleActors) -> CastingState:
    return _reorder(
        state,
        command.character_id,
        command.location,
        command.performer_ids,
        command.target_id,
        command.position,
    )


@handles(AddContactStatus)
def _add_contact_status(state: CastingState, command: AddContactStatus) -> CastingState:
    template = CONTACT_TEMPLATES.get(command.contact_type)
    if template is None:
        return state
    label, bg_color, text_color = template
    status = Status(
        id=f"contact-{command.contact_type}-{command.issued_ms}",
        label=label,
        bg_color=bg_color,
        text_color=text_color,
        category="contact",
        timestamp=command.issued_ms,
        template_used=command.contact_type,
    )

    def change(performer: Performer) -> Performer:
        statuses = [item for item in performer.statuses if item.label != label]
        return performer.model_copy(
            update={
                "statuses": [*statuses, status],
                "last_contact_date": command.issued_ms,
                "last_contact_type": command.contact_type,
            }
        )

    result = _update_performer(state, command.character_id, command.performer_id, change)
    return state if result is None else result[0]


def _map_performer(
    state: CastingState, performer_id: str, change: Callable[[Performer], Performer]
) -> CastingState:
    """Apply ``change`` to every record of one performer across all characters."""
    changed = False

    def visit(character: Character) -> Character:
        nonlocal changed
        performer = character.performers.get(performer_id)
        if performer is None:
            return character
        updated = change(performer)
        if updated == performer:
            return character
        changed = True
        return _put_performer(character, updated)

    next_state = _map_characters(state, visit)
    return next_state if changed else state


def _has_assignment(performer: Performer, project_id: str, character_id: str) -> bool:
    return any(
        item.project_id == project_id and item.character_id == character_id
        for item in performer.project_assignments
    )


@handles(AssignActorToProjectCharacter)
def _assign_actor_to_project_character(
    state: CastingState, command: AssignActorToProjectCharacter
) -> CastingState:
    project = find_project(state, command.project_id)
    character = find_character(project, command.character_id)
    assignment = ProjectAssignment(
        project_id=command.project_id,
        project_name=command.project_name or (project.name if project else ""),
        character_id=command.character_id,
        character_name=command.character_name or (character.name if character else ""),
        assigned_date=command.issued_ms,
    )

    def assign(performer: Performer) -> Performer:
        if _has_assignment(performer, command.project_id, command.character_id):
            return performer
        return performer.model_copy(
            update={"project_assignments": [*performer.project_assignments, assignment]}
        )

    return _map_performer(state, command.performer_id, assign)


@handles(RemoveActorAssignment)
def _remove_actor_assignment(state: CastingState, command: RemoveActorAssignment) -> CastingState:
    def unassign(performer: Performer) -> Performer:
        if not _has_assignment(performer, command.project_id, command.character_id):
            return performer
        remaining = [
            item
            for item in performer.project_assignments
            if not (
                item.project_id == command.project_id
                and item.character_id == command.character_id
            )
        ]
        return performer.model_copy(update={"project_assignments": remaining})

    return _map_performer(state, command.performer_id, unassign)


# Votes


@handles(CastVote)
def _cast_vote(state: CastingState, command: CastVote) -> CastingState:
    result = _update_performer(
        state,
        command.character_id,
        command.performer_id,
        lambda performer: performer.model_copy(
            update={"user_votes": {**performer.user_votes, command.user_id: command.vote}}
        ),
    )
    if result is None:
        return state
    next_state, character, performer = result
    voter = find_user(state, command.user_id)
    return _notify(
        next_state,
        command,
        title="New Vote Cast",
        message=format_vote_message(
            voter.name if voter else None,
            command.vote,
            _performer_name(performer),
            character.name,
        ),
        kind="vote",
        priority="medium",
        actor_id=performer.id,
        character_id=character.id,
        user_id=command.user_id,
    )


@handles(RetractVote)
def _retract_vote(state: CastingState, command: RetractVote) -> CastingState:
    result = _update_performer(
        state,
        command.character_id,
        command.performer_id,
        lambda performer: performer.model_copy(
            update={
                "user_votes": {
                    user_id: vote
                    for user_id, vote in performer.user_votes.items()
                    if user_id != command.user_id
                }
            }
        ),
    )
    return state if result is None else result[0]


# Notes


@handles(AddNote)
def _add_note(state: CastingState, command: AddNote) -> CastingState:
    user_id = command.user_id or state.current_user_id
    if user_id is None:
        return state
    author = find_user(state, user_id)

    def change(performer: Performer) -> Performer:
        note = Note(
            id=stable_id(
                prefix="note",
                text=f"{performer.id}:{user_id}:{command.issued_ms}:{len(performer.notes)}",
            ),
            user_id=user_id,
            user_name=author.name if author else "",
            timestamp=command.issued_ms,
            text=command.text,
        )
        return performer.model_copy(update={"notes": [*performer.notes, note]})

    result = _update_performer(state, command.character_id, command.performer_id, change)
    return state if result is None else result[0]


def _edit_note(
    state: CastingState,
    command: UpdateNote | DeleteNote,
    rewrite: Callable[[Note], Note | None],
) -> CastingState:
    user_id = command.user_id or state.current_user_id

    def change(performer: Performer) -> Performer | None:
        notes: list[Note] = []
        touched = False
        for note in performer.notes:
            if note.id == command.note_id and note.user_id == user_id:
                touched = True
                replacement = rewrite(note)
                if replacement is not None:
                    notes.append(replacement)
            else:
                notes.append(note)
        return performer.model_copy(update={"notes": notes}) if touched else None

    result = _update_performer(state, command.character_id, command.performer_id, change)
    return state if result is None else result[0]


@handles(UpdateNote)
def _update_note(state: CastingState, command: UpdateNote) -> CastingState:
    return _edit_note(
        state,
        command,
        lambda note: note.model_copy(update={"text": command.text}),
    )


@handles(DeleteNote)
def _delete_note(state: CastingState, command: DeleteNote) -> CastingState:
    return _edit_note(state, command, lambda note: None)


# Shortlists


@handles(AddShortlist)
def _add_shortlist(state: CastingState, command: AddShortlist) -> CastingState:
    context = find_character_anywhere(state, command.character_id)
    if context is None:
        return state
    project, character = context
    shortlist_id = command.shortlist_id or stable_id(
        prefix="sl", text=f"{character.id}:{command.name}:{command.issued_ms}"
    )
    if any(shortlist.id == shortlist_id for shortlist in character.short_lists):
        return state
    shortlist = ShortList(
        id=shortlist_id,
        name=command.name,
        description=command.description,
        color=command.color,
        created_at=command.issued_ms,
    )
    return _put_character(
        state,
        project,
        character.model_copy(update={"short_lists": [*character.short_lists, shortlist]}),
    )


@handles(RenameShortlist)
def _rename_shortlist(state: CastingState, command: RenameShortlist) -> CastingState:
    context = find_character_anywhere(state, command.character_id)
    if context is None:
        return state
    project, character = context
    if not any(shortlist.id == command.shortlist_id for shortlist in character.short_lists):
        return state
    short_lists = [
        shortlist.model_copy(update={"name": command.name})
        if shortlist.id == command.shortlist_id
        else shortlist
        for shortlist in character.short_lists
    ]
    return _put_character(state, project, character.model_copy(update={"short_lists": short_lists}))


def _return_to_long_list(character: Character, performer_ids: list[str]) -> Character:
    """Append ids to the long list with votes cleared; callers have already detached them."""
    location = ListLocation(key=LONG_LIST)
    performers = dict(character.performers)
    for performer_id in performer_ids:
        if performer_id in performers:
            performers[performer_id] = _placed(performers[performer_id], location, user_votes={})
    lists = {
        **character.lists,
        LONG_LIST: [*character.lists.get(LONG_LIST, []), *performer_ids],
    }
    return character.model_copy(update={"performers": performers, "lists": lists})


@handles(DeleteShortlist)
def _delete_shortlist(state: CastingState, command: DeleteShortlist) -> CastingState:
    context = find_character_anywhere(state, command.character_id)
    if context is None:
        return state
    project, character = context
    doomed = next(
        (shortlist for shortlist in character.short_lists if shortlist.id == command.shortlist_id),
        None,
    )
    if doomed is None:
        return state
    remaining = character.model_copy(
        update={
            "short_lists": [
                shortlist for shortlist in character.short_lists if shortlist.id != doomed.id
            ]
        }
    )
    return _put_character(
        state, project, _return_to_long_list(remaining, list(doomed.performer_ids))
    )


# Tabs


def _tab_index(state: CastingState, key: str) -> int | None:
    for index, definition in enumerate(state.tab_definitions):
        if definition.key == key:
            return index
    return None


@handles(AddTab)
def _add_tab(state: CastingState, command: AddTab) -> CastingState:
    if command.key in RESERVED_LIST_KEYS or command.key == SHORT_LISTS:
        return state
    if _tab_index(state, command.key) is not None:
        return state
    definitions = list(state.tab_definitions)
    approval_index = _tab_index(state, APPROVAL)
    definitions.insert(
        len(definitions) if approval_index is None else approval_index,
        TabDefinition(key=command.key, name=command.name, is_custom=True),
    )
    next_state = state.model_copy(update={"tab_definitions": definitions})
    return _map_characters(
        next_state,
        lambda character: character
        if command.key in character.lists
        else character.model_copy(update={"lists": {**character.lists, command.key: []}}),
    )


@handles(RenameTab)
def _rename_tab(state: CastingState, command: RenameTab) -> CastingState:
    index = _tab_index(state, command.key)
    if index is None or command.key in RESERVED_LIST_KEYS:
        return state
    new_key = command.new_key or command.key
    if new_key != command.key and (
        new_key in RESERVED_LIST_KEYS
        or new_key == SHORT_LISTS
        or _tab_index(state, new_key) is not None
    ):
        return state
    definitions = list(state.tab_definitions)
    definitions[index] = definitions[index].model_copy(
        update={"key": new_key, "name": command.name}
    )
    next_state = state.model_copy(update={"tab_definitions": definitions})
    if new_key == command.key:
        return next_state

    def rekey(character: Character) -> Character:
        lists = {
            (new_key if key == command.key else key): ids for key, ids in character.lists.items()
        }
        performers = {
            performer_id: performer.model_copy(update={"current_list_key": new_key})
            if performer.current_list_key == command.key
            else performer
            for performer_id, performer in character.performers.items()
        }
        return character.model_copy(update={"lists": lists, "performers": performers})

    next_state = _map_characters(next_state, rekey)
    display_names = {
        (new_key if key == command.key else key): name
        for key, name in state.tab_display_names.items()
    }
    next_state = next_state.model_copy(update={"tab_display_names": display_names})
    if state.current_focus.active_tab_key == command.key:
        next_state = _focus(next_state, active_tab_key=new_key)
    return next_state


@handles(DeleteTab)
def _delete_tab(state: CastingState, command: DeleteTab) -> CastingState:
    if command.key in RESERVED_LIST_KEYS or _tab_index(state, command.key) is None:
        return state
    definitions = [item for item in state.tab_definitions if item.key != command.key]
    next_state = state.model_copy(
        update={
            "tab_definitions": definitions,
            "tab_display_names": {
                key: name for key, name in state.tab_display_names.items() if key != command.key
            },
        }
    )

    def fold(character: Character) -> Character:
        if command.key not in character.lists:
            return character
        orphans = list(character.lists[command.key])
        lists = {key: ids for key, ids in character.lists.items() if key != command.key}
        return _return_to_long_list(character.model_copy(update={"lists": lists}), orphans)

    next_state = _map_characters(next_state, fold)
    if state.current_focus.active_tab_key == command.key:
        next_state = _focus(next_state, active_tab_key=LONG_LIST, player_view=PlayerView())
    return next_state


@handles(ReorderTabs)
def _reorder_tabs(state: CastingState, command: ReorderTabs) -> CastingState:
    if command.dragged_key == command.target_key:
        return state
    if {command.dragged_key, command.target_key} & {LONG_LIST, APPROVAL}:
        logger.info(
            "transition.reorder_tabs.rejected dragged=%s target=%s",
            command.dragged_key,
            command.target_key,
        )
        return state
    dragged_index = _tab_index(state, command.dragged_key)
    if dragged_index is None or _tab_index(state, command.target_key) is None:
        return state
    definitions = list(state.tab_definitions)
    dragged = definitions.pop(dragged_index)
    target_index = next(
        index for index, item in enumerate(definitions) if item.key == command.target_key
    )
    definitions.insert(target_index + (1 if command.position == "after" else 0), dragged)
    if definitions == state.tab_definitions:
        return state
    next_state = state.model_copy(update={"tab_definitions": definitions})
    return _notify(
        next_state,
        command,
        title="Tab Reordered",
        message=(
            f'Tab "{_tab_name(state, command.dragged_key)}" was moved {command.position} '
            f'"{_tab_name(state, command.target_key)}"'
        ),
        kind="system",
    )


@handles(UpdateTabDisplayName)
def _update_tab_display_name(state: CastingState, command: UpdateTabDisplayName) -> CastingState:
    if command.key != SHORT_LISTS and _tab_index(state, command.key) is None:
        return state
    return state.model_copy(
        update={"tab_display_names": {**state.tab_display_names, command.key: command.name}}
    )


@handles(ResetTabDisplayName)
def _reset_tab_display_name(state: CastingState, command: ResetTabDisplayName) -> CastingState:
    if command.key not in state.tab_display_names:
        return state
    return state.model_copy(
        update={
            "tab_display_names": {
                key: name for key, name in state.tab_display_names.items() if key != command.key
            }
        }
    )


@handles(UpdateTabDefinitions)
def _update_tab_definitions(state: CastingState, command: UpdateTabDefinitions) -> CastingState:
    definitions = repair_tab_definitions(command.definitions)
    if definitions == state.tab_definitions:
        return state
    kept = {definition.key for definition in definitions}
    dropped = {definition.key for definition in state.tab_definitions} - kept
    next_state = state.model_copy(
        update={
            "tab_definitions": definitions,
            "tab_display_names": {
                key: name for key, name in state.tab_display_names.items() if key not in dropped
            },
        }
    )

    def sync(character: Character) -> Character:
        orphans = [
            performer_id
            for key, ids in character.lists.items()
            if key in dropped
            for performer_id in ids
        ]
        lists = {key: ids for key, ids in character.lists.items() if key not in dropped}
        for key in kept:
            lists.setdefault(key, [])
        if not orphans and lists == character.lists:
            return character
        return _return_to_long_list(character.model_copy(update={"lists": lists}), orphans)

    next_state = _map_characters(next_state, sync)
    if state.current_focus.active_tab_key in dropped:
        next_state = _focus(next_state, active_tab_key=LONG_LIST, player_view=PlayerView())
    return next_state


# Notifications


@handles(AddNotification)
def _add_notification(state: CastingState, command: AddNotification) -> CastingState:
    data = dict(command.notification)
    data.setdefault(
        "id",
        stable_id(
            prefix="ntf",
            text=f"{command.type}:{command.issued_ms}:{len(state.notifications)}",
        ),
    )
    data.setdefault("timestamp", command.issued_ms)
    notification = coerce_record(Notification, data)
    if notification is None or any(item.id == notification.id for item in state.notifications):
        return state
    return state.model_copy(update={"notifications": [notification, *state.notifications]})


def _mark_read(state: CastingState, wanted: Callable[[Notification], bool]) -> CastingState:
    if not any(wanted(item) and not item.read for item in state.notifications):
        return state
    notifications = [
        item.model_copy(update={"read": True}) if wanted(item) else item
        for item in state.notifications
    ]
    return state.model_copy(update={"notifications": notifications})


@handles(MarkNotificationRead)
def _mark_notification_read(state: CastingState, command: MarkNotificationRead) -> CastingState:
    return _mark_read(state, lambda item: item.id == command.notification_id)


@handles(MarkAllNotificationsRead)
def _mark_all_notifications_read(
    state: CastingState, command: MarkAllNotificationsRead
) -> CastingState:
    return _mark_read(state, lambda item: True)


def _drop_notifications(state: CastingState, ids: set[str]) -> CastingState:
    remaining = [item for item in state.notifications if item.id not in ids]
    if len(remaining) == len(state.notifications):
        return state
    return state.model_copy(update={"notifications": remaining})


@handles(DeleteNotification)
def _delete_notification(state: CastingState, command: DeleteNotification) -> CastingState:
    return _drop_notifications(state, {command.notification_id})


@handles(DeleteSelectedNotifications)
def _delete_selected_notifications(
    state: CastingState, command: DeleteSelectedNotifications
) -> CastingState:
    return _drop_notifications(state, set(command.notification_ids))


# Schedule and phases


@handles(AddScheduleEntry)
def _add_schedule_entry(state: CastingState, command: AddScheduleEntry) -> CastingState:
    data = dict(command.entry)
    data.setdefault(
        "id",
        stable_id(
            prefix="entry",
            text=f"{data.get('date', '')}:{command.issued_ms}:{len(state.schedule_entries)}",
        ),
    )
    data.setdefault("createdAt", command.issued_ms)
    data.setdefault("updatedAt", command.issued_ms)
    entry = coerce_record(ScheduleEntry, data)
    if entry is None or any(item.id == entry.id for item in state.schedule_entries):
        return state
    return state.model_copy(update={"schedule_entries": [*state.schedule_entries, entry]})


@handles(UpdateScheduleEntry)
def _update_schedule_entry(state: CastingState, command: UpdateScheduleEntry) -> CastingState:
    entry = next((item for item in state.schedule_entries if item.id == command.entry_id), None)
    if entry is None:
        return state
    merged = merge_record(entry, command.updates, protected={"id", "created_at", "updated_at"})
    if merged == entry:
        return state
    updated = merged.model_copy(update={"updated_at": command.issued_ms})
    return state.model_copy(
        update={
            "schedule_entries": [
                updated if item.id == entry.id else item for item in state.schedule_entries
            ]
        }
    )


@handles(DeleteScheduleEntry)
def _delete_schedule_entry(state: CastingState, command: DeleteScheduleEntry) -> CastingState:
    remaining = [item for item in state.schedule_entries if item.id != command.entry_id]
    if len(remaining) == len(state.schedule_entries):
        return state
    return state.model_copy(update={"schedule_entries": remaining})


@handles(AddProductionPhase)
def _add_production_phase(state: CastingState, command: AddProductionPhase) -> CastingState:
    data = dict(command.phase)
    data.setdefault(
        "id", stable_id(prefix="phase", text=f"{data.get('name', '')}:{command.issued_ms}")
    )
    phase = coerce_record(ProductionPhase, data)
    if phase is None or any(item.id == phase.id for item in state.production_phases):
        return state
    return state.model_copy(update={"production_phases": [*state.production_phases, phase]})


@handles(UpdateProductionPhase)
def _update_production_phase(
    state: CastingState, command: UpdateProductionPhase
) -> CastingState:
    phase = next((item for item in state.production_phases if item.id == command.phase_id), None)
    if phase is None:
        return state
    updated = merge_record(phase, command.updates, protected={"id"})
    if updated == phase:
        return state
    return state.model_copy(
        update={
            "production_phases": [
                updated if item.id == phase.id else item for item in state.production_phases
            ]
        }
    )


@handles(DeleteProductionPhase)
def _delete_production_phase(
    state: CastingState, command: DeleteProductionPhase
) -> CastingState:
    if not any(item.id == command.phase_id for item in state.production_phases):
        return state
    return state.model_copy(
        update={
            "production_phases": [
                item for item in state.production_phases if item.id != command.phase_id
            ],
            "schedule_entries": [
                item for item in state.schedule_entries if item.phase_id != command.phase_id
            ],
        }
    )


# Scenes


@handles(AddScene)
def _add_scene(state: CastingState, command: AddScene) -> CastingState:
    data = dict(command.scene)
    data.setdefault(
        "id",
        stable_id(
            prefix="scene",
            text=f"{data.get('sceneNumber', '')}:{command.issued_ms}:{len(state.scenes)}",
        ),
    )
    data.setdefault("createdAt", command.issued_ms)
    data.setdefault("updatedAt", command.issued_ms)
    scene = coerce_record(Scene, data)
    if scene is None or any(item.id == scene.id for item in state.scenes):
        return state
    return state.model_copy(update={"scenes": [*state.scenes, scene]})


@handles(UpdateScene)
def _update_scene(state: CastingState, command: UpdateScene) -> CastingState:
    scene = next((item for item in state.scenes if item.id == command.scene_id), None)
    if scene is None:
        return state
    merged = merge_record(scene, command.updates, protected={"id", "created_at", "updated_at"})
    if merged == scene:
        return state
    updated = merged.model_copy(update={"updated_at": command.issued_ms})
    return state.model_copy(
        update={"scenes": [updated if item.id == scene.id else item for item in state.scenes]}
    )


@handles(DeleteScene)
def _delete_scene(state: CastingState, command: DeleteScene) -> CastingState:
    remaining = [item for item in state.scenes if item.id != command.scene_id]
    if len(remaining) == len(state.scenes):
        return state
    return state.model_copy(update={"scenes": remaining})


@handles(ReorderScenes)
def _reorder_scenes(state: CastingState, command: ReorderScenes) -> CastingState:
    """Put the named scenes first in the given order and renumber each shoot day."""
    by_id = {scene.id: scene for scene in state.scenes}
    wanted: list[str] = []
    for item in command.scenes:
        scene_id = item.get("id") if isinstance(item, Mapping) else item
        if isinstance(scene_id, str) and scene_id in by_id and scene_id not in wanted:
            wanted.append(scene_id)
    ordered = [*wanted, *(scene_id for scene_id in by_id if scene_id not in wanted)]
    positions: dict[str, int] = {}
    scenes: list[Scene] = []
    for scene_id in ordered:
        scene = by_id[scene_id]
        position = positions.get(scene.shoot_day_id, 0)
        positions[scene.shoot_day_id] = position + 1
        scenes.append(
            scene if scene.order == position else scene.model_copy(update={"order": position})
        )
    if scenes == state.scenes:
        return state
    return state.model_copy(update={"scenes": scenes})


# Storage


@handles(LoadFromStorage)
def _load_from_storage(state: CastingState, command: LoadFromStorage) -> CastingState:
    return repair(command.snapshot)


@handles(LoadDemoData)
def _load_demo_data(state: CastingState, command: LoadDemoData) -> CastingState:
    return _notify(
        repair(command.snapshot),
        command,
        title="Demo Data Loaded",
        message="Application has been reset to demo data. All previous data has been replaced.",
        kind="system",
        priority="medium",
    )


@handles(ClearCache)
def _clear_cache(state: CastingState, command: ClearCache) -> CastingState:
    return _notify(
        default_state(),
        command,
        title="Cache Cleared",
        message=(
            "All cached data has been cleared. Application has been reset to initial state "
            "with default users and settings."
        ),
        kind="system",
        priority="medium",
    )
