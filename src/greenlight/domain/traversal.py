"""Read-only lookups over the casting state tree.

Every helper tolerates absent intermediate nodes and answers ``None`` or an
empty collection instead of raising.
"""

from __future__ import annotations

from collections.abc import Iterator

from greenlight.domain.models import (
    RESERVED_LIST_KEYS,
    SHORT_LISTS,
    CastingState,
    Character,
    ListLocation,
    Performer,
    Project,
    User,
)


def find_project(state: CastingState, project_id: str | None) -> Project | None:
    if project_id is None:
        return None
    return next((project for project in state.projects if project.id == project_id), None)


def find_character(project: Project | None, character_id: str | None) -> Character | None:
    if project is None or character_id is None:
        return None
    return next(
        (character for character in project.characters if character.id == character_id), None
    )


def find_character_anywhere(
    state: CastingState, character_id: str | None
) -> tuple[Project, Character] | None:
    """Locate a character in any project, returning its owning project too."""
    for project in state.projects:
        character = find_character(project, character_id)
        if character is not None:
            return project, character
    return None


def focused_project(state: CastingState) -> Project | None:
    return find_project(state, state.current_focus.current_project_id)


def focused_character(state: CastingState) -> Character | None:
    return find_character(focused_project(state), state.current_focus.character_id)


def current_user(state: CastingState) -> User | None:
    return find_user(state, state.current_user_id)


def find_user(state: CastingState, user_id: str | None) -> User | None:
    return next((user for user in state.users if user.id == user_id), None)


def custom_list_keys(character: Character) -> list[str]:
    return [key for key in character.lists if key not in RESERVED_LIST_KEYS]


def iter_placements(character: Character) -> Iterator[tuple[ListLocation, list[str]]]:
    """Yield every list of a character: reserved lists, shortlists, then custom tabs."""
    for key in RESERVED_LIST_KEYS:
        yield ListLocation(key=key), character.lists.get(key, [])
    for shortlist in character.short_lists:
        yield ListLocation(key=SHORT_LISTS, shortlist_id=shortlist.id), shortlist.performer_ids
    for key in custom_list_keys(character):
        yield ListLocation(key=key), character.lists[key]


def list_ids(character: Character | None, location: ListLocation) -> list[str] | None:
    """Return the id sequence at ``location``, or ``None`` when it does not exist."""
    if character is None:
        return None
    if location.is_shortlist:
        for shortlist in character.short_lists:
            if shortlist.id == location.shortlist_id:
                return shortlist.performer_ids
        return None
    return character.lists.get(location.key)


def locate_performer(character: Character | None, performer_id: str) -> ListLocation | None:
    if character is None:
        return None
    for location, ids in iter_placements(character):
        if performer_id in ids:
            return location
    return None


def character_performers(character: Character | None) -> list[Performer]:
    """Flatten a character's performers across all lists in placement order."""
    if character is None:
        return []
    performers: list[Performer] = []
    for _, ids in iter_placements(character):
        performers.extend(
            character.performers[performer_id]
            for performer_id in ids
            if performer_id in character.performers
        )
    return performers


def project_performers(project: Project | None) -> list[Performer]:
    """All performers in a project, first record wins when ids repeat across characters."""
    if project is None:
        return []
    seen: dict[str, Performer] = {}
    for character in project.characters:
        for performer in character_performers(character):
            seen.setdefault(performer.id, performer)
    return list(seen.values())


def state_performers(state: CastingState) -> list[Performer]:
    """Every performer placement in the workspace, across projects and characters."""
    return [
        performer
        for project in state.projects
        for character in project.characters
        for performer in character_performers(character)
    ]


def active_list_ids(state: CastingState) -> list[str]:
    """Ids shown by the detail viewer for the focused character and tab."""
    character = focused_character(state)
    if character is None:
        return []
    active_key = state.current_focus.active_tab_key
    if active_key == SHORT_LISTS:
        return [
            performer_id
            for shortlist in character.short_lists
            for performer_id in shortlist.performer_ids
        ]
    return list(character.lists.get(active_key, []))


def latest_timestamp(state: CastingState) -> int:
    """Newest epoch-ms timestamp recorded anywhere in the workspace, or 0."""
    stamps = [item.timestamp for item in state.notifications]
    stamps.extend(project.modified_date for project in state.projects)
    stamps.extend(entry.updated_at for entry in state.schedule_entries)
    stamps.extend(scene.updated_at for scene in state.scenes)
    return max(stamps, default=0)
