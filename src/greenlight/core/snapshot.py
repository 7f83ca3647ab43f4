"""Snapshot wire format: the nested JSON tree exchanged with persistence."""

from __future__ import annotations

from typing import Any

from greenlight.domain.models import (
    RESERVED_LIST_KEYS,
    SHORT_LISTS,
    CastingState,
    Character,
    Project,
    RecordModel,
)
from greenlight.domain.traversal import current_user, custom_list_keys

# Character keys with a dedicated field; everything else is a descriptive attribute.
CHARACTER_CORE_KEYS = frozenset({"id", "name", "description", "actors"})


def record_to_wire(record: RecordModel) -> dict[str, Any]:
    return record.model_dump(by_alias=True, mode="json")


def _performers_to_wire(character: Character, ids: list[str]) -> list[dict[str, Any]]:
    return [
        record_to_wire(character.performers[performer_id])
        for performer_id in ids
        if performer_id in character.performers
    ]


def character_to_wire(character: Character) -> dict[str, Any]:
    """Expand the normalized character into the nested ``actors`` collection."""
    actors: dict[str, Any] = {
        key: _performers_to_wire(character, character.lists.get(key, []))
        for key in RESERVED_LIST_KEYS
    }
    actors[SHORT_LISTS] = [
        {
            **shortlist.model_dump(by_alias=True, mode="json", exclude={"performer_ids"}),
            "actors": _performers_to_wire(character, shortlist.performer_ids),
        }
        for shortlist in character.short_lists
    ]
    for key in custom_list_keys(character):
        actors[key] = _performers_to_wire(character, character.lists[key])
    attributes = {
        key: value for key, value in character.attributes.items() if key not in CHARACTER_CORE_KEYS
    }
    return {
        "id": character.id,
        "name": character.name,
        "description": character.description,
        **attributes,
        "actors": actors,
    }


def project_to_wire(project: Project) -> dict[str, Any]:
    payload = project.model_dump(by_alias=True, mode="json", exclude={"characters"})
    payload["characters"] = [character_to_wire(character) for character in project.characters]
    return payload


def to_snapshot(state: CastingState) -> dict[str, Any]:
    """Serialize the state tree into the JSON-ready snapshot shape."""
    user = current_user(state)
    return {
        "schemaVersion": state.schema_version,
        "users": [record_to_wire(item) for item in state.users],
        "currentUser": record_to_wire(user) if user is not None else None,
        "projects": [project_to_wire(project) for project in state.projects],
        "notifications": [record_to_wire(item) for item in state.notifications],
        "tabDefinitions": [record_to_wire(item) for item in state.tab_definitions],
        "tabDisplayNames": dict(state.tab_display_names),
        "predefinedStatuses": [record_to_wire(item) for item in state.predefined_statuses],
        "permissionLevels": [record_to_wire(item) for item in state.permission_levels],
        "currentFocus": record_to_wire(state.current_focus),
        "terminology": record_to_wire(state.terminology),
        "scheduleEntries": [record_to_wire(item) for item in state.schedule_entries],
        "scenes": [record_to_wire(item) for item in state.scenes],
        "productionPhases": [record_to_wire(item) for item in state.production_phases],
    }


def persistable_snapshot(state: CastingState) -> dict[str, Any]:
    """Snapshot for storage; the detail viewer is never persisted open."""
    snapshot = to_snapshot(state)
    snapshot["currentFocus"]["playerView"]["isOpen"] = False
    return snapshot
