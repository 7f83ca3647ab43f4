"""Heal persisted snapshots of any vintage into a well-formed casting state.

Coercion works field by field: each value is validated against its declared
type and falls back to the schema default when it does not fit. Records that
are not objects or lack a usable ``id`` are dropped. Nothing here raises.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from inspect import isclass
from typing import Any, TypeVar, get_args, get_origin

from pydantic import BaseModel, ValidationError

from greenlight.core.defaults import (
    default_permission_levels,
    default_production_phases,
    default_statuses,
    default_tab_definitions,
    default_users,
)
from greenlight.core.snapshot import CHARACTER_CORE_KEYS, to_snapshot
from greenlight.domain.models import (
    APPROVAL,
    AUDITION,
    LONG_LIST,
    RESERVED_LIST_KEYS,
    SHORT_LISTS,
    CastingState,
    Character,
    CurrentFocus,
    ListLocation,
    Notification,
    PermissionLevel,
    Performer,
    ProductionPhase,
    Project,
    Scene,
    ScheduleEntry,
    ShortList,
    Status,
    TabDefinition,
    Terminology,
    User,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)
RecordT = TypeVar("RecordT")

VOTE_VALUES = frozenset({"yes", "no", "maybe"})


def _nested_model(annotation: Any) -> tuple[type[BaseModel] | None, bool]:
    """Return ``(model, is_list)`` for fields holding a model or a list of models."""
    if isclass(annotation) and issubclass(annotation, BaseModel):
        return annotation, False
    if get_origin(annotation) is list:
        args = get_args(annotation)
        if len(args) == 1 and isclass(args[0]) and issubclass(args[0], BaseModel):
            return args[0], True
    return None, False


def _field_lookup(model: type[BaseModel]) -> dict[str, str]:
    lookup: dict[str, str] = {}
    for name, info in model.model_fields.items():
        lookup[name] = name
        if info.alias:
            lookup[info.alias] = name
    return lookup


def _broken_fields(exc: ValidationError, lookup: Mapping[str, str]) -> set[str]:
    broken: set[str] = set()
    for error in exc.errors():
        if not error["loc"]:
            continue
        name = lookup.get(str(error["loc"][0]))
        if name is not None:
            broken.add(name)
    return broken


def coerce_record(model: type[ModelT], raw: object) -> ModelT | None:
    """Validate ``raw`` into ``model``, replacing unfit optional fields with defaults.

    Returns ``None`` when ``raw`` is not an object or a required field cannot
    be satisfied.
    """
    if isinstance(raw, model):
        return raw
    if not isinstance(raw, Mapping):
        return None
    fields = model.model_fields
    lookup = _field_lookup(model)
    data: dict[str, Any] = {}
    for key, value in raw.items():
        name = lookup.get(key) if isinstance(key, str) else None
        if name is not None and name not in data:
            data[name] = value

    for name in list(data):
        nested, is_list = _nested_model(fields[name].annotation)
        if nested is None:
            continue
        value = data[name]
        if is_list:
            if isinstance(value, list):
                data[name] = coerce_records(nested, value)
            else:
                del data[name]
            continue
        record = coerce_record(nested, value)
        if record is None:
            del data[name]
        else:
            data[name] = record

    while True:
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            broken = _broken_fields(exc, lookup)
            if not broken or not broken <= data.keys():
                return None
            if any(fields[name].is_required() for name in broken):
                return None
            for name in broken:
                del data[name]


def coerce_records(model: type[ModelT], raw: object) -> list[ModelT]:
    """Coerce each element of ``raw``, dropping the ones that cannot be healed."""
    if not isinstance(raw, list):
        return []
    records: list[ModelT] = []
    for item in raw:
        record = coerce_record(model, item)
        if record is not None:
            records.append(record)
    return records


def merge_record(
    record: ModelT,
    updates: object,
    *,
    protected: Iterable[str] = (),
) -> ModelT:
    """Apply a partial update, keeping the current value for any field that does not fit."""
    if not isinstance(updates, Mapping):
        return record
    model = type(record)
    lookup = _field_lookup(model)
    blocked = set(protected)
    patch: dict[str, Any] = {}
    for key, value in updates.items():
        name = lookup.get(key) if isinstance(key, str) else None
        if name is not None and name not in blocked:
            patch[name] = value
    if not patch:
        return record
    base = record.model_dump()
    while True:
        try:
            return model.model_validate({**base, **patch})
        except ValidationError as exc:
            rejected = _broken_fields(exc, lookup) & patch.keys()
            if not rejected:
                return record
            for name in rejected:
                del patch[name]


def unique_by(records: Iterable[RecordT], key: Callable[[RecordT], str]) -> list[RecordT]:
    """Keep the first record for every key."""
    seen: set[str] = set()
    kept: list[RecordT] = []
    for record in records:
        marker = key(record)
        if marker in seen:
            continue
        seen.add(marker)
        kept.append(record)
    return kept


def _value(raw: Mapping[str, Any], alias: str, name: str | None = None) -> Any:
    if alias in raw:
        return raw[alias]
    if name is not None:
        return raw.get(name)
    return None


def repair_performer(raw: object) -> Performer | None:
    if not isinstance(raw, Mapping):
        return None
    data = dict(raw)
    for key in ("userVotes", "user_votes"):
        votes = data.get(key)
        if isinstance(votes, Mapping):
            data[key] = {
                str(user_id): vote for user_id, vote in votes.items() if vote in VOTE_VALUES
            }
    return coerce_record(Performer, data)


def repair_tab_definitions(raw: object) -> list[TabDefinition]:
    """Deduplicate tab definitions and reinstate the reserved tabs in their slots."""
    definitions = [
        definition.model_copy(update={"is_custom": definition.key not in RESERVED_LIST_KEYS})
        for definition in unique_by(coerce_records(TabDefinition, raw), lambda item: item.key)
        if definition.key != SHORT_LISTS
    ]
    if not definitions:
        return default_tab_definitions()
    defaults = {definition.key: definition for definition in default_tab_definitions()}
    keys = {definition.key for definition in definitions}
    if LONG_LIST not in keys:
        definitions.insert(0, defaults[LONG_LIST])
    if APPROVAL not in keys:
        definitions.append(defaults[APPROVAL])
    if AUDITION not in keys:
        approval_index = next(
            index for index, definition in enumerate(definitions) if definition.key == APPROVAL
        )
        definitions.insert(approval_index, defaults[AUDITION])
    return definitions


def repair_character(raw: object, tab_keys: Iterable[str] = ()) -> Character | None:
    """Rebuild the normalized actor collection from a nested wire character."""
    if not isinstance(raw, Mapping):
        return None
    header = {key: raw[key] for key in ("id", "name", "description") if key in raw}
    base = coerce_record(Character, header)
    if base is None:
        return None
    actors = raw.get("actors")
    if not isinstance(actors, Mapping):
        actors = {}

    performers: dict[str, Performer] = {}

    def place(records: object, location: ListLocation) -> list[str]:
        ids: list[str] = []
        if not isinstance(records, list):
            return ids
        for item in records:
            performer = repair_performer(item)
            if performer is None or performer.id in performers:
                continue
            performers[performer.id] = performer.model_copy(
                update={
                    "current_list_key": location.key,
                    "current_shortlist_id": location.shortlist_id,
                }
            )
            ids.append(performer.id)
        return ids

    lists: dict[str, list[str]] = {
        key: place(actors.get(key), ListLocation(key=key)) for key in RESERVED_LIST_KEYS
    }

    short_lists: list[ShortList] = []
    raw_short_lists = actors.get(SHORT_LISTS)
    for item in raw_short_lists if isinstance(raw_short_lists, list) else []:
        if not isinstance(item, Mapping):
            continue
        header = {
            key: value
            for key, value in item.items()
            if key not in ("actors", "performerIds", "performer_ids")
        }
        shortlist = coerce_record(ShortList, header)
        if shortlist is None or any(existing.id == shortlist.id for existing in short_lists):
            continue
        ids = place(item.get("actors"), ListLocation(key=SHORT_LISTS, shortlist_id=shortlist.id))
        short_lists.append(shortlist.model_copy(update={"performer_ids": ids}))

    for key, value in actors.items():
        if not isinstance(key, str) or not key or key in RESERVED_LIST_KEYS or key == SHORT_LISTS:
            continue
        lists[key] = place(value, ListLocation(key=key))
    for key in tab_keys:
        if key != SHORT_LISTS:
            lists.setdefault(key, [])

    attributes = {
        key: value
        for key, value in raw.items()
        if isinstance(key, str) and key not in CHARACTER_CORE_KEYS
    }
    return base.model_copy(
        update={
            "attributes": attributes,
            "performers": performers,
            "lists": lists,
            "short_lists": short_lists,
        }
    )


def repair_project(raw: object, tab_keys: Iterable[str] = ()) -> Project | None:
    if not isinstance(raw, Mapping):
        return None
    header = {key: value for key, value in raw.items() if key != "characters"}
    project = coerce_record(Project, header)
    if project is None:
        return None
    keys = list(tab_keys)
    raw_characters = raw.get("characters")
    characters = [
        character
        for character in (
            repair_character(item, keys)
            for item in (raw_characters if isinstance(raw_characters, list) else [])
        )
        if character is not None
    ]
    return project.model_copy(
        update={"characters": unique_by(characters, lambda character: character.id)}
    )


def _repair_current_user_id(raw: Mapping[str, Any], users: list[User]) -> str:
    candidates: list[object] = []
    current = raw.get("currentUser")
    if isinstance(current, Mapping):
        candidates.append(current.get("id"))
    candidates.append(_value(raw, "currentUserId", "current_user_id"))
    known = {user.id for user in users}
    for candidate in candidates:
        if isinstance(candidate, (str, int)) and not isinstance(candidate, bool):
            if str(candidate) in known:
                return str(candidate)
    return users[0].id


def _repair_focus(raw: object, projects: list[Project], tab_keys: list[str]) -> CurrentFocus:
    focus = coerce_record(CurrentFocus, raw) or CurrentFocus()
    updates: dict[str, Any] = {}
    project = next((item for item in projects if item.id == focus.current_project_id), None)
    if project is None:
        updates["current_project_id"] = None
        updates["character_id"] = None
    elif not any(character.id == focus.character_id for character in project.characters):
        updates["character_id"] = None
    if focus.active_tab_key not in tab_keys and focus.active_tab_key != SHORT_LISTS:
        updates["active_tab_key"] = LONG_LIST
    updates["player_view"] = focus.player_view.model_copy(update={"is_open": False})
    updates["search_tags"] = unique_by(focus.search_tags, lambda tag: tag.id)
    updates["saved_searches"] = unique_by(focus.saved_searches, lambda search: search.id)
    return focus.model_copy(update=updates)


def _repair_display_names(raw: object) -> dict[str, str]:
    if not isinstance(raw, Mapping):
        return {}
    return {
        key: value
        for key, value in raw.items()
        if isinstance(key, str) and isinstance(value, str) and value.strip()
    }


def repair(candidate: object) -> CastingState:
    """Return a well-formed state for any snapshot, partial object, or garbage."""
    if isinstance(candidate, CastingState):
        candidate = to_snapshot(candidate)
    if not isinstance(candidate, Mapping):
        logger.warning("state.repair.discarded type=%s", type(candidate).__name__)
        candidate = {}
    raw = candidate

    users = unique_by(coerce_records(User, raw.get("users")), lambda user: user.id)
    if not users:
        users = default_users()

    tab_definitions = repair_tab_definitions(_value(raw, "tabDefinitions", "tab_definitions"))
    tab_keys = [definition.key for definition in tab_definitions]

    raw_projects = raw.get("projects")
    projects = unique_by(
        (
            project
            for project in (
                repair_project(item, tab_keys)
                for item in (raw_projects if isinstance(raw_projects, list) else [])
            )
            if project is not None
        ),
        lambda project: project.id,
    )

    raw_statuses = _value(raw, "predefinedStatuses", "predefined_statuses")
    statuses = unique_by(coerce_records(Status, raw_statuses), lambda status: status.id)
    raw_levels = _value(raw, "permissionLevels", "permission_levels")
    levels = unique_by(coerce_records(PermissionLevel, raw_levels), lambda level: level.id)
    raw_phases = _value(raw, "productionPhases", "production_phases")
    phases = (
        unique_by(coerce_records(ProductionPhase, raw_phases), lambda phase: phase.id)
        if isinstance(raw_phases, list)
        else default_production_phases()
    )

    state = CastingState(
        users=users,
        current_user_id=_repair_current_user_id(raw, users),
        projects=projects,
        notifications=unique_by(
            coerce_records(Notification, raw.get("notifications")), lambda item: item.id
        ),
        tab_definitions=tab_definitions,
        tab_display_names=_repair_display_names(
            _value(raw, "tabDisplayNames", "tab_display_names")
        ),
        predefined_statuses=statuses or default_statuses(),
        permission_levels=levels or default_permission_levels(),
        current_focus=_repair_focus(
            _value(raw, "currentFocus", "current_focus"), projects, tab_keys
        ),
        terminology=coerce_record(Terminology, raw.get("terminology")) or Terminology(),
        schedule_entries=unique_by(
            coerce_records(ScheduleEntry, _value(raw, "scheduleEntries", "schedule_entries")),
            lambda entry: entry.id,
        ),
        scenes=unique_by(coerce_records(Scene, raw.get("scenes")), lambda scene: scene.id),
        production_phases=phases,
    )
    logger.debug(
        "state.repair.completed projects=%s users=%s entries=%s scenes=%s",
        len(state.projects),
        len(state.users),
        len(state.schedule_entries),
        len(state.scenes),
    )
    return state
