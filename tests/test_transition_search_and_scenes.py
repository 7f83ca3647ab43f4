from __future__ import annotations

from greenlight.core.commands import (
    AddActor,
    AddCharacter,
    AddScene,
    AddSearchTag,
    AddTab,
    AssignActorToProjectCharacter,
    ClearAllFilters,
    ClearSearchTags,
    CommandModel,
    CreateProject,
    DeleteSavedSearch,
    DeleteScene,
    LoadSavedSearch,
    MoveActor,
    RemoveActorAssignment,
    RemoveSearchTag,
    ReorderScenes,
    SaveCurrentSearch,
    SelectTab,
    SetAgeRangeFilter,
    SetLocationFilter,
    SetSearchTags,
    SetSearchTerm,
    SetStatusFilter,
    ToggleFilters,
    UpdateSavedSearch,
    UpdateScene,
    UpdateTabDefinitions,
    UpdateTabDisplayName,
)
from greenlight.core.defaults import default_state
from greenlight.core.transition import transition
from greenlight.domain.models import AgeRange, CastingState, Character, ListLocation
from greenlight.domain.traversal import find_character_anywhere

RESERVED_TABS = [
    {"key": "longList", "name": "Long List"},
    {"key": "audition", "name": "Audition"},
    {"key": "approval", "name": "Approval"},
]


def _apply(state: CastingState, *commands: CommandModel) -> CastingState:
    for command in commands:
        state = transition(state, command)
    return state


def _seeded() -> CastingState:
    return _apply(
        default_state(),
        CreateProject(project={"id": "p1", "name": "Night Shift"}, issued_at=1),
        AddCharacter(character={"id": "c1", "name": "Detective Reyes"}, issued_at=2),
        AddActor(character_id="c1", performer={"id": "a1", "name": "Sam Lee"}, issued_at=3),
        AddActor(character_id="c1", performer={"id": "a2", "name": "Kim Park"}, issued_at=4),
    )


def _character(state: CastingState, character_id: str = "c1") -> Character:
    context = find_character_anywhere(state, character_id)
    assert context is not None
    return context[1]


def test_search_tags_add_remove_and_clear() -> None:
    state = _apply(
        default_state(),
        SetSearchTags(tags=[{"id": "t1", "text": "comedy"}, {"id": "t1"}, {"text": "no id"}]),
        AddSearchTag(tag={"id": "t2", "text": "drama", "color": "bg-red-100"}),
    )
    assert [tag.id for tag in state.current_focus.search_tags] == ["t1", "t2"]
    assert transition(state, AddSearchTag(tag={"id": "t2", "text": "again"})) is state
    assert transition(state, AddSearchTag(tag={"text": "missing id"})) is state

    removed = transition(state, RemoveSearchTag(tag_id="t1"))
    assert [tag.text for tag in removed.current_focus.search_tags] == ["drama"]
    assert transition(removed, RemoveSearchTag(tag_id="t1")) is removed

    cleared = transition(removed, ClearSearchTags())
    assert cleared.current_focus.search_tags == []
    assert transition(cleared, ClearSearchTags()) is cleared


def test_saved_search_captures_and_restores_term_and_tags() -> None:
    state = _apply(
        default_state(),
        SetSearchTerm(term="detective"),
        SetSearchTags(tags=[{"id": "t1", "text": "comedy"}]),
        SaveCurrentSearch(name="Funny leads", is_global=True, issued_at=10),
    )
    saved = state.current_focus.saved_searches[0]
    assert saved.id.startswith("search_")
    assert (saved.name, saved.search_term, saved.is_global) == ("Funny leads", "detective", True)
    assert [tag.id for tag in saved.tags] == ["t1"]
    assert saved.created_at == saved.last_used == 10

    changed = _apply(state, SetSearchTerm(term=""), ClearSearchTags())
    loaded = transition(changed, LoadSavedSearch(search_id=saved.id, issued_at=20))
    assert loaded.current_focus.search_term == "detective"
    assert [tag.text for tag in loaded.current_focus.search_tags] == ["comedy"]
    assert loaded.current_focus.saved_searches[0].last_used == 20
    assert transition(changed, LoadSavedSearch(search_id="missing")) is changed


def test_saved_search_update_and_delete() -> None:
    state = transition(
        default_state(), SaveCurrentSearch(name="Leads", search_id="q1", issued_at=5)
    )
    assert transition(state, SaveCurrentSearch(name="Again", search_id="q1")) is state

    renamed = transition(
        state, UpdateSavedSearch(search_id="q1", updates={"name": "Top leads", "id": "q9"})
    )
    assert renamed.current_focus.saved_searches[0].id == "q1"
    assert renamed.current_focus.saved_searches[0].name == "Top leads"
    rejected = UpdateSavedSearch(search_id="q1", updates={"lastUsed": "x"})
    assert transition(renamed, rejected) is renamed

    deleted = transition(renamed, DeleteSavedSearch(search_id="q1"))
    assert deleted.current_focus.saved_searches == []
    assert transition(deleted, DeleteSavedSearch(search_id="q1")) is deleted


def test_filters_set_clear_and_toggle() -> None:
    state = _apply(
        default_state(),
        SetStatusFilter(status=["available", "available", "offer"]),
        SetAgeRangeFilter(age_range=AgeRange(min=45, max=20)),
        SetLocationFilter(location=["Los Angeles"]),
        ToggleFilters(),
    )
    filters = state.current_focus.filters
    assert filters.status == ["available", "offer"]
    assert (filters.age_range.min, filters.age_range.max) == (20, 45)
    assert filters.location == ["Los Angeles"]
    assert filters.show_filters is True
    assert transition(state, SetLocationFilter(location=["Los Angeles"])) is state

    cleared = transition(state, ClearAllFilters())
    cleared_filters = cleared.current_focus.filters
    assert cleared_filters.status == []
    assert cleared_filters.location == []
    assert cleared_filters.age_range == AgeRange()
    assert cleared_filters.show_filters is True
    assert transition(cleared, ClearAllFilters()) is cleared
    assert transition(cleared, ToggleFilters()).current_focus.filters.show_filters is False


def test_wire_messages_reach_search_and_filter_commands() -> None:
    state = transition(
        default_state(), {"type": "SET_SEARCH_TAGS", "payload": [{"id": "t1", "text": "x"}]}
    )
    state = transition(state, {"type": "SET_AGE_RANGE_FILTER", "payload": {"min": 18, "max": 30}})
    state = transition(state, {"type": "TOGGLE_FILTERS"})
    assert [tag.id for tag in state.current_focus.search_tags] == ["t1"]
    assert state.current_focus.filters.age_range.max == 30
    assert state.current_focus.filters.show_filters is True


def test_project_assignment_reaches_every_copy_of_the_performer() -> None:
    state = _apply(
        _seeded(),
        CreateProject(project={"id": "p2", "name": "Day Shift"}, issued_at=6),
        AddCharacter(character={"id": "c2", "name": "Officer Diaz"}, project_id="p2"),
        AddActor(character_id="c2", performer={"id": "a1", "name": "Sam Lee"}),
    )
    assigned = transition(
        state,
        AssignActorToProjectCharacter(
            performer_id="a1", project_id="p2", character_id="c2", issued_at=30
        ),
    )
    for character_id in ("c1", "c2"):
        assignments = _character(assigned, character_id).performers["a1"].project_assignments
        assert len(assignments) == 1
        assert assignments[0].project_name == "Day Shift"
        assert assignments[0].character_name == "Officer Diaz"
        assert assignments[0].assigned_date == 30
    assert _character(assigned).performers["a2"].project_assignments == []

    repeat = AssignActorToProjectCharacter(performer_id="a1", project_id="p2", character_id="c2")
    assert transition(assigned, repeat) is assigned
    unknown = AssignActorToProjectCharacter(
        performer_id="ghost", project_id="p2", character_id="c2"
    )
    assert transition(assigned, unknown) is assigned

    unassign = RemoveActorAssignment(performer_id="a1", project_id="p2", character_id="c2")
    removed = transition(assigned, unassign)
    assert _character(removed, "c2").performers["a1"].project_assignments == []
    assert transition(removed, unassign) is removed


def test_assignment_accepts_wire_payload_with_names() -> None:
    state = transition(
        _seeded(),
        {
            "type": "ASSIGN_ACTOR_TO_PROJECT_CHARACTER",
            "issuedAt": 7,
            "payload": {
                "actorId": "a2",
                "projectId": "elsewhere",
                "projectName": "Pilot",
                "characterId": "lead",
                "characterName": "Lead",
            },
        },
    )
    assignment = _character(state).performers["a2"].project_assignments[0]
    assert (assignment.project_name, assignment.character_name) == ("Pilot", "Lead")


def test_update_tab_definitions_adds_and_folds_custom_tabs() -> None:
    state = _apply(
        _seeded(),
        AddTab(key="callbacks", name="Callbacks"),
        MoveActor(
            performer_id="a2",
            character_id="c1",
            source=ListLocation(key="longList"),
            destination=ListLocation(key="callbacks"),
        ),
        UpdateTabDisplayName(key="callbacks", name="Recalls"),
        SelectTab(tab_key="callbacks"),
    )
    unchanged = UpdateTabDefinitions(definitions=list(state.tab_definitions))
    assert transition(state, unchanged) is state

    grown = transition(
        state,
        UpdateTabDefinitions(
            definitions=[
                *RESERVED_TABS[:2],
                {"key": "callbacks", "name": "Callbacks"},
                {"key": "chemistry", "name": "Chemistry Reads"},
                RESERVED_TABS[2],
            ]
        ),
    )
    assert [item.key for item in grown.tab_definitions] == [
        "longList",
        "audition",
        "callbacks",
        "chemistry",
        "approval",
    ]
    assert _character(grown).lists["chemistry"] == []

    shrunk = transition(grown, UpdateTabDefinitions(definitions=[{"key": "chemistry"}]))
    assert [item.key for item in shrunk.tab_definitions] == [
        "longList",
        "chemistry",
        "audition",
        "approval",
    ]
    character = _character(shrunk)
    assert "callbacks" not in character.lists
    assert character.lists["longList"] == ["a1", "a2"]
    assert character.performers["a2"].current_list_key == "longList"
    assert "callbacks" not in shrunk.tab_display_names
    assert shrunk.current_focus.active_tab_key == "longList"


def test_scenes_add_update_reorder_and_delete() -> None:
    state = _apply(
        default_state(),
        AddScene(scene={"id": "s1", "sceneNumber": "1", "shootDayId": "e1"}, issued_at=10),
        AddScene(scene={"id": "s2", "sceneNumber": "2", "shootDayId": "e1", "order": 1}),
        AddScene(scene={"id": "s3", "sceneNumber": "3", "shootDayId": "e2"}),
        AddScene(scene={"sceneNumber": "4", "intExt": "EXT", "dayNight": "Night"}, issued_at=11),
    )
    assert [scene.scene_number for scene in state.scenes] == ["1", "2", "3", "4"]
    assert state.scenes[0].created_at == 10
    generated = state.scenes[3]
    assert generated.id.startswith("scene_")
    assert (generated.int_ext, generated.day_night) == ("EXT", "Night")
    assert transition(state, AddScene(scene={"id": "s1"})) is state

    updated = transition(
        state,
        UpdateScene(scene_id="s1", updates={"pages": "1 4/8", "createdAt": 0}, issued_at=50),
    )
    assert updated.scenes[0].pages == "1 4/8"
    assert updated.scenes[0].created_at == 10
    assert updated.scenes[0].updated_at == 50
    assert transition(updated, UpdateScene(scene_id="s1", updates={"intExt": "UP"})) is updated
    assert transition(updated, UpdateScene(scene_id="nope", updates={"pages": "2"})) is updated

    reordered = transition(updated, ReorderScenes(scenes=[{"id": "s2"}, "s1", "ghost", "s2"]))
    assert [scene.id for scene in reordered.scenes] == ["s2", "s1", "s3", generated.id]
    assert [(scene.id, scene.order) for scene in reordered.scenes[:3]] == [
        ("s2", 0),
        ("s1", 1),
        ("s3", 0),
    ]
    assert transition(reordered, ReorderScenes(scenes=["s2", "s1"])) is reordered

    deleted = transition(reordered, DeleteScene(scene_id="s3"))
    assert [scene.id for scene in deleted.scenes] == ["s2", "s1", generated.id]
    assert transition(deleted, DeleteScene(scene_id="s3")) is deleted
