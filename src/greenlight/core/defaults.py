"""Canonical default workspace contents."""

from __future__ import annotations

from greenlight.domain.models import (
    APPROVAL,
    AUDITION,
    LONG_LIST,
    CastingState,
    PermissionLevel,
    ProductionPhase,
    Status,
    TabDefinition,
    Terminology,
    User,
)

# contact type -> (label, bg color, text color)
CONTACT_TEMPLATES: dict[str, tuple[str, str, str]] = {
    "audition": ("Audition Invite Sent", "bg-purple-200", "text-purple-700"),
    "callback": ("Callback Invite Sent", "bg-pink-200", "text-pink-700"),
    "rejection": ("Rejection Sent", "bg-red-200", "text-red-700"),
    "offer": ("Offer Sent", "bg-green-200", "text-green-700"),
    "general": ("General Contact", "bg-blue-200", "text-blue-700"),
}


def default_users() -> list[User]:
    return [
        User(
            id="1",
            name="John Doe",
            initials="JD",
            email="john@example.com",
            role="Casting Director",
            bg_color="#3B82F6",
        ),
        User(
            id="2",
            name="Jane Smith",
            initials="JS",
            email="jane@example.com",
            role="Producer",
            bg_color="#10B981",
        ),
        User(
            id="3",
            name="Mike Johnson",
            initials="MJ",
            email="mike@example.com",
            role="Director",
            bg_color="#F59E0B",
        ),
    ]


def default_tab_definitions() -> list[TabDefinition]:
    return [
        TabDefinition(key=LONG_LIST, name="Long List", is_custom=False),
        TabDefinition(key=AUDITION, name="Audition", is_custom=False),
        TabDefinition(key=APPROVAL, name="Approval", is_custom=False),
    ]


def default_statuses() -> list[Status]:
    statuses = [
        Status(
            id="available",
            label="Available",
            bg_color="bg-green-200",
            text_color="text-green-700",
            category="availability",
        ),
        Status(
            id="busy",
            label="Busy",
            bg_color="bg-yellow-200",
            text_color="text-yellow-700",
            category="availability",
        ),
        Status(
            id="unavailable",
            label="Unavailable",
            bg_color="bg-red-200",
            text_color="text-red-700",
            category="availability",
        ),
        Status(
            id="interested",
            label="Interested",
            bg_color="bg-blue-200",
            text_color="text-blue-700",
            category="interest",
        ),
        Status(
            id="not-interested",
            label="Not Interested",
            bg_color="bg-gray-200",
            text_color="text-gray-700",
            category="interest",
        ),
    ]
    for contact_type, (label, bg_color, text_color) in CONTACT_TEMPLATES.items():
        statuses.append(
            Status(
                id=f"contact-{contact_type}",
                label=label,
                bg_color=bg_color,
                text_color=text_color,
                category="contact",
            )
        )
    return statuses


def default_permission_levels() -> list[PermissionLevel]:
    return [
        PermissionLevel(id="admin", label="Admin", description="Full access to all features"),
        PermissionLevel(id="editor", label="Editor", description="Can edit actors and vote"),
        PermissionLevel(id="viewer", label="Viewer", description="Can view and vote only"),
    ]


def default_production_phases() -> list[ProductionPhase]:
    return [
        ProductionPhase(
            id="principal",
            name="Principal Photography",
            start_date="2024-03-01",
            color="text-blue-700",
            bg_color="bg-blue-500",
        ),
        ProductionPhase(
            id="pickups",
            name="Pickups",
            start_date="2024-03-12",
            color="text-orange-700",
            bg_color="bg-orange-500",
        ),
        ProductionPhase(
            id="second-unit",
            name="Second Unit",
            start_date="2024-03-20",
            color="text-lime-700",
            bg_color="bg-lime-500",
        ),
        ProductionPhase(
            id="rehearsals",
            name="Rehearsals",
            start_date="2024-03-02",
            color="text-yellow-700",
            bg_color="bg-yellow-500",
        ),
    ]


def default_state() -> CastingState:
    """Build the canonical empty workspace with the first default user current."""
    users = default_users()
    return CastingState(
        users=users,
        current_user_id=users[0].id,
        tab_definitions=default_tab_definitions(),
        predefined_statuses=default_statuses(),
        permission_levels=default_permission_levels(),
        terminology=Terminology(),
        production_phases=default_production_phases(),
    )
