"""
Role-based permission rules.

Built-in roles map to a fixed set of actions. Organizations may also define
custom roles that carry their own action list; ``has_permission`` accepts
either form.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .schemas.common import Role

# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------

CREATE_PROJECT = "create:project"
UPDATE_PROJECT = "update:project"
DELETE_PROJECT = "delete:project"
VIEW_PROJECT = "view:project"

CREATE_TASK = "create:task"
UPDATE_TASK = "update:task"
DELETE_TASK = "delete:task"
VIEW_TASK = "view:task"

VIEW_TEAM = "view:team"
INVITE_MEMBER = "invite:member"
REMOVE_MEMBER = "remove:member"
UPDATE_ROLE = "update:role"

MANAGE_ROLES = "manage:roles"
VIEW_ROLES = "view:roles"

VIEW_SETTINGS = "view:settings"
MANAGE_SETTINGS = "manage:settings"

MANAGE_CUSTOMERS = "manage:customers"

ALL_PERMISSIONS: list[str] = [
    CREATE_PROJECT,
    UPDATE_PROJECT,
    DELETE_PROJECT,
    VIEW_PROJECT,
    CREATE_TASK,
    UPDATE_TASK,
    DELETE_TASK,
    VIEW_TASK,
    VIEW_TEAM,
    INVITE_MEMBER,
    REMOVE_MEMBER,
    UPDATE_ROLE,
    MANAGE_ROLES,
    VIEW_ROLES,
    VIEW_SETTINGS,
    MANAGE_SETTINGS,
    MANAGE_CUSTOMERS,
]

PERMISSION_DESCRIPTIONS: dict[str, str] = {
    CREATE_PROJECT: "Create projects",
    UPDATE_PROJECT: "Edit projects",
    DELETE_PROJECT: "Delete projects",
    VIEW_PROJECT: "View projects",
    CREATE_TASK: "Create tasks",
    UPDATE_TASK: "Edit and move tasks",
    DELETE_TASK: "Delete tasks",
    VIEW_TASK: "View tasks",
    VIEW_TEAM: "View team members",
    INVITE_MEMBER: "Invite new members",
    REMOVE_MEMBER: "Remove members",
    UPDATE_ROLE: "Change member roles",
    MANAGE_ROLES: "Create and edit custom roles",
    VIEW_ROLES: "View roles",
    VIEW_SETTINGS: "View organization settings",
    MANAGE_SETTINGS: "Edit organization settings",
    MANAGE_CUSTOMERS: "Manage customers",
}

# ---------------------------------------------------------------------------
# Built-in role mapping
# ---------------------------------------------------------------------------

ROLE_PERMISSIONS: dict[str, frozenset[str]] = {
    Role.ADMIN.value: frozenset(ALL_PERMISSIONS),
    Role.MANAGER.value: frozenset({
        CREATE_PROJECT,
        UPDATE_PROJECT,
        VIEW_PROJECT,
        CREATE_TASK,
        UPDATE_TASK,
        DELETE_TASK,
        VIEW_TASK,
        VIEW_TEAM,
        INVITE_MEMBER,
        REMOVE_MEMBER,
        MANAGE_CUSTOMERS,
        VIEW_SETTINGS,
    }),
    Role.MEMBER.value: frozenset({
        VIEW_PROJECT,
        CREATE_TASK,
        UPDATE_TASK,
        VIEW_TASK,
        VIEW_TEAM,
    }),
    Role.VIEWER.value: frozenset({
        VIEW_PROJECT,
        VIEW_TASK,
    }),
}


def _permission_actions(permissions: Any) -> set[str]:
    actions: set[str] = set()
    for entry in permissions or []:
        if isinstance(entry, str):
            actions.add(entry)
        elif isinstance(entry, Mapping):
            if entry.get("action"):
                actions.add(entry["action"])
        elif getattr(entry, "action", None):
            actions.add(entry.action)
    return actions


def permissions_for(role: Any) -> set[str]:
    """Resolve the set of actions granted by a role name or role object."""
    if role is None:
        return set()
    if isinstance(role, Role):
        role = role.value
    if isinstance(role, str):
        return set(ROLE_PERMISSIONS.get(role.lower(), frozenset()))
    if isinstance(role, Mapping):
        return _permission_actions(role.get("permissions"))
    return _permission_actions(getattr(role, "permissions", None))


def has_permission(role: Any, action: str) -> bool:
    """Check whether ``role`` grants ``action``.

    ``role`` may be None, a built-in role name (case-insensitive), or a
    mapping/object exposing ``permissions`` as action strings or as entries
    with an ``action`` attribute/key.
    """
    return action in permissions_for(role)
