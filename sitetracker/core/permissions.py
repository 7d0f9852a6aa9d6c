# File: sitetracker/core/permissions.py

"""
Role-based capabilities.

The table is plain data so it can be inspected and tested directly.
Anything not listed is denied.
"""

from enum import Enum
from typing import Dict, FrozenSet, Optional


class Role(str, Enum):
    ADMIN = "admin"
    EDITOR = "editor"
    VIEWER = "viewer"


class Permission(str, Enum):
    VIEW_DASHBOARD = "view_dashboard"
    VIEW_PROJECTS = "view_projects"
    ADD_PROJECT = "add_project"
    EDIT_PROJECT = "edit_project"
    DELETE_PROJECT = "delete_project"
    MANAGE_USERS = "manage_users"
    VIEW_REPORTS = "view_reports"
    EXPORT_DATA = "export_data"


ROLE_PERMISSIONS: Dict[Role, FrozenSet[Permission]] = {
    Role.ADMIN: frozenset(Permission),
    Role.EDITOR: frozenset({
        Permission.VIEW_DASHBOARD,
        Permission.VIEW_PROJECTS,
        Permission.ADD_PROJECT,
        Permission.EDIT_PROJECT,
        Permission.VIEW_REPORTS,
        Permission.EXPORT_DATA,
    }),
    Role.VIEWER: frozenset({
        Permission.VIEW_DASHBOARD,
        Permission.VIEW_PROJECTS,
        Permission.VIEW_REPORTS,
        Permission.EXPORT_DATA,
    }),
}

# Control id -> capability that makes it visible
GATED_CONTROLS: Dict[str, Permission] = {
    "add-project-btn": Permission.ADD_PROJECT,
    "data-migration": Permission.ADD_PROJECT,
    "manual-entry": Permission.ADD_PROJECT,
    "delete-project-btn": Permission.DELETE_PROJECT,
}


def role_has_permission(role: Optional[str], permission: str) -> bool:
    try:
        role_enum = Role(role)
        permission_enum = Permission(permission)
    except ValueError:
        return False
    return permission_enum in ROLE_PERMISSIONS.get(role_enum, frozenset())
