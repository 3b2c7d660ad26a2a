"""Role to permission matrix."""

from __future__ import annotations

from types import MappingProxyType
from typing import Iterable

from ..core.enums import Permission, Role

ROLE_PERMISSIONS = MappingProxyType(
    {
        Role.ADMIN: frozenset(Permission),
        Role.ACADEMIC_HEAD: frozenset(
            {
                Permission.MANAGE_FACULTY,
                Permission.VIEW_USERS,
                Permission.MANAGE_COURSES,
                Permission.VIEW_COURSES,
                Permission.VIEW_LIMITED_LOGS,
                Permission.USE_BREAK_GLASS,
            }
        ),
        # MANAGE_COURSES covers own courses only
        Role.FACULTY: frozenset({Permission.VIEW_COURSES, Permission.MANAGE_COURSES}),
    }
)

ACADEMIC_HEAD_LOG_MODULES = ("Course", "Courses", "Class Management", "Faculty", "Attendance", "Enrollment")


def has_permission(roles: Iterable[Role], permission: Permission, *, break_glass_active: bool = False) -> bool:
    roles = set(roles or ())
    if not roles:
        return False

    if Role.ADMIN in roles:
        return True

    # Academic heads only use break-glass while a session is open
    if Role.ACADEMIC_HEAD in roles and permission == Permission.USE_BREAK_GLASS:
        return bool(break_glass_active)

    return any(permission in ROLE_PERMISSIONS.get(role, ()) for role in roles)


def can_manage_user(actor_roles: Iterable[Role], target_roles: Iterable[Role]) -> bool:
    actor_roles = set(actor_roles or ())
    if Role.ADMIN in actor_roles:
        return True
    return Role.ACADEMIC_HEAD in actor_roles and Role.FACULTY in set(target_roles or ())


def can_view_log(roles: Iterable[Role], log_module: str) -> bool:
    roles = set(roles or ())
    if Role.ADMIN in roles:
        return True
    if Role.ACADEMIC_HEAD in roles:
        module = (log_module or "").lower()
        return any(allowed.lower() in module for allowed in ACADEMIC_HEAD_LOG_MODULES)
    return False
