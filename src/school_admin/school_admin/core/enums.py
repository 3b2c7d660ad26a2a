from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for authorization."""

    ADMIN = "ADMIN"
    ACADEMIC_HEAD = "ACADEMIC_HEAD"
    FACULTY = "FACULTY"


class CourseStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    ARCHIVED = "ARCHIVED"


class AttendanceStatus(str, Enum):
    """Per-student, per-day attendance mark."""

    PRESENT = "PRESENT"
    ABSENT = "ABSENT"
    LATE = "LATE"
    EXCUSED = "EXCUSED"


class Permission(str, Enum):
    MANAGE_USERS = "MANAGE_USERS"
    MANAGE_ADMINS = "MANAGE_ADMINS"
    MANAGE_FACULTY = "MANAGE_FACULTY"
    VIEW_USERS = "VIEW_USERS"
    MANAGE_COURSES = "MANAGE_COURSES"
    VIEW_COURSES = "VIEW_COURSES"
    VIEW_ALL_LOGS = "VIEW_ALL_LOGS"
    VIEW_LIMITED_LOGS = "VIEW_LIMITED_LOGS"
    USE_BREAK_GLASS = "USE_BREAK_GLASS"
    ACTIVATE_BREAK_GLASS = "ACTIVATE_BREAK_GLASS"
