"""Schedule overlap detection for a faculty member's active courses.

Times are compared on a minute-of-day scale (0-1439) and intervals are
half-open, so a class ending at 10:00 does not clash with one starting at
10:00.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Optional, Sequence, Union

from ..core.exceptions import ValidationError
from .model import Schedule

DAY_NAMES = MappingProxyType(
    {
        "Mon": "Monday",
        "Tue": "Tuesday",
        "Wed": "Wednesday",
        "Thu": "Thursday",
        "Fri": "Friday",
        "Sat": "Saturday",
        "Sun": "Sunday",
        "Monday": "Monday",
        "Tuesday": "Tuesday",
        "Wednesday": "Wednesday",
        "Thursday": "Thursday",
        "Friday": "Friday",
        "Saturday": "Saturday",
        "Sunday": "Sunday",
    }
)

WEEKDAY_ORDER = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

_TWELVE_HOUR = re.compile(r"^(\d{1,2})(?::(\d{1,2}))?\s*(AM|PM)$")
_TWENTY_FOUR_HOUR = re.compile(r"^(\d{1,2})(?::(\d{1,2}))?(?::\d{1,2})?$")


def time_to_minutes(text: Optional[str]) -> int:
    """Minutes since midnight for ``HH:MM`` or ``HH:MM AM/PM``.

    Empty input is 0. Anything else that does not parse, or falls outside a
    real clock, raises ValidationError.
    """

    if not text:
        return 0

    value = str(text).strip()
    if "AM" in value or "PM" in value:
        m = _TWELVE_HOUR.match(value)
        if not m:
            raise ValidationError(f"Invalid time: {text!r}")
        hours, minutes, period = int(m.group(1)), int(m.group(2) or 0), m.group(3)
        if not 1 <= hours <= 12 or minutes > 59:
            raise ValidationError(f"Invalid time: {text!r}")
        if period == "PM" and hours != 12:
            hours += 12
        elif period == "AM" and hours == 12:
            hours = 0
        return hours * 60 + minutes

    m = _TWENTY_FOUR_HOUR.match(value)
    if not m:
        raise ValidationError(f"Invalid time: {text!r}")
    hours, minutes = int(m.group(1)), int(m.group(2) or 0)
    if hours > 23 or minutes > 59:
        raise ValidationError(f"Invalid time: {text!r}")
    return hours * 60 + minutes


def normalize_day_name(day: str) -> str:
    return DAY_NAMES.get(day, day)


def check_time_overlap(a, b) -> bool:
    """True when both schedules fall on the same day and their windows intersect."""

    first, second = Schedule.coerce(a), Schedule.coerce(b)
    if first.day != second.day:
        return False

    start1, end1 = time_to_minutes(first.from_time), time_to_minutes(first.to_time)
    start2, end2 = time_to_minutes(second.from_time), time_to_minutes(second.to_time)
    return start1 < end2 and start2 < end1


@dataclass(frozen=True)
class MissingFacultyId:
    @property
    def message(self) -> str:
        return "Faculty ID is required for schedule overlap validation."

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class ScheduleConflict:
    course_id: Optional[int]
    course_code: str
    section: str
    day: str
    from_time: str
    to_time: str

    @property
    def message(self) -> str:
        return (
            f'Schedule overlaps with existing course "{self.course_code} - {self.section}" '
            f"on {self.day} ({self.from_time} - {self.to_time}). Please adjust the time."
        )

    def __str__(self) -> str:
        return self.message


OverlapProblem = Union[MissingFacultyId, ScheduleConflict]


def find_schedule_conflict(new_schedules: Iterable, existing_courses: Sequence) -> Optional[ScheduleConflict]:
    """First clash between ``new_schedules`` and the schedules of ``existing_courses``.

    Existing courses only need ``id``, ``code``, ``section`` and ``schedules``.
    """

    for raw in new_schedules:
        new = Schedule.coerce(raw)
        new_day = normalize_day_name(new.day)
        candidate = Schedule(day=new_day, from_time=new.from_time, to_time=new.to_time)

        for course in existing_courses:
            if not course.schedules:
                continue

            for existing in course.schedules:
                existing = Schedule.coerce(existing)
                existing_day = normalize_day_name(existing.day)
                if existing_day != new_day:
                    continue

                other = Schedule(day=existing_day, from_time=existing.from_time, to_time=existing.to_time)
                if check_time_overlap(candidate, other):
                    return ScheduleConflict(
                        course_id=getattr(course, "course_id", None),
                        course_code=course.code,
                        section=course.section,
                        day=new_day,
                        from_time=existing.from_time,
                        to_time=existing.to_time,
                    )
    return None


def check_schedule_overlap(
    courses,
    new_schedules: Sequence,
    faculty_id: Optional[int],
    exclude_course_ids: Iterable[int] = (),
    semester: Optional[str] = None,
    academic_year: Optional[str] = None,
    for_update: bool = False,
) -> Optional[OverlapProblem]:
    """Validate ``new_schedules`` against the faculty's other ACTIVE courses.

    ``courses`` is a CourseRepository; it is read once. Nothing is written
    here, callers that persist the result own the transaction. Pass
    ``for_update`` when the faculty is locked so the read is a locking one.
    """

    if not faculty_id:
        return MissingFacultyId()

    if not new_schedules:
        return None

    existing = courses.list_active_for_faculty(
        faculty_id=int(faculty_id),
        semester=semester or None,
        academic_year=academic_year or None,
        exclude_ids=[int(i) for i in exclude_course_ids],
        for_update=for_update,
    )
    return find_schedule_conflict(new_schedules, existing)
