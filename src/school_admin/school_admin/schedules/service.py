from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence

from ..core.enums import CourseStatus, Role
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..courses.model import Course
from ..courses.repository import CourseRepository
from .model import Schedule
from .overlap import DAY_NAMES, WEEKDAY_ORDER, check_schedule_overlap, normalize_day_name, time_to_minutes

logger = logging.getLogger(__name__)


def parse_schedule_entries(raw: Optional[Iterable]) -> list[Schedule]:
    """Validate user-supplied schedule entries.

    Every entry needs a known day and a time window that ends after it starts.
    Day and time strings are stored as given.
    """

    out: list[Schedule] = []
    for i, item in enumerate(raw or [], start=1):
        try:
            s = Schedule.coerce(item)
        except TypeError:
            raise ValidationError(f"Schedule #{i} is not valid")

        day, from_time, to_time = s.day.strip(), s.from_time.strip(), s.to_time.strip()
        if not day or not from_time or not to_time:
            raise ValidationError(f"Schedule #{i} requires day, fromTime and toTime")
        if day not in DAY_NAMES:
            raise ValidationError(f"Schedule #{i} has an unknown day: {day}")
        if time_to_minutes(to_time) <= time_to_minutes(from_time):
            raise ValidationError(f"Schedule #{i}: end time must be after start time")

        out.append(Schedule(day=day, from_time=from_time, to_time=to_time))
    return out


def ensure_course_access(course: Course, *, current_role: Role, current_user_id: int) -> None:
    """Faculty members may only touch their own courses."""

    if current_role == Role.FACULTY and course.faculty_id != int(current_user_id):
        raise AuthorizationError("You can only manage your own courses")


class ScheduleService:
    def __init__(self, courses: CourseRepository):
        self._courses = courses

    validate_entries = staticmethod(parse_schedule_entries)

    def _ensure_no_overlap(self, course: Course, schedules: Sequence[Schedule]) -> None:
        if course.status != CourseStatus.ACTIVE or not course.faculty_id or not schedules:
            return

        self._courses.lock_faculty(course.faculty_id)
        problem = check_schedule_overlap(
            self._courses,
            schedules,
            course.faculty_id,
            exclude_course_ids=[course.course_id],
            semester=course.semester,
            academic_year=course.academic_year,
            for_update=True,
        )
        if problem is not None:
            raise ConflictError(problem.message)

    def list_for_course(self, course_id: int) -> list[Schedule]:
        course = self._courses.get_by_id(int(course_id))
        if not course:
            raise NotFoundError("Course not found")
        return sorted(course.schedules, key=_schedule_sort_key)

    def assign(
        self,
        *,
        current_role: Role,
        current_user_id: int,
        course_id: int,
        schedules: Optional[Iterable],
    ) -> list[Schedule]:
        """Replace the schedules of one course after validating them."""

        parsed = parse_schedule_entries(schedules)
        with self._courses.transaction():
            course = self._courses.get_by_id(int(course_id))
            if not course:
                raise NotFoundError("Course not found")
            ensure_course_access(course, current_role=current_role, current_user_id=current_user_id)

            self._ensure_no_overlap(course, parsed)
            self._courses.replace_schedules(course.course_id, parsed)

        logger.info("Assigned %d schedule(s) to course %s", len(parsed), course.slug)
        return sorted(parsed, key=_schedule_sort_key)

    def assign_many(self, *, current_role: Role, current_user_id: int, items) -> dict:
        """Batch form of ``assign``; each course succeeds or fails on its own."""

        if not isinstance(items, list):
            raise ValidationError("Invalid request format")

        results = {"success": 0, "failed": 0, "errors": []}
        for item in items:
            course_id = item.get("courseId") if isinstance(item, dict) else None
            schedules = item.get("schedules") if isinstance(item, dict) else None
            if not course_id or not isinstance(schedules, list):
                results["failed"] += 1
                results["errors"].append({"courseId": course_id, "message": "Invalid course schedule format"})
                continue

            try:
                self.assign(
                    current_role=current_role,
                    current_user_id=current_user_id,
                    course_id=int(course_id),
                    schedules=schedules,
                )
                results["success"] += 1
            except (ValueError, ValidationError, AuthorizationError, NotFoundError, ConflictError) as e:
                results["failed"] += 1
                results["errors"].append({"courseId": course_id, "message": str(e)})

        return results

    def weekly_for_faculty(self, faculty_id: int) -> dict[str, list[dict]]:
        """Active courses of a faculty member laid out per weekday."""

        week: dict[str, list[dict]] = {day: [] for day in WEEKDAY_ORDER}
        for course in self._courses.list_active_for_faculty(faculty_id=int(faculty_id)):
            for s in course.schedules:
                day = normalize_day_name(s.day)
                week.setdefault(day, []).append(
                    {
                        "courseId": course.course_id,
                        "code": course.code,
                        "section": course.section,
                        "title": course.title,
                        "room": course.room,
                        "slug": course.slug,
                        "fromTime": s.from_time,
                        "toTime": s.to_time,
                    }
                )

        for entries in week.values():
            entries.sort(key=lambda e: time_to_minutes(e["fromTime"]))
        return week


def _schedule_sort_key(s: Schedule):
    day = normalize_day_name(s.day)
    rank = WEEKDAY_ORDER.index(day) if day in WEEKDAY_ORDER else len(WEEKDAY_ORDER)
    return rank, time_to_minutes(s.from_time)
