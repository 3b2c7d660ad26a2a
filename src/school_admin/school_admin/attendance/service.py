from __future__ import annotations

import logging
import math
from typing import Iterable, Optional

from ..common.datetime_utils import parse_iso_date
from ..common.validators import optional_int
from ..core.constants import DEFAULT_PAGE_SIZE
from ..core.enums import AttendanceStatus, Role
from ..core.exceptions import NotFoundError, ValidationError
from ..courses.model import Course
from ..courses.repository import CourseRepository
from ..schedules.service import ensure_course_access
from .model import AttendanceMark
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


def parse_attendance_status(value: Optional[str]) -> AttendanceStatus:
    try:
        return AttendanceStatus(str(value or "").strip().upper())
    except ValueError:
        raise ValidationError(f"Invalid attendance status: {value}")


class AttendanceService:
    def __init__(self, attendance: AttendanceRepository, courses: CourseRepository):
        self._attendance = attendance
        self._courses = courses

    def _course(self, slug: str) -> Course:
        course = self._courses.get_by_slug(slug)
        if not course:
            raise NotFoundError("Course not found")
        return course

    def get_for_date(self, slug: str, day: str, *, page=1, limit=DEFAULT_PAGE_SIZE) -> dict:
        if not day:
            raise ValidationError("Date parameter is required")
        work_date = parse_iso_date(day)
        page = max(1, optional_int(page, "page") or 1)
        limit = max(1, min(optional_int(limit, "limit") or DEFAULT_PAGE_SIZE, 100))

        course = self._course(slug)
        records, total = self._attendance.page_for_date(
            course.course_id, work_date, offset=(page - 1) * limit, limit=limit
        )
        return {
            "attendance": [r.to_dict() for r in records],
            "pagination": {
                "total": total,
                "page": page,
                "limit": limit,
                "totalPages": math.ceil(total / limit) if total else 0,
            },
        }

    def save_batch(self, slug: str, day: str, records: Optional[Iterable], *, current_role: Role, current_user_id: int) -> int:
        """Upsert one mark per student for the day, all or nothing."""

        work_date = parse_iso_date(day)
        if not isinstance(records, list) or not records:
            raise ValidationError("Attendance records are required")

        course = self._course(slug)
        ensure_course_access(course, current_role=current_role, current_user_id=current_user_id)
        enrolled = {s.student_id for s in self._courses.list_students(course.course_id)}

        marks: list[AttendanceMark] = []
        for item in records:
            if not isinstance(item, dict):
                raise ValidationError("Invalid attendance record")
            student_id = optional_int(item.get("studentId"), "studentId")
            if student_id is None:
                raise ValidationError("studentId is required")
            if student_id not in enrolled:
                raise ValidationError(f"Student {student_id} is not enrolled in this course")
            status = parse_attendance_status(item.get("status"))
            # a reason only makes sense for excused absences
            reason = ((item.get("reason") or "").strip() or None) if status == AttendanceStatus.EXCUSED else None
            marks.append(AttendanceMark(student_id=student_id, status=status, reason=reason))

        with self._attendance.transaction():
            for mark in marks:
                self._attendance.upsert(course.course_id, work_date, mark)

        logger.info("Saved %d attendance mark(s) for %s on %s", len(marks), course.slug, work_date)
        return len(marks)

    def clear(self, slug: str, day: str, *, current_role: Role, current_user_id: int) -> int:
        if not day:
            raise ValidationError("Date is required")
        work_date = parse_iso_date(day)
        course = self._course(slug)
        ensure_course_access(course, current_role=current_role, current_user_id=current_user_id)

        with self._attendance.transaction():
            deleted = self._attendance.delete_for_date(course.course_id, work_date)
        logger.info("Cleared %d attendance record(s) for %s on %s", deleted, course.slug, work_date)
        return deleted

    def stats(self, slug: str) -> dict:
        """Counts for the most recent attendance day; unmarked students count as absent."""

        course = self._course(slug)
        students = self._courses.list_students(course.course_id)
        total_students = len(students)

        last_date = self._attendance.latest_date(course.course_id)
        if last_date is None:
            return {
                "totalStudents": total_students,
                "totalPresent": 0,
                "totalAbsent": 0,
                "totalLate": 0,
                "totalExcused": 0,
                "attendanceRate": 0,
                "lastAttendanceDate": None,
            }

        marks = {r.student_id: r.status for r in self._attendance.list_for_date(course.course_id, last_date)}
        counts = {status: 0 for status in AttendanceStatus}
        for s in students:
            counts[marks.get(s.student_id, AttendanceStatus.ABSENT)] += 1

        attended = counts[AttendanceStatus.PRESENT] + counts[AttendanceStatus.LATE]
        return {
            "totalStudents": total_students,
            "totalPresent": counts[AttendanceStatus.PRESENT],
            "totalAbsent": counts[AttendanceStatus.ABSENT],
            "totalLate": counts[AttendanceStatus.LATE],
            "totalExcused": counts[AttendanceStatus.EXCUSED],
            "attendanceRate": (attended / total_students) * 100 if total_students else 0,
            "lastAttendanceDate": last_date.isoformat(),
        }
