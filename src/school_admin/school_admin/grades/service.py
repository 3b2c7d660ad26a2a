from __future__ import annotations

import logging
from typing import Optional

from ..common.datetime_utils import parse_iso_date
from ..common.validators import optional_int, require_non_empty
from ..core.enums import Role
from ..core.exceptions import NotFoundError, ValidationError
from ..courses.model import Course
from ..courses.repository import CourseRepository
from ..schedules.service import ensure_course_access
from .model import Grade, GradeInput
from .repository import GradeRepository

logger = logging.getLogger(__name__)


def _parse_scores(raw, index: int) -> tuple:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise ValidationError(f"Grade #{index}: scores must be a list")
    try:
        scores = tuple(float(s) for s in raw)
    except (TypeError, ValueError):
        raise ValidationError(f"Grade #{index}: scores must be numbers")
    if any(s < 0 for s in scores):
        raise ValidationError(f"Grade #{index}: scores cannot be negative")
    return scores


class GradeService:
    def __init__(self, grades: GradeRepository, courses: CourseRepository):
        self._grades = grades
        self._courses = courses

    def _course(self, slug: str) -> Course:
        course = self._courses.get_by_slug(slug)
        if not course:
            raise NotFoundError("Course not found")
        return course

    def get(self, slug: str, day: str, *, criteria: Optional[str] = None) -> list[Grade]:
        if not day:
            raise ValidationError("Date is required")
        course = self._course(slug)
        return list(self._grades.list_for_date(course.course_id, parse_iso_date(day), criteria=criteria or None))

    def save(
        self,
        slug: str,
        day: str,
        criteria: str,
        grades,
        *,
        recitation: bool = False,
        current_role: Role,
        current_user_id: int,
    ) -> list[Grade]:
        work_date = parse_iso_date(day)
        criteria = require_non_empty(criteria, "Criteria")
        if not isinstance(grades, list):
            raise ValidationError("Invalid request data")

        course = self._course(slug)
        ensure_course_access(course, current_role=current_role, current_user_id=current_user_id)
        enrolled = {s.student_id for s in self._courses.list_students(course.course_id)}

        inputs: list[GradeInput] = []
        for i, item in enumerate(grades, start=1):
            if not isinstance(item, dict):
                raise ValidationError(f"Grade #{i} is not valid")
            student_id = optional_int(item.get("studentId"), "studentId")
            if student_id is None or student_id not in enrolled:
                raise ValidationError(f"Grade #{i}: student is not enrolled in this course")
            scores = _parse_scores(item.get("scores"), i)
            total = item.get("total")
            try:
                total = float(total) if total is not None else sum(scores)
            except (TypeError, ValueError):
                raise ValidationError(f"Grade #{i}: total must be a number")
            inputs.append(GradeInput(student_id=student_id, scores=scores, total=total))

        with self._grades.transaction():
            saved = self._grades.replace(course.course_id, work_date, criteria, inputs, recitation=bool(recitation))

        logger.info("Saved %d grade(s) for %s/%s on %s", len(saved), course.slug, criteria, work_date)
        return list(saved)

    def delete(self, slug: str, day: str, criteria: str, *, current_role: Role, current_user_id: int) -> int:
        if not day or not criteria:
            raise ValidationError("Criteria and date are required")
        course = self._course(slug)
        ensure_course_access(course, current_role=current_role, current_user_id=current_user_id)

        with self._grades.transaction():
            return self._grades.delete(course.course_id, parse_iso_date(day), criteria)
