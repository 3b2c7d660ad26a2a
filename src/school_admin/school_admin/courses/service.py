from __future__ import annotations

import logging
import re
from datetime import date
from typing import Iterable, Optional, Sequence

from ..common.validators import optional_int, require_non_empty
from ..core.enums import CourseStatus, Role
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..schedules.model import Schedule
from ..schedules.overlap import check_schedule_overlap
from ..schedules.service import ensure_course_access, parse_schedule_entries
from ..users.repository import UserRepository
from .model import Course, CourseFilters, NewCourse, Student
from .repository import CourseRepository

logger = logging.getLogger(__name__)


_WHITESPACE = re.compile(r"\s+")


def generate_slug(code: str, section: str) -> str:
    code_part = _WHITESPACE.sub("-", code.strip().lower())
    section_part = _WHITESPACE.sub("-", section.strip().lower())
    return f"{code_part}-{section_part}"


def normalize_status(value: Optional[str]) -> CourseStatus:
    v = (value or "").strip().upper()
    if v in {"INACTIVE", "INACT"}:
        return CourseStatus.INACTIVE
    if v in {"ARCHIVED", "ARCH"}:
        return CourseStatus.ARCHIVED
    return CourseStatus.ACTIVE


def normalize_semester(value: Optional[str]) -> str:
    v = (value or "").strip()
    lower = v.lower()
    if "1st" in lower or "first" in lower or lower == "1":
        return "1st Semester"
    if "2nd" in lower or "second" in lower or lower == "2":
        return "2nd Semester"
    return v


def parse_status(value: Optional[str], *, default: Optional[CourseStatus] = CourseStatus.ACTIVE) -> Optional[CourseStatus]:
    if value is None or value == "":
        return default
    try:
        return CourseStatus(str(value).upper())
    except ValueError:
        raise ValidationError("Valid status is required (ACTIVE, INACTIVE, or ARCHIVED)")


class CourseService:
    def __init__(self, courses: CourseRepository, users: UserRepository):
        self._courses = courses
        self._users = users

    # --- reads -----------------------------------------------------------

    def list(self, filters: CourseFilters) -> Sequence[Course]:
        return self._courses.list(filters)

    def list_active(self, *, faculty_id: Optional[int] = None) -> Sequence[Course]:
        return self._courses.list(CourseFilters(faculty_id=faculty_id, status=CourseStatus.ACTIVE))

    def list_archived(self, *, faculty_id: Optional[int] = None) -> Sequence[Course]:
        return self._courses.list(CourseFilters(faculty_id=faculty_id, status=CourseStatus.ARCHIVED))

    def get(self, slug: str) -> Course:
        course = self._courses.get_by_slug(slug)
        if not course:
            raise NotFoundError("Course not found")
        return course

    # --- writes ----------------------------------------------------------

    def _resolve_faculty(self, faculty_id, *, current_role: Role, current_user_id: int) -> Optional[int]:
        fid = optional_int(faculty_id, "facultyId")
        if current_role == Role.FACULTY:
            if fid is not None and fid != int(current_user_id):
                raise AuthorizationError("You can only manage your own courses")
            return int(current_user_id)

        if fid is not None:
            faculty = self._users.get_by_id(fid)
            if not faculty:
                raise NotFoundError("Faculty not found")
        return fid

    def _unique_slug(self, code: str, section: str) -> str:
        base = generate_slug(code, section)
        slug, counter = base, 1
        while self._courses.slug_exists(slug):
            slug = f"{base}-{counter}"
            counter += 1
        return slug

    def _ensure_no_overlap(
        self,
        schedules: Sequence[Schedule],
        *,
        faculty_id: Optional[int],
        status: CourseStatus,
        semester: str,
        academic_year: str,
        exclude_course_ids: Iterable[int] = (),
    ) -> None:
        if status != CourseStatus.ACTIVE or not faculty_id or not schedules:
            return

        self._courses.lock_faculty(faculty_id)
        problem = check_schedule_overlap(
            self._courses,
            schedules,
            faculty_id,
            exclude_course_ids=exclude_course_ids,
            semester=semester,
            academic_year=academic_year,
            for_update=True,
        )
        if problem is not None:
            raise ConflictError(problem.message)

    def create(
        self,
        *,
        current_role: Role,
        current_user_id: int,
        code: str,
        title: str,
        section: str,
        semester: str,
        academic_year: str,
        room: Optional[str] = None,
        class_number=None,
        status: Optional[str] = None,
        faculty_id=None,
        schedules: Optional[Iterable] = None,
    ) -> Course:
        if not code or not title or not section or not semester or not academic_year:
            raise ValidationError("Missing required fields")

        data = NewCourse(
            code=code.strip(),
            title=title.strip(),
            section=section.strip(),
            room=(room or "").strip(),
            semester=semester.strip(),
            academic_year=str(academic_year).strip(),
            class_number=optional_int(class_number, "classNumber") or 0,
            status=parse_status(status),
            faculty_id=self._resolve_faculty(faculty_id, current_role=current_role, current_user_id=current_user_id),
            schedules=tuple(parse_schedule_entries(schedules)),
        )

        with self._courses.transaction():
            if self._courses.find_duplicate(
                code=data.code, section=data.section, semester=data.semester, academic_year=data.academic_year
            ):
                raise ConflictError("Course with this code and section already exists for this semester")

            self._ensure_no_overlap(
                data.schedules,
                faculty_id=data.faculty_id,
                status=data.status,
                semester=data.semester,
                academic_year=data.academic_year,
            )
            course = self._courses.create(data, slug=self._unique_slug(data.code, data.section))

        logger.info("Created course %s (faculty=%s)", course.slug, course.faculty_id)
        return course

    def update(
        self,
        slug: str,
        *,
        current_role: Role,
        current_user_id: int,
        code: str,
        title: str,
        section: str,
        semester: str,
        academic_year: str,
        faculty_id,
        room: Optional[str] = None,
    ) -> Course:
        if not code or not title or not faculty_id or not semester or not section or not academic_year:
            raise ValidationError("Missing required fields")

        with self._courses.transaction():
            course = self._courses.get_by_slug(slug)
            if not course:
                raise NotFoundError("Course not found")
            ensure_course_access(course, current_role=current_role, current_user_id=current_user_id)

            fid = self._resolve_faculty(faculty_id, current_role=current_role, current_user_id=current_user_id)
            new_slug = generate_slug(code, section)
            if new_slug == generate_slug(course.code, course.section):
                # same code and section: a suffixed slug stays as it is
                new_slug = course.slug
            elif self._courses.slug_exists(new_slug, exclude_slug=slug):
                raise ConflictError("Course with this code, academic year, and section already exists")

            self._ensure_no_overlap(
                course.schedules,
                faculty_id=fid,
                status=course.status,
                semester=semester.strip(),
                academic_year=str(academic_year).strip(),
                exclude_course_ids=[course.course_id],
            )

            changes = {
                "code": code.strip(),
                "title": title.strip(),
                "section": section.strip(),
                "semester": semester.strip(),
                "academic_year": str(academic_year).strip(),
                "faculty_id": fid,
                "slug": new_slug,
            }
            if room is not None:
                changes["room"] = room.strip()
            updated = self._courses.update(slug, changes=changes)

        logger.info("Updated course %s -> %s", slug, updated.slug)
        return updated

    def delete(self, slug: str, *, current_role: Role, current_user_id: int) -> None:
        with self._courses.transaction():
            course = self._courses.get_by_slug(slug)
            if not course:
                raise NotFoundError("Course not found")
            ensure_course_access(course, current_role=current_role, current_user_id=current_user_id)
            self._courses.delete(slug)
        logger.info("Deleted course %s", slug)

    def bulk_set_status(self, *, current_role: Role, course_ids, status: Optional[str]) -> int:
        if current_role == Role.FACULTY:
            raise AuthorizationError("You do not have permission")
        if not course_ids or not isinstance(course_ids, list):
            raise ValidationError("Course IDs are required")
        new_status = parse_status(status, default=None)
        if new_status is None:
            raise ValidationError("Valid status is required (ACTIVE, INACTIVE, or ARCHIVED)")

        ids = [optional_int(i, "courseId") for i in course_ids]
        if None in ids:
            raise ValidationError("Course IDs are required")
        with self._courses.transaction():
            if new_status != CourseStatus.ACTIVE:
                return self._courses.set_status(ids, new_status)

            # Reactivation: each course must fit next to the ones already active,
            # including those activated earlier in this batch.
            updated = 0
            for course in self._courses.list_by_ids(ids):
                if course.status != CourseStatus.ACTIVE:
                    self._ensure_no_overlap(
                        course.schedules,
                        faculty_id=course.faculty_id,
                        status=CourseStatus.ACTIVE,
                        semester=course.semester,
                        academic_year=course.academic_year,
                        exclude_course_ids=[course.course_id],
                    )
                updated += self._courses.set_status([course.course_id], CourseStatus.ACTIVE)
            return updated

    def import_with_schedules(self, *, current_role: Role, current_user_id: int, rows) -> dict:
        """Create many courses at once; every row is validated and stored on its own."""

        if not rows or not isinstance(rows, list):
            raise ValidationError("No courses provided")

        results = {"success": 0, "failed": 0, "errors": [], "detailedFeedback": []}

        def fail(code: str, message: str, feedback: str) -> None:
            results["failed"] += 1
            results["errors"].append({"code": code, "message": message})
            results["detailedFeedback"].append({"code": code, "status": "failed", "message": feedback})

        for row in rows:
            if not isinstance(row, dict):
                fail("N/A", "Invalid course row", "Invalid course data")
                continue
            raw_code = str(row.get("code") or "").strip()
            if not row.get("schedules"):
                fail(raw_code or "N/A", "Course must have at least one schedule", "Missing required schedules")
                continue
            if not raw_code or not str(row.get("title") or "").strip():
                fail(raw_code or "N/A", "Course code and title are required", "Missing required fields")
                continue

            code = raw_code.upper()
            section = str(row.get("section") or "").strip().upper() or "A"
            semester = normalize_semester(row.get("semester") or "1st Semester")
            academic_year = str(row.get("academicYear") or "").strip() or str(date.today().year)
            try:
                class_number = int(row.get("classNumber") or 1)
            except (TypeError, ValueError):
                class_number = 0
            if class_number < 1:
                fail(code, "Invalid class number", "Class number must be a positive integer")
                continue

            try:
                course = self.create(
                    current_role=current_role,
                    current_user_id=current_user_id,
                    code=code,
                    title=str(row.get("title")).strip(),
                    section=section,
                    room=str(row.get("room") or "").strip().upper() or "TBA",
                    semester=semester,
                    academic_year=academic_year,
                    class_number=class_number,
                    status=normalize_status(row.get("status")).value,
                    faculty_id=row.get("facultyId"),
                    schedules=row.get("schedules"),
                )
            except ConflictError as e:
                fail(code, str(e), "Course already exists" if "already exists" in str(e) else "Schedule conflict")
                continue
            except (ValidationError, AuthorizationError, NotFoundError) as e:
                fail(code, str(e), "Invalid course data")
                continue

            results["success"] += 1
            results["detailedFeedback"].append(
                {
                    "code": code,
                    "status": "success",
                    "message": f"Imported with {len(course.schedules)} schedule(s)",
                }
            )

        return results

    def export_rows(self, filters: CourseFilters) -> list[dict]:
        rows = []
        for c in self._courses.list(filters):
            rows.append(
                {
                    "Course Code": c.code,
                    "Course Title": c.title,
                    "Section": c.section,
                    "Room": c.room,
                    "Semester": c.semester,
                    "Academic Year": c.academic_year,
                    "Class Number": c.class_number,
                    "Status": c.status.value,
                    "Faculty": c.faculty_name or "",
                    "Schedules": "; ".join(f"{s.day} {s.from_time}-{s.to_time}" for s in c.schedules),
                    "Students": c.student_count,
                }
            )
        return rows

    # --- enrollment ------------------------------------------------------

    def list_students(self, slug: str) -> Sequence[Student]:
        return self._courses.list_students(self.get(slug).course_id)

    def add_students(self, slug: str, *, current_role: Role, current_user_id: int, students) -> int:
        """Enroll students by id, or create them from ``studentNumber``/name fields first."""

        if not students or not isinstance(students, list):
            raise ValidationError("Students are required")

        with self._courses.transaction():
            course = self.get(slug)
            ensure_course_access(course, current_role=current_role, current_user_id=current_user_id)

            ids: list[int] = []
            for s in students:
                if isinstance(s, dict) and s.get("studentNumber"):
                    student = self._courses.upsert_student(
                        student_number=require_non_empty(s.get("studentNumber"), "studentNumber"),
                        last_name=require_non_empty(s.get("lastName"), "lastName"),
                        first_name=require_non_empty(s.get("firstName"), "firstName"),
                        middle_initial=(s.get("middleInitial") or "").strip() or None,
                    )
                    ids.append(student.student_id)
                else:
                    sid = optional_int(s.get("id") if isinstance(s, dict) else s, "studentId")
                    if sid is None:
                        raise ValidationError("studentId is required")
                    ids.append(sid)
            return self._courses.enroll(course.course_id, ids)

    def remove_students(self, slug: str, *, current_role: Role, current_user_id: int, student_ids) -> int:
        if not student_ids or not isinstance(student_ids, list):
            raise ValidationError("Student IDs are required")
        with self._courses.transaction():
            course = self.get(slug)
            ensure_course_access(course, current_role=current_role, current_user_id=current_user_id)
            return self._courses.unenroll(course.course_id, [int(i) for i in student_ids])
