from __future__ import annotations

from typing import ContextManager, Iterable, Optional, Protocol, Sequence

from ..core.enums import CourseStatus
from ..schedules.model import Schedule
from .model import Course, CourseFilters, NewCourse, Student


class CourseRepository(Protocol):
    """Data access for courses, their schedules and enrollments."""

    def get_by_slug(self, slug: str) -> Optional[Course]:
        raise NotImplementedError

    def get_by_id(self, course_id: int) -> Optional[Course]:
        raise NotImplementedError

    def slug_exists(self, slug: str, *, exclude_slug: Optional[str] = None) -> bool:
        raise NotImplementedError

    def find_duplicate(self, *, code: str, section: str, semester: str, academic_year: str) -> Optional[Course]:
        raise NotImplementedError

    def list(self, filters: CourseFilters) -> Sequence[Course]:
        raise NotImplementedError

    def list_by_ids(self, course_ids: Iterable[int]) -> Sequence[Course]:
        raise NotImplementedError

    def list_active_for_faculty(
        self,
        *,
        faculty_id: int,
        semester: Optional[str] = None,
        academic_year: Optional[str] = None,
        exclude_ids: Sequence[int] = (),
        for_update: bool = False,
    ) -> Sequence[Course]:
        """ACTIVE courses of one faculty member, schedules included.

        With ``for_update`` the rows are read with a locking read and refreshed
        in the session, so a check made after ``lock_faculty`` sees what other
        transactions committed while it waited.
        """

        raise NotImplementedError

    def lock_faculty(self, faculty_id: int) -> None:
        """Serialize schedule writes for one faculty member until the transaction ends."""

        raise NotImplementedError

    def create(self, data: NewCourse, *, slug: str) -> Course:
        raise NotImplementedError

    def update(self, slug: str, *, changes: dict) -> Course:
        raise NotImplementedError

    def delete(self, slug: str) -> bool:
        raise NotImplementedError

    def set_status(self, course_ids: Sequence[int], status: CourseStatus) -> int:
        raise NotImplementedError

    def replace_schedules(self, course_id: int, schedules: Sequence[Schedule]) -> None:
        raise NotImplementedError

    def transaction(self) -> ContextManager[object]:
        """Unit of work: writes inside are committed together or rolled back."""

        raise NotImplementedError

    def list_students(self, course_id: int) -> Sequence[Student]:
        raise NotImplementedError

    def enroll(self, course_id: int, student_ids: Sequence[int]) -> int:
        raise NotImplementedError

    def unenroll(self, course_id: int, student_ids: Sequence[int]) -> int:
        raise NotImplementedError

    def upsert_student(
        self, *, student_number: str, last_name: str, first_name: str, middle_initial: Optional[str] = None
    ) -> Student:
        raise NotImplementedError
