from __future__ import annotations

from typing import Iterable, Optional, Sequence

from sqlalchemy import or_

from ..core.enums import CourseStatus
from ..core.exceptions import NotFoundError
from ..database.orm import AttendanceRow, CourseRow, CourseScheduleRow, GradeRow, StudentRow, UserRow
from ..database.sqlalchemy_base import db_session
from ..extensions import db
from ..schedules.model import Schedule
from .model import Course, CourseFilters, NewCourse, Student
from .repository import CourseRepository


def to_student(r: StudentRow) -> Student:
    return Student(
        student_id=int(r.id),
        student_number=r.student_number,
        last_name=r.last_name,
        first_name=r.first_name,
        middle_initial=r.middle_initial,
        rfid=r.rfid,
    )


def to_course(r: CourseRow) -> Course:
    return Course(
        course_id=int(r.id),
        code=r.code,
        title=r.title,
        section=r.section,
        room=r.room or "",
        semester=r.semester,
        academic_year=r.academic_year,
        class_number=int(r.class_number or 0),
        status=CourseStatus(r.status),
        slug=r.slug,
        faculty_id=int(r.faculty_id) if r.faculty_id else None,
        schedules=tuple(
            Schedule(day=s.day, from_time=s.from_time, to_time=s.to_time, schedule_id=int(s.id)) for s in r.schedules
        ),
        faculty_name=r.faculty.name if r.faculty else None,
        student_count=len(r.students),
        created_at=r.created_at,
        updated_at=r.updated_at,
    )


class SQLAlchemyCourseRepository(CourseRepository):
    """Course writes only flush; callers commit through ``transaction()``."""

    def _row(self, slug: str) -> CourseRow:
        row = CourseRow.query.filter_by(slug=slug).first()
        if row is None:
            raise NotFoundError("Course not found")
        return row

    def transaction(self):
        return db_session()

    def get_by_slug(self, slug: str) -> Optional[Course]:
        row = CourseRow.query.filter_by(slug=slug).first()
        return to_course(row) if row else None

    def get_by_id(self, course_id: int) -> Optional[Course]:
        row = db.session.get(CourseRow, int(course_id))
        return to_course(row) if row else None

    def slug_exists(self, slug: str, *, exclude_slug: Optional[str] = None) -> bool:
        q = CourseRow.query.filter(CourseRow.slug == slug)
        if exclude_slug:
            q = q.filter(CourseRow.slug != exclude_slug)
        return db.session.query(q.exists()).scalar()

    def find_duplicate(self, *, code: str, section: str, semester: str, academic_year: str) -> Optional[Course]:
        row = CourseRow.query.filter_by(
            code=code, section=section, semester=semester, academic_year=academic_year
        ).first()
        return to_course(row) if row else None

    def list(self, filters: CourseFilters) -> Sequence[Course]:
        q = CourseRow.query
        if filters.status is not None:
            q = q.filter(CourseRow.status == filters.status.value)
        else:
            q = q.filter(CourseRow.status != CourseStatus.ARCHIVED.value)
        if filters.faculty_id is not None:
            q = q.filter(CourseRow.faculty_id == int(filters.faculty_id))
        if filters.semester:
            q = q.filter(CourseRow.semester == filters.semester)
        if filters.code:
            q = q.filter(CourseRow.code == filters.code)
        if filters.section:
            q = q.filter(CourseRow.section == filters.section)
        if filters.search:
            like = f"%{filters.search}%"
            q = q.filter(or_(CourseRow.title.ilike(like), CourseRow.code.ilike(like), CourseRow.room.ilike(like)))

        rows = q.order_by(CourseRow.updated_at.desc(), CourseRow.created_at.desc()).all()
        return [to_course(r) for r in rows]

    def list_by_ids(self, course_ids: Iterable[int]) -> Sequence[Course]:
        ids = [int(i) for i in course_ids]
        if not ids:
            return []
        return [to_course(r) for r in CourseRow.query.filter(CourseRow.id.in_(ids)).all()]

    def list_active_for_faculty(
        self,
        *,
        faculty_id: int,
        semester: Optional[str] = None,
        academic_year: Optional[str] = None,
        exclude_ids: Sequence[int] = (),
        for_update: bool = False,
    ) -> Sequence[Course]:
        q = CourseRow.query.filter(
            CourseRow.faculty_id == int(faculty_id),
            CourseRow.status == CourseStatus.ACTIVE.value,
        )
        if semester:
            q = q.filter(CourseRow.semester == semester)
        if academic_year:
            q = q.filter(CourseRow.academic_year == academic_year)
        if exclude_ids:
            q = q.filter(CourseRow.id.notin_([int(i) for i in exclude_ids]))
        if for_update:
            # locking reads see the latest commit, not the transaction snapshot
            q = q.with_for_update().populate_existing()
        return [to_course(r) for r in q.all()]

    def lock_faculty(self, faculty_id: int) -> None:
        # Row lock on the faculty user; ignored by sqlite
        db.session.query(UserRow.id).filter(UserRow.id == int(faculty_id)).with_for_update().first()

    def create(self, data: NewCourse, *, slug: str) -> Course:
        row = CourseRow(
            code=data.code,
            title=data.title,
            section=data.section,
            room=data.room or "",
            semester=data.semester,
            academic_year=data.academic_year,
            class_number=int(data.class_number),
            status=data.status.value,
            slug=slug,
            faculty_id=data.faculty_id,
        )
        row.schedules = [
            CourseScheduleRow(day=s.day, from_time=s.from_time, to_time=s.to_time) for s in data.schedules
        ]
        db.session.add(row)
        db.session.flush()
        return to_course(row)

    def update(self, slug: str, *, changes: dict) -> Course:
        row = self._row(slug)
        for key, value in changes.items():
            if key == "status" and isinstance(value, CourseStatus):
                value = value.value
            setattr(row, key, value)
        db.session.flush()
        return to_course(row)

    def delete(self, slug: str) -> bool:
        row = CourseRow.query.filter_by(slug=slug).first()
        if row is None:
            return False
        AttendanceRow.query.filter_by(course_id=row.id).delete(synchronize_session=False)
        GradeRow.query.filter_by(course_id=row.id).delete(synchronize_session=False)
        db.session.delete(row)
        db.session.flush()
        return True

    def set_status(self, course_ids: Sequence[int], status: CourseStatus) -> int:
        rows = CourseRow.query.filter(CourseRow.id.in_([int(i) for i in course_ids])).all()
        for row in rows:
            row.status = status.value
        db.session.flush()
        return len(rows)

    def replace_schedules(self, course_id: int, schedules: Sequence[Schedule]) -> None:
        row = db.session.get(CourseRow, int(course_id))
        if row is None:
            raise NotFoundError("Course not found")
        row.schedules = [CourseScheduleRow(day=s.day, from_time=s.from_time, to_time=s.to_time) for s in schedules]
        db.session.flush()

    def list_students(self, course_id: int) -> Sequence[Student]:
        row = db.session.get(CourseRow, int(course_id))
        if row is None:
            return []
        students = sorted(row.students, key=lambda s: (s.last_name.lower(), s.first_name.lower()))
        return [to_student(s) for s in students]

    def enroll(self, course_id: int, student_ids: Sequence[int]) -> int:
        row = db.session.get(CourseRow, int(course_id))
        if row is None:
            raise NotFoundError("Course not found")
        current = {s.id for s in row.students}
        added = 0
        for student in StudentRow.query.filter(StudentRow.id.in_([int(i) for i in student_ids])).all():
            if student.id not in current:
                row.students.append(student)
                added += 1
        db.session.flush()
        return added

    def unenroll(self, course_id: int, student_ids: Sequence[int]) -> int:
        row = db.session.get(CourseRow, int(course_id))
        if row is None:
            raise NotFoundError("Course not found")
        targets = {int(i) for i in student_ids}
        keep = [s for s in row.students if s.id not in targets]
        removed = len(row.students) - len(keep)
        row.students = keep
        db.session.flush()
        return removed

    def upsert_student(
        self, *, student_number: str, last_name: str, first_name: str, middle_initial: Optional[str] = None
    ) -> Student:
        row = StudentRow.query.filter_by(student_number=student_number).first()
        if row is None:
            row = StudentRow(student_number=student_number)
            db.session.add(row)
        row.last_name = last_name
        row.first_name = first_name
        row.middle_initial = middle_initial
        db.session.flush()
        return to_student(row)
