from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import Optional

import pytest

from src.school_admin.school_admin.core.enums import CourseStatus, Role
from src.school_admin.school_admin.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from src.school_admin.school_admin.courses.model import Course, CourseFilters, Student
from src.school_admin.school_admin.courses.service import (
    CourseService,
    generate_slug,
    normalize_semester,
    normalize_status,
)
from src.school_admin.school_admin.schedules.model import Schedule
from src.school_admin.school_admin.users.model import User


@dataclass
class InMemoryUsers:
    users_by_id: dict

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.users_by_id.get(int(user_id))


class InMemoryCourses:
    def __init__(self):
        self.courses: dict[int, Course] = {}
        self.students: dict[int, Student] = {}
        self.enrollment: dict[int, set] = {}
        self._next_id = 1
        self.locked: list[int] = []
        self.events: list[tuple] = []

    @contextmanager
    def transaction(self):
        snapshot = dict(self.courses)
        try:
            yield self
        except Exception:
            self.courses = snapshot
            raise

    def get_by_slug(self, slug):
        return next((c for c in self.courses.values() if c.slug == slug), None)

    def get_by_id(self, course_id):
        return self.courses.get(int(course_id))

    def slug_exists(self, slug, *, exclude_slug=None):
        return any(c.slug == slug and c.slug != exclude_slug for c in self.courses.values())

    def find_duplicate(self, *, code, section, semester, academic_year):
        for c in self.courses.values():
            if (c.code, c.section, c.semester, c.academic_year) == (code, section, semester, academic_year):
                return c
        return None

    def list(self, filters: CourseFilters):
        out = []
        for c in self.courses.values():
            if filters.status is not None and c.status != filters.status:
                continue
            if filters.status is None and c.status == CourseStatus.ARCHIVED:
                continue
            if filters.faculty_id is not None and c.faculty_id != filters.faculty_id:
                continue
            out.append(c)
        return out

    def list_by_ids(self, course_ids):
        return [self.courses[int(i)] for i in course_ids if int(i) in self.courses]

    def list_active_for_faculty(self, *, faculty_id, semester=None, academic_year=None, exclude_ids=(), for_update=False):
        self.events.append(("read", faculty_id, for_update))
        return [
            c
            for c in self.courses.values()
            if c.faculty_id == faculty_id
            and c.status == CourseStatus.ACTIVE
            and c.course_id not in exclude_ids
            and (semester is None or c.semester == semester)
            and (academic_year is None or c.academic_year == academic_year)
        ]

    def lock_faculty(self, faculty_id):
        self.locked.append(faculty_id)
        self.events.append(("lock", faculty_id))

    def create(self, data, *, slug):
        course = Course(
            course_id=self._next_id,
            code=data.code,
            title=data.title,
            section=data.section,
            room=data.room,
            semester=data.semester,
            academic_year=data.academic_year,
            class_number=data.class_number,
            status=data.status,
            slug=slug,
            faculty_id=data.faculty_id,
            schedules=tuple(data.schedules),
        )
        self.courses[course.course_id] = course
        self._next_id += 1
        return course

    def update(self, slug, *, changes):
        course = self.get_by_slug(slug)
        if course is None:
            raise NotFoundError("Course not found")
        updated = replace(course, **changes)
        self.courses[course.course_id] = updated
        return updated

    def delete(self, slug):
        course = self.get_by_slug(slug)
        if course is None:
            return False
        del self.courses[course.course_id]
        return True

    def set_status(self, course_ids, status):
        n = 0
        for i in course_ids:
            if int(i) in self.courses:
                self.courses[int(i)] = replace(self.courses[int(i)], status=status)
                n += 1
        return n

    def list_students(self, course_id):
        return [self.students[i] for i in sorted(self.enrollment.get(course_id, set()))]

    def enroll(self, course_id, student_ids):
        current = self.enrollment.setdefault(course_id, set())
        added = [i for i in student_ids if i in self.students and i not in current]
        current.update(added)
        return len(added)

    def unenroll(self, course_id, student_ids):
        current = self.enrollment.setdefault(course_id, set())
        removed = current & set(student_ids)
        current -= removed
        return len(removed)

    def upsert_student(self, *, student_number, last_name, first_name, middle_initial=None):
        existing = next((s for s in self.students.values() if s.student_number == student_number), None)
        sid = existing.student_id if existing else len(self.students) + 1
        self.students[sid] = Student(sid, student_number, last_name, first_name, middle_initial)
        return self.students[sid]


FACULTY = User(user_id=7, name="Ana", email="ana@school.local", password_hash="x", role=Role.FACULTY)
OTHER_FACULTY = User(user_id=8, name="Ben", email="ben@school.local", password_hash="x", role=Role.FACULTY)


@pytest.fixture()
def repo():
    return InMemoryCourses()


@pytest.fixture()
def svc(repo):
    return CourseService(repo, InMemoryUsers({7: FACULTY, 8: OTHER_FACULTY}))


def create(svc, **overrides):
    data = dict(
        current_role=Role.ADMIN,
        current_user_id=1,
        code="IT101",
        title="Intro to Computing",
        section="A",
        semester="1st Semester",
        academic_year="2025",
        faculty_id=7,
        schedules=[{"day": "Mon", "fromTime": "09:00", "toTime": "10:00"}],
    )
    data.update(overrides)
    return svc.create(**data)


def test_generate_slug():
    assert generate_slug("IT 101", "A") == "it-101-a"
    assert generate_slug("  CS200 ", " Night  B ") == "cs200-night-b"


@pytest.mark.parametrize(
    "raw, expected",
    [("inact", CourseStatus.INACTIVE), ("ARCH", CourseStatus.ARCHIVED), ("archived", CourseStatus.ARCHIVED), ("", CourseStatus.ACTIVE), ("whatever", CourseStatus.ACTIVE)],
)
def test_normalize_status(raw, expected):
    assert normalize_status(raw) == expected


@pytest.mark.parametrize(
    "raw, expected",
    [("1", "1st Semester"), ("First", "1st Semester"), ("2nd sem", "2nd Semester"), ("second", "2nd Semester"), ("Summer", "Summer")],
)
def test_normalize_semester(raw, expected):
    assert normalize_semester(raw) == expected


def test_create_defaults_to_active_with_unique_slug(svc):
    first = create(svc)
    second = create(svc, semester="2nd Semester")

    assert first.status == CourseStatus.ACTIVE
    assert first.slug == "it101-a"
    assert second.slug == "it101-a-1"


def test_create_requires_fields(svc):
    with pytest.raises(ValidationError):
        create(svc, title="")


def test_create_rejects_duplicates(svc):
    create(svc)
    with pytest.raises(ConflictError, match="already exists"):
        create(svc, schedules=[{"day": "Tue", "fromTime": "09:00", "toTime": "10:00"}])


def test_create_rejects_overlapping_schedule(svc, repo):
    create(svc)
    with pytest.raises(ConflictError, match="IT101 - A"):
        create(svc, code="IT102", schedules=[{"day": "Monday", "fromTime": "09:30", "toTime": "11:00"}])

    assert len(repo.courses) == 1
    assert repo.locked == [7, 7]


def test_create_reads_candidates_with_a_locking_read_after_the_lock(svc, repo):
    create(svc)
    assert repo.events == [("lock", 7), ("read", 7, True)]


def test_create_allows_same_slot_in_another_term(svc):
    create(svc)
    other = create(svc, code="IT102", academic_year="2026")
    assert other.course_id == 2


def test_create_allows_same_slot_when_inactive(svc):
    create(svc)
    course = create(svc, code="IT102", status="INACTIVE")
    assert course.status == CourseStatus.INACTIVE


def test_create_rejects_non_integer_class_number(svc):
    with pytest.raises(ValidationError):
        create(svc, class_number="abc")


def test_create_unknown_faculty(svc):
    with pytest.raises(NotFoundError):
        create(svc, faculty_id=99)


def test_faculty_creates_courses_for_themselves(svc):
    course = create(svc, current_role=Role.FACULTY, current_user_id=8, faculty_id=None)
    assert course.faculty_id == 8

    with pytest.raises(AuthorizationError):
        create(svc, current_role=Role.FACULTY, current_user_id=8, faculty_id=7, code="X1")


def test_update_rechecks_existing_schedules_against_new_faculty(svc):
    create(svc, faculty_id=8, code="CS1", schedules=[{"day": "Mon", "fromTime": "09:00", "toTime": "10:00"}])
    course = create(svc, code="IT2")

    with pytest.raises(ConflictError):
        svc.update(
            course.slug,
            current_role=Role.ADMIN,
            current_user_id=1,
            code="IT2",
            title="Renamed",
            section="A",
            semester="1st Semester",
            academic_year="2025",
            faculty_id=8,
        )


def test_update_changes_slug_and_fields(svc):
    course = create(svc)
    updated = svc.update(
        course.slug,
        current_role=Role.ADMIN,
        current_user_id=1,
        code="IT101",
        title="Computing Basics",
        section="B",
        semester="1st Semester",
        academic_year="2025",
        faculty_id=7,
        room="Lab 2",
    )
    assert updated.slug == "it101-b"
    assert updated.title == "Computing Basics"
    assert updated.room == "Lab 2"


def test_update_rejects_slug_collision(svc):
    create(svc)
    other = create(svc, section="B", schedules=[])
    with pytest.raises(ConflictError):
        svc.update(
            other.slug,
            current_role=Role.ADMIN,
            current_user_id=1,
            code="IT101",
            title="x",
            section="A",
            semester="1st Semester",
            academic_year="2025",
            faculty_id=7,
        )


def test_update_keeps_a_suffixed_slug_when_code_and_section_stay(svc):
    create(svc)
    later = create(svc, semester="2nd Semester")
    assert later.slug == "it101-a-1"

    updated = svc.update(
        later.slug,
        current_role=Role.ADMIN,
        current_user_id=1,
        code="IT101",
        title="Intro, second run",
        section="A",
        semester="2nd Semester",
        academic_year="2025",
        faculty_id=7,
    )
    assert updated.slug == "it101-a-1"
    assert updated.title == "Intro, second run"


def test_delete_checks_ownership(svc, repo):
    course = create(svc)
    with pytest.raises(AuthorizationError):
        svc.delete(course.slug, current_role=Role.FACULTY, current_user_id=8)
    svc.delete(course.slug, current_role=Role.FACULTY, current_user_id=7)
    assert repo.courses == {}


def test_get_unknown_course(svc):
    with pytest.raises(NotFoundError):
        svc.get("nope")


def test_list_active_and_archived(svc):
    active = create(svc)
    archived = create(svc, code="OLD", status="ARCHIVED", schedules=[])

    assert [c.course_id for c in svc.list_active()] == [active.course_id]
    assert [c.course_id for c in svc.list_archived()] == [archived.course_id]
    assert [c.course_id for c in svc.list(CourseFilters())] == [active.course_id]


def test_bulk_archive(svc):
    a = create(svc)
    b = create(svc, code="IT2", schedules=[])
    assert svc.bulk_set_status(current_role=Role.ADMIN, course_ids=[a.course_id, b.course_id], status="archived") == 2
    assert svc.list_archived() and not svc.list_active()


def test_bulk_status_validation(svc):
    with pytest.raises(AuthorizationError):
        svc.bulk_set_status(current_role=Role.FACULTY, course_ids=[1], status="ARCHIVED")
    with pytest.raises(ValidationError):
        svc.bulk_set_status(current_role=Role.ADMIN, course_ids=[], status="ARCHIVED")
    with pytest.raises(ValidationError):
        svc.bulk_set_status(current_role=Role.ADMIN, course_ids=[1], status="DELETED")
    with pytest.raises(ValidationError):
        svc.bulk_set_status(current_role=Role.ADMIN, course_ids=["x"], status="ACTIVE")


def test_bulk_reactivation_checks_overlap_sequentially(svc, repo):
    a = create(svc, status="ARCHIVED")
    b = create(svc, code="IT2", status="ARCHIVED")

    # both hold Monday 09:00-10:00; the second one cannot come back
    with pytest.raises(ConflictError):
        svc.bulk_set_status(current_role=Role.ADMIN, course_ids=[a.course_id, b.course_id], status="ACTIVE")
    assert repo.courses[a.course_id].status == CourseStatus.ARCHIVED


def test_import_with_schedules(svc):
    results = svc.import_with_schedules(
        current_role=Role.ADMIN,
        current_user_id=1,
        rows=[
            {"code": "it101", "title": "Intro", "section": "a", "semester": "1", "academicYear": "2025", "facultyId": 7, "schedules": [{"day": "Mon", "fromTime": "09:00", "toTime": "10:00"}]},
            {"code": "it102", "title": "Next", "semester": "first", "academicYear": "2025", "facultyId": 7, "schedules": [{"day": "Mon", "fromTime": "09:30", "toTime": "10:30"}]},
            {"code": "it101", "title": "Again", "section": "A", "semester": "1st Semester", "academicYear": "2025", "schedules": [{"day": "Fri", "fromTime": "09:00", "toTime": "10:00"}]},
            {"code": "it103", "title": "No slots", "schedules": []},
            {"code": "it104", "title": "Bad number", "classNumber": "0", "schedules": [{"day": "Fri", "fromTime": "09:00", "toTime": "10:00"}]},
            "garbage",
        ],
    )

    assert results["success"] == 1
    assert results["failed"] == 5
    statuses = [(f["code"], f["status"], f["message"]) for f in results["detailedFeedback"]]
    assert statuses[0] == ("IT101", "success", "Imported with 1 schedule(s)")
    assert ("IT102", "failed", "Schedule conflict") in statuses
    assert ("IT101", "failed", "Course already exists") in statuses
    assert ("it103", "failed", "Missing required schedules") in statuses
    assert ("IT104", "failed", "Class number must be a positive integer") in statuses


def test_import_requires_rows(svc):
    with pytest.raises(ValidationError):
        svc.import_with_schedules(current_role=Role.ADMIN, current_user_id=1, rows=[])


def test_export_rows(svc):
    create(svc)
    rows = svc.export_rows(CourseFilters())
    assert rows[0]["Course Code"] == "IT101"
    assert rows[0]["Schedules"] == "Mon 09:00-10:00"


def test_enrollment(svc):
    course = create(svc)
    added = svc.add_students(
        course.slug,
        current_role=Role.ADMIN,
        current_user_id=1,
        students=[
            {"studentNumber": "2025-001", "lastName": "Cruz", "firstName": "Maria"},
            {"studentNumber": "2025-002", "lastName": "Reyes", "firstName": "Jose", "middleInitial": "P"},
        ],
    )
    assert added == 2
    assert [s.student_number for s in svc.list_students(course.slug)] == ["2025-001", "2025-002"]

    removed = svc.remove_students(course.slug, current_role=Role.ADMIN, current_user_id=1, student_ids=[1])
    assert removed == 1
    assert [s.student_id for s in svc.list_students(course.slug)] == [2]


def test_enrollment_requires_students(svc):
    course = create(svc)
    with pytest.raises(ValidationError):
        svc.add_students(course.slug, current_role=Role.ADMIN, current_user_id=1, students=[])
