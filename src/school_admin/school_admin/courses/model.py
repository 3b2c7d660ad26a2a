from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple

from ..core.enums import CourseStatus
from ..schedules.model import Schedule


@dataclass(frozen=True)
class Course:
    course_id: int
    code: str
    title: str
    section: str
    room: str
    semester: str
    academic_year: str
    class_number: int
    status: CourseStatus
    slug: str
    faculty_id: Optional[int]
    schedules: Tuple[Schedule, ...] = field(default_factory=tuple)
    faculty_name: Optional[str] = None
    student_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.course_id,
            "code": self.code,
            "title": self.title,
            "section": self.section,
            "room": self.room,
            "semester": self.semester,
            "academicYear": self.academic_year,
            "classNumber": self.class_number,
            "status": self.status.value,
            "slug": self.slug,
            "facultyId": self.faculty_id,
            "faculty": {"id": self.faculty_id, "name": self.faculty_name} if self.faculty_id else None,
            "schedules": [s.to_dict() for s in self.schedules],
            "studentCount": self.student_count,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass(frozen=True)
class CourseFilters:
    faculty_id: Optional[int] = None
    search: Optional[str] = None
    semester: Optional[str] = None
    code: Optional[str] = None
    section: Optional[str] = None
    status: Optional[CourseStatus] = None


@dataclass(frozen=True)
class NewCourse:
    code: str
    title: str
    section: str
    room: str
    semester: str
    academic_year: str
    class_number: int
    status: CourseStatus
    faculty_id: Optional[int]
    schedules: Tuple[Schedule, ...] = ()


@dataclass(frozen=True)
class Student:
    student_id: int
    student_number: str
    last_name: str
    first_name: str
    middle_initial: Optional[str] = None
    rfid: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.student_id,
            "studentNumber": self.student_number,
            "lastName": self.last_name,
            "firstName": self.first_name,
            "middleInitial": self.middle_initial,
            "rfid": self.rfid,
        }
