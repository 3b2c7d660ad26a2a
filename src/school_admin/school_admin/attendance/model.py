from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..core.enums import AttendanceStatus
from ..courses.model import Student


@dataclass(frozen=True)
class AttendanceRecord:
    record_id: int
    student_id: int
    course_id: int
    date: date
    status: AttendanceStatus
    reason: Optional[str] = None
    student: Optional[Student] = None

    def to_dict(self) -> dict:
        return {
            "id": self.record_id,
            "studentId": self.student_id,
            "courseId": self.course_id,
            "date": self.date.isoformat(),
            "status": self.status.value,
            "reason": self.reason,
            "student": self.student.to_dict() if self.student else None,
        }


@dataclass(frozen=True)
class AttendanceMark:
    """One entry of a batch save."""

    student_id: int
    status: AttendanceStatus
    reason: Optional[str] = None
