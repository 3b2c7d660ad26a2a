from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Tuple

from ..courses.model import Student


@dataclass(frozen=True)
class Grade:
    grade_id: int
    student_id: int
    course_id: int
    criteria: str
    date: date
    scores: Tuple[float, ...] = field(default_factory=tuple)
    total: float = 0
    recitation: bool = False
    student: Optional[Student] = None

    def to_dict(self) -> dict:
        return {
            "id": self.grade_id,
            "studentId": self.student_id,
            "courseId": self.course_id,
            "criteria": self.criteria,
            "date": self.date.isoformat(),
            "scores": list(self.scores),
            "total": self.total,
            "recitation": self.recitation,
            "student": self.student.to_dict() if self.student else None,
        }


@dataclass(frozen=True)
class GradeInput:
    student_id: int
    scores: Tuple[float, ...]
    total: float
