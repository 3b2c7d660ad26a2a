from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..courses.sqlalchemy_course_repository import to_student
from ..database.orm import GradeRow
from ..database.sqlalchemy_base import db_session
from ..extensions import db
from .model import Grade, GradeInput
from .repository import GradeRepository


def to_grade(r: GradeRow) -> Grade:
    return Grade(
        grade_id=int(r.id),
        student_id=int(r.student_id),
        course_id=int(r.course_id),
        criteria=r.criteria,
        date=r.date,
        scores=tuple(r.scores or ()),
        total=float(r.total or 0),
        recitation=bool(r.recitation),
        student=to_student(r.student) if r.student else None,
    )


class SQLAlchemyGradeRepository(GradeRepository):
    def transaction(self):
        return db_session()

    def list_for_date(self, course_id: int, day: date, *, criteria: Optional[str] = None) -> Sequence[Grade]:
        q = GradeRow.query.filter_by(course_id=int(course_id), date=day)
        if criteria:
            q = q.filter_by(criteria=criteria)
        return [to_grade(r) for r in q.order_by(GradeRow.student_id.asc(), GradeRow.id.asc()).all()]

    def replace(
        self, course_id: int, day: date, criteria: str, grades: Sequence[GradeInput], *, recitation: bool
    ) -> Sequence[Grade]:
        student_ids = [g.student_id for g in grades]
        if student_ids:
            GradeRow.query.filter(
                GradeRow.course_id == int(course_id),
                GradeRow.date == day,
                GradeRow.criteria == criteria,
                GradeRow.student_id.in_(student_ids),
            ).delete(synchronize_session=False)

        rows = [
            GradeRow(
                course_id=int(course_id),
                student_id=g.student_id,
                criteria=criteria,
                date=day,
                scores=list(g.scores),
                total=g.total,
                recitation=recitation,
            )
            for g in grades
        ]
        db.session.add_all(rows)
        db.session.flush()
        return [to_grade(r) for r in rows]

    def delete(self, course_id: int, day: date, criteria: str) -> int:
        deleted = GradeRow.query.filter_by(course_id=int(course_id), date=day, criteria=criteria).delete(
            synchronize_session=False
        )
        db.session.flush()
        return int(deleted)
