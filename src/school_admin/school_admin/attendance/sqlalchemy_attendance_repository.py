from __future__ import annotations

from datetime import date
from typing import Optional, Sequence, Tuple

from sqlalchemy import func

from ..core.enums import AttendanceStatus
from ..courses.sqlalchemy_course_repository import to_student
from ..database.orm import AttendanceRow, StudentRow
from ..database.sqlalchemy_base import db_session
from ..extensions import db
from .model import AttendanceMark, AttendanceRecord
from .repository import AttendanceRepository


def to_record(r: AttendanceRow) -> AttendanceRecord:
    return AttendanceRecord(
        record_id=int(r.id),
        student_id=int(r.student_id),
        course_id=int(r.course_id),
        date=r.date,
        status=AttendanceStatus(r.status),
        reason=r.reason,
        student=to_student(r.student) if r.student else None,
    )


class SQLAlchemyAttendanceRepository(AttendanceRepository):
    def transaction(self):
        return db_session()

    def page_for_date(
        self, course_id: int, day: date, *, offset: int, limit: int
    ) -> Tuple[Sequence[AttendanceRecord], int]:
        q = AttendanceRow.query.filter_by(course_id=int(course_id), date=day)
        total = q.count()
        rows = (
            q.join(StudentRow, AttendanceRow.student_id == StudentRow.id)
            .order_by(StudentRow.last_name.asc(), StudentRow.first_name.asc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return [to_record(r) for r in rows], total

    def list_for_date(self, course_id: int, day: date) -> Sequence[AttendanceRecord]:
        rows = AttendanceRow.query.filter_by(course_id=int(course_id), date=day).all()
        return [to_record(r) for r in rows]

    def upsert(self, course_id: int, day: date, mark: AttendanceMark) -> None:
        row = AttendanceRow.query.filter_by(
            course_id=int(course_id), student_id=int(mark.student_id), date=day
        ).first()
        if row is None:
            row = AttendanceRow(course_id=int(course_id), student_id=int(mark.student_id), date=day)
            db.session.add(row)
        row.status = mark.status.value
        row.reason = mark.reason
        db.session.flush()

    def delete_for_date(self, course_id: int, day: date) -> int:
        deleted = AttendanceRow.query.filter_by(course_id=int(course_id), date=day).delete(synchronize_session=False)
        db.session.flush()
        return int(deleted)

    def latest_date(self, course_id: int) -> Optional[date]:
        return db.session.query(func.max(AttendanceRow.date)).filter(AttendanceRow.course_id == int(course_id)).scalar()
