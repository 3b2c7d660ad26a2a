from __future__ import annotations

from datetime import date
from typing import ContextManager, Optional, Protocol, Sequence, Tuple

from .model import AttendanceMark, AttendanceRecord


class AttendanceRepository(Protocol):
    def transaction(self) -> ContextManager[object]:
        raise NotImplementedError

    def page_for_date(
        self, course_id: int, day: date, *, offset: int, limit: int
    ) -> Tuple[Sequence[AttendanceRecord], int]:
        """Return one page of records and the total count for that day."""

        raise NotImplementedError

    def list_for_date(self, course_id: int, day: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def upsert(self, course_id: int, day: date, mark: AttendanceMark) -> None:
        raise NotImplementedError

    def delete_for_date(self, course_id: int, day: date) -> int:
        raise NotImplementedError

    def latest_date(self, course_id: int) -> Optional[date]:
        raise NotImplementedError
