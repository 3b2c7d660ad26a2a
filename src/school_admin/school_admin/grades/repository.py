from __future__ import annotations

from datetime import date
from typing import ContextManager, Optional, Protocol, Sequence

from .model import Grade, GradeInput


class GradeRepository(Protocol):
    def transaction(self) -> ContextManager[object]:
        raise NotImplementedError

    def list_for_date(self, course_id: int, day: date, *, criteria: Optional[str] = None) -> Sequence[Grade]:
        raise NotImplementedError

    def replace(
        self, course_id: int, day: date, criteria: str, grades: Sequence[GradeInput], *, recitation: bool
    ) -> Sequence[Grade]:
        """Drop the same-day grades of these students for ``criteria`` and insert the new ones."""

        raise NotImplementedError

    def delete(self, course_id: int, day: date, criteria: str) -> int:
        raise NotImplementedError
