from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional


@dataclass(frozen=True)
class Schedule:
    """One weekly recurring time window of a course."""

    day: str
    from_time: str
    to_time: str
    schedule_id: Optional[int] = None

    @classmethod
    def coerce(cls, value: Any) -> "Schedule":
        """Accept a Schedule or a mapping using either camelCase or snake_case keys."""

        if isinstance(value, Schedule):
            return value
        if isinstance(value, Mapping):
            return cls(
                day=str(value.get("day") or ""),
                from_time=str(value.get("fromTime", value.get("from_time")) or ""),
                to_time=str(value.get("toTime", value.get("to_time")) or ""),
                schedule_id=value.get("id"),
            )
        raise TypeError(f"Unsupported schedule value: {type(value)!r}")

    def to_dict(self) -> dict:
        out = {"day": self.day, "fromTime": self.from_time, "toTime": self.to_time}
        if self.schedule_id is not None:
            out["id"] = self.schedule_id
        return out
