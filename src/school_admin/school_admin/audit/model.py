from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional


@dataclass(frozen=True)
class AuditEntry:
    log_id: int
    user_id: Optional[str]
    action: str
    module: str
    reason: Optional[str]
    before: Any
    after: Any
    status: str
    created_at: datetime

    def to_dict(self) -> dict:
        return {
            "id": self.log_id,
            "userId": self.user_id,
            "action": self.action,
            "module": self.module,
            "reason": self.reason,
            "before": self.before,
            "after": self.after,
            "status": self.status,
            "createdAt": self.created_at.isoformat(),
        }
