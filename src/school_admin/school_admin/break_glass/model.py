from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class BreakGlassSession:
    """Temporary ADMIN grant for one user; at most one per user."""

    session_id: int
    user_id: int
    reason: str
    activated_by: Optional[int]
    activated_at: datetime
    expires_at: Optional[datetime]
    original_role: Role
    secret_code_hash: str
    promotion_code_hash: str
    user_name: Optional[str] = None
    user_email: Optional[str] = None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at < now

    def to_dict(self) -> dict:
        # code hashes never leave the service layer
        return {
            "id": self.session_id,
            "userId": self.user_id,
            "reason": self.reason,
            "activatedBy": self.activated_by,
            "activatedAt": self.activated_at.isoformat(),
            "expiresAt": self.expires_at.isoformat() if self.expires_at else None,
            "originalRole": self.original_role.value,
            "user": {"id": self.user_id, "name": self.user_name, "email": self.user_email},
        }


@dataclass(frozen=True)
class BreakGlassCodes:
    """Plain codes, handed out once at activation."""

    secret_code: str
    promotion_code: str
