from __future__ import annotations

from datetime import datetime
from typing import ContextManager, Optional, Protocol, Sequence

from ..core.enums import Role
from .model import BreakGlassSession


class BreakGlassRepository(Protocol):
    def transaction(self) -> ContextManager[object]:
        raise NotImplementedError

    def get_for_user(self, user_id: int) -> Optional[BreakGlassSession]:
        raise NotImplementedError

    def list_all(self) -> Sequence[BreakGlassSession]:
        raise NotImplementedError

    def list_expired(self, now: datetime) -> Sequence[BreakGlassSession]:
        raise NotImplementedError

    def upsert(
        self,
        *,
        user_id: int,
        reason: str,
        activated_by: int,
        activated_at: datetime,
        expires_at: Optional[datetime],
        original_role: Role,
        secret_code_hash: str,
        promotion_code_hash: str,
    ) -> BreakGlassSession:
        raise NotImplementedError

    def delete_for_user(self, user_id: int) -> bool:
        raise NotImplementedError
