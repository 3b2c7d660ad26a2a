from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence

from .model import AuditEntry


class AuditRepository(Protocol):
    def add(
        self,
        *,
        user_id: Optional[str],
        action: str,
        module: str,
        reason: Optional[str],
        before: Any,
        after: Any,
        status: str,
    ) -> int:
        raise NotImplementedError

    def list_recent(
        self, *, module: Optional[str] = None, modules: Optional[Sequence[str]] = None, limit: int = 100
    ) -> Sequence[AuditEntry]:
        """Newest first. ``modules`` keeps entries whose module contains any of them."""

        raise NotImplementedError
