from __future__ import annotations

from typing import Any, Optional, Sequence

from sqlalchemy import or_

from ..database.orm import AuditLogRow
from ..database.sqlalchemy_base import db_session
from .model import AuditEntry
from .repository import AuditRepository


class SQLAlchemyAuditRepository(AuditRepository):
    """Audit rows are written after the audited change has committed, in their own commit."""

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
        row = AuditLogRow(
            user_id=user_id, action=action, module=module, reason=reason, before=before, after=after, status=status
        )
        with db_session() as session:
            session.add(row)
            session.flush()
            return int(row.id)

    def list_recent(
        self, *, module: Optional[str] = None, modules: Optional[Sequence[str]] = None, limit: int = 100
    ) -> Sequence[AuditEntry]:
        q = AuditLogRow.query
        if module:
            q = q.filter(AuditLogRow.module.ilike(f"%{module}%"))
        if modules is not None:
            q = q.filter(or_(*[AuditLogRow.module.ilike(f"%{m}%") for m in modules]))
        rows = q.order_by(AuditLogRow.created_at.desc(), AuditLogRow.id.desc()).limit(int(limit)).all()
        return [
            AuditEntry(
                log_id=int(r.id),
                user_id=r.user_id,
                action=r.action,
                module=r.module,
                reason=r.reason,
                before=r.before,
                after=r.after,
                status=r.status,
                created_at=r.created_at,
            )
            for r in rows
        ]
