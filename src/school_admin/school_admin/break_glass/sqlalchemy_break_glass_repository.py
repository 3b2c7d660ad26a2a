from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import Role
from ..database.orm import BreakGlassSessionRow
from ..database.sqlalchemy_base import db_session
from ..extensions import db
from .model import BreakGlassSession
from .repository import BreakGlassRepository


def to_session(r: BreakGlassSessionRow) -> BreakGlassSession:
    return BreakGlassSession(
        session_id=int(r.id),
        user_id=int(r.user_id),
        reason=r.reason,
        activated_by=int(r.activated_by) if r.activated_by else None,
        activated_at=r.activated_at,
        expires_at=r.expires_at,
        original_role=Role(r.original_role),
        secret_code_hash=r.secret_code_hash,
        promotion_code_hash=r.promotion_code_hash,
        user_name=r.user.name if r.user else None,
        user_email=r.user.email if r.user else None,
    )


class SQLAlchemyBreakGlassRepository(BreakGlassRepository):
    def transaction(self):
        return db_session()

    def get_for_user(self, user_id: int) -> Optional[BreakGlassSession]:
        row = BreakGlassSessionRow.query.filter_by(user_id=int(user_id)).first()
        return to_session(row) if row else None

    def list_all(self) -> Sequence[BreakGlassSession]:
        rows = BreakGlassSessionRow.query.order_by(BreakGlassSessionRow.activated_at.desc()).all()
        return [to_session(r) for r in rows]

    def list_expired(self, now: datetime) -> Sequence[BreakGlassSession]:
        rows = BreakGlassSessionRow.query.filter(
            BreakGlassSessionRow.expires_at.isnot(None), BreakGlassSessionRow.expires_at < now
        ).all()
        return [to_session(r) for r in rows]

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
        row = BreakGlassSessionRow.query.filter_by(user_id=int(user_id)).first()
        if row is None:
            row = BreakGlassSessionRow(user_id=int(user_id))
            db.session.add(row)
        row.reason = reason
        row.activated_by = int(activated_by)
        row.activated_at = activated_at
        row.expires_at = expires_at
        row.original_role = original_role.value
        row.secret_code_hash = secret_code_hash
        row.promotion_code_hash = promotion_code_hash
        db.session.flush()
        return to_session(row)

    def delete_for_user(self, user_id: int) -> bool:
        deleted = BreakGlassSessionRow.query.filter_by(user_id=int(user_id)).delete(synchronize_session=False)
        db.session.flush()
        return deleted > 0
