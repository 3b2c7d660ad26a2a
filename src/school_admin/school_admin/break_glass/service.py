"""Break-glass: time-boxed elevation of a faculty member to ADMIN.

Activation hands out two one-time codes. Only their hashes are stored.
The promotion code later turns the temporary grant into a permanent one.
"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..audit.service import AuditService
from ..common.datetime_utils import now_local
from ..common.validators import require_non_empty
from ..core.constants import BREAK_GLASS_CODE_ALPHABET, BREAK_GLASS_CODE_LENGTH, SYSTEM_ACTOR
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..users.repository import UserRepository
from .model import BreakGlassCodes, BreakGlassSession
from .repository import BreakGlassRepository

logger = logging.getLogger(__name__)

AUDIT_MODULE = "Security"


def generate_code(length: int = BREAK_GLASS_CODE_LENGTH) -> str:
    return "".join(secrets.choice(BREAK_GLASS_CODE_ALPHABET) for _ in range(length))


class BreakGlassService:
    def __init__(
        self,
        sessions: BreakGlassRepository,
        users: UserRepository,
        audit: AuditService,
        *,
        hash_method: str = "scrypt",
    ):
        self._sessions = sessions
        self._users = users
        self._audit = audit
        self._hash_method = hash_method

    # ---- core workflow ----

    def activate(
        self,
        faculty_user_id: int,
        reason: str,
        activated_by: int,
        duration_minutes: Optional[int] = None,
    ) -> BreakGlassCodes:
        reason = require_non_empty(reason, "Reason")
        if duration_minutes is not None and int(duration_minutes) <= 0:
            raise ValidationError("Duration must be a positive number of minutes")

        codes = BreakGlassCodes(secret_code=generate_code(), promotion_code=generate_code())
        now = now_local()
        expires_at = now + timedelta(minutes=int(duration_minutes)) if duration_minutes else None

        with self._users.transaction():
            target = self._users.get_by_id(int(faculty_user_id))
            if not target:
                raise NotFoundError("Faculty user not found")
            if target.role != Role.FACULTY:
                raise ValidationError("Break-glass can only be activated for Faculty members")
            if not self._users.get_by_id(int(activated_by)):
                raise NotFoundError("Activating user not found")

            self._users.set_role(target.user_id, Role.ADMIN)
            self._sessions.upsert(
                user_id=target.user_id,
                reason=reason,
                activated_by=int(activated_by),
                activated_at=now,
                expires_at=expires_at,
                original_role=Role.FACULTY,
                secret_code_hash=generate_password_hash(codes.secret_code, method=self._hash_method),
                promotion_code_hash=generate_password_hash(codes.promotion_code, method=self._hash_method),
            )

        logger.warning("Break-glass activated for user %s by %s", target.user_id, activated_by)
        self._audit.log_action(
            user_id=activated_by,
            action="BreakGlass Activated",
            module=AUDIT_MODULE,
            reason=reason,
            before={"userId": target.user_id, "role": Role.FACULTY.value, "name": target.name, "email": target.email},
            after={"userId": target.user_id, "role": Role.ADMIN.value, "name": target.name, "email": target.email},
        )
        return codes

    def deactivate(self, user_id: int, deactivated_by) -> bool:
        """Restore the original role. Returns False when no session exists."""

        with self._sessions.transaction():
            session = self._sessions.get_for_user(int(user_id))
            if session is None:
                return False
            self._users.set_role(session.user_id, session.original_role)
            self._sessions.delete_for_user(session.user_id)

        logger.info("Break-glass deactivated for user %s by %s", session.user_id, deactivated_by)
        self._audit.log_action(
            user_id=deactivated_by,
            action="BreakGlass Deactivate",
            module=AUDIT_MODULE,
            reason=session.reason,
            before={"userId": session.user_id, "role": Role.ADMIN.value, "activatedBy": session.activated_by},
            after={"userId": session.user_id, "role": session.original_role.value},
        )
        return True

    def is_active(self, user_id: int) -> bool:
        return self._sessions.get_for_user(int(user_id)) is not None

    def get_session(self, user_id: int) -> Optional[BreakGlassSession]:
        return self._sessions.get_for_user(int(user_id))

    def list_sessions(self):
        return self._sessions.list_all()

    def promote(self, user_id: int, promotion_code: str, promoted_by) -> None:
        """Make a temporary admin permanent; the session is consumed."""

        promotion_code = require_non_empty(promotion_code, "Promotion code")
        with self._sessions.transaction():
            session = self._sessions.get_for_user(int(user_id))
            if session is None:
                raise ValidationError("Break-glass session not found. User is not a temporary admin.")
            if not check_password_hash(session.promotion_code_hash, promotion_code):
                raise ValidationError("Invalid promotion code")

            self._users.set_role(session.user_id, Role.ADMIN)
            self._sessions.delete_for_user(session.user_id)

        logger.warning("User %s promoted to permanent admin by %s", session.user_id, promoted_by)
        self._audit.log_action(
            user_id=promoted_by,
            action="BreakGlass Promoted",
            module=AUDIT_MODULE,
            reason=session.reason,
            before={"userId": session.user_id, "role": Role.ADMIN.value, "temporary": True},
            after={"userId": session.user_id, "role": Role.ADMIN.value, "temporary": False},
        )

    def cleanup_expired(self, now: Optional[datetime] = None) -> int:
        now = now or now_local()
        expired = self._sessions.list_expired(now)
        count = 0
        for session in expired:
            if self.deactivate(session.user_id, SYSTEM_ACTOR):
                count += 1
        if count:
            logger.info("Expired %d break-glass session(s)", count)
        return count

    # ---- role rules for the HTTP surface ----

    def activate_as(
        self,
        *,
        current_role: Role,
        current_user_id: int,
        user_id: int,
        reason: str,
        duration_minutes: Optional[int] = None,
    ) -> BreakGlassCodes:
        if current_role not in (Role.ADMIN, Role.ACADEMIC_HEAD):
            raise AuthorizationError("Only Admin and Academic Head can activate break-glass")
        return self.activate(user_id, reason, current_user_id, duration_minutes)

    def deactivate_as(self, *, current_role: Role, current_user_id: int, user_id: int) -> bool:
        if current_role == Role.ACADEMIC_HEAD:
            session = self._sessions.get_for_user(int(user_id))
            if session is None:
                raise NotFoundError("Break-glass session not found")
            if session.activated_by != int(current_user_id):
                raise AuthorizationError("You can only deactivate break-glass sessions you activated")
        elif current_role != Role.ADMIN:
            raise AuthorizationError("Only Admin and Academic Head can deactivate break-glass")
        return self.deactivate(user_id, current_user_id)

    def status_for(self, *, current_role: Role, current_user_id: int, user_id: Optional[int] = None) -> dict:
        if current_role == Role.ACADEMIC_HEAD:
            sessions = [s.to_dict() for s in self._sessions.list_all()]
            return {"isActive": bool(sessions), "sessions": sessions, "session": sessions[0] if sessions else None}

        target = int(user_id) if user_id is not None else int(current_user_id)
        if target != int(current_user_id) and current_role != Role.ADMIN:
            raise AuthorizationError("Admin access required")

        session = self._sessions.get_for_user(target)
        return {"isActive": session is not None, "session": session.to_dict() if session else None}

    def promote_as(self, *, current_role: Role, current_user_id: int, user_id: int, promotion_code: str) -> None:
        # temporary admins hold ADMIN too; they must not promote anyone
        if current_role != Role.ADMIN or self.is_active(current_user_id):
            raise AuthorizationError("Only permanent admins can promote temporary admins")
        self.promote(user_id, promotion_code, current_user_id)

    def self_promote(self, *, current_user_id: int, promotion_code: str) -> None:
        if not self.is_active(current_user_id):
            raise AuthorizationError("You are not a temporary admin")
        self.promote(current_user_id, promotion_code, current_user_id)
