from __future__ import annotations

import json
import logging
from typing import Any, Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError

from ..core.constants import AUDIT_MAX_FIELD_BYTES, DEFAULT_LOG_LIMIT
from ..core.enums import Permission, Role
from ..core.exceptions import AuthorizationError
from ..users.permissions import ACADEMIC_HEAD_LOG_MODULES, can_view_log, has_permission
from .repository import AuditRepository

logger = logging.getLogger(__name__)


def sanitize_payload(value: Any) -> Any:
    """Replace payloads larger than the size cap with a small marker."""

    if value is None:
        return None
    try:
        size = len(json.dumps(value, default=str).encode("utf-8"))
    except (TypeError, ValueError):
        return {"_error": True, "_message": "Failed to serialize object"}

    if size <= AUDIT_MAX_FIELD_BYTES:
        return json.loads(json.dumps(value, default=str))
    return {"_truncated": True, "_size": size, "_message": "Object exceeded maximum size limit and was truncated"}


class AuditService:
    def __init__(self, audit: AuditRepository):
        self._audit = audit

    def log_action(
        self,
        *,
        action: str,
        module: str,
        user_id=None,
        before: Any = None,
        after: Any = None,
        reason: Optional[str] = None,
        status: str = "SUCCESS",
    ) -> None:
        """Record an audit entry. Never raises; failures only reach the log."""

        if not action or not module:
            logger.error("Audit entry skipped: action and module are required")
            return

        try:
            self._audit.add(
                user_id=str(user_id) if user_id is not None else None,
                action=action,
                module=module,
                reason=reason,
                before=sanitize_payload(before),
                after=sanitize_payload(after),
                status=status,
            )
        except SQLAlchemyError:
            logger.exception("Failed to write audit entry %s/%s", module, action)

    def list_for(self, *, roles: Iterable[Role], module: Optional[str] = None, limit: int = DEFAULT_LOG_LIMIT):
        roles = list(roles)
        if not (
            has_permission(roles, Permission.VIEW_ALL_LOGS) or has_permission(roles, Permission.VIEW_LIMITED_LOGS)
        ):
            raise AuthorizationError("You do not have permission to view logs")

        limit = max(1, min(int(limit), 1000))
        # limited viewers are filtered in the query, before the limit applies
        modules = None if has_permission(roles, Permission.VIEW_ALL_LOGS) else ACADEMIC_HEAD_LOG_MODULES
        entries = self._audit.list_recent(module=module, modules=modules, limit=limit)
        return [e for e in entries if can_view_log(roles, e.module)]
