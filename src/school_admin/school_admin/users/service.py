from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.validators import require_min_length, require_non_empty
from ..core.constants import MIN_PASSWORD_LENGTH
from ..core.enums import Permission, Role
from ..core.exceptions import AuthenticationError, AuthorizationError, ConflictError, NotFoundError, ValidationError
from .permissions import can_manage_user, has_permission
from .repository import UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionUser:
    """What we store into Flask session after login."""

    user_id: int
    name: str
    email: str
    role: Role


def parse_role(value: Optional[str]) -> Role:
    try:
        return Role(str(value or "").upper())
    except ValueError:
        raise ValidationError("Invalid role")


class AuthService:
    """Use case: authenticate user (login)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def authenticate(self, email: str, password: str) -> SessionUser:
        user = self._users.get_by_email(email or "")
        if not user or not user.is_active:
            raise AuthenticationError("Invalid email or password")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # placeholder or corrupted hashes
            ok = False

        if not ok:
            raise AuthenticationError("Invalid email or password")

        return SessionUser(user_id=user.user_id, name=user.name, email=user.email, role=user.role)

    def current_role(self, user_id: int) -> Optional[Role]:
        """Role as stored now; break-glass changes it behind an open session."""

        user = self._users.get_by_id(int(user_id))
        return user.role if user and user.is_active else None


class UserService:
    """Use case: manage users (admin / academic head)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def create_account(
        self,
        *,
        current_role: Role,
        name: str,
        email: str,
        password: str,
        role: Role,
        department: Optional[str] = None,
    ) -> int:
        if role == Role.FACULTY:
            allowed = has_permission([current_role], Permission.MANAGE_FACULTY)
        elif role == Role.ADMIN:
            allowed = has_permission([current_role], Permission.MANAGE_ADMINS)
        else:
            allowed = has_permission([current_role], Permission.MANAGE_USERS)
        if not allowed:
            raise AuthorizationError("You do not have permission")

        name = require_non_empty(name, "Name")
        email = require_non_empty(email, "Email").lower()
        if "@" not in email:
            raise ValidationError("Email is not valid")
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)

        if self._users.get_by_email(email):
            raise ConflictError("A user with this email already exists")

        user_id = self._users.create_user(
            name=name,
            email=email,
            password_hash=generate_password_hash(password),
            role=role,
            department=(department or "").strip() or None,
        )
        logger.info("Created %s account %s", role.value, email)
        return user_id

    def list_users(self, *, role: Optional[Role] = None, search: Optional[str] = None):
        return self._users.list_users(role=role, search=search)

    def list_faculty(self):
        return self._users.list_users(role=Role.FACULTY)

    def change_role(self, *, current_role: Role, current_user_id: int, user_id: int, role: Role) -> None:
        if int(user_id) == int(current_user_id):
            raise ValidationError("You cannot change your own role")

        with self._users.transaction():
            target = self._users.get_by_id(int(user_id))
            if not target:
                raise NotFoundError("User not found")
            if not can_manage_user([current_role], [target.role]):
                raise AuthorizationError("You do not have permission to manage this user")
            if role == Role.ADMIN and not has_permission([current_role], Permission.MANAGE_ADMINS):
                raise AuthorizationError("Only admins can grant the ADMIN role")
            if target.role == Role.ADMIN and role != Role.ADMIN and self._users.count_by_role(Role.ADMIN) <= 1:
                raise ValidationError("Cannot demote the last admin")

            self._users.set_role(target.user_id, role)

        logger.info("Role of user %s changed %s -> %s", user_id, target.role.value, role.value)

    def delete_user(self, *, current_role: Role, current_user_id: int, user_id: int) -> None:
        if int(user_id) == int(current_user_id):
            raise ValidationError("You cannot delete your own account")

        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User not found")
        if not can_manage_user([current_role], [user.role]):
            raise AuthorizationError("You do not have permission to manage this user")
        if user.role == Role.ADMIN and self._users.count_by_role(Role.ADMIN) <= 1:
            raise ValidationError("Cannot delete the last admin")

        if not self._users.delete_by_id(user.user_id):
            raise ValidationError("Failed to delete user")

    def export_rows(self, *, role: Optional[Role] = None) -> list[dict]:
        return [
            {
                "Name": u.name,
                "Email": u.email,
                "Role": u.role.value,
                "Department": u.department or "",
                "Active": "Yes" if u.is_active else "No",
            }
            for u in self._users.list_users(role=role)
        ]
