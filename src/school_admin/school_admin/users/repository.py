from __future__ import annotations

from typing import ContextManager, Optional, Protocol, Sequence

from ..core.enums import Role
from .model import User


class UserRepository(Protocol):
    """Repository interface for User.

    Services depend on this interface, never on a concrete database.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def create_user(
        self,
        *,
        name: str,
        email: str,
        password_hash: str,
        role: Role,
        department: Optional[str] = None,
    ) -> int:
        raise NotImplementedError

    def transaction(self) -> ContextManager[object]:
        raise NotImplementedError

    def set_role(self, user_id: int, role: Role) -> bool:
        """Flush only; commit happens in the surrounding transaction."""

        raise NotImplementedError

    def delete_by_id(self, user_id: int) -> bool:
        raise NotImplementedError

    def count_by_role(self, role: Role) -> int:
        raise NotImplementedError

    def list_users(self, *, role: Optional[Role] = None, search: Optional[str] = None) -> Sequence[User]:
        raise NotImplementedError
