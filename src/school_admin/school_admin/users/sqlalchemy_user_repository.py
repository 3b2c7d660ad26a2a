from __future__ import annotations

from typing import Optional, Sequence

from sqlalchemy import or_

from ..core.enums import Role
from ..database.orm import BreakGlassSessionRow, CourseRow, UserRow
from ..database.sqlalchemy_base import db_session
from ..extensions import db
from .model import User
from .repository import UserRepository


def to_user(r: UserRow) -> User:
    return User(
        user_id=int(r.id),
        name=r.name,
        email=r.email,
        password_hash=r.password_hash,
        role=Role(r.role),
        department=r.department,
        is_active=bool(r.is_active),
        created_at=r.created_at,
    )


class SQLAlchemyUserRepository(UserRepository):
    def get_by_id(self, user_id: int) -> Optional[User]:
        row = db.session.get(UserRow, int(user_id))
        return to_user(row) if row else None

    def get_by_email(self, email: str) -> Optional[User]:
        row = UserRow.query.filter(db.func.lower(UserRow.email) == email.strip().lower()).first()
        return to_user(row) if row else None

    def create_user(
        self,
        *,
        name: str,
        email: str,
        password_hash: str,
        role: Role,
        department: Optional[str] = None,
    ) -> int:
        with db_session() as session:
            row = UserRow(name=name, email=email, password_hash=password_hash, role=role.value, department=department)
            session.add(row)
            session.flush()
            return int(row.id)

    def transaction(self):
        return db_session()

    def set_role(self, user_id: int, role: Role) -> bool:
        row = db.session.get(UserRow, int(user_id))
        if row is None:
            return False
        row.role = role.value
        db.session.flush()
        return True

    def delete_by_id(self, user_id: int) -> bool:
        with db_session() as session:
            row = session.get(UserRow, int(user_id))
            if row is None:
                return False
            CourseRow.query.filter_by(faculty_id=row.id).update({"faculty_id": None}, synchronize_session=False)
            BreakGlassSessionRow.query.filter_by(user_id=row.id).delete(synchronize_session=False)
            BreakGlassSessionRow.query.filter_by(activated_by=row.id).update({"activated_by": None}, synchronize_session=False)
            session.delete(row)
            return True

    def count_by_role(self, role: Role) -> int:
        return UserRow.query.filter_by(role=role.value).count()

    def list_users(self, *, role: Optional[Role] = None, search: Optional[str] = None) -> Sequence[User]:
        q = UserRow.query
        if role is not None:
            q = q.filter(UserRow.role == role.value)
        if search:
            like = f"%{search}%"
            q = q.filter(or_(UserRow.name.ilike(like), UserRow.email.ilike(like)))
        return [to_user(r) for r in q.order_by(UserRow.name.asc(), UserRow.created_at.desc()).all()]
