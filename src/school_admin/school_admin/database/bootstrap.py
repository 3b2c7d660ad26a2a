from __future__ import annotations

from dataclasses import dataclass

import mysql.connector
from sqlalchemy import inspect
from werkzeug.security import generate_password_hash

from ..core.enums import Role
from ..extensions import db
from .orm import UserRow


@dataclass(frozen=True)
class DBTarget:
    host: str
    port: int
    user: str
    password: str
    database: str


def _as_target(db_config: dict) -> DBTarget:
    return DBTarget(
        host=str(db_config.get("host", "localhost")),
        port=int(db_config.get("port", 3306)),
        user=str(db_config.get("user", "root")),
        password=str(db_config.get("password", "")),
        database=str(db_config.get("database", "school_admin")),
    )


def ensure_database_exists(db_config: dict) -> None:
    """CREATE DATABASE IF NOT EXISTS on the MySQL server (no-op target for sqlite)."""

    target = _as_target(db_config)
    conn = mysql.connector.connect(
        host=target.host,
        port=target.port,
        user=target.user,
        password=target.password,
        use_pure=True,
    )
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci;"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, database_uri: str) -> None:
    if database_uri.startswith("mysql"):
        ensure_database_exists(db_config)
    db.create_all()


def ensure_demo_users() -> None:
    def upsert_user(name: str, email: str, password: str, role: Role, department: str) -> None:
        row = UserRow.query.filter_by(email=email).first()
        if row is None:
            row = UserRow(email=email)
            db.session.add(row)
        row.name = name
        row.password_hash = generate_password_hash(password)
        row.role = role.value
        row.department = department
        row.is_active = True

    upsert_user("Admin Demo", "admin@school.local", "admin123", Role.ADMIN, "Administration")
    upsert_user("Academic Head Demo", "head@school.local", "head123", Role.ACADEMIC_HEAD, "Computer Studies")
    upsert_user("Faculty Demo", "faculty@school.local", "faculty123", Role.FACULTY, "Computer Studies")
    db.session.commit()


def list_tables() -> list[str]:
    return sorted(inspect(db.engine).get_table_names())
