from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.orm import Session

from ..extensions import db


@contextmanager
def db_session() -> Iterator[Session]:
    """Yield the request session; commit on success, roll back on any error."""

    session = db.session
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
