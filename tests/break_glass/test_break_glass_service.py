from __future__ import annotations

from contextlib import nullcontext
from dataclasses import replace
from datetime import datetime, timedelta

import pytest

from src.school_admin.school_admin.audit.model import AuditEntry
from src.school_admin.school_admin.audit.service import AuditService
from src.school_admin.school_admin.break_glass.model import BreakGlassSession
from src.school_admin.school_admin.break_glass.service import BreakGlassService, generate_code
from src.school_admin.school_admin.core.constants import BREAK_GLASS_CODE_ALPHABET, BREAK_GLASS_CODE_LENGTH
from src.school_admin.school_admin.core.enums import Role
from src.school_admin.school_admin.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from src.school_admin.school_admin.users.model import User

FAST_HASH = "pbkdf2:sha256:1000"


class InMemoryUsers:
    def __init__(self, *users: User):
        self.users = {u.user_id: u for u in users}

    def transaction(self):
        return nullcontext(self)

    def get_by_id(self, user_id):
        return self.users.get(int(user_id))

    def set_role(self, user_id, role):
        self.users[user_id] = replace(self.users[user_id], role=role)
        return True


class InMemorySessions:
    def __init__(self):
        self.sessions: dict[int, BreakGlassSession] = {}

    def transaction(self):
        return nullcontext(self)

    def get_for_user(self, user_id):
        return self.sessions.get(int(user_id))

    def list_all(self):
        return list(self.sessions.values())

    def list_expired(self, now):
        return [s for s in self.sessions.values() if s.is_expired(now)]

    def upsert(self, *, user_id, **fields):
        self.sessions[user_id] = BreakGlassSession(session_id=len(self.sessions) + 1, user_id=user_id, **fields)
        return self.sessions[user_id]

    def delete_for_user(self, user_id):
        return self.sessions.pop(int(user_id), None) is not None


class RecordingAudit:
    def __init__(self):
        self.entries: list[dict] = []

    def add(self, **entry):
        self.entries.append(entry)
        return len(self.entries)

    def list_recent(self, *, module=None, limit=100):
        return [
            AuditEntry(log_id=i, created_at=datetime(2026, 1, 1), **e)
            for i, e in enumerate(self.entries, start=1)
            if module is None or e["module"] == module
        ]


def make_user(user_id: int, role: Role) -> User:
    return User(user_id=user_id, name=f"User {user_id}", email=f"u{user_id}@school.local", password_hash="x", role=role)


@pytest.fixture()
def env():
    users = InMemoryUsers(
        make_user(1, Role.ADMIN), make_user(2, Role.ACADEMIC_HEAD), make_user(3, Role.FACULTY), make_user(4, Role.FACULTY)
    )
    sessions = InMemorySessions()
    audit = RecordingAudit()
    svc = BreakGlassService(sessions, users, AuditService(audit), hash_method=FAST_HASH)
    return svc, users, sessions, audit


def test_generate_code_uses_the_code_alphabet():
    code = generate_code()
    assert len(code) == BREAK_GLASS_CODE_LENGTH
    assert set(code) <= set(BREAK_GLASS_CODE_ALPHABET)
    assert generate_code() != code


def test_activate_elevates_faculty_and_stores_only_hashes(env):
    svc, users, sessions, audit = env

    codes = svc.activate(3, "Registrar outage", 2)

    assert users.users[3].role == Role.ADMIN
    session = sessions.sessions[3]
    assert session.original_role == Role.FACULTY
    assert session.activated_by == 2
    assert session.expires_at is None
    assert codes.secret_code not in (session.secret_code_hash, session.promotion_code_hash)
    assert codes.promotion_code not in (session.secret_code_hash, session.promotion_code_hash)
    assert svc.is_active(3)

    entry = audit.entries[-1]
    assert (entry["action"], entry["module"], entry["user_id"]) == ("BreakGlass Activated", "Security", "2")
    assert entry["before"]["role"] == "FACULTY" and entry["after"]["role"] == "ADMIN"


def test_activate_with_duration_sets_expiry(env):
    svc, _, sessions, _ = env
    svc.activate(3, "Exam week", 1, duration_minutes=30)
    session = sessions.sessions[3]
    assert session.expires_at - session.activated_at == timedelta(minutes=30)


@pytest.mark.parametrize(
    "target, actor, error",
    [(99, 1, NotFoundError), (2, 1, ValidationError), (1, 2, ValidationError), (3, 99, NotFoundError)],
)
def test_activate_rejections(env, target, actor, error):
    svc, users, sessions, _ = env
    with pytest.raises(error):
        svc.activate(target, "reason", actor)
    assert sessions.sessions == {}
    assert users.users[3].role == Role.FACULTY


def test_activate_requires_reason_and_positive_duration(env):
    svc = env[0]
    with pytest.raises(ValidationError):
        svc.activate(3, "  ", 1)
    with pytest.raises(ValidationError):
        svc.activate(3, "reason", 1, duration_minutes=0)


def test_deactivate_restores_original_role(env):
    svc, users, sessions, audit = env
    svc.activate(3, "reason", 2)

    assert svc.deactivate(3, 2) is True
    assert users.users[3].role == Role.FACULTY
    assert sessions.sessions == {}
    assert audit.entries[-1]["action"] == "BreakGlass Deactivate"


def test_deactivate_without_session_is_a_no_op(env):
    svc, _, _, audit = env
    assert svc.deactivate(3, 1) is False
    assert audit.entries == []


def test_promote_with_valid_code_is_permanent(env):
    svc, users, sessions, audit = env
    codes = svc.activate(3, "reason", 2)

    svc.promote(3, codes.promotion_code, 1)

    assert users.users[3].role == Role.ADMIN
    assert not svc.is_active(3)
    assert audit.entries[-1]["action"] == "BreakGlass Promoted"


def test_promote_rejects_wrong_code_and_missing_session(env):
    svc, users, _, _ = env
    codes = svc.activate(3, "reason", 2)

    with pytest.raises(ValidationError, match="Invalid promotion code"):
        svc.promote(3, codes.secret_code, 1)
    assert svc.is_active(3)

    with pytest.raises(ValidationError):
        svc.promote(4, codes.promotion_code, 1)


def test_cleanup_expired_runs_as_system(env):
    svc, users, sessions, audit = env
    svc.activate(3, "short", 2, duration_minutes=5)
    svc.activate(4, "open ended", 2)

    now = sessions.sessions[3].activated_at + timedelta(minutes=10)
    assert svc.cleanup_expired(now) == 1

    assert users.users[3].role == Role.FACULTY
    assert users.users[4].role == Role.ADMIN
    assert audit.entries[-1]["user_id"] == "SYSTEM"


def test_activate_as_role_rules(env):
    svc = env[0]
    with pytest.raises(AuthorizationError):
        svc.activate_as(current_role=Role.FACULTY, current_user_id=4, user_id=3, reason="r")

    codes = svc.activate_as(current_role=Role.ACADEMIC_HEAD, current_user_id=2, user_id=3, reason="r")
    assert codes.promotion_code


def test_head_can_only_deactivate_own_activations(env):
    svc = env[0]
    svc.activate(3, "by admin", 1)

    with pytest.raises(AuthorizationError):
        svc.deactivate_as(current_role=Role.ACADEMIC_HEAD, current_user_id=2, user_id=3)
    with pytest.raises(NotFoundError):
        svc.deactivate_as(current_role=Role.ACADEMIC_HEAD, current_user_id=2, user_id=4)
    with pytest.raises(AuthorizationError):
        svc.deactivate_as(current_role=Role.FACULTY, current_user_id=4, user_id=3)

    assert svc.deactivate_as(current_role=Role.ADMIN, current_user_id=1, user_id=3) is True


def test_status_for(env):
    svc = env[0]
    svc.activate(3, "reason", 2)

    head_view = svc.status_for(current_role=Role.ACADEMIC_HEAD, current_user_id=2)
    assert head_view["isActive"] is True
    assert [s["userId"] for s in head_view["sessions"]] == [3]
    assert "secretCodeHash" not in head_view["session"]

    own = svc.status_for(current_role=Role.ADMIN, current_user_id=3)
    assert own["isActive"] is True

    with pytest.raises(AuthorizationError):
        svc.status_for(current_role=Role.FACULTY, current_user_id=4, user_id=3)
    assert svc.status_for(current_role=Role.ADMIN, current_user_id=1, user_id=4) == {"isActive": False, "session": None}


def test_only_permanent_admins_promote_others(env):
    svc, users, _, _ = env
    codes3 = svc.activate(3, "reason", 2)
    codes4 = svc.activate(4, "reason", 2)

    # user 3 is ADMIN now, but only temporarily
    with pytest.raises(AuthorizationError):
        svc.promote_as(current_role=Role.ADMIN, current_user_id=3, user_id=4, promotion_code=codes4.promotion_code)

    svc.promote_as(current_role=Role.ADMIN, current_user_id=1, user_id=3, promotion_code=codes3.promotion_code)
    assert not svc.is_active(3)


def test_self_promote(env):
    svc = env[0]
    codes = svc.activate(3, "reason", 2)

    with pytest.raises(AuthorizationError):
        svc.self_promote(current_user_id=4, promotion_code=codes.promotion_code)

    svc.self_promote(current_user_id=3, promotion_code=codes.promotion_code)
    assert not svc.is_active(3)
