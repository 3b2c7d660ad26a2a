import pytest

from src.school_admin.school_admin.audit.sqlalchemy_audit_repository import SQLAlchemyAuditRepository


@pytest.fixture
def repo(app):
    with app.app_context():
        yield SQLAlchemyAuditRepository()


def add(repo, module, action="x"):
    return repo.add(user_id="1", action=action, module=module, reason=None, before=None, after=None, status="SUCCESS")


def test_module_filter_runs_before_the_limit(repo):
    add(repo, "Attendance", "Attendance Saved")
    for _ in range(5):
        add(repo, "Security")

    rows = repo.list_recent(modules=["Course", "Attendance"], limit=3)
    assert [r.action for r in rows] == ["Attendance Saved"]


def test_list_recent_is_newest_first(repo):
    first = add(repo, "Course")
    second = add(repo, "Course Grades")

    assert [r.log_id for r in repo.list_recent(module="course")] == [second, first]
