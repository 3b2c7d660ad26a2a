from __future__ import annotations

from dataclasses import dataclass

from .attendance.service import AttendanceService
from .attendance.sqlalchemy_attendance_repository import SQLAlchemyAttendanceRepository
from .audit.service import AuditService
from .audit.sqlalchemy_audit_repository import SQLAlchemyAuditRepository
from .break_glass.service import BreakGlassService
from .break_glass.sqlalchemy_break_glass_repository import SQLAlchemyBreakGlassRepository
from .courses.service import CourseService
from .courses.sqlalchemy_course_repository import SQLAlchemyCourseRepository
from .grades.service import GradeService
from .grades.sqlalchemy_grade_repository import SQLAlchemyGradeRepository
from .schedules.service import ScheduleService
from .users.service import AuthService, UserService
from .users.sqlalchemy_user_repository import SQLAlchemyUserRepository


@dataclass(frozen=True)
class Container:
    users_repo: SQLAlchemyUserRepository
    courses_repo: SQLAlchemyCourseRepository
    attendance_repo: SQLAlchemyAttendanceRepository
    grades_repo: SQLAlchemyGradeRepository
    break_glass_repo: SQLAlchemyBreakGlassRepository
    audit_repo: SQLAlchemyAuditRepository

    auth_service: AuthService
    user_service: UserService
    course_service: CourseService
    schedule_service: ScheduleService
    attendance_service: AttendanceService
    grade_service: GradeService
    break_glass_service: BreakGlassService
    audit_service: AuditService


def build_container(*, break_glass_hash_method: str = "scrypt") -> Container:
    users_repo = SQLAlchemyUserRepository()
    courses_repo = SQLAlchemyCourseRepository()
    attendance_repo = SQLAlchemyAttendanceRepository()
    grades_repo = SQLAlchemyGradeRepository()
    break_glass_repo = SQLAlchemyBreakGlassRepository()
    audit_repo = SQLAlchemyAuditRepository()

    audit_service = AuditService(audit_repo)

    return Container(
        users_repo=users_repo,
        courses_repo=courses_repo,
        attendance_repo=attendance_repo,
        grades_repo=grades_repo,
        break_glass_repo=break_glass_repo,
        audit_repo=audit_repo,
        auth_service=AuthService(users_repo),
        user_service=UserService(users_repo),
        course_service=CourseService(courses_repo, users_repo),
        schedule_service=ScheduleService(courses_repo),
        attendance_service=AttendanceService(attendance_repo, courses_repo),
        grade_service=GradeService(grades_repo, courses_repo),
        break_glass_service=BreakGlassService(
            break_glass_repo, users_repo, audit_service, hash_method=break_glass_hash_method
        ),
        audit_service=audit_service,
    )
