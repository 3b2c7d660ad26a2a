"""SQLAlchemy tables.

Repositories convert these rows into the frozen dataclasses of each feature
module; services never see ORM objects.
"""

from datetime import datetime

from ..extensions import db

enrollments = db.Table(
    "enrollments",
    db.Column("course_id", db.Integer, db.ForeignKey("courses.id", ondelete="CASCADE"), primary_key=True),
    db.Column("student_id", db.Integer, db.ForeignKey("students.id", ondelete="CASCADE"), primary_key=True),
)


class UserRow(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(20), nullable=False, default="FACULTY")
    department = db.Column(db.String(120))
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.now)

    courses = db.relationship("CourseRow", backref="faculty", lazy=True)


class CourseRow(db.Model):
    __tablename__ = "courses"

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(30), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    section = db.Column(db.String(30), nullable=False)
    room = db.Column(db.String(60), nullable=False, default="")
    semester = db.Column(db.String(30), nullable=False)
    academic_year = db.Column(db.String(20), nullable=False)
    class_number = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(db.String(20), nullable=False, default="ACTIVE", index=True)
    slug = db.Column(db.String(120), unique=True, nullable=False)
    faculty_id = db.Column(db.Integer, db.ForeignKey("users.id"), index=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.now)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)

    schedules = db.relationship(
        "CourseScheduleRow", backref="course", lazy="selectin", cascade="all, delete-orphan"
    )
    students = db.relationship("StudentRow", secondary=enrollments, backref="courses", lazy="selectin")


class CourseScheduleRow(db.Model):
    __tablename__ = "course_schedules"

    id = db.Column(db.Integer, primary_key=True)
    course_id = db.Column(db.Integer, db.ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    day = db.Column(db.String(12), nullable=False)
    from_time = db.Column(db.String(10), nullable=False)
    to_time = db.Column(db.String(10), nullable=False)


class StudentRow(db.Model):
    __tablename__ = "students"

    id = db.Column(db.Integer, primary_key=True)
    student_number = db.Column(db.String(30), unique=True, nullable=False)
    last_name = db.Column(db.String(80), nullable=False)
    first_name = db.Column(db.String(80), nullable=False)
    middle_initial = db.Column(db.String(5))
    rfid = db.Column(db.String(40), unique=True)


class AttendanceRow(db.Model):
    __tablename__ = "attendance"
    __table_args__ = (db.UniqueConstraint("student_id", "course_id", "date", name="uq_attendance_student_day"),)

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    course_id = db.Column(db.Integer, db.ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    date = db.Column(db.Date, nullable=False)
    status = db.Column(db.String(20), nullable=False)
    reason = db.Column(db.Text)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.now)

    student = db.relationship("StudentRow")


class GradeRow(db.Model):
    __tablename__ = "grades"

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    course_id = db.Column(db.Integer, db.ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    criteria = db.Column(db.String(80), nullable=False)
    date = db.Column(db.Date, nullable=False)
    scores = db.Column(db.JSON, nullable=False, default=list)
    total = db.Column(db.Float, nullable=False, default=0)
    recitation = db.Column(db.Boolean, nullable=False, default=False)

    student = db.relationship("StudentRow")


class BreakGlassSessionRow(db.Model):
    __tablename__ = "break_glass_sessions"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    reason = db.Column(db.Text, nullable=False)
    activated_by = db.Column(db.Integer, db.ForeignKey("users.id"))
    activated_at = db.Column(db.DateTime, nullable=False, default=datetime.now)
    expires_at = db.Column(db.DateTime)
    original_role = db.Column(db.String(20), nullable=False, default="FACULTY")
    secret_code_hash = db.Column(db.String(255), nullable=False)
    promotion_code_hash = db.Column(db.String(255), nullable=False)

    user = db.relationship("UserRow", foreign_keys=[user_id])


class AuditLogRow(db.Model):
    __tablename__ = "audit_logs"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(40))
    action = db.Column(db.String(80), nullable=False)
    module = db.Column(db.String(60), nullable=False, index=True)
    reason = db.Column(db.Text)
    before = db.Column(db.JSON)
    after = db.Column(db.JSON)
    status = db.Column(db.String(20), nullable=False, default="SUCCESS")
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.now, index=True)
