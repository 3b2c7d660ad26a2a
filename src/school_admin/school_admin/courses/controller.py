from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import current_actor, excel_response, json_body, login_required
from ..common.validators import optional_int
from ..core.enums import Role
from ..container import Container
from .model import CourseFilters
from .service import parse_status

EXPORT_COLUMNS = [
    "Course Code",
    "Course Title",
    "Section",
    "Room",
    "Semester",
    "Academic Year",
    "Class Number",
    "Status",
    "Faculty",
    "Schedules",
    "Students",
]


def register(app: Flask, container: Container) -> None:
    def actor():
        return current_actor(container.auth_service)

    def scoped_faculty_id(a) -> int | None:
        # faculty members only ever see their own courses
        if a.role == Role.FACULTY:
            return a.user_id
        return optional_int(request.args.get("facultyId"), "facultyId")

    def filters_from_args(a) -> CourseFilters:
        return CourseFilters(
            faculty_id=scoped_faculty_id(a),
            search=(request.args.get("search") or "").strip() or None,
            semester=request.args.get("semester") or None,
            code=request.args.get("code") or None,
            section=request.args.get("section") or None,
            status=parse_status(request.args.get("status"), default=None),
        )

    def audit(a, action: str, *, before=None, after=None) -> None:
        container.audit_service.log_action(
            user_id=a.user_id, action=action, module="Course", before=before, after=after
        )

    @app.route("/api/courses", methods=["GET"], endpoint="api_courses_list")
    @login_required
    def list_courses():
        a = actor()
        return jsonify([c.to_dict() for c in container.course_service.list(filters_from_args(a))])

    @app.route("/api/courses/active", methods=["GET"], endpoint="api_courses_active")
    @login_required
    def list_active():
        a = actor()
        return jsonify([c.to_dict() for c in container.course_service.list_active(faculty_id=scoped_faculty_id(a))])

    @app.route("/api/courses/archived", methods=["GET"], endpoint="api_courses_archived")
    @login_required
    def list_archived():
        a = actor()
        courses = container.course_service.list_archived(faculty_id=scoped_faculty_id(a))
        return jsonify([c.to_dict() for c in courses])

    @app.route("/api/courses", methods=["POST"], endpoint="api_courses_create")
    @login_required
    def create_course():
        a = actor()
        data = json_body()
        course = container.course_service.create(
            current_role=a.role,
            current_user_id=a.user_id,
            code=data.get("code", ""),
            title=data.get("title", ""),
            section=data.get("section", ""),
            semester=data.get("semester", ""),
            academic_year=data.get("academicYear", ""),
            room=data.get("room"),
            class_number=data.get("classNumber"),
            status=data.get("status"),
            faculty_id=data.get("facultyId"),
            schedules=data.get("schedules"),
        )
        audit(a, "Course Created", after=course.to_dict())
        return jsonify(course.to_dict()), 201

    @app.route("/api/courses/export", methods=["GET"], endpoint="api_courses_export")
    @login_required
    def export_courses():
        a = actor()
        rows = container.course_service.export_rows(filters_from_args(a))
        return excel_response(rows, filename="courses.xlsx", sheet_name="Courses", columns=EXPORT_COLUMNS)

    @app.route("/api/courses/bulk-archive", methods=["PATCH"], endpoint="api_courses_bulk_archive")
    @login_required
    def bulk_archive():
        a = actor()
        data = json_body()
        updated = container.course_service.bulk_set_status(
            current_role=a.role, course_ids=data.get("courseIds"), status=data.get("status")
        )
        audit(a, "Courses Status Changed", after={"courseIds": data.get("courseIds"), "status": data.get("status")})
        return jsonify({"success": True, "updated": updated})

    @app.route("/api/courses/import-with-schedules", methods=["POST"], endpoint="api_courses_import")
    @login_required
    def import_courses():
        a = actor()
        payload = request.get_json(silent=True)
        rows = payload.get("courses") if isinstance(payload, dict) else payload
        results = container.course_service.import_with_schedules(
            current_role=a.role, current_user_id=a.user_id, rows=rows
        )
        audit(a, "Courses Imported", after={"success": results["success"], "failed": results["failed"]})
        return jsonify(results)

    @app.route("/api/courses/<slug>", methods=["GET"], endpoint="api_courses_get")
    @login_required
    def get_course(slug: str):
        actor()
        return jsonify(container.course_service.get(slug).to_dict())

    @app.route("/api/courses/<slug>", methods=["PUT"], endpoint="api_courses_update")
    @login_required
    def update_course(slug: str):
        a = actor()
        data = json_body()
        before = container.course_service.get(slug)
        course = container.course_service.update(
            slug,
            current_role=a.role,
            current_user_id=a.user_id,
            code=data.get("code", ""),
            title=data.get("title", ""),
            section=data.get("section", ""),
            semester=data.get("semester", ""),
            academic_year=data.get("academicYear", ""),
            faculty_id=data.get("facultyId"),
            room=data.get("room"),
        )
        audit(a, "Course Updated", before=before.to_dict(), after=course.to_dict())
        return jsonify(course.to_dict())

    @app.route("/api/courses/<slug>", methods=["DELETE"], endpoint="api_courses_delete")
    @login_required
    def delete_course(slug: str):
        a = actor()
        before = container.course_service.get(slug)
        container.course_service.delete(slug, current_role=a.role, current_user_id=a.user_id)
        audit(a, "Course Deleted", before=before.to_dict())
        return jsonify({"success": True})

    # ---- enrollment ----

    @app.route("/api/courses/<slug>/students", methods=["GET"], endpoint="api_course_students")
    @login_required
    def list_students(slug: str):
        actor()
        return jsonify([s.to_dict() for s in container.course_service.list_students(slug)])

    @app.route("/api/courses/<slug>/students", methods=["POST"], endpoint="api_course_students_add")
    @login_required
    def add_students(slug: str):
        a = actor()
        data = json_body()
        added = container.course_service.add_students(
            slug, current_role=a.role, current_user_id=a.user_id, students=data.get("students")
        )
        container.audit_service.log_action(
            user_id=a.user_id, action="Students Enrolled", module="Enrollment", after={"course": slug, "added": added}
        )
        return jsonify({"success": True, "added": added})

    @app.route("/api/courses/<slug>/students", methods=["DELETE"], endpoint="api_course_students_remove")
    @login_required
    def remove_students(slug: str):
        a = actor()
        data = json_body()
        removed = container.course_service.remove_students(
            slug, current_role=a.role, current_user_id=a.user_id, student_ids=data.get("studentIds")
        )
        container.audit_service.log_action(
            user_id=a.user_id,
            action="Students Unenrolled",
            module="Enrollment",
            after={"course": slug, "removed": removed},
        )
        return jsonify({"success": True, "removed": removed})
