from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import current_actor, json_body, login_required
from ..common.validators import optional_int
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    def actor():
        return current_actor(container.auth_service)

    def audit(a, course_ref, schedules) -> None:
        container.audit_service.log_action(
            user_id=a.user_id,
            action="Schedules Assigned",
            module="Class Management",
            after={"course": course_ref, "schedules": schedules},
        )

    @app.route("/api/courses/assign-schedules", methods=["GET"], endpoint="api_assign_schedules_get")
    @login_required
    def get_assigned_schedules():
        actor()
        course_id = optional_int(request.args.get("courseId"), "courseId")
        if course_id is None:
            raise ValidationError("courseId is required")
        schedules = container.schedule_service.list_for_course(course_id)
        return jsonify({"schedules": [s.to_dict() for s in schedules]})

    @app.route("/api/courses/assign-schedules", methods=["POST"], endpoint="api_assign_schedules_post")
    @login_required
    def assign_schedules():
        a = actor()
        data = json_body()
        results = container.schedule_service.assign_many(
            current_role=a.role, current_user_id=a.user_id, items=data.get("coursesSchedules")
        )
        if results["success"]:
            audit(a, "batch", {"success": results["success"], "failed": results["failed"]})
        return jsonify(results)

    @app.route("/api/courses/<slug>/schedules", methods=["GET"], endpoint="api_course_schedules_get")
    @login_required
    def course_schedules(slug: str):
        actor()
        course = container.course_service.get(slug)
        schedules = container.schedule_service.list_for_course(course.course_id)
        return jsonify([s.to_dict() for s in schedules])

    @app.route("/api/courses/<slug>/schedules", methods=["PUT"], endpoint="api_course_schedules_put")
    @login_required
    def replace_course_schedules(slug: str):
        a = actor()
        data = json_body()
        course = container.course_service.get(slug)
        schedules = container.schedule_service.assign(
            current_role=a.role,
            current_user_id=a.user_id,
            course_id=course.course_id,
            schedules=data.get("schedules"),
        )
        payload = [s.to_dict() for s in schedules]
        audit(a, slug, payload)
        return jsonify(payload)

    @app.route("/api/faculty/<int:faculty_id>/weekly-schedule", methods=["GET"], endpoint="api_faculty_weekly")
    @login_required
    def weekly_schedule(faculty_id: int):
        a = actor()
        if a.role == Role.FACULTY and a.user_id != faculty_id:
            raise AuthorizationError("You can only view your own schedule")
        return jsonify(container.schedule_service.weekly_for_faculty(faculty_id))
