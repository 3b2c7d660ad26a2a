from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import current_actor, json_body, login_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    def actor():
        return current_actor(container.auth_service)

    @app.route("/api/courses/<slug>/grades", methods=["GET"], endpoint="api_grades_get")
    @login_required
    def get_grades(slug: str):
        actor()
        grades = container.grade_service.get(
            slug, request.args.get("date", ""), criteria=request.args.get("criteria")
        )
        return jsonify([g.to_dict() for g in grades])

    @app.route("/api/courses/<slug>/grades", methods=["POST"], endpoint="api_grades_save")
    @login_required
    def save_grades(slug: str):
        a = actor()
        data = json_body()
        grades = container.grade_service.save(
            slug,
            data.get("date", ""),
            data.get("criteria", ""),
            data.get("grades"),
            recitation=bool(data.get("isRecitationCriteria", False)),
            current_role=a.role,
            current_user_id=a.user_id,
        )
        container.audit_service.log_action(
            user_id=a.user_id,
            action="Grades Saved",
            module="Course Grades",
            after={"course": slug, "criteria": data.get("criteria"), "date": data.get("date"), "count": len(grades)},
        )
        return jsonify([g.to_dict() for g in grades])

    @app.route("/api/courses/<slug>/grades", methods=["DELETE"], endpoint="api_grades_delete")
    @login_required
    def delete_grades(slug: str):
        a = actor()
        deleted = container.grade_service.delete(
            slug,
            request.args.get("date", ""),
            request.args.get("criteria", ""),
            current_role=a.role,
            current_user_id=a.user_id,
        )
        return jsonify({"message": "Grades deleted successfully", "deletedCount": deleted})
