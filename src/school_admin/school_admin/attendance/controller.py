from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import current_actor, json_body, login_required
from ..core.constants import DEFAULT_PAGE_SIZE
from ..container import Container


def register(app: Flask, container: Container) -> None:
    def actor():
        return current_actor(container.auth_service)

    @app.route("/api/courses/<slug>/attendance", methods=["GET"], endpoint="api_attendance_get")
    @login_required
    def get_attendance(slug: str):
        actor()
        result = container.attendance_service.get_for_date(
            slug,
            request.args.get("date", ""),
            page=request.args.get("page", 1),
            limit=request.args.get("limit", DEFAULT_PAGE_SIZE),
        )
        return jsonify(result)

    @app.route("/api/courses/<slug>/attendance/batch", methods=["POST"], endpoint="api_attendance_batch")
    @login_required
    def save_attendance(slug: str):
        a = actor()
        data = json_body()
        records = data.get("attendance") or data.get("updates")
        saved = container.attendance_service.save_batch(
            slug, data.get("date", ""), records, current_role=a.role, current_user_id=a.user_id
        )
        container.audit_service.log_action(
            user_id=a.user_id,
            action="Attendance Saved",
            module="Attendance",
            after={"course": slug, "date": data.get("date"), "records": saved},
        )
        return jsonify({"message": "Attendance saved successfully", "records": saved})

    @app.route("/api/courses/<slug>/attendance/clear", methods=["DELETE"], endpoint="api_attendance_clear")
    @login_required
    def clear_attendance(slug: str):
        a = actor()
        day = request.args.get("date") or json_body().get("date", "")
        deleted = container.attendance_service.clear(slug, day, current_role=a.role, current_user_id=a.user_id)
        container.audit_service.log_action(
            user_id=a.user_id,
            action="Attendance Cleared",
            module="Attendance",
            before={"course": slug, "date": day, "records": deleted},
        )
        return jsonify({"message": "Attendance records cleared successfully", "deletedCount": deleted})

    @app.route("/api/courses/<slug>/attendance/stats", methods=["GET"], endpoint="api_attendance_stats")
    @login_required
    def attendance_stats(slug: str):
        actor()
        return jsonify(container.attendance_service.stats(slug))
