from __future__ import annotations

import click
from flask import Flask, current_app, jsonify, request

from ..common.http import current_actor, json_body, login_required
from ..common.validators import optional_int
from ..core.exceptions import ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    def actor():
        return current_actor(container.auth_service)

    def target_user_id(data: dict) -> int:
        user_id = optional_int(data.get("userId"), "userId")
        if user_id is None:
            raise ValidationError("userId is required")
        return user_id

    @app.route("/api/break-glass/activate", methods=["POST"], endpoint="api_break_glass_activate")
    @login_required
    def activate():
        a = actor()
        data = json_body()
        if not data.get("reason"):
            raise ValidationError("userId and reason are required")
        codes = container.break_glass_service.activate_as(
            current_role=a.role,
            current_user_id=a.user_id,
            user_id=target_user_id(data),
            reason=data.get("reason"),
            duration_minutes=optional_int(data.get("durationMinutes"), "durationMinutes"),
        )
        # the plain codes are never shown again
        return jsonify(
            {
                "success": True,
                "message": "Break-glass override activated",
                "secretCode": codes.secret_code,
                "promotionCode": codes.promotion_code,
            }
        )

    @app.route("/api/break-glass/deactivate", methods=["POST"], endpoint="api_break_glass_deactivate")
    @login_required
    def deactivate():
        a = actor()
        data = json_body()
        container.break_glass_service.deactivate_as(
            current_role=a.role, current_user_id=a.user_id, user_id=target_user_id(data)
        )
        return jsonify({"success": True, "message": "Break-glass override deactivated"})

    @app.route("/api/break-glass/promote", methods=["POST"], endpoint="api_break_glass_promote")
    @login_required
    def promote():
        a = actor()
        data = json_body()
        container.break_glass_service.promote_as(
            current_role=a.role,
            current_user_id=a.user_id,
            user_id=target_user_id(data),
            promotion_code=data.get("promotionCode", ""),
        )
        return jsonify({"success": True, "message": "User promoted to permanent Admin"})

    @app.route("/api/break-glass/self-promote", methods=["POST"], endpoint="api_break_glass_self_promote")
    @login_required
    def self_promote():
        a = actor()
        data = json_body()
        container.break_glass_service.self_promote(
            current_user_id=a.user_id, promotion_code=data.get("promotionCode", "")
        )
        return jsonify({"success": True, "message": "You have been promoted to permanent Admin"})

    @app.route("/api/break-glass/status", methods=["GET"], endpoint="api_break_glass_status")
    @login_required
    def status():
        a = actor()
        return jsonify(
            container.break_glass_service.status_for(
                current_role=a.role,
                current_user_id=a.user_id,
                user_id=optional_int(request.args.get("userId"), "userId"),
            )
        )

    @app.cli.command("break-glass-cleanup")
    def cleanup_command():
        """Deactivate break-glass sessions whose time box has passed."""
        count = container.break_glass_service.cleanup_expired()
        current_app.logger.info("break-glass cleanup: %d session(s) expired", count)
        click.echo(f"Expired {count} break-glass session(s)")
