from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import current_actor, login_required
from ..common.validators import optional_int
from ..core.constants import DEFAULT_LOG_LIMIT
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/logs", methods=["GET"], endpoint="api_logs")
    @login_required
    def list_logs():
        a = current_actor(container.auth_service)
        entries = container.audit_service.list_for(
            roles=[a.role],
            module=request.args.get("module") or None,
            limit=optional_int(request.args.get("limit"), "limit") or DEFAULT_LOG_LIMIT,
        )
        return jsonify([e.to_dict() for e in entries])
