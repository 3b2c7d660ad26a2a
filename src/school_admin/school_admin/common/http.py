"""Helpers shared by the JSON controllers."""

from __future__ import annotations

import io
from dataclasses import dataclass
from functools import wraps

import pandas as pd
from flask import Flask, current_app, jsonify, request, send_file, session
from werkzeug.exceptions import HTTPException

from ..core.enums import Role
from ..core.exceptions import AuthenticationError, DomainError, ValidationError
from ..users.service import AuthService

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@dataclass(frozen=True)
class Actor:
    user_id: int
    role: Role


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"error": "Unauthorized"}), 401
        return view(*args, **kwargs)

    return wrapper


def current_actor(auth_service: AuthService) -> Actor:
    """Signed-in user with the role as stored right now.

    Break-glass changes roles while sessions stay open, so the role kept in
    the cookie is only a hint.
    """

    if "user_id" not in session:
        raise AuthenticationError("Unauthorized")
    user_id = int(session["user_id"])
    role = auth_service.current_role(user_id)
    if role is None:
        session.clear()
        raise AuthenticationError("Unauthorized")
    session["role"] = role.value
    return Actor(user_id=user_id, role=role)


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Invalid request body")
    return data


def excel_response(rows: list[dict], *, filename: str, sheet_name: str, columns=None):
    df = pd.DataFrame(rows, columns=columns)

    # Write to an in-memory workbook
    output = io.BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name=sheet_name)

    output.seek(0)
    return send_file(output, download_name=filename, as_attachment=True, mimetype=XLSX_MIMETYPE)


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        return jsonify({"error": str(e)}), e.status_code

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        if isinstance(e, HTTPException):
            return jsonify({"error": e.description}), e.code
        current_app.logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify({"error": "Internal server error"}), 500
