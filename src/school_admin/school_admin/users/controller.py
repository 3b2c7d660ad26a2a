from __future__ import annotations

from flask import Flask, current_app, jsonify, request, session

from ..common.http import current_actor, excel_response, json_body, login_required
from ..common.validators import require_non_empty
from ..core.enums import Permission, Role
from ..core.exceptions import AuthorizationError
from ..container import Container
from .permissions import has_permission
from .service import parse_role


def register(app: Flask, container: Container) -> None:
    def actor():
        return current_actor(container.auth_service)

    def require_view_users(role: Role) -> None:
        if not has_permission([role], Permission.VIEW_USERS):
            raise AuthorizationError("You do not have permission")

    @app.route("/api/auth/login", methods=["POST"], endpoint="api_login")
    def login():
        data = json_body()
        user = container.auth_service.authenticate(data.get("email", ""), data.get("password", ""))

        session.clear()
        session.permanent = True
        session["user_id"] = user.user_id
        session["name"] = user.name
        session["role"] = user.role.value

        current_app.logger.info("User %s signed in", user.email)
        return jsonify({"id": user.user_id, "name": user.name, "email": user.email, "role": user.role.value})

    @app.route("/api/auth/logout", methods=["POST"], endpoint="api_logout")
    def logout():
        user_id = session.get("user_id")
        session.clear()
        if user_id is not None:
            container.audit_service.log_action(user_id=user_id, action="Logout", module="Auth")
        return jsonify({"success": True})

    @app.route("/api/users", methods=["GET"], endpoint="api_users_list")
    @login_required
    def list_users():
        a = actor()
        require_view_users(a.role)
        role = request.args.get("role")
        users = container.user_service.list_users(
            role=parse_role(role) if role else None,
            search=(request.args.get("search") or "").strip() or None,
        )
        return jsonify([u.to_dict() for u in users])

    @app.route("/api/users", methods=["POST"], endpoint="api_users_create")
    @login_required
    def create_user():
        a = actor()
        data = json_body()
        role = parse_role(data.get("role") or Role.FACULTY.value)
        user_id = container.user_service.create_account(
            current_role=a.role,
            name=data.get("name", ""),
            email=data.get("email", ""),
            password=data.get("password", ""),
            role=role,
            department=data.get("department"),
        )
        container.audit_service.log_action(
            user_id=a.user_id,
            action="User Created",
            module="Faculty" if role == Role.FACULTY else "Users",
            after={"userId": user_id, "email": data.get("email"), "role": role.value},
        )
        return jsonify({"id": user_id}), 201

    @app.route("/api/users/<int:user_id>", methods=["PATCH"], endpoint="api_users_update_role")
    @login_required
    def change_role(user_id: int):
        a = actor()
        data = json_body()
        role = parse_role(require_non_empty(data.get("role"), "Role"))
        container.user_service.change_role(
            current_role=a.role, current_user_id=a.user_id, user_id=user_id, role=role
        )
        container.audit_service.log_action(
            user_id=a.user_id,
            action="Role Changed",
            module="Users",
            after={"userId": user_id, "role": role.value},
        )
        return jsonify({"success": True})

    @app.route("/api/users/<int:user_id>", methods=["DELETE"], endpoint="api_users_delete")
    @login_required
    def delete_user(user_id: int):
        a = actor()
        container.user_service.delete_user(current_role=a.role, current_user_id=a.user_id, user_id=user_id)
        container.audit_service.log_action(
            user_id=a.user_id, action="User Deleted", module="Users", before={"userId": user_id}
        )
        return jsonify({"success": True})

    @app.route("/api/users/faculty", methods=["GET"], endpoint="api_users_faculty")
    @login_required
    def list_faculty():
        actor()
        return jsonify([u.to_dict() for u in container.user_service.list_faculty()])

    @app.route("/api/users/export", methods=["GET"], endpoint="api_users_export")
    @login_required
    def export_users():
        a = actor()
        require_view_users(a.role)
        role = request.args.get("role")
        rows = container.user_service.export_rows(role=parse_role(role) if role else None)
        return excel_response(
            rows,
            filename="users.xlsx",
            sheet_name="Users",
            columns=["Name", "Email", "Role", "Department", "Active"],
        )
