from __future__ import annotations

import importlib
from datetime import timedelta
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module
from config.config import engine_options_for

from .common.http import register_error_handlers
from .core.constants import DEFAULT_SESSION_DAYS
from .database.bootstrap import apply_schema, ensure_demo_users, list_tables
from .extensions import db

from .container import build_container
from .attendance.controller import register as register_attendance
from .audit.controller import register as register_audit
from .break_glass.controller import register as register_break_glass
from .courses.controller import register as register_courses
from .grades.controller import register as register_grades
from .schedules.controller import register as register_schedules
from .users.controller import register as register_users


def create_app(overrides: Optional[dict] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["SQLALCHEMY_DATABASE_URI"] = getattr(settings, "SQLALCHEMY_DATABASE_URI")
    app.config["BREAK_GLASS_HASH_METHOD"] = getattr(settings, "BREAK_GLASS_HASH_METHOD", "scrypt")
    app.config["AUTO_INIT_DB"] = bool(getattr(settings, "AUTO_INIT_DB", False))
    app.config["AUTO_SEED_DB"] = bool(getattr(settings, "AUTO_SEED_DB", False))
    app.config["PERMANENT_SESSION_LIFETIME"] = timedelta(
        days=int(getattr(settings, "SESSION_DAYS", DEFAULT_SESSION_DAYS))
    )
    app.config.update(overrides or {})
    app.config.setdefault("SQLALCHEMY_ENGINE_OPTIONS", engine_options_for(app.config["SQLALCHEMY_DATABASE_URI"]))

    db.init_app(app)

    # Startup info: which settings and which database we are talking to
    if app.config["DEBUG"]:
        app.logger.info(
            "[school-admin] settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

    with app.app_context():
        if app.config["AUTO_INIT_DB"]:
            apply_schema(db_config, database_uri=app.config["SQLALCHEMY_DATABASE_URI"])
            if app.config["DEBUG"]:
                app.logger.info("[school-admin] schema ready (tables=%d)", len(list_tables()))
        if app.config["AUTO_SEED_DB"]:
            ensure_demo_users()
            if app.config["DEBUG"]:
                app.logger.info("[school-admin] demo users ready")

    container = build_container(break_glass_hash_method=app.config["BREAK_GLASS_HASH_METHOD"])

    register_error_handlers(app)
    register_users(app, container)
    register_courses(app, container)
    register_schedules(app, container)
    register_attendance(app, container)
    register_grades(app, container)
    register_break_glass(app, container)
    register_audit(app, container)

    return app
