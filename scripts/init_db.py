from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.school_admin.school_admin.database.bootstrap import apply_schema, list_tables
from src.school_admin.school_admin.main import create_app


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    # schema is applied explicitly below
    app = create_app({"AUTO_INIT_DB": False, "AUTO_SEED_DB": False})
    with app.app_context():
        apply_schema(db_config, database_uri=app.config["SQLALCHEMY_DATABASE_URI"])
        tables = list_tables()

    print(
        "OK: Schema ready -> "
        f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')} "
        f"(tables={len(tables)})"
    )


if __name__ == "__main__":
    main()
