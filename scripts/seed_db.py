from __future__ import annotations

import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from src.school_admin.school_admin.database.bootstrap import ensure_demo_users
from src.school_admin.school_admin.main import create_app


def main() -> None:
    app = create_app({"AUTO_SEED_DB": False})
    with app.app_context():
        ensure_demo_users()

    print("OK: Demo users ready (admin@school.local, head@school.local, faculty@school.local)")


if __name__ == "__main__":
    main()
