import os
import urllib.parse


def build_database_uri(db_config: dict) -> str:
    """MySQL URI for SQLAlchemy (mysql-connector driver).

    DATABASE_URL wins when set, so sqlite or another backend can be used without
    touching DB_CONFIG.
    """

    override = os.getenv("DATABASE_URL")
    if override:
        return override

    password = urllib.parse.quote_plus(str(db_config.get("password", "")))
    return (
        f"mysql+mysqlconnector://{db_config.get('user')}:{password}"
        f"@{db_config.get('host')}:{int(db_config.get('port', 3306))}/{db_config.get('database')}"
    )


def db_config_from_env(default_password: str = "") -> dict:
    return {
        "host": os.getenv("DB_HOST", "localhost"),
        "port": int(os.getenv("DB_PORT", "3306")),
        "user": os.getenv("DB_USER", "root"),
        "password": os.getenv("DB_PASSWORD", default_password),
        "database": os.getenv("DB_NAME", "school_admin"),
    }


def engine_options_for(database_uri: str) -> dict:
    """Engine options per backend.

    MySQL runs at READ COMMITTED: after waiting on a row lock, plain reads in
    the same transaction must see what the lock holder committed.
    """

    if database_uri.startswith("mysql"):
        return {"isolation_level": "READ COMMITTED", "pool_pre_ping": True}
    return {}
