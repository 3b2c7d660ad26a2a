import os

from .config import build_database_uri, db_config_from_env

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = db_config_from_env(default_password="123456")
SQLALCHEMY_DATABASE_URI = build_database_uri(DB_CONFIG)

DEBUG = True

SESSION_DAYS = int(os.getenv("SESSION_DAYS", "7"))

# Werkzeug hash method for break-glass codes
BREAK_GLASS_HASH_METHOD = os.getenv("BREAK_GLASS_HASH_METHOD", "scrypt")

# If enabled, app creates missing tables on startup
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also seed demo users on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
