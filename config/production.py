import os

from .config import build_database_uri, db_config_from_env

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = db_config_from_env()
SQLALCHEMY_DATABASE_URI = build_database_uri(DB_CONFIG)

DEBUG = False

SESSION_DAYS = int(os.getenv("SESSION_DAYS", "1"))

BREAK_GLASS_HASH_METHOD = os.getenv("BREAK_GLASS_HASH_METHOD", "scrypt")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
