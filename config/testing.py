import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "school_admin_test"),
}
SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite://")

DEBUG = False
TESTING = True

SESSION_DAYS = 1

# Fast hashing keeps the test suite quick
BREAK_GLASS_HASH_METHOD = "pbkdf2:sha256:1000"

AUTO_INIT_DB = True
AUTO_SEED_DB = False
