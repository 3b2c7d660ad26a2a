import os

def get_settings_module() -> str:
    # APP_ENV selects the settings module, default is development
    env = os.getenv("APP_ENV", "development").lower()

    if env in {"prod", "production"}:
        return "config.production"

    if env in {"test", "testing"}:
        return "config.testing"

    return "config.development"
