import pytest

from src.school_admin.school_admin.main import create_app

DEMO_LOGINS = {
    "admin": ("admin@school.local", "admin123"),
    "head": ("head@school.local", "head123"),
    "faculty": ("faculty@school.local", "faculty123"),
}


@pytest.fixture
def app(monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    monkeypatch.delenv("DATABASE_URL", raising=False)
    return create_app(
        {
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": "sqlite://",
            "AUTO_INIT_DB": True,
            "AUTO_SEED_DB": True,
            "BREAK_GLASS_HASH_METHOD": "pbkdf2:sha256:1000",
        }
    )


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def login(client):
    def _login(who: str):
        email, password = DEMO_LOGINS[who]
        resp = client.post("/api/auth/login", json={"email": email, "password": password})
        assert resp.status_code == 200, resp.get_json()
        return resp.get_json()

    return _login
