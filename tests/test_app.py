import pytest
from fastapi.testclient import TestClient
from pymongo.errors import PyMongoError

import config
from database import get_users
from errors import ConfigError
from main import app


def test_root(client: TestClient):
    assert client.get("/").json() == {"message": "Server is running"}
    assert client.get("/api").status_code == 200


def test_database_diagnostics_without_connection(client: TestClient):
    # lifespan never ran, so there is no database on app.state
    res = client.get("/test")
    assert res.status_code == 200
    assert res.json()["backend"] == "✅ Running"


def test_missing_database_url_aborts(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setenv("DATABASE_NAME", "chat")
    with pytest.raises(ConfigError):
        config.load_settings()


def test_missing_database_name_aborts(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "mongodb://localhost:27017")
    monkeypatch.delenv("DATABASE_NAME", raising=False)
    with pytest.raises(ConfigError):
        config.load_settings()


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "mongodb://localhost:27017")
    monkeypatch.setenv("DATABASE_NAME", "chat")
    monkeypatch.setenv("PORT", "1338")
    monkeypatch.setenv("CORS_ORIGINS", "http://localhost:5173, http://localhost:3000")
    settings = config.load_settings()
    assert settings.port == 1338
    assert settings.database_name == "chat"
    assert config.cors_origins() == ["http://localhost:5173", "http://localhost:3000"]


class BrokenCollection:
    name = "user"

    def find(self, *args, **kwargs):
        raise PyMongoError("database unavailable")

    def find_one(self, *args, **kwargs):
        raise PyMongoError("database unavailable")


def test_database_fault_is_500(client: TestClient):
    app.dependency_overrides[get_users] = lambda: BrokenCollection()
    res = client.get("/api/users")
    assert res.status_code == 500
    assert res.json() == {"message": "Error fetching users", "error": "database unavailable"}

    res = client.post("/api/users/login", json={"email": "a@x.com", "password": "pw1"})
    assert res.status_code == 500
    assert res.json()["message"] == "Error during login"
