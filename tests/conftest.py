from typing import Dict

import mongomock
import pytest
from fastapi.testclient import TestClient

from database import ensure_indexes, get_db
from main import app


@pytest.fixture
def db():
    database = mongomock.MongoClient()["chat_test"]
    ensure_indexes(database)
    return database


@pytest.fixture
def client(db) -> TestClient:
    # No context manager: the lifespan (real MongoDB connection) never runs
    app.dependency_overrides[get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


def register(client: TestClient, user_name: str, email: str, password: str = "pw1", is_admin: bool = False):
    return client.post(
        "/api/users/add",
        json={"userName": user_name, "email": email, "password": password, "isAdmin": is_admin},
    )


def login(client: TestClient, email: str, password: str = "pw1") -> str:
    res = client.post("/api/users/login", json={"email": email, "password": password})
    assert res.status_code == 200, res.text
    return res.json()["token"]


def bearer(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def alice(client):
    """A registered, logged-in regular user: (user, token)."""
    res = register(client, "alice", "a@x.com")
    assert res.status_code == 201, res.text
    return res.json()["user"], login(client, "a@x.com")


@pytest.fixture
def bob(client):
    res = register(client, "bob", "b@x.com")
    assert res.status_code == 201, res.text
    return res.json()["user"], login(client, "b@x.com")


@pytest.fixture
def admin(client):
    res = register(client, "root", "root@x.com", is_admin=True)
    assert res.status_code == 201, res.text
    return res.json()["user"], login(client, "root@x.com")


MISSING_ID = "65a1f0c2e4b0a1b2c3d4e5f6"


def add_channel(client: TestClient, name: str, desc=None, locked: bool = False, members=(), created_by: str = MISSING_ID):
    body = {"channelName": name, "createdBy": created_by, "isLocked": locked, "members": list(members)}
    if desc is not None:
        body["desc"] = desc
    return client.post("/api/channels/add", json=body)
