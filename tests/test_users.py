from fastapi.testclient import TestClient

from conftest import MISSING_ID, bearer, login, register


def test_register_login_profile_flow(client: TestClient):
    res = register(client, "alice", "a@x.com", "pw1")
    assert res.status_code == 201, res.text
    user = res.json()["user"]
    assert user["userName"] == "alice"
    assert "password" not in user

    res = client.post("/api/users/login", json={"email": "a@x.com", "password": "pw1"})
    assert res.status_code == 200, res.text
    body = res.json()
    assert body["token"]
    assert body["user"]["id"] == user["id"]
    assert "password" not in body["user"]

    res = client.get("/api/users/profile", headers=bearer(body["token"]))
    assert res.status_code == 200, res.text
    profile = res.json()["profile"]
    assert profile["email"] == "a@x.com"
    assert profile["isAdmin"] is False
    assert "password" not in profile


def test_password_is_stored_hashed(client: TestClient, db):
    register(client, "alice", "a@x.com", "pw1")
    stored = db["user"].find_one({"userName": "alice"})
    assert stored["password"] != "pw1"
    assert stored["password"].startswith("$2")


def test_login_with_wrong_password(client: TestClient, alice):
    res = client.post("/api/users/login", json={"email": "a@x.com", "password": "nope"})
    assert res.status_code == 401
    assert res.json()["message"] == "Invalid credentials"
    assert "token" not in res.json()


def test_login_with_unknown_email(client: TestClient):
    res = client.post("/api/users/login", json={"email": "ghost@x.com", "password": "pw1"})
    assert res.status_code == 401


def test_register_duplicate_user_name(client: TestClient, alice):
    res = register(client, "alice", "other@x.com")
    assert res.status_code == 409
    assert res.json()["field"] == "userName"


def test_register_duplicate_email(client: TestClient, alice):
    res = register(client, "alice2", "a@x.com")
    assert res.status_code == 409
    assert res.json()["field"] == "email"


def test_register_invalid_payload(client: TestClient):
    res = client.post("/api/users/add", json={"userName": "", "email": "a@x.com", "password": "pw1"})
    assert res.status_code == 400
    assert res.json()["message"] == "Invalid request data"
    assert "userName" in res.json()["error"]


def test_list_users_hides_passwords(client: TestClient, alice, bob):
    res = client.get("/api/users")
    assert res.status_code == 200
    names = sorted(u["userName"] for u in res.json())
    assert names == ["alice", "bob"]
    assert all("password" not in u for u in res.json())


def test_get_user_by_id(client: TestClient, alice):
    user, _ = alice
    res = client.get(f"/api/users/{user['id']}")
    assert res.status_code == 200
    assert res.json()["data"]["userName"] == "alice"


def test_get_user_invalid_id(client: TestClient):
    res = client.get("/api/users/not-an-id")
    assert res.status_code == 400
    assert res.json()["message"] == "Invalid user ID"


def test_get_missing_user(client: TestClient):
    assert client.get(f"/api/users/{MISSING_ID}").status_code == 404


def test_update_missing_user(client: TestClient):
    res = client.put(f"/api/users/{MISSING_ID}", json={"userName": "x"})
    assert res.status_code == 404


def test_update_user_without_changes(client: TestClient, alice):
    user, _ = alice
    res = client.put(f"/api/users/{user['id']}", json={"userName": "alice", "id": "ignored"})
    assert res.status_code == 200
    assert res.json()["message"] == "No changes were made."


def test_update_user_password_allows_new_login(client: TestClient, alice):
    user, _ = alice
    res = client.put(f"/api/users/{user['id']}", json={"password": "pw2"})
    assert res.status_code == 200
    assert res.json()["message"] == "User updated successfully."
    assert login(client, "a@x.com", "pw2")


def test_delete_user(client: TestClient, alice):
    user, _ = alice
    assert client.delete(f"/api/users/{user['id']}").status_code == 200
    assert client.delete(f"/api/users/{user['id']}").status_code == 404
