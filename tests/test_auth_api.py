"""Register / login / session API tests."""

import pytest

from domains.notebook_hub.core.models import User

from tests.helpers import register


class TestRegister:
    def test_register_signs_in(self, client):
        user_id = register(client, "alice", "1234")

        response = client.get("/api/check-session")
        assert response.json() == {"authenticated": True, "userId": user_id, "username": "alice"}

    def test_register_response_shape(self, client):
        response = client.post("/api/register", json={"username": "bob", "pin": "0000"})
        body = response.json()
        assert body["success"] is True
        assert body["userId"]

    @pytest.mark.parametrize("payload", [
        {},
        {"username": "alice"},
        {"pin": "1234"},
        {"username": "   ", "pin": "1234"},
        {"username": "alice", "pin": ""},
    ])
    def test_missing_credentials(self, client, payload):
        response = client.post("/api/register", json=payload)
        assert response.status_code == 400
        assert response.json()["error"] == "Username and pin are required"

    def test_duplicate_username(self, client):
        register(client, "alice", "1234")
        response = client.post("/api/register", json={"username": "alice", "pin": "9999"})
        assert response.status_code == 400
        assert response.json()["error"] == "Username already exists"

    def test_pin_is_stored_hashed(self, client, store):
        user_id = register(client, "alice", "1234")
        assert store.get_user(user_id).pin.startswith("pbkdf2_sha256$")


class TestLogin:
    def test_login_after_logout(self, client, alice):
        client.post("/api/logout")
        assert client.get("/api/check-session").json() == {"authenticated": False}

        response = client.post("/api/login", json={"username": "alice", "pin": "1234"})
        assert response.status_code == 200
        assert response.json() == {"success": True, "userId": alice}
        assert client.get("/api/check-session").json()["authenticated"] is True

    @pytest.mark.parametrize("username,pin", [("alice", "0000"), ("nobody", "1234")])
    def test_invalid_credentials(self, client, alice, username, pin):
        client.post("/api/logout")
        response = client.post("/api/login", json={"username": username, "pin": pin})
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid credentials"
        assert client.get("/api/check-session").json() == {"authenticated": False}

    def test_legacy_plaintext_pin_is_upgraded(self, client, store):
        user = store.add_user(User(username="legacy", pin="4321"))

        response = client.post("/api/login", json={"username": "legacy", "pin": "4321"})

        assert response.status_code == 200
        assert store.get_user(user.id).pin.startswith("pbkdf2_sha256$")
        # 升级后仍可用同一 PIN 登录
        client.post("/api/logout")
        assert client.post("/api/login", json={"username": "legacy", "pin": "4321"}).status_code == 200


class TestSession:
    def test_logout_without_session(self, client):
        response = client.post("/api/logout")
        assert response.status_code == 200
        assert response.json() == {"success": True}

    def test_protected_routes_require_session(self, client):
        for method, path in [
            ("get", "/api/notebooks/regular"),
            ("post", "/api/notebooks"),
            ("get", "/api/notes/favorites"),
            ("post", "/api/notes/abc/favorite"),
            ("get", "/api/check-lock-setup"),
        ]:
            response = getattr(client, method)(path)
            assert response.status_code == 401, path
            assert response.json()["error"] == "Authentication required"

    def test_stale_session_is_cleared(self, client, store, alice):
        # 模拟会话指向的用户已被删除
        store._users.clear()
        assert client.get("/api/check-session").json() == {"authenticated": False}

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_unknown_route_has_error_body(self, client):
        response = client.get("/api/nope")
        assert response.status_code == 404
        assert "error" in response.json()
