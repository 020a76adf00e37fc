from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from blogify.core.config import settings
from blogify.core.database import get_db
from blogify.crud import post as post_crud
from blogify.main import app
from blogify.models import User

PASSWORD = "Password123!"


def register(client, **overrides):
    payload = {
        "email": "New.User@Example.com",
        "username": "New_User",
        "password": PASSWORD,
        "firstName": "New",
        "lastName": "User",
    }
    payload.update(overrides)
    return client.post("/api/auth/register", json=payload)


class TestRegister:
    def test_register_returns_user_and_token(self, client, db):
        response = register(client)
        assert response.status_code == 201, response.text
        data = response.json()["data"]
        assert data["token"]
        assert data["user"]["username"] == "new_user"
        assert data["user"]["email"] == "new.user@example.com"
        assert data["user"]["displayName"] == "New User"
        assert data["user"]["role"] == "USER"
        assert db.query(User).count() == 1

    def test_token_works_for_profile(self, client):
        token = register(client).json()["data"]["token"]
        response = client.get("/api/auth/profile", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200
        assert response.json()["data"]["username"] == "new_user"

    def test_weak_password_lists_every_rule(self, client):
        response = register(client, password="short")
        assert response.status_code == 400
        errors = response.json()["data"]["errors"]
        assert "Password must be at least 8 characters long" in errors
        assert "Password must contain at least one uppercase letter" in errors
        assert "Password must contain at least one number" in errors
        assert "Password must contain at least one special character" in errors

    @pytest.mark.parametrize("username,message", [
        ("ab", "Username must be at least 3 characters long"),
        ("a" * 21, "Username must be no more than 20 characters long"),
        ("bad-name", "Username can only contain letters, numbers, and underscores"),
        ("9lives", "Username cannot start with a number"),
    ])
    def test_username_rules(self, client, username, message):
        response = register(client, username=username)
        assert response.status_code == 400
        assert message in response.json()["data"]["errors"]

    def test_invalid_email(self, client):
        assert register(client, email="not-an-email").status_code == 422

    def test_duplicate_email(self, client, make_user):
        make_user("someone", email="new.user@example.com")
        response = register(client)
        assert response.status_code == 409
        assert response.json()["message"] == "Email already registered"

    def test_duplicate_username(self, client, make_user):
        make_user("new_user")
        response = register(client)
        assert response.status_code == 409
        assert response.json()["message"] == "Username already taken"


class TestLogin:
    @pytest.mark.parametrize("identifier", ["alice", "ALICE@example.com"])
    def test_login_by_username_or_email(self, client, db, make_user, identifier):
        user = make_user("alice")
        response = client.post("/api/auth/login", json={"identifier": identifier, "password": PASSWORD})
        assert response.status_code == 200, response.text
        assert response.json()["data"]["user"]["id"] == user.id
        db.refresh(user)
        assert user.last_login_at is not None

    def test_wrong_password(self, client, make_user):
        make_user("alice")
        response = client.post("/api/auth/login", json={"identifier": "alice", "password": "Wrong123!"})
        assert response.status_code == 401
        assert response.json() == {"success": False, "data": None, "message": "Invalid credentials"}

    def test_inactive_user_cannot_login(self, client, make_user):
        make_user("alice", is_active=False)
        response = client.post("/api/auth/login", json={"identifier": "alice", "password": PASSWORD})
        assert response.status_code == 401

    def test_inactive_user_token_rejected(self, client, make_user, auth_headers):
        user = make_user("alice", is_active=False)
        assert client.get("/api/auth/profile", headers=auth_headers(user)).status_code == 401


class TestProfile:
    def test_requires_token(self, client):
        response = client.get("/api/auth/profile")
        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"

    def test_update_profile(self, client, make_user, auth_headers):
        user = make_user("alice")
        response = client.put(
            "/api/auth/profile",
            json={"firstName": "Alice", "lastName": "Liddell", "bio": "Down the rabbit hole", "username": "Alice_L"},
            headers=auth_headers(user),
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["username"] == "alice_l"
        assert data["displayName"] == "Alice Liddell"
        assert data["bio"] == "Down the rabbit hole"

    def test_username_taken(self, client, make_user, auth_headers):
        make_user("bob")
        user = make_user("alice")
        response = client.put("/api/auth/profile", json={"username": "bob"}, headers=auth_headers(user))
        assert response.status_code == 409
        assert response.json()["message"] == "Username is already taken"


class TestPasswords:
    def test_change_password(self, client, make_user, auth_headers):
        user = make_user("alice")
        response = client.post(
            "/api/auth/change-password",
            json={"currentPassword": PASSWORD, "newPassword": "Another456$"},
            headers=auth_headers(user),
        )
        assert response.status_code == 200
        login = client.post("/api/auth/login", json={"identifier": "alice", "password": "Another456$"})
        assert login.status_code == 200

    def test_change_password_wrong_current(self, client, make_user, auth_headers):
        user = make_user("alice")
        response = client.post(
            "/api/auth/change-password",
            json={"currentPassword": "Nope1234!", "newPassword": "Another456$"},
            headers=auth_headers(user),
        )
        assert response.status_code == 401

    def test_forgot_password_unknown_email(self, client):
        response = client.post("/api/auth/forgot-password", json={"email": "ghost@example.com"})
        assert response.status_code == 200
        assert response.json()["data"] is None

    def test_reset_token_hidden_outside_development(self, client, db, make_user):
        user = make_user("alice")
        response = client.post("/api/auth/forgot-password", json={"email": "alice@example.com"})
        assert response.status_code == 200
        assert response.json()["data"] is None
        db.refresh(user)
        assert user.reset_token is not None

    def test_reset_flow(self, client, make_user, monkeypatch):
        monkeypatch.setattr(settings, "ENVIRONMENT", "development")
        make_user("alice")
        token = client.post(
            "/api/auth/forgot-password", json={"email": "alice@example.com"}
        ).json()["data"]["resetToken"]

        response = client.post("/api/auth/reset-password", json={"token": token, "newPassword": "Fresh789#"})
        assert response.status_code == 200
        assert client.post("/api/auth/login", json={"identifier": "alice", "password": "Fresh789#"}).status_code == 200

        reuse = client.post("/api/auth/reset-password", json={"token": token, "newPassword": "Again789#"})
        assert reuse.status_code == 400

    def test_expired_reset_token(self, client, db, make_user):
        user = make_user("alice")
        user.reset_token = "abc123"
        user.reset_token_expiry = datetime.utcnow() - timedelta(minutes=1)
        db.commit()
        response = client.post("/api/auth/reset-password", json={"token": "abc123", "newPassword": "Fresh789#"})
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid or expired reset token"


class TestMisc:
    def test_logout(self, client, make_user, auth_headers):
        response = client.post("/api/auth/logout", headers=auth_headers(make_user()))
        assert response.status_code == 200
        assert response.json()["success"] is True

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "healthy"

    def test_unexpected_error_uses_envelope(self, db, monkeypatch):
        def broken(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(post_crud, "list_posts", broken)
        app.dependency_overrides[get_db] = lambda: db
        try:
            response = TestClient(app, raise_server_exceptions=False).get("/api/posts")
        finally:
            app.dependency_overrides.clear()
        assert response.status_code == 500
        assert response.json() == {"success": False, "data": None, "message": "Internal server error"}
