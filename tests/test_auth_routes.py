"""
tests/test_auth_routes.py -- Integration tests for /api/auth.

Coverage:
  - register/login return tokens and a user projection without secrets
  - login failures share one generic message
  - refresh: valid cookie, revoked, expired, wrong token type, rotation
  - logout revokes the refresh token
  - profile update and password change
"""

from __future__ import annotations

from models import get_storage
from models.user import User
from tests.conftest import PASSWORD, login


class TestRegister:
    def test_register_returns_session(self, client) -> None:
        resp = client.post(
            "/api/auth/register",
            json={"name": "Alice", "email": "Alice@Example.com ", "password": "Secret123"},
        )
        assert resp.status_code == 201
        body = resp.get_json()
        assert body["success"] is True
        user = body["data"]["user"]
        assert user["email"] == "alice@example.com"
        assert user["role"] == "Reader"
        assert "password_hash" not in user
        assert "refresh_token" not in user
        assert body["data"]["accessToken"]
        assert client.get_cookie("refreshToken", path="/api/auth") is not None

    def test_duplicate_email_conflicts(self, client, make_user) -> None:
        make_user(email="alice@example.com")
        resp = client.post(
            "/api/auth/register",
            json={"name": "Alice", "email": "alice@example.com", "password": "Secret123"},
        )
        assert resp.status_code == 409
        assert resp.get_json()["code"] == "CONFLICT"

    def test_validation_errors_are_per_field(self, client) -> None:
        resp = client.post("/api/auth/register", json={"name": "A", "email": "nope", "password": "short"})
        assert resp.status_code == 400
        errors = resp.get_json()["errors"]
        assert set(errors) == {"name", "email", "password"}

    def test_password_needs_mixed_case_and_digit(self, client) -> None:
        resp = client.post(
            "/api/auth/register",
            json={"name": "Alice", "email": "alice@example.com", "password": "alllowercase"},
        )
        assert resp.status_code == 400
        assert "password" in resp.get_json()["errors"]


class TestLogin:
    def test_login_scenario(self, client) -> None:
        """Register alice, then login returns access + refresh tokens and a user without the password hash."""
        client.post(
            "/api/auth/register",
            json={"name": "Alice", "email": "alice@example.com", "password": "Secret123"},
        )
        resp = login(client, "alice@example.com", "Secret123")
        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["accessToken"]
        assert data["refreshToken"]
        assert data["user"]["email"] == "alice@example.com"
        assert "password_hash" not in data["user"]
        assert data["user"]["lastLogin"] is not None

    def test_wrong_password_and_unknown_email_look_the_same(self, client, make_user) -> None:
        user = make_user(email="alice@example.com")
        wrong = login(client, user.email, "Wrong12345")
        unknown = login(client, "nobody@example.com", "Wrong12345")
        assert wrong.status_code == unknown.status_code == 401
        assert wrong.get_json() == unknown.get_json()
        assert wrong.get_json()["message"] == "Invalid email or password"

    def test_oauth_only_account_cannot_password_login(self, client, make_user) -> None:
        user = make_user(password=None)
        resp = login(client, user.email, "Whatever123")
        assert resp.status_code == 401
        assert resp.get_json()["message"] == "Invalid email or password"

    def test_deactivated_account(self, client, make_user) -> None:
        user = make_user(is_active=False)
        resp = login(client, user.email)
        assert resp.status_code == 401
        assert resp.get_json()["code"] == "ACCOUNT_DEACTIVATED"

    def test_login_persists_refresh_reference(self, app, client, make_user) -> None:
        user = make_user()
        token = login(client, user.email).get_json()["data"]["refreshToken"]
        with app.app_context():
            assert get_storage().get(User, user.id).refresh_token == token


class TestMe:
    def test_me_requires_auth(self, client) -> None:
        assert client.get("/api/auth/me").status_code == 401

    def test_me_with_bearer(self, client, make_user, auth_headers) -> None:
        user = make_user(name="Bob Reader")
        resp = client.get("/api/auth/me", headers=auth_headers(user))
        assert resp.status_code == 200
        assert resp.get_json()["data"]["user"]["name"] == "Bob Reader"

    def test_me_with_login_cookie(self, client, make_user) -> None:
        user = make_user()
        login(client, user.email)
        resp = client.get("/api/auth/me")
        assert resp.status_code == 200
        assert resp.get_json()["data"]["user"]["id"] == user.id


class TestRefresh:
    def test_valid_cookie_issues_access_token(self, client, make_user) -> None:
        user = make_user()
        login(client, user.email)
        resp = client.post("/api/auth/refresh")
        assert resp.status_code == 200
        token = resp.get_json()["data"]["accessToken"]
        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200

    def test_refresh_does_not_rotate_by_default(self, client, make_user) -> None:
        user = make_user()
        login(client, user.email)
        resp = client.post("/api/auth/refresh")
        assert "refreshToken" not in resp.get_json()["data"]
        assert client.post("/api/auth/refresh").status_code == 200

    def test_refresh_rotates_when_configured(self, app, client, make_user) -> None:
        app.config["JWT_ROTATE_REFRESH"] = True
        user = make_user()
        old = login(client, user.email).get_json()["data"]["refreshToken"]
        resp = client.post("/api/auth/refresh")
        assert resp.status_code == 200
        assert resp.get_json()["data"]["refreshToken"]
        new = resp.get_json()["data"]["refreshToken"]
        assert new != old
        with app.app_context():
            assert get_storage().get(User, user.id).refresh_token == new
        # The superseded token is no longer accepted
        replay = app.test_client().post("/api/auth/refresh", json={"refreshToken": old})
        assert replay.status_code == 401

    def test_body_token_for_non_browser_clients(self, app, make_user) -> None:
        user = make_user()
        first = app.test_client()
        token = login(first, user.email).get_json()["data"]["refreshToken"]
        other = app.test_client()
        resp = other.post("/api/auth/refresh", json={"refreshToken": token})
        assert resp.status_code == 200

    def test_missing_cookie_fails(self, client) -> None:
        resp = client.post("/api/auth/refresh")
        assert resp.status_code == 401
        body = resp.get_json()
        assert body["code"] == "REFRESH_FAILED"
        assert "data" not in body

    def test_expired_refresh_token_fails(self, client, make_user, expired_token) -> None:
        user = make_user()
        client.set_cookie("refreshToken", expired_token(user.id, "refresh"), path="/api/auth")
        resp = client.post("/api/auth/refresh")
        assert resp.status_code == 401
        assert resp.get_json()["code"] == "REFRESH_FAILED"

    def test_access_token_is_not_a_refresh_token(self, client, make_user) -> None:
        user = make_user()
        access = login(client, user.email).get_json()["data"]["accessToken"]
        client.set_cookie("refreshToken", access, path="/api/auth")
        assert client.post("/api/auth/refresh").status_code == 401

    def test_token_not_matching_stored_reference_fails(self, app, make_user) -> None:
        """A second login replaces the stored reference, so the first session's refresh token stops working."""
        user = make_user()
        stale = login(app.test_client(), user.email).get_json()["data"]["refreshToken"]
        current = login(app.test_client(), user.email).get_json()["data"]["refreshToken"]
        assert stale != current
        resp = app.test_client().post("/api/auth/refresh", json={"refreshToken": stale})
        assert resp.status_code == 401
        assert app.test_client().post("/api/auth/refresh", json={"refreshToken": current}).status_code == 200

    def test_deactivated_user_cannot_refresh(self, app, client, make_user) -> None:
        user = make_user()
        login(client, user.email)
        with app.app_context():
            storage = get_storage()
            storage.get(User, user.id).is_active = False
            storage.save()
        assert client.post("/api/auth/refresh").status_code == 401


class TestLogout:
    def test_logout_revokes_refresh(self, app, client, make_user) -> None:
        user = make_user()
        data = login(client, user.email).get_json()["data"]
        resp = client.post("/api/auth/logout", headers={"Authorization": f"Bearer {data['accessToken']}"})
        assert resp.status_code == 200
        with app.app_context():
            assert get_storage().get(User, user.id).refresh_token is None
        replay = app.test_client().post("/api/auth/refresh", json={"refreshToken": data["refreshToken"]})
        assert replay.status_code == 401

    def test_logout_requires_auth(self, client) -> None:
        assert client.post("/api/auth/logout").status_code == 401


class TestProfile:
    def test_update_name_and_avatar(self, client, make_user, auth_headers) -> None:
        user = make_user()
        resp = client.put(
            "/api/auth/profile",
            json={"name": "  Alice Cooper ", "avatar": "https://img.example.com/a.png"},
            headers=auth_headers(user),
        )
        assert resp.status_code == 200
        updated = resp.get_json()["data"]["user"]
        assert updated["name"] == "Alice Cooper"
        assert updated["avatar"] == "https://img.example.com/a.png"

    def test_role_cannot_be_self_assigned(self, client, make_user, auth_headers) -> None:
        user = make_user()
        resp = client.put("/api/auth/profile", json={"role": "Admin"}, headers=auth_headers(user))
        assert resp.status_code == 400


class TestChangePassword:
    def test_change_password(self, app, client, make_user, auth_headers) -> None:
        user = make_user()
        old_refresh = login(client, user.email).get_json()["data"]["refreshToken"]
        resp = client.post(
            "/api/auth/change-password",
            json={"currentPassword": PASSWORD, "newPassword": "Changed456"},
            headers=auth_headers(user),
        )
        assert resp.status_code == 200
        assert resp.get_json()["data"]["accessToken"]

        fresh = app.test_client()
        assert login(fresh, user.email, PASSWORD).status_code == 401
        assert login(fresh, user.email, "Changed456").status_code == 200
        stale = app.test_client().post("/api/auth/refresh", json={"refreshToken": old_refresh})
        assert stale.status_code == 401

    def test_wrong_current_password(self, client, make_user, auth_headers) -> None:
        user = make_user()
        resp = client.post(
            "/api/auth/change-password",
            json={"currentPassword": "Wrong12345", "newPassword": "Changed456"},
            headers=auth_headers(user),
        )
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Current password is incorrect"

    def test_weak_new_password(self, client, make_user, auth_headers) -> None:
        user = make_user()
        resp = client.post(
            "/api/auth/change-password",
            json={"currentPassword": PASSWORD, "newPassword": "weak"},
            headers=auth_headers(user),
        )
        assert resp.status_code == 400
        assert "newPassword" in resp.get_json()["errors"]


class TestRefreshBody:
    def test_non_object_json_body_fails_cleanly(self, client) -> None:
        resp = client.post("/api/auth/refresh", json=[1, 2])
        assert resp.status_code == 401
        assert resp.get_json()["code"] == "REFRESH_FAILED"

    def test_non_string_token_fails_cleanly(self, client) -> None:
        resp = client.post("/api/auth/refresh", json={"refreshToken": {"nested": True}})
        assert resp.status_code == 401
        assert resp.get_json()["code"] == "REFRESH_FAILED"


class TestRateLimit:
    def test_sixth_failed_login_is_throttled(self, client, make_user) -> None:
        user = make_user()
        for _ in range(5):
            assert login(client, user.email, "Wrong12345").status_code == 401
        resp = login(client, user.email, "Wrong12345")
        assert resp.status_code == 429
        body = resp.get_json()
        assert body["success"] is False
        assert body["code"] == "RATE_LIMITED"
        assert body["message"] == "Too many authentication attempts. Please try again later."
        assert body["retryAfter"] == 15 * 60

    def test_successful_logins_do_not_count(self, client, make_user) -> None:
        user = make_user()
        for _ in range(7):
            assert login(client, user.email).status_code == 200
        assert login(client, user.email, "Wrong12345").status_code == 401

    def test_throttle_also_blocks_correct_password(self, client, make_user) -> None:
        user = make_user()
        for _ in range(5):
            login(client, user.email, "Wrong12345")
        assert login(client, user.email).status_code == 429

    def test_failed_refreshes_are_throttled(self, client) -> None:
        for _ in range(5):
            assert client.post("/api/auth/refresh").status_code == 401
        assert client.post("/api/auth/refresh").status_code == 429
