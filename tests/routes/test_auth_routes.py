"""Tests for the identity endpoints (register, login, logout, me, profiles)."""

from squadzone.core.config import settings


class TestRegister:
    def test_register_sets_session_cookie(self, client):
        response = client.post(
            "/api/register", json={"email": "Dana@Example.com", "password": "secret"}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["email"] == "dana@example.com"
        assert body["name"] == "dana@example.com"
        assert body["avatar"] == "/assets/default-avatar.png"
        assert settings.session_cookie_name in response.cookies

        me = client.get("/api/me").json()
        assert me["user"]["id"] == body["id"]

    def test_duplicate_email_conflicts(self, client, alice):
        response = client.post("/api/register", json={"email": alice.email, "password": "x"})

        assert response.status_code == 409
        assert response.json()["code"] == "CONFLICT"

    def test_missing_password_is_invalid(self, client):
        response = client.post("/api/register", json={"email": "someone@example.com"})
        assert response.status_code == 400


class TestLoginLogout:
    def test_login_with_valid_credentials(self, client, alice, test_password):
        response = client.post(
            "/api/login", json={"email": alice.email, "password": test_password}
        )

        assert response.status_code == 200
        assert response.json()["id"] == alice.id
        assert client.get("/api/me").json()["user"]["name"] == "Alice"

    def test_wrong_password_is_invalid_credentials(self, client, alice):
        response = client.post("/api/login", json={"email": alice.email, "password": "nope"})

        assert response.status_code == 400
        assert response.json() == {"error": "invalid credentials", "code": "INVALID_ARGUMENT"}

    def test_unknown_email_is_invalid_credentials(self, client):
        response = client.post(
            "/api/login", json={"email": "ghost@example.com", "password": "whatever"}
        )
        assert response.status_code == 400

    def test_logout_ends_session(self, client, alice, test_password):
        client.post("/api/login", json={"email": alice.email, "password": test_password})
        token = client.cookies.get(settings.session_cookie_name)

        response = client.post("/api/logout")

        assert response.json() == {"ok": True}
        stale = client.get("/api/me", headers={"Authorization": f"Bearer {token}"})
        assert stale.json() == {"user": None}

    def test_me_without_session(self, client):
        assert client.get("/api/me").json() == {"user": None}


class TestUserProfile:
    def test_public_profile(self, client, bob):
        response = client.get(f"/api/users/{bob.id}")

        assert response.status_code == 200
        assert response.json()["user"]["name"] == "Bob"

    def test_unknown_user(self, client):
        response = client.get("/api/users/31337")

        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    def test_out_of_range_user_id_is_invalid(self, client):
        response = client.get(f"/api/users/{10**30}")

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_ARGUMENT"
