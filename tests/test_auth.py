"""Tests for sign-in registration and token verification."""

from datetime import timedelta

from labhub.application.services.auth_service import create_access_token, role_for_email
from labhub.domain.models.user import User, UserRole

CALLBACK_HEADERS = {"X-Auth-Callback-Secret": "callback-secret"}


def sign_in(client, email, headers=CALLBACK_HEADERS, **extra):
    return client.post("/api/auth/sign-in", json={"email": email, **extra}, headers=headers)


class TestSignIn:
    def test_allow_listed_email_becomes_admin(self, client):
        response = sign_in(client, "Admin@LabHub.dev", name="Ada")

        assert response.status_code == 200
        body = response.json()
        assert body["token_type"] == "bearer"
        assert body["user"]["role"] == "ADMIN"
        assert body["access_token"]

    def test_other_email_is_user(self, client):
        response = sign_in(client, "someone@example.com")

        assert response.json()["user"]["role"] == "USER"

    def test_repeat_sign_in_returns_same_user(self, client, db):
        first = sign_in(client, "someone@example.com").json()["user"]
        second = sign_in(client, "someone@example.com").json()["user"]

        assert first["id"] == second["id"]
        assert db.query(User).count() == 1

    def test_bad_callback_secret(self, client, db):
        response = sign_in(client, "someone@example.com", headers={"X-Auth-Callback-Secret": "nope"})

        assert response.status_code == 401
        assert db.query(User).count() == 0

    def test_missing_callback_secret(self, client):
        assert sign_in(client, "someone@example.com", headers={}).status_code == 401

    def test_token_from_sign_in_works(self, client):
        token = sign_in(client, "someone@example.com").json()["access_token"]

        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        assert response.json()["email"] == "someone@example.com"


class TestMe:
    def test_requires_token(self, client):
        assert client.get("/api/auth/me").status_code == 401

    def test_invalid_token(self, client):
        response = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401

    def test_expired_token(self, client, member):
        token = create_access_token(member, expires_delta=timedelta(minutes=-1))

        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401

    def test_role_read_from_database(self, client, member, headers_for, db):
        headers = headers_for(member)
        member.role = UserRole.ADMIN
        db.commit()

        response = client.get("/api/auth/me", headers=headers)

        assert response.json()["role"] == "ADMIN"


def test_role_for_email_is_case_insensitive():
    assert role_for_email("SECOND-ADMIN@labhub.dev") is UserRole.ADMIN
    assert role_for_email("member@labhub.dev") is UserRole.USER
