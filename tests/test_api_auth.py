"""Tests for signup, login and current-user endpoints."""

from datetime import datetime, timedelta

from bson import ObjectId
from httpx import AsyncClient
from jose import jwt

from conftest import auth_headers


class TestSignup:
    async def test_signup_returns_user_and_token_for_same_user(self, client: AsyncClient, signup) -> None:
        """The issued token resolves back to the account just created."""
        user, token = await signup(email="Skater@Example.com")

        assert user["email"] == "skater@example.com"
        assert user["full_name"] == "Wayne Gretzky"

        response = await client.get("/api/v1/auth/me", headers=auth_headers(token))

        assert response.status_code == 200
        assert response.json()["user"]["id"] == user["id"]

    async def test_password_is_hashed(self, db, signup) -> None:
        await signup(password="secret123")

        stored = await db.users.find_one({"email": "u1@example.com"})
        assert stored["password_digest"] != "secret123"
        assert "password" not in stored

    async def test_duplicate_email_rejected_without_new_record(self, client: AsyncClient, db, signup) -> None:
        await signup(email="dup@example.com")

        response = await client.post(
            "/api/v1/auth/signup",
            json={"user": {
                "email": "DUP@example.com",
                "password": "secret123",
                "first_name": "Other",
                "last_name": "Person",
            }},
        )

        assert response.status_code == 422
        assert "Email has already been taken" in response.json()["details"]
        assert await db.users.count_documents({}) == 1

    async def test_itemized_field_errors(self, client: AsyncClient, db) -> None:
        response = await client.post(
            "/api/v1/auth/signup",
            json={"user": {
                "email": "not-an-email",
                "password": "123",
                "first_name": "A",
                "last_name": "",
            }},
        )

        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "Failed to create account"
        assert "Email is invalid" in body["details"]
        assert any(d.startswith("Password is too short") for d in body["details"])
        assert any(d.startswith("First name is too short") for d in body["details"])
        assert "Last name can't be blank" in body["details"]
        assert await db.users.count_documents({}) == 0


class TestLogin:
    async def test_login_is_case_insensitive_on_email(self, client: AsyncClient, signup) -> None:
        user, _ = await signup(email="goalie@example.com")

        response = await client.post(
            "/api/v1/auth/login",
            json={"email": "GOALIE@example.com", "password": "secret123"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["user"]["id"] == user["id"]
        assert data["token"]

    async def test_wrong_password_gets_generic_message(self, client: AsyncClient, signup) -> None:
        await signup()

        response = await client.post(
            "/api/v1/auth/login",
            json={"email": "u1@example.com", "password": "wrong-password"},
        )

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid email or password"}

    async def test_unknown_email_gets_same_message(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/v1/auth/login",
            json={"email": "nobody@example.com", "password": "secret123"},
        )

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid email or password"}


class TestCurrentUser:
    async def test_missing_header(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/auth/me")

        assert response.status_code == 401
        assert response.json()["error"] == "Authentication required"

    async def test_malformed_token(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/auth/me", headers=auth_headers("garbage"))

        assert response.status_code == 401

    async def test_expired_token(self, client: AsyncClient, signup) -> None:
        user, _ = await signup()
        expired = jwt.encode(
            {"sub": user["id"], "exp": datetime.utcnow() - timedelta(minutes=1)},
            "test-jwt-secret",
            algorithm="HS256",
        )

        response = await client.get("/api/v1/auth/me", headers=auth_headers(expired))

        assert response.status_code == 401

    async def test_token_for_unknown_subject(self, client: AsyncClient) -> None:
        token = jwt.encode(
            {"sub": str(ObjectId()), "exp": datetime.utcnow() + timedelta(hours=1)},
            "test-jwt-secret",
            algorithm="HS256",
        )

        response = await client.get("/api/v1/auth/me", headers=auth_headers(token))

        assert response.status_code == 401
