"""Tests for bearer token resolution and password hashing."""

import time
from datetime import datetime, timedelta

from bson import ObjectId
from jose import jwt

from utils.hash import hash_password, verify_password
from utils.jwt import create_access_token, decode_token
from utils.security import resolve_bearer


class TestResolveBearer:
    def test_valid_token(self) -> None:
        user_id = ObjectId()
        token = create_access_token(str(user_id))

        result = resolve_bearer({"authorization": f"Bearer {token}"})

        assert result.ok
        assert result.user_id == user_id
        assert result.error is None

    def test_missing_header_is_reported_not_raised(self) -> None:
        result = resolve_bearer({})

        assert not result.ok
        assert result.error == "Missing authorization header"

    def test_wrong_scheme(self) -> None:
        token = create_access_token(str(ObjectId()))

        result = resolve_bearer({"authorization": f"Basic {token}"})

        assert not result.ok

    def test_expired_token(self) -> None:
        token = jwt.encode(
            {"sub": str(ObjectId()), "exp": datetime.utcnow() - timedelta(seconds=5)},
            "test-jwt-secret",
            algorithm="HS256",
        )

        result = resolve_bearer({"authorization": f"Bearer {token}"})

        assert not result.ok
        assert result.error == "Invalid or expired token"

    def test_subject_not_an_object_id(self) -> None:
        token = create_access_token("someone")

        result = resolve_bearer({"authorization": f"Bearer {token}"})

        assert not result.ok
        assert result.error == "Invalid token payload"


class TestTokenPayload:
    def test_only_subject_and_expiry(self) -> None:
        payload = decode_token(create_access_token("abc"))

        assert set(payload) == {"sub", "exp"}

    def test_expires_in_24_hours(self) -> None:
        payload = decode_token(create_access_token("abc"))
        ttl = payload["exp"] - time.time()

        assert 23 * 3600 < ttl <= 24 * 3600 + 5


class TestPasswordHash:
    def test_roundtrip(self) -> None:
        digest = hash_password("secret123")

        assert verify_password("secret123", digest)
        assert not verify_password("secret124", digest)

    def test_unknown_user_never_verifies(self) -> None:
        assert not verify_password("secret123", None)
