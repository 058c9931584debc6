import hashlib
import hmac
import os
import time

# settings are read at import time
os.environ.setdefault("JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_dummy")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test_secret")
os.environ.setdefault("ENV", "test")

import pytest
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

from database import get_db
from main import app
from utils.indexes import ensure_indexes
from utils.preferences import ensure_site_preference

WEBHOOK_SECRET = os.environ["STRIPE_WEBHOOK_SECRET"]


@pytest.fixture
async def db():
    """In-memory Mongo with the production indexes and startup rows."""
    database = AsyncMongoMockClient()["card_marketplace_test"]
    await ensure_indexes(database)
    await ensure_site_preference(database)
    yield database


@pytest.fixture
async def client(db):
    app.dependency_overrides[get_db] = lambda: db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def signup(client):
    """Register a user and return (user, token)."""
    async def _signup(email="u1@example.com", password="secret123", first_name="Wayne", last_name="Gretzky"):
        response = await client.post(
            "/api/v1/auth/signup",
            json={"user": {
                "email": email,
                "password": password,
                "first_name": first_name,
                "last_name": last_name,
            }},
        )
        assert response.status_code == 201, response.text
        data = response.json()
        return data["user"], data["token"]

    return _signup


def card_payload(**overrides) -> dict:
    payload = {
        "player_name": "Connor McDavid",
        "team": "Edmonton Oilers",
        "year": 2023,
        "manufacturer": "Upper Deck",
        "set_name": "Series 1",
        "card_number": "1",
        "condition": "Mint",
        "front_image_url": "https://x/y.jpg",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def create_card(client):
    async def _create(token: str, **overrides) -> dict:
        response = await client.post(
            "/api/v1/cards",
            json={"card": card_payload(**overrides)},
            headers=auth_headers(token),
        )
        assert response.status_code == 201, response.text
        return response.json()["card"]

    return _create


def stripe_signature(payload: str, secret: str = WEBHOOK_SECRET, timestamp: int | None = None) -> str:
    ts = timestamp or int(time.time())
    digest = hmac.new(secret.encode("utf-8"), f"{ts}.{payload}".encode("utf-8"), hashlib.sha256).hexdigest()
    return f"t={ts},v1={digest}"
