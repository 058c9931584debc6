"""Tests for health, site preference and image upload endpoints."""

from cloudinary.exceptions import Error as CloudinaryError
from httpx import AsyncClient

import routes.cards


class TestHealth:
    async def test_health(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["environment"] == "test"
        assert body["timestamp"]


class TestFavoriteNumber:
    async def test_default(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/ryan/favorite_number")

        assert response.status_code == 200
        body = response.json()
        assert body["favorite_number"] == 4
        assert body["message"] == "Ryan's favorite number is 4!"
        assert body["last_updated"]

    async def test_update_persists(self, client: AsyncClient) -> None:
        response = await client.post("/api/v1/ryan/favorite_number", json={"favorite_number": 7})

        assert response.status_code == 200
        assert response.json()["message"] == "Updated Ryan's favorite number to 7!"

        response = await client.get("/api/v1/ryan/favorite_number")
        assert response.json()["favorite_number"] == 7

    async def test_non_positive_rejected(self, client: AsyncClient, db) -> None:
        response = await client.post("/api/v1/ryan/favorite_number", json={"favorite_number": 0})

        assert response.status_code == 422
        assert response.json() == {"error": "Please enter a valid positive number"}
        preference = await db.preferences.find_one({"_id": "site"})
        assert preference["favorite_number"] == 4

    async def test_single_row(self, client: AsyncClient, db) -> None:
        await client.post("/api/v1/ryan/favorite_number", json={"favorite_number": 9})
        await client.post("/api/v1/ryan/favorite_number", json={"favorite_number": 10})

        assert await db.preferences.count_documents({}) == 1


class TestUploadImage:
    async def test_missing_file(self, client: AsyncClient) -> None:
        response = await client.post("/api/v1/cards/upload_image")

        assert response.status_code == 400
        assert response.json() == {"error": "No image file provided"}

    async def test_non_image_rejected(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/v1/cards/upload_image",
            files={"image": ("notes.txt", b"hello", "text/plain")},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Only image files are allowed"}

    async def test_upload_returns_url(self, client: AsyncClient, monkeypatch) -> None:
        def fake_upload(file):
            assert file.read() == b"\x89PNG"
            return {"image_url": "https://res.cloudinary.test/card.png", "public_id": "hockey_cards/card"}

        monkeypatch.setattr(routes.cards, "upload_image", fake_upload)

        response = await client.post(
            "/api/v1/cards/upload_image",
            files={"image": ("card.png", b"\x89PNG", "image/png")},
        )

        assert response.status_code == 200
        assert response.json() == {
            "message": "Image uploaded successfully",
            "image_url": "https://res.cloudinary.test/card.png",
            "public_id": "hockey_cards/card",
        }

    async def test_storage_failure(self, client: AsyncClient, monkeypatch) -> None:
        def failing_upload(file):
            raise CloudinaryError("quota exceeded")

        monkeypatch.setattr(routes.cards, "upload_image", failing_upload)

        response = await client.post(
            "/api/v1/cards/upload_image",
            files={"image": ("card.png", b"\x89PNG", "image/png")},
        )

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to upload image", "details": ["quota exceeded"]}
