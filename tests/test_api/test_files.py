"""Tests for file upload endpoints."""

from unittest.mock import AsyncMock

from conftest import auth_headers, create_user
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from red_tea.main import app
from red_tea.services.base import APIError
from red_tea.services.storage import get_storage_client


class TestUploadUrl:
    """Tests for one-time upload URLs."""

    async def test_upload_url(self, client: AsyncClient, mock_storage: AsyncMock) -> None:
        response = await client.post("/api/files/upload-url", headers=auth_headers("newcomer"))

        assert response.status_code == 200
        assert response.json() == {"upload_url": "https://storage.example.com/upload/abc123"}
        mock_storage.generate_upload_url.assert_awaited_once()

    async def test_requires_token(self, client: AsyncClient) -> None:
        response = await client.post("/api/files/upload-url")

        assert response.status_code == 401

    async def test_banned_user(
        self,
        client: AsyncClient,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        async with session_factory() as db:
            await create_user(db, "banned", is_banned=True)
            await db.commit()

        response = await client.post("/api/files/upload-url", headers=auth_headers("banned"))

        assert response.status_code == 403

    async def test_storage_error(self, client: AsyncClient, mock_storage: AsyncMock) -> None:
        mock_storage.generate_upload_url.side_effect = APIError("unavailable", status_code=503)

        response = await client.post("/api/files/upload-url", headers=auth_headers("newcomer"))

        assert response.status_code == 503
        assert response.json()["detail"] == "unavailable"

    async def test_storage_not_configured(self, client: AsyncClient) -> None:
        app.dependency_overrides[get_storage_client] = lambda: None

        response = await client.post("/api/files/upload-url", headers=auth_headers("newcomer"))

        assert response.status_code == 503
        assert response.json()["detail"] == "File storage is not configured"
