"""Tests for user API endpoints."""

from unittest.mock import AsyncMock

import pytest
from conftest import auth_headers, create_post, create_user
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from red_tea.main import app
from red_tea.models.user import User, VerificationStatus
from red_tea.services.base import APIError
from red_tea.services.identity import get_identity_client
from red_tea.services.storage import get_storage_client


@pytest.fixture
async def seeded(session_factory: async_sessionmaker[AsyncSession]) -> dict[str, int]:
    async with session_factory() as db:
        jane = await create_user(db, "jane", selfie_storage_id="selfie-1")
        bob = await create_user(db, "bob")
        await create_post(db, jane)
        await create_post(db, jane)
        await db.commit()
        return {"jane": jane.id, "bob": bob.id}


class TestCurrentUser:
    """Tests for the caller's own record."""

    async def test_read_me(self, client: AsyncClient, seeded: dict[str, int]) -> None:
        response = await client.get("/api/users/me", headers=auth_headers("jane"))

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == seeded["jane"]
        assert data["subject_id"] == "jane"
        assert data["email"] == "jane@example.com"
        assert data["role"] == "user"

    async def test_read_me_before_sync(self, client: AsyncClient) -> None:
        response = await client.get("/api/users/me", headers=auth_headers("fresh"))

        assert response.status_code == 404

    async def test_onboarding_creates_pending_user(
        self,
        client: AsyncClient,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        response = await client.post(
            "/api/users/me/onboarding",
            json={"selfie_storage_id": "selfie-9", "id_storage_id": "id-9"},
            headers=auth_headers("fresh"),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["has_completed_onboarding"] is True
        assert data["verification_status"] == VerificationStatus.PENDING
        assert data["is_approved"] is False

        async with session_factory() as db:
            user = await db.get(User, data["id"])
            assert user.selfie_storage_id == "selfie-9"
            assert user.id_storage_id == "id-9"


class TestDeleteMe:
    """Tests for self-deletion."""

    async def test_delete_me(
        self,
        client: AsyncClient,
        seeded: dict[str, int],
        mock_storage: AsyncMock,
        mock_identity: AsyncMock,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        response = await client.delete("/api/users/me", headers=auth_headers("jane"))

        assert response.status_code == 200
        assert response.json()["ok"] is True
        mock_identity.delete_user.assert_awaited_once_with("jane")
        mock_storage.delete_object.assert_awaited_once_with("selfie-1")

        async with session_factory() as db:
            assert await db.get(User, seeded["jane"]) is None

    async def test_provider_failure_rolls_back(
        self,
        client: AsyncClient,
        seeded: dict[str, int],
        mock_identity: AsyncMock,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        mock_identity.delete_user.side_effect = APIError("provider down", status_code=503)

        response = await client.delete("/api/users/me", headers=auth_headers("jane"))

        assert response.status_code == 502
        data = response.json()
        assert "delete_identity" in data["detail"]
        assert data["report"]["ok"] is False
        failed = [s for s in data["report"]["steps"] if s["status"] == "failed"]
        assert [s["name"] for s in failed] == ["delete_identity"]

        async with session_factory() as db:
            assert await db.get(User, seeded["jane"]) is not None


class TestPublicProfile:
    """Tests for other users' profiles."""

    async def test_read_user(self, client: AsyncClient, seeded: dict[str, int]) -> None:
        response = await client.get(f"/api/users/{seeded['jane']}", headers=auth_headers("bob"))

        assert response.status_code == 200
        data = response.json()
        assert data["pseudonym"] == "AliasJane"
        assert "email" not in data
        assert "subject_id" not in data

    async def test_read_missing_user(self, client: AsyncClient, seeded: dict[str, int]) -> None:
        response = await client.get("/api/users/999", headers=auth_headers("bob"))

        assert response.status_code == 404

    async def test_stats(self, client: AsyncClient, seeded: dict[str, int]) -> None:
        response = await client.get(
            f"/api/users/{seeded['jane']}/stats", headers=auth_headers("bob")
        )

        assert response.status_code == 200
        assert response.json() == {
            "user_id": seeded["jane"],
            "post_count": 2,
            "green_flags": 0,
            "red_flags": 0,
            "comment_count": 0,
        }

    async def test_user_posts(self, client: AsyncClient, seeded: dict[str, int]) -> None:
        response = await client.get(
            f"/api/users/{seeded['jane']}/posts", headers=auth_headers("bob")
        )

        assert response.status_code == 200
        assert len(response.json()) == 2


class TestUnconfiguredClients:
    """Requests still succeed when storage or the identity provider is not configured."""

    async def test_delete_me_without_identity_provider(
        self,
        client: AsyncClient,
        seeded: dict[str, int],
        mock_identity: AsyncMock,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        app.dependency_overrides[get_identity_client] = lambda: None

        response = await client.delete("/api/users/me", headers=auth_headers("jane"))

        assert response.status_code == 200
        steps = [s["name"] for s in response.json()["steps"]]
        assert "delete_identity" not in steps
        mock_identity.delete_user.assert_not_awaited()
        async with session_factory() as db:
            assert await db.get(User, seeded["jane"]) is None

    async def test_profile_posts_without_storage(
        self, client: AsyncClient, seeded: dict[str, int]
    ) -> None:
        app.dependency_overrides[get_storage_client] = lambda: None

        response = await client.get(
            f"/api/users/{seeded['jane']}/posts", headers=auth_headers("bob")
        )

        assert response.status_code == 200
        assert [post["image_url"] for post in response.json()] == [None, None]
