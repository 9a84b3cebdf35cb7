"""Tests for the identity provider webhook endpoint."""

import base64
import json
from datetime import UTC, datetime
from unittest.mock import patch

import pytest
from conftest import create_post, create_user
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from svix.webhooks import Webhook

from red_tea.models.post import Post
from red_tea.models.user import Role, User, VerificationStatus

SECRET = "whsec_" + base64.b64encode(b"test-webhook-signing-secret").decode()


@pytest.fixture(autouse=True)
def webhook_secret():
    """Configure the webhook signing secret."""
    with patch("red_tea.api.webhooks.get_settings") as mock:
        mock.return_value.identity_webhook_secret = SECRET
        yield mock


def _signed(event: dict, secret: str = SECRET) -> tuple[bytes, dict[str, str]]:
    payload = json.dumps(event)
    sent_at = datetime.now(UTC)
    headers = {
        "svix-id": "msg_1",
        "svix-timestamp": str(int(sent_at.timestamp())),
        "svix-signature": Webhook(secret).sign("msg_1", sent_at, payload),
        "Content-Type": "application/json",
    }
    return payload.encode(), headers


def _user_event(event_type: str, subject_id: str = "user_abc", **data) -> dict:
    return {
        "type": event_type,
        "object": "event",
        "data": {
            "id": subject_id,
            "email_addresses": [{"id": "idn_1", "email_address": "jane@example.com"}],
            "first_name": "Jane",
            "last_name": "Doe",
            **data,
        },
    }


async def _user_by_subject(
    session_factory: async_sessionmaker[AsyncSession], subject_id: str
) -> User | None:
    async with session_factory() as db:
        result = await db.execute(select(User).where(User.subject_id == subject_id))
        return result.scalar_one_or_none()


class TestWebhookVerification:
    """Tests for signature checks."""

    async def test_unsigned_request_rejected(self, client: AsyncClient) -> None:
        response = await client.post("/api/webhooks/identity", json=_user_event("user.created"))

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid webhook signature"

    async def test_wrong_secret_rejected(
        self,
        client: AsyncClient,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        other = "whsec_" + base64.b64encode(b"someone-else").decode()
        payload, headers = _signed(_user_event("user.created"), secret=other)

        response = await client.post("/api/webhooks/identity", content=payload, headers=headers)

        assert response.status_code == 400
        assert await _user_by_subject(session_factory, "user_abc") is None

    async def test_signed_garbage_payload(self, client: AsyncClient) -> None:
        sent_at = datetime.now(UTC)
        headers = {
            "svix-id": "msg_2",
            "svix-timestamp": str(int(sent_at.timestamp())),
            "svix-signature": Webhook(SECRET).sign("msg_2", sent_at, "not json"),
        }

        response = await client.post(
            "/api/webhooks/identity", content=b"not json", headers=headers
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid webhook payload"

    async def test_missing_user_id(self, client: AsyncClient) -> None:
        payload, headers = _signed({"type": "user.created", "data": {}})

        response = await client.post("/api/webhooks/identity", content=payload, headers=headers)

        assert response.status_code == 400
        assert response.json()["detail"] == "Missing user id"


class TestLifecycleEvents:
    """Tests for mirroring user lifecycle events."""

    async def test_user_created(
        self,
        client: AsyncClient,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        payload, headers = _signed(_user_event("user.created"))

        response = await client.post("/api/webhooks/identity", content=payload, headers=headers)

        assert response.status_code == 200
        assert response.json() == {"status": "received"}
        user = await _user_by_subject(session_factory, "user_abc")
        assert user is not None
        assert user.email == "jane@example.com"
        assert user.name == "Jane Doe"
        assert user.verification_status == VerificationStatus.NONE
        assert user.pseudonym

    async def test_user_updated_keeps_moderation_state(
        self,
        client: AsyncClient,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        async with session_factory() as db:
            await create_user(db, "user_abc", role=Role.ADMIN, is_banned=True)
            await db.commit()

        payload, headers = _signed(_user_event("user.updated", first_name="Janet"))
        response = await client.post("/api/webhooks/identity", content=payload, headers=headers)

        assert response.status_code == 200
        user = await _user_by_subject(session_factory, "user_abc")
        assert user.name == "Janet Doe"
        assert user.role == Role.ADMIN
        assert user.is_banned is True

    async def test_user_deleted(
        self,
        client: AsyncClient,
        session_factory: async_sessionmaker[AsyncSession],
        mock_identity,
    ) -> None:
        async with session_factory() as db:
            user = await create_user(db, "user_abc")
            await create_post(db, user)
            await db.commit()

        payload, headers = _signed({"type": "user.deleted", "data": {"id": "user_abc"}})
        response = await client.post("/api/webhooks/identity", content=payload, headers=headers)

        assert response.status_code == 200
        assert await _user_by_subject(session_factory, "user_abc") is None
        async with session_factory() as db:
            posts = await db.execute(select(func.count(Post.id)))
            assert posts.scalar_one() == 0
        mock_identity.delete_user.assert_not_awaited()

    async def test_user_deleted_twice(self, client: AsyncClient) -> None:
        payload, headers = _signed({"type": "user.deleted", "data": {"id": "user_gone"}})

        response = await client.post("/api/webhooks/identity", content=payload, headers=headers)

        assert response.status_code == 200

    async def test_other_events_ignored(self, client: AsyncClient) -> None:
        payload, headers = _signed({"type": "session.created", "data": {"id": "sess_1"}})

        response = await client.post("/api/webhooks/identity", content=payload, headers=headers)

        assert response.status_code == 200
