"""Pytest fixtures and configuration."""

import os
from collections.abc import AsyncGenerator
from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Set test environment variables before importing the app
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-testing-at-least-32-characters-long")
os.environ.setdefault("DEBUG", "true")

import red_tea.models  # noqa: E402, F401
from red_tea.database import Base, get_db  # noqa: E402
from red_tea.main import app  # noqa: E402
from red_tea.models.post import Post  # noqa: E402
from red_tea.models.user import Role, User, VerificationStatus  # noqa: E402
from red_tea.services.identity import IdentityProviderClient, get_identity_client  # noqa: E402
from red_tea.services.moderation import Principal  # noqa: E402
from red_tea.services.storage import StorageClient, get_storage_client  # noqa: E402
from red_tea.utils.security import create_access_token  # noqa: E402

TEST_DB_URL = "sqlite+aiosqlite://"


@pytest.fixture
def anyio_backend() -> str:
    """Use asyncio as the async backend for tests."""
    return "asyncio"


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine]:
    """A fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession]:
    """Session for service-level tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def mock_storage() -> AsyncMock:
    """Storage client that resolves no URLs and accepts every deletion."""
    storage = AsyncMock(spec=StorageClient)
    storage.get_url_or_none.return_value = None
    storage.generate_upload_url.return_value = "https://storage.example.com/upload/abc123"
    storage.delete_object.return_value = None
    return storage


@pytest.fixture
def mock_identity() -> AsyncMock:
    """Identity provider client that deletes every account it is asked to."""
    identity = AsyncMock(spec=IdentityProviderClient)
    identity.delete_user.return_value = True
    return identity


@pytest.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
    mock_storage: AsyncMock,
    mock_identity: AsyncMock,
) -> AsyncGenerator[AsyncClient]:
    """Async HTTP client for testing FastAPI endpoints against the test database."""

    async def override_get_db() -> AsyncGenerator[AsyncSession]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage_client] = lambda: mock_storage
    app.dependency_overrides[get_identity_client] = lambda: mock_identity

    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()


def auth_headers(subject_id: str) -> dict[str, str]:
    """Bearer header for a session token issued to ``subject_id``."""
    token = create_access_token({"sub": subject_id})
    return {"Authorization": f"Bearer {token}"}


def principal_for(user: User) -> Principal:
    """The principal a request from ``user`` would resolve to."""
    return Principal(
        subject_id=user.subject_id,
        user_id=user.id,
        role=Role(user.role),
        is_banned=user.is_banned,
        is_approved=user.is_approved,
        email=user.email,
        name=user.name,
    )


async def create_user(
    db: AsyncSession,
    subject_id: str,
    *,
    role: Role = Role.USER,
    is_approved: bool = True,
    is_banned: bool = False,
    selfie_storage_id: str | None = None,
    id_storage_id: str | None = None,
    verification_status: VerificationStatus | None = None,
) -> User:
    """Insert a directory record."""
    if verification_status is None:
        verification_status = (
            VerificationStatus.APPROVED if is_approved else VerificationStatus.PENDING
        )
    user = User(
        subject_id=subject_id,
        email=f"{subject_id}@example.com",
        name=subject_id.title(),
        pseudonym=f"Alias{subject_id.title()}",
        selfie_storage_id=selfie_storage_id,
        id_storage_id=id_storage_id,
        is_approved=is_approved,
        is_banned=is_banned,
        has_completed_onboarding=True,
        role=role,
        verification_status=verification_status,
        created_at=datetime.now(UTC),
    )
    db.add(user)
    await db.flush()
    return user


async def create_post(
    db: AsyncSession,
    author: User,
    *,
    subject_name: str = "Alex",
    subject_age: int = 29,
    subject_city: str = "Austin",
    body: str = "Great first date.",
    file_id: str | None = None,
    green_count: int = 0,
    red_count: int = 0,
) -> Post:
    """Insert a post without going through the vote tally."""
    post = Post(
        user_id=author.id,
        subject_name=subject_name,
        subject_age=subject_age,
        subject_city=subject_city,
        body=body,
        file_id=file_id,
        green_count=green_count,
        red_count=red_count,
        report_count=0,
        is_reported=False,
        created_at=datetime.now(UTC),
    )
    db.add(post)
    await db.flush()
    return post
