"""Pytest configuration and shared fixtures."""

from collections.abc import AsyncGenerator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from activity_logger.config import ActivityLoggerConfig, Settings
from activity_logger.core.activity.models import ActivityLog
from activity_logger.core.activity.store import SQLAlchemyRecordStore
from activity_logger.core.auth import create_access_token
from activity_logger.core.constants import ACTIVITY_ENTITY
from activity_logger.core.database import Base, create_session_factory
from activity_logger.main import create_app

# Import all models to ensure they're registered with Base.metadata
from activity_logger.modules.users.models import User
from tests.factories.user import user_payload


# In-memory SQLite shared by every connection of one engine
TEST_DATABASE_URL = "sqlite+aiosqlite://"
TEST_JWT_SECRET = "test-secret-key-for-activity-tokens"


@pytest.fixture
def settings() -> Settings:
    """Settings tracking the ``user`` entity type."""
    return Settings(
        database_url=TEST_DATABASE_URL,
        environment="test",
        jwt_secret_key=TEST_JWT_SECRET,
        activity_logger=ActivityLoggerConfig(models=frozenset({"user"})),
    )


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create test database engine with all tables."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test engine."""
    return create_session_factory(engine)


@pytest.fixture
def store(session_factory: async_sessionmaker[AsyncSession]) -> SQLAlchemyRecordStore:
    """Record store with the user and activity models registered."""
    return SQLAlchemyRecordStore(
        session_factory,
        {"user": User, ACTIVITY_ENTITY: ActivityLog},
    )


@pytest.fixture
def app(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
) -> FastAPI:
    """Create test application instance."""
    return create_app(settings, session_factory=session_factory)


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Provide async HTTP client for API testing.

    ASGITransport runs response background tasks before returning, so
    activity entries are persisted by the time a request call returns.
    """
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client


# ============================================================
# User Fixtures
# ============================================================


@pytest.fixture
async def actor(store: SQLAlchemyRecordStore) -> dict:
    """A stored user acting as the authenticated caller."""
    return await store.insert("user", user_payload(full_name="Acting User"))


@pytest.fixture
def auth_headers(actor: dict) -> dict[str, str]:
    """Bearer token headers for the acting user."""
    token = create_access_token(str(actor["id"]), TEST_JWT_SECRET)
    return {"Authorization": f"Bearer {token}"}
