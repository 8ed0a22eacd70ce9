from __future__ import annotations

import os

# Settings are cached on first use; point them at SQLite before anything reads them.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

from typing import TYPE_CHECKING

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from leave_service import config
from leave_service.db import get_session
from leave_service.main import app
from leave_service.models import SQLModel
from leave_service.services.user import InMemoryUserDirectory, UserInfo, set_user_directory

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator

    from sqlalchemy.ext.asyncio import AsyncEngine

TEST_DATABASE_URL = "sqlite+aiosqlite://"

ALICE = UserInfo(id=2, name="Alice Johnson", email="alice@example.com")
BOB = UserInfo(id=3, name="Bob Smith", email="bob@example.com")
ADMIN_ID = 1


@pytest.fixture(autouse=True)
def _reset_settings() -> Iterator[None]:
    """Give every test freshly loaded settings."""
    config._settings = None
    yield
    config._settings = None


@pytest.fixture
def users() -> Iterator[InMemoryUserDirectory]:
    """Seeded in-memory user directory, installed as the app-wide directory."""
    directory = InMemoryUserDirectory()
    directory.seed(ALICE)
    directory.seed(BOB)
    set_user_directory(directory)
    yield directory
    set_user_directory(InMemoryUserDirectory())


@pytest.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    """A private in-memory SQLite database with all tables created."""
    _engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield _engine
    await _engine.dispose()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    """Yield a database session on the per-test database."""
    factory = async_sessionmaker(engine, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Factory for tests that need several independent sessions on one database."""
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def async_client(
    session_factory: async_sessionmaker[AsyncSession],
    users: InMemoryUserDirectory,
) -> AsyncIterator[AsyncClient]:
    """Async HTTP client with the database session dependency overridden."""

    async def _override_get_session() -> AsyncIterator[AsyncSession]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = _override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
