"""
Test fixtures for the Expense Tracker API test suite.

This module provides shared fixtures used across all test files:

  - db_engine / db_session: Fresh in-memory SQLite database for each test
  - user: A User row inserted directly, for service-level tests
  - client: Async HTTP test client (unauthenticated)
  - authenticated_client: Test client with a pre-registered user and JWT
  - second_authenticated_client: A second user for cross-user tests

Key design decisions:
  - In-memory SQLite (sqlite+aiosqlite://) is used for speed and isolation.
    Each test gets a completely fresh database.
  - We override FastAPI's get_db dependency to inject our test engine, so
    the application code works exactly as it does in production.
  - The authenticated clients sign up via the real endpoint, exercising
    the real signup flow (not just DB inserts).
"""

import os

# Settings require a signing secret; set one before the app is imported.
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from expense_api.database import Base, get_db
from expense_api.main import app
from expense_api.models.user import User
from expense_api.security import hash_password


# In-memory SQLite for fast, isolated tests
TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest_asyncio.fixture
async def db_engine():
    """Create a fresh async engine with all tables for each test."""
    engine = create_async_engine(TEST_DATABASE_URL)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine):
    """Provide an async session bound to the test engine."""
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with async_session() as session:
        yield session


@pytest_asyncio.fixture
async def user(db_session):
    """A committed User for calling the services directly."""
    user = User(
        name="Ledger Tester",
        email="ledger@example.com",
        hashed_password=hash_password("LedgerPass123!"),
    )
    db_session.add(user)
    await db_session.commit()
    return user


@pytest_asyncio.fixture
async def client(db_engine):
    """
    Async HTTP test client with the test database injected.

    This overrides the get_db dependency so all requests hit the
    in-memory test database instead of the real one.
    """
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async def override_get_db():
        async with async_session() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def authenticated_client(client):
    """
    Test client with a pre-registered user and JWT token.

    Signs up a test user via the real signup endpoint, then sets the
    Authorization header on the client for all subsequent requests.
    """
    response = await client.post(
        "/auth/signup",
        json={
            "name": "Test User",
            "email": "testuser@example.com",
            "password": "SecurePass123!",
        },
    )
    assert response.status_code == 201, f"Signup failed: {response.text}"
    token = response.json()["token"]
    client.headers["Authorization"] = f"Bearer {token}"
    return client


@pytest_asyncio.fixture
async def second_authenticated_client(db_engine, authenticated_client):
    """
    A second authenticated user for cross-user authorization tests.

    This is a separate AsyncClient over the same app and database, so it
    can be used side by side with authenticated_client.
    """
    response = await authenticated_client.post(
        "/auth/signup",
        json={
            "name": "Second User",
            "email": "seconduser@example.com",
            "password": "SecurePass456!",
        },
    )
    assert response.status_code == 201
    token = response.json()["token"]

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"Authorization": f"Bearer {token}"},
    ) as second:
        yield second
