"""
Shared fixtures: an in-memory SQLite database per test, service-level
sessions, and an httpx client wired to the app with get_db overridden.
"""

import itertools
import os

# Must be set before notevault.settings is imported
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["ENVIRONMENT"] = "test"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from notevault.db import Base, get_db
from notevault.main import app
from notevault.models import User
from notevault.schemas import NoteCreate
from notevault.services.notes import create_note

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_PASSWORD = "Password123"


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db(session_maker):
    """Session for calling services directly."""
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_maker):
    """HTTP client against the app, one session per request like get_db."""

    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    """Create users straight in the database (no password, no session)."""
    counter = itertools.count(1)

    async def _make_user(first_name: str = "Test", last_name: str = "User", email: str | None = None) -> User:
        n = next(counter)
        user = User(
            email=email or f"user{n}@example.com",
            first_name=first_name,
            last_name=f"{last_name}{n}" if email is None else last_name,
            is_active=True,
        )
        db.add(user)
        await db.flush()
        return user

    return _make_user


@pytest.fixture
def make_note(db):
    async def _make_note(author: User, **fields):
        fields.setdefault("title", "A note")
        fields.setdefault("content", "Hello")
        note = await create_note(db, author, NoteCreate(**fields))
        return note

    return _make_note


@pytest.fixture
def register(client):
    """Register an account over HTTP and return (auth headers, user payload)."""
    counter = itertools.count(1)

    async def _register(first_name: str = "Ada", last_name: str = "Lovelace", email: str | None = None):
        email = email or f"{first_name.lower()}{next(counter)}@example.com"
        response = await client.post(
            "/auth/register",
            json={
                "email": email,
                "password": TEST_PASSWORD,
                "first_name": first_name,
                "last_name": last_name,
            },
        )
        assert response.status_code == 201, response.text
        data = response.json()["data"]
        return {"Authorization": f"Bearer {data['session_token']}"}, data["user"]

    return _register
