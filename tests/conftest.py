"""
Pytest configuration and fixtures.

Every test gets a fresh in-memory SQLite database; API tests run the
FastAPI app over httpx with the session and current-user dependencies
overridden.
"""
import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from typing import AsyncGenerator, Any
from datetime import datetime

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

import contactlists.models  # noqa: F401
from contactlists.models.user import User
from contactlists.models.contact import Contact
from contactlists.models.contact_list import ContactList


@pytest_asyncio.fixture
async def db_engine() -> AsyncGenerator[Any, None]:
    """Create test database engine."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Enforce foreign keys the way PostgreSQL does
    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: Any):
    return sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    async with session_factory() as session:
        yield session


async def _make_user(session: AsyncSession, email: str) -> User:
    user = User(email=email, full_name=email.split("@")[0].title())
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


@pytest_asyncio.fixture
async def owner(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "owner@example.com")


@pytest_asyncio.fixture
async def other_owner(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "other@example.com")


@pytest.fixture
def make_list(db_session: AsyncSession):
    """Insert a list row directly, bypassing form validation."""
    async def _make(user: User, name: str, **fields) -> ContactList:
        contact_list = ContactList(user_id=user.id, name=name, **fields)
        db_session.add(contact_list)
        await db_session.commit()
        await db_session.refresh(contact_list)
        return contact_list
    return _make


@pytest.fixture
def make_contact(db_session: AsyncSession):
    """Insert a contact row directly."""
    async def _make(user: User, email: str, **fields) -> Contact:
        fields.setdefault("subscribed_at", datetime.utcnow())
        contact = Contact(user_id=user.id, email=email, **fields)
        db_session.add(contact)
        await db_session.commit()
        await db_session.refresh(contact)
        return contact
    return _make


@pytest_asyncio.fixture
async def client(session_factory, owner: User) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client authenticated as `owner`."""
    from contactlists.main import app
    from contactlists.database import get_session
    from contactlists.api.deps import get_current_user

    async def _override_get_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    async def _override_get_current_user() -> User:
        return owner

    app.dependency_overrides[get_session] = _override_get_session
    app.dependency_overrides[get_current_user] = _override_get_current_user

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
