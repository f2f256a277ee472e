"""
Shared fixtures: an in-memory SQLite store per test, an app client whose
session dependency points at it, and bearer-token helpers.
"""

from __future__ import annotations

import os

# Settings are read once at import time.
os.environ["CREWTODO_DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["CREWTODO_REDIS_URL"] = ""
os.environ["CREWTODO_BCRYPT_ROUNDS"] = "4"
os.environ["CREWTODO_SECRET_KEY"] = "test-secret-key-with-enough-length-for-hs256"

import uuid

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

import crewtodo.models  # noqa: F401
from crewtodo.core.auth import create_jwt
from crewtodo.core.database import get_session
from crewtodo.main import app


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    async def override_get_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def bearer(user_id: uuid.UUID, email: str | None = None) -> dict[str, str]:
    token, _jti = create_jwt(user_id, email or f"{user_id.hex[:8]}@crewtodo.dev", True)
    return {"Authorization": f"Bearer {token}"}


class Caller:
    """A user id plus the headers that authenticate as it."""

    def __init__(self, name: str):
        self.name = name
        self.id = uuid.uuid4()
        self.headers = bearer(self.id, f"{name}@crewtodo.dev")


@pytest.fixture
def alice():
    return Caller("alice")


@pytest.fixture
def bob():
    return Caller("bob")


@pytest.fixture
def carol():
    return Caller("carol")
