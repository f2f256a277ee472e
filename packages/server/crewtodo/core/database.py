"""
Database connection and session management.

A session spans one request or one ``get_session_context`` block and is the
unit of atomicity: it commits on success and rolls back on any exception.
Connection-level failures surface as ``Unavailable``.
"""

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel

from crewtodo.core.config import get_settings
from crewtodo.core.errors import Unavailable

settings = get_settings()
log = structlog.get_logger()

# Store failures that are worth retrying from the caller's side.
TRANSIENT_ERRORS = (OperationalError, InterfaceError, asyncio.TimeoutError)

engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    future=True,
)

async_session_factory = sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def init_db():
    """Create all tables (development only)."""
    import crewtodo.models  # noqa: F401  populate metadata

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for database sessions."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except TRANSIENT_ERRORS as exc:
            await session.rollback()
            log.warning("db.unavailable", error=str(exc))
            raise Unavailable() from exc
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def get_session_context():
    """Context manager for use outside of FastAPI request lifecycle."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except TRANSIENT_ERRORS as exc:
            await session.rollback()
            log.warning("db.unavailable", error=str(exc))
            raise Unavailable() from exc
        except Exception:
            await session.rollback()
            raise
