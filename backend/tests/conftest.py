"""Root conftest — shared test configuration and the async test database.

Invariants:
    - Every test that asks for a database gets a fresh in-memory SQLite one
    - The DatabaseSessionManager is built around the test engine, so stores
      run the same session/rollback code as production

Design Decisions:
    - SQLite in-memory: fast, no external dependency, sufficient for store and
      route tests (PostgreSQL-specific features not exercised here)
"""

import os

# Ensure tests never talk to real services
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("BLOB_BACKEND", "local")
os.environ.setdefault("ADMIN_TOKEN_SECRET", "test-environment-signing-key-000000")

import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession, create_async_engine, async_sessionmaker,
)

from campus_print.db.base import Base  # noqa: E402
from campus_print.infrastructure.database import DatabaseSessionManager  # noqa: E402
import campus_print.models  # noqa: E402,F401


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
def test_db_manager(test_engine, test_session_factory):
    manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    manager.engine = test_engine
    manager._session_factory = test_session_factory
    return manager
