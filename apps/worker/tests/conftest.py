"""
Pytest Configuration for Worker Tests
======================================

Worker jobs run against a throwaway SQLite database with the API's
schema, so they exercise the same services the API uses.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./pitchside-worker-test.db")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

from datetime import datetime, timezone
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.database import Base


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )


@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path):
    url = f"sqlite+aiosqlite:///{tmp_path / 'worker.db'}"
    engine = create_async_engine(url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(engine) -> AsyncGenerator[AsyncSession, None]:
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    async with factory() as session:
        yield session


@pytest.fixture
def demo_now() -> datetime:
    """A fixed clock in the middle of the 2024/25 season."""
    return datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)
