"""
Database Connection
===================

Async engine and session scope for worker jobs. Jobs share the API's
models and services, so a job is just a coroutine that receives a
session.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Awaitable, Callable, Optional, TypeVar

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from worker.config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker] = None


def get_engine() -> AsyncEngine:
    """Create the engine on first use so importing the CLI never connects."""
    global _engine, _session_factory
    if _engine is None:
        options = {"pool_pre_ping": True, "echo": False}
        if settings.is_postgres:
            options.update(pool_size=settings.db_pool_size, max_overflow=settings.db_max_overflow)
        _engine = create_async_engine(settings.async_database_url, **options)
        _session_factory = async_sessionmaker(
            bind=_engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
    return _engine


@asynccontextmanager
async def session_scope() -> AsyncGenerator[AsyncSession, None]:
    """Session for one job; rolled back if the job raises."""
    get_engine()
    async with _session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def run_job(job: Callable[[AsyncSession], Awaitable[T]]) -> T:
    """Run `job` in its own session and dispose of the engine afterwards."""
    try:
        async with session_scope() as session:
            return await job(session)
    finally:
        await dispose_engine()


async def dispose_engine() -> None:
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        logger.debug("Worker engine disposed")
    _engine = None
    _session_factory = None

