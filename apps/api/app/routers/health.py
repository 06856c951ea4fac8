"""
Health Check Router
===================

Provides health, readiness, and liveness endpoints.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import utcnow
from app.dependencies import get_db
from app.schemas import HealthResponse, ReadyResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


async def _database_ok(db: AsyncSession) -> bool:
    try:
        await db.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError:
        logger.warning("Database health check failed", exc_info=True)
        return False


@router.get("/health", response_model=HealthResponse)
async def health_check(db: AsyncSession = Depends(get_db)) -> HealthResponse:
    """
    Health check endpoint.

    Reports the database status alongside version and environment.
    """
    db_ok = await _database_ok(db)

    return HealthResponse(
        status="healthy" if db_ok else "degraded",
        version=settings.api_version,
        timestamp=utcnow(),
        database="healthy" if db_ok else "unhealthy",
        environment=settings.environment
    )


@router.get("/ready", response_model=ReadyResponse)
async def readiness_check(db: AsyncSession = Depends(get_db)) -> ReadyResponse:
    """
    Kubernetes readiness probe.

    Returns true only if all critical dependencies are available.
    """
    checks = {"database": await _database_ok(db)}
    return ReadyResponse(ready=all(checks.values()), checks=checks)


@router.get("/live")
async def liveness_check() -> dict:
    """
    Kubernetes liveness probe.

    Simple check that the service is responding.
    """
    return {"alive": True}
