"""
Pitchside API
=============
Football stats, history and fan accounts.

Main FastAPI application entry point.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.responses import ORJSONResponse

from app.config import configure_logging, settings
from app.database import check_database_connection, engine, utcnow
from app.errors import register_exception_handlers
from app.middleware import setup_middleware
from app.routers import (
    account_router,
    admin_router,
    auth_router,
    compare_router,
    competitions_router,
    follows_router,
    health_router,
    matches_router,
    notifications_router,
    players_router,
    predictions_router,
    search_router,
    seasons_router,
    subscriptions_router,
    teams_router,
)

configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Pitchside API starting up (%s)", settings.environment)
    await check_database_connection()
    logger.info("Database connection verified")
    yield
    logger.info("Pitchside API shutting down")
    await engine.dispose()


# OpenAPI tags metadata for better documentation
tags_metadata = [
    {"name": "Health", "description": "Health check and status endpoints"},
    {"name": "Search", "description": "Unified search across players, teams and competitions"},
    {"name": "Seasons", "description": "Season catalogue used for historical views"},
    {"name": "Players", "description": "Player profiles, affiliations, career and stats"},
    {"name": "Teams", "description": "Team profiles, squads, venues and head-to-head"},
    {"name": "Competitions", "description": "Competitions, standings, top scorers and fixtures"},
    {"name": "Matches", "description": "Match detail and events"},
    {"name": "Compare", "description": "Player comparison (metered per day)"},
    {"name": "Auth", "description": "Signup, login and password recovery"},
    {"name": "Account", "description": "Password changes, sessions and account deletion"},
    {"name": "Follows", "description": "Follow players, teams and competitions"},
    {"name": "Subscriptions", "description": "Tiers, entitlements and daily usage"},
    {"name": "Notifications", "description": "In-app notifications and preferences"},
    {"name": "Predictions", "description": "Match predictions, badges and leaderboard"},
    {"name": "Admin", "description": "Admin-only endpoints (requires API key)"},
]


def create_app() -> FastAPI:
    app = FastAPI(
        title="Pitchside API",
        description="""
## Football stats, history and fan accounts

- **Affiliation ledger**: who played for whom, and where teams played, for any season
- **Aggregates**: standings and player stats rebuilt from finished matches
- **Accounts**: sessions, subscription tiers, follows, notifications and predictions

### Historical views

Ledger endpoints accept `season_id`; without it they describe the present.

### Authentication

Account endpoints take `Authorization: Bearer <token>` or the session cookie.
Admin endpoints require the `X-API-Key` header.
""",
        version=settings.api_version,
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        openapi_tags=tags_metadata,
    )

    setup_middleware(app)
    register_exception_handlers(app)

    # Health endpoints at root level
    app.include_router(health_router)

    # API v1 endpoints
    for router in (
        search_router,
        seasons_router,
        players_router,
        teams_router,
        competitions_router,
        matches_router,
        compare_router,
        auth_router,
        account_router,
        follows_router,
        subscriptions_router,
        notifications_router,
        predictions_router,
        admin_router,
    ):
        app.include_router(router, prefix="/api/v1")

    @app.get("/", response_class=ORJSONResponse)
    async def root() -> dict[str, Any]:
        """Root endpoint with API information."""
        return {
            "name": "Pitchside API",
            "version": settings.api_version,
            "docs": "/docs",
            "health": "/health",
            "api": {
                "search": "/api/v1/search?q=",
                "players": "/api/v1/players/{player_id}",
                "teams": "/api/v1/teams/{team_id}",
                "standings": "/api/v1/competitions/{competition_id}/standings",
            },
            "timestamp": utcnow().isoformat(),
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=settings.is_development)
