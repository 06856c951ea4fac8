"""
Pitchside API Routers
=====================

All API routers for the Pitchside API.
"""

from app.routers.health import router as health_router
from app.routers.search import router as search_router
from app.routers.seasons import router as seasons_router
from app.routers.players import router as players_router
from app.routers.teams import router as teams_router
from app.routers.competitions import router as competitions_router
from app.routers.matches import router as matches_router
from app.routers.compare import router as compare_router
from app.routers.auth import router as auth_router
from app.routers.account import router as account_router
from app.routers.follows import router as follows_router
from app.routers.subscriptions import router as subscriptions_router
from app.routers.notifications import router as notifications_router
from app.routers.predictions import router as predictions_router
from app.routers.admin import router as admin_router

__all__ = [
    "health_router",
    "search_router",
    "seasons_router",
    "players_router",
    "teams_router",
    "competitions_router",
    "matches_router",
    "compare_router",
    "auth_router",
    "account_router",
    "follows_router",
    "subscriptions_router",
    "notifications_router",
    "predictions_router",
    "admin_router",
]
