"""
Compare Router
==============

Side-by-side player comparison. Each request consumes one comparison
from the caller's daily allowance; free accounts get a handful per UTC
day, paid tiers are unlimited.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.dependencies import get_auth_context, get_db
from app.errors import ValidationError
from app.models import Player
from app.routers.players import build_player_detail, has_advanced_stats, stat_totals
from app.schemas import PlayerComparison
from app.services.auth import AuthContext
from app.services.entities import resolve_entity
from app.services.standings import get_player_career_totals
from app.services.subscriptions import consume_daily_usage
from app.tiers import UsageFeature

router = APIRouter(prefix="/compare", tags=["Compare"])


@router.get("/players", response_model=PlayerComparison)
async def compare_players(
    a: str = Query(..., description="First player id or slug"),
    b: str = Query(..., description="Second player id or slug"),
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db)
) -> PlayerComparison:
    """
    Compare two players' profiles and career totals.

    Returns 403 with the limit and usage once today's allowance is spent.
    """
    first = await resolve_entity(db, Player, a)
    second = await resolve_entity(db, Player, b)
    if first.id == second.id:
        raise ValidationError("Choose two different players")

    usage = await consume_daily_usage(db, auth.user_id, UsageFeature.COMPARISON)
    advanced = await has_advanced_stats(db, auth)

    players = [await build_player_detail(db, p) for p in (first, second)]
    totals = [stat_totals(await get_player_career_totals(db, p.id), advanced) for p in (first, second)]

    return PlayerComparison(
        players=players,
        totals=totals,
        comparisons_used=usage.used,
        comparisons_limit=usage.limit,
    )
