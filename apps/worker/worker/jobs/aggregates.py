"""
Aggregate Rebuild Jobs
======================

Recompute standings and player season stats from finished matches.

Rebuilds are idempotent upserts keyed on (competition season, team) and
(player, team, competition season), so they can be re-run at any time.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models import Competition, CompetitionSeason, Season
from app.services.entities import resolve_entity
from app.services.seasons import get_competition_season
from app.services.standings import rebuild_player_stats, rebuild_standings

logger = logging.getLogger(__name__)


@dataclass
class RebuildSummary:
    competition_season_id: UUID
    competition: str
    season: str
    standings_rows: Optional[int] = None
    stat_lines: Optional[int] = None


async def select_competition_seasons(
    db: AsyncSession,
    competition: Optional[str] = None,
    season: Optional[str] = None,
) -> List[CompetitionSeason]:
    """
    Competition seasons to rebuild.

    With a competition (id or slug) the chosen edition follows the same
    rules as the API: explicit season label, else current, else latest.
    Without one, every competition season is returned.
    """
    if competition:
        comp = await resolve_entity(db, Competition, competition)
        return [await get_competition_season(db, comp, season)]

    stmt = (
        select(CompetitionSeason)
        .join(Season, CompetitionSeason.season_id == Season.id)
        .options(selectinload(CompetitionSeason.competition), selectinload(CompetitionSeason.season))
        .order_by(Season.start_date, CompetitionSeason.id)
    )
    return list((await db.execute(stmt)).scalars().all())


async def rebuild_aggregates(
    db: AsyncSession,
    competition: Optional[str] = None,
    season: Optional[str] = None,
    standings: bool = True,
    stats: bool = True,
) -> List[RebuildSummary]:
    summaries = []
    for cs in await select_competition_seasons(db, competition, season):
        summary = RebuildSummary(
            competition_season_id=cs.id,
            competition=cs.competition.name,
            season=cs.season.label,
        )
        if standings:
            summary.standings_rows = len(await rebuild_standings(db, cs.id))
        if stats:
            summary.stat_lines = await rebuild_player_stats(db, cs.id)
        logger.info("Rebuilt %s %s", summary.competition, summary.season)
        summaries.append(summary)
    return summaries
