"""
Match lifecycle: reading a match with its events and finalizing a result.
"""

import logging
from dataclasses import dataclass
from typing import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.errors import NotFoundError, ValidationError
from app.models import EntityType, Match, MatchEvent, MatchStatus, NotificationType
from app.services.notifications import notify_followers
from app.services.predictions import score_predictions_for_match
from app.services.standings import rebuild_player_stats, rebuild_standings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FinalizeResult:
    match: Match
    predictions_scored: int
    standings_rows: int
    stat_lines: int
    notifications_sent: int


async def get_match(db: AsyncSession, match_id: UUID) -> Match:
    stmt = (
        select(Match)
        .options(selectinload(Match.home_team), selectinload(Match.away_team))
        .where(Match.id == match_id)
    )
    match = (await db.execute(stmt)).scalar_one_or_none()
    if match is None:
        raise NotFoundError("Match not found")
    return match


async def get_match_events(db: AsyncSession, match_id: UUID) -> Sequence[MatchEvent]:
    stmt = (
        select(MatchEvent)
        .where(MatchEvent.match_id == match_id)
        .order_by(MatchEvent.minute, MatchEvent.added_time, MatchEvent.id)
    )
    return (await db.execute(stmt)).scalars().all()


async def finalize_match(db: AsyncSession, match_id: UUID, home_score: int, away_score: int) -> FinalizeResult:
    """
    Record a final score, then score predictions, rebuild the competition
    season's aggregates and tell followers of both teams.
    """
    if home_score < 0 or away_score < 0:
        raise ValidationError("Scores cannot be negative")
    match = await get_match(db, match_id)
    if match.status in (MatchStatus.CANCELLED, MatchStatus.POSTPONED):
        raise ValidationError(f"Cannot finalize a {match.status.value} match")

    match.home_score = home_score
    match.away_score = away_score
    match.status = MatchStatus.FINISHED
    await db.commit()

    scored = await score_predictions_for_match(db, match.id)
    table = await rebuild_standings(db, match.competition_season_id)
    stat_lines = await rebuild_player_stats(db, match.competition_season_id)

    title = f"{match.home_team.name} {home_score}-{away_score} {match.away_team.name}"
    sent = 0
    for team_id in (match.home_team_id, match.away_team_id):
        sent += await notify_followers(
            db, EntityType.TEAM, team_id, NotificationType.MATCH_END, "Full time", title
        )

    logger.info("Finalized match %s as %d-%d", match.id, home_score, away_score)
    return FinalizeResult(
        match=match,
        predictions_scored=scored,
        standings_rows=len(table),
        stat_lines=stat_lines,
        notifications_sent=sent,
    )
