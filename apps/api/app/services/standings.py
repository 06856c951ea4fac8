"""
Stats & Standings Aggregator
============================

Standings and player season stats are derived from finished matches and
written back with upserts keyed on their unique constraints. Rows whose key
is missing from a fresh computation are deleted in the same transaction, so
the stored rows always equal what the inputs derive.

The pure functions (`compute_standings`, `compute_player_stats`,
`summarize_head_to_head`) hold the rules; the async functions only load
inputs and persist outputs.

Ordering: points desc, goal difference desc, goals for desc, team id asc.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple
from uuid import UUID

from sqlalchemy import and_, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.database import dialect_insert, utcnow
from app.models import (
    Competition,
    CompetitionSeason,
    Match,
    MatchEvent,
    MatchEventType,
    MatchLineup,
    MatchStatus,
    Player,
    PlayerSeasonStat,
    Season,
    Standing,
    Team,
    TeamSeason,
)

logger = logging.getLogger(__name__)

POINTS_WIN = 3
POINTS_DRAW = 1
FORM_LENGTH = 5


# =============================================================================
# PURE AGGREGATION
# =============================================================================

@dataclass(frozen=True)
class MatchResult:
    home_team_id: UUID
    away_team_id: UUID
    home_score: int
    away_score: int
    played_at: Optional[datetime] = None


@dataclass
class TableRow:
    team_id: UUID
    played: int = 0
    won: int = 0
    drawn: int = 0
    lost: int = 0
    goals_for: int = 0
    goals_against: int = 0
    position: int = 0
    results: List[str] = field(default_factory=list)

    @property
    def goal_difference(self) -> int:
        return self.goals_for - self.goals_against

    @property
    def points(self) -> int:
        return self.won * POINTS_WIN + self.drawn * POINTS_DRAW

    @property
    def form(self) -> Optional[str]:
        if not self.results:
            return None
        return "".join(self.results[-FORM_LENGTH:])

    def record(self, scored: int, conceded: int) -> None:
        self.played += 1
        self.goals_for += scored
        self.goals_against += conceded
        if scored > conceded:
            self.won += 1
            self.results.append("W")
        elif scored == conceded:
            self.drawn += 1
            self.results.append("D")
        else:
            self.lost += 1
            self.results.append("L")


def standings_sort_key(row) -> Tuple[int, int, int, str]:
    return (-row.points, -row.goal_difference, -row.goals_for, str(row.team_id))


def compute_standings(team_ids: Iterable[UUID], results: Iterable[MatchResult]) -> List[TableRow]:
    """
    Build an ordered league table.

    Every team in `team_ids` gets a row even without matches; teams that
    only appear in `results` are added. Results are applied in kick-off
    order so `form` reads oldest to newest.
    """
    rows: Dict[UUID, TableRow] = {tid: TableRow(team_id=tid) for tid in team_ids}
    ordered = sorted(results, key=lambda r: (r.played_at is None, r.played_at or datetime.min))
    for result in ordered:
        home = rows.setdefault(result.home_team_id, TableRow(team_id=result.home_team_id))
        away = rows.setdefault(result.away_team_id, TableRow(team_id=result.away_team_id))
        home.record(result.home_score, result.away_score)
        away.record(result.away_score, result.home_score)

    table = sorted(rows.values(), key=standings_sort_key)
    for position, row in enumerate(table, start=1):
        row.position = position
    return table


@dataclass
class StatLine:
    player_id: UUID
    team_id: UUID
    appearances: int = 0
    goals: int = 0
    assists: int = 0
    yellow_cards: int = 0
    red_cards: int = 0
    minutes_played: int = 0
    clean_sheets: int = 0


def compute_player_stats(
    matches: Sequence[MatchResult],
    match_ids: Sequence[UUID],
    lineups: Iterable[MatchLineup],
    events: Iterable[MatchEvent],
) -> Dict[Tuple[UUID, UUID], StatLine]:
    """
    Per (player, team) stat lines for one competition season.

    `matches[i]` is the result of `match_ids[i]`. Own goals are not credited
    to the scorer; assists come from the secondary player of a goal event.
    Clean sheets go to goalkeepers who played in a match their team kept
    the opposition scoreless.
    """
    by_match = dict(zip(match_ids, matches))
    lines: Dict[Tuple[UUID, UUID], StatLine] = {}

    def line(player_id: UUID, team_id: UUID) -> StatLine:
        key = (player_id, team_id)
        if key not in lines:
            lines[key] = StatLine(player_id=player_id, team_id=team_id)
        return lines[key]

    for lineup in lineups:
        result = by_match.get(lineup.match_id)
        if result is None:
            continue
        if not (lineup.is_starter or (lineup.minutes_played or 0) > 0):
            continue
        stat = line(lineup.player_id, lineup.team_id)
        stat.appearances += 1
        stat.minutes_played += lineup.minutes_played or 0
        conceded = result.away_score if lineup.team_id == result.home_team_id else result.home_score
        if (lineup.position or "").upper() == "GK" and conceded == 0:
            stat.clean_sheets += 1

    for event in events:
        if event.match_id not in by_match:
            continue
        if event.event_type == MatchEventType.GOAL:
            if event.player_id:
                line(event.player_id, event.team_id).goals += 1
            if event.secondary_player_id:
                line(event.secondary_player_id, event.team_id).assists += 1
        elif event.event_type == MatchEventType.YELLOW_CARD and event.player_id:
            line(event.player_id, event.team_id).yellow_cards += 1
        elif event.event_type == MatchEventType.RED_CARD and event.player_id:
            line(event.player_id, event.team_id).red_cards += 1

    return lines


@dataclass
class HeadToHeadSummary:
    team1_id: UUID
    team2_id: UUID
    played: int = 0
    team1_wins: int = 0
    team2_wins: int = 0
    draws: int = 0
    team1_goals: int = 0
    team2_goals: int = 0


def summarize_head_to_head(team1_id: UUID, team2_id: UUID, results: Iterable[MatchResult]) -> HeadToHeadSummary:
    summary = HeadToHeadSummary(team1_id=team1_id, team2_id=team2_id)
    for r in results:
        if r.home_team_id == team1_id:
            t1, t2 = r.home_score, r.away_score
        else:
            t1, t2 = r.away_score, r.home_score
        summary.played += 1
        summary.team1_goals += t1
        summary.team2_goals += t2
        if t1 > t2:
            summary.team1_wins += 1
        elif t2 > t1:
            summary.team2_wins += 1
        else:
            summary.draws += 1
    return summary


# =============================================================================
# LOADERS
# =============================================================================

def _as_result(match: Match) -> MatchResult:
    return MatchResult(
        home_team_id=match.home_team_id,
        away_team_id=match.away_team_id,
        home_score=match.home_score or 0,
        away_score=match.away_score or 0,
        played_at=match.scheduled_at,
    )


async def _finished_matches(db: AsyncSession, competition_season_id: UUID) -> Sequence[Match]:
    stmt = (
        select(Match)
        .where(
            Match.competition_season_id == competition_season_id,
            Match.status == MatchStatus.FINISHED,
        )
        .order_by(Match.scheduled_at, Match.id)
    )
    return (await db.execute(stmt)).scalars().all()


async def _participants(db: AsyncSession, competition_season_id: UUID) -> Set[UUID]:
    stmt = select(TeamSeason.team_id).where(TeamSeason.competition_season_id == competition_season_id)
    team_ids = set((await db.execute(stmt)).scalars().all())
    stmt = select(Match.home_team_id, Match.away_team_id).where(
        Match.competition_season_id == competition_season_id
    )
    for home_id, away_id in (await db.execute(stmt)).all():
        team_ids.update((home_id, away_id))
    return team_ids


# =============================================================================
# REBUILDS
# =============================================================================

async def _delete_stale_standings(db: AsyncSession, competition_season_id: UUID, team_ids: Set[UUID]) -> int:
    stmt = delete(Standing).where(Standing.competition_season_id == competition_season_id)
    if team_ids:
        stmt = stmt.where(Standing.team_id.not_in(team_ids))
    return (await db.execute(stmt)).rowcount or 0


async def _delete_stale_stats(
    db: AsyncSession, competition_season_id: UUID, keys: Iterable[Tuple[UUID, UUID]]
) -> int:
    keep = set(keys)
    stmt = select(PlayerSeasonStat.id, PlayerSeasonStat.player_id, PlayerSeasonStat.team_id).where(
        PlayerSeasonStat.competition_season_id == competition_season_id
    )
    stale = [row_id for row_id, player_id, team_id in (await db.execute(stmt)).all()
             if (player_id, team_id) not in keep]
    if stale:
        await db.execute(delete(PlayerSeasonStat).where(PlayerSeasonStat.id.in_(stale)))
    return len(stale)


async def rebuild_standings(db: AsyncSession, competition_season_id: UUID) -> List[TableRow]:
    """
    Recompute the table for one competition season.

    Rows are upserted, and rows for teams no longer taking part are
    deleted in the same transaction.
    """
    matches = await _finished_matches(db, competition_season_id)
    team_ids = await _participants(db, competition_season_id)
    table = compute_standings(team_ids, [_as_result(m) for m in matches])
    removed = await _delete_stale_standings(db, competition_season_id, {row.team_id for row in table})
    if not table:
        await db.commit()
        logger.info("Cleared standings for %s (%d rows)", competition_season_id, removed)
        return table

    now = utcnow()
    insert_stmt = dialect_insert(db, Standing).values([
        dict(
            competition_season_id=competition_season_id,
            team_id=row.team_id,
            position=row.position,
            played=row.played,
            won=row.won,
            drawn=row.drawn,
            lost=row.lost,
            goals_for=row.goals_for,
            goals_against=row.goals_against,
            goal_difference=row.goal_difference,
            points=row.points,
            form=row.form,
            updated_at=now,
        )
        for row in table
    ])
    upsert = insert_stmt.on_conflict_do_update(
        index_elements=["competition_season_id", "team_id"],
        set_=dict(
            position=insert_stmt.excluded.position,
            played=insert_stmt.excluded.played,
            won=insert_stmt.excluded.won,
            drawn=insert_stmt.excluded.drawn,
            lost=insert_stmt.excluded.lost,
            goals_for=insert_stmt.excluded.goals_for,
            goals_against=insert_stmt.excluded.goals_against,
            goal_difference=insert_stmt.excluded.goal_difference,
            points=insert_stmt.excluded.points,
            form=insert_stmt.excluded.form,
            updated_at=insert_stmt.excluded.updated_at,
        ),
    )
    await db.execute(upsert)
    await db.commit()
    logger.info("Rebuilt standings for %s: %d teams from %d matches",
                competition_season_id, len(table), len(matches))
    return table


async def rebuild_player_stats(db: AsyncSession, competition_season_id: UUID) -> int:
    """
    Recompute player season stats; returns the number of stat lines.

    Stat lines that no finished match supports any more are deleted, so
    the stored rows always equal a fresh computation.
    """
    matches = await _finished_matches(db, competition_season_id)
    match_ids = [m.id for m in matches]
    lines: Dict[Tuple[UUID, UUID], StatLine] = {}
    if match_ids:
        lineups = (await db.execute(select(MatchLineup).where(MatchLineup.match_id.in_(match_ids)))).scalars().all()
        events = (await db.execute(select(MatchEvent).where(MatchEvent.match_id.in_(match_ids)))).scalars().all()
        lines = compute_player_stats([_as_result(m) for m in matches], match_ids, lineups, events)

    removed = await _delete_stale_stats(db, competition_season_id, lines.keys())
    if not lines:
        await db.commit()
        logger.info("Cleared player stats for %s (%d rows)", competition_season_id, removed)
        return 0

    now = utcnow()
    insert_stmt = dialect_insert(db, PlayerSeasonStat).values([
        dict(
            player_id=s.player_id,
            team_id=s.team_id,
            competition_season_id=competition_season_id,
            appearances=s.appearances,
            goals=s.goals,
            assists=s.assists,
            yellow_cards=s.yellow_cards,
            red_cards=s.red_cards,
            minutes_played=s.minutes_played,
            clean_sheets=s.clean_sheets,
            updated_at=now,
        )
        for s in lines.values()
    ])
    upsert = insert_stmt.on_conflict_do_update(
        index_elements=["player_id", "team_id", "competition_season_id"],
        set_=dict(
            appearances=insert_stmt.excluded.appearances,
            goals=insert_stmt.excluded.goals,
            assists=insert_stmt.excluded.assists,
            yellow_cards=insert_stmt.excluded.yellow_cards,
            red_cards=insert_stmt.excluded.red_cards,
            minutes_played=insert_stmt.excluded.minutes_played,
            clean_sheets=insert_stmt.excluded.clean_sheets,
            updated_at=insert_stmt.excluded.updated_at,
        ),
    )
    await db.execute(upsert)
    await db.commit()
    logger.info("Rebuilt %d player stat lines for %s", len(lines), competition_season_id)
    return len(lines)


# =============================================================================
# READS
# =============================================================================

async def get_standings(db: AsyncSession, competition_season_id: UUID) -> List[Tuple[Standing, Team]]:
    stmt = (
        select(Standing, Team)
        .join(Team, Standing.team_id == Team.id)
        .where(Standing.competition_season_id == competition_season_id)
        .order_by(
            Standing.points.desc(),
            Standing.goal_difference.desc(),
            Standing.goals_for.desc(),
            Standing.team_id.asc(),
        )
    )
    return [(row.Standing, row.Team) for row in await db.execute(stmt)]


async def get_top_scorers(db: AsyncSession, competition_season_id: UUID, limit: int = 20):
    stmt = (
        select(PlayerSeasonStat, Player, Team)
        .join(Player, PlayerSeasonStat.player_id == Player.id)
        .join(Team, PlayerSeasonStat.team_id == Team.id)
        .where(
            PlayerSeasonStat.competition_season_id == competition_season_id,
            PlayerSeasonStat.goals > 0,
        )
        .order_by(PlayerSeasonStat.goals.desc(), PlayerSeasonStat.assists.desc(), Player.name)
        .limit(limit)
    )
    return (await db.execute(stmt)).all()


async def get_player_stats(db: AsyncSession, player_id: UUID, season_id: Optional[UUID] = None):
    """Stat rows for a player with competition, season and team, newest season first."""
    stmt = (
        select(PlayerSeasonStat, Team, Competition, Season)
        .join(Team, PlayerSeasonStat.team_id == Team.id)
        .join(CompetitionSeason, PlayerSeasonStat.competition_season_id == CompetitionSeason.id)
        .join(Competition, CompetitionSeason.competition_id == Competition.id)
        .join(Season, CompetitionSeason.season_id == Season.id)
        .where(PlayerSeasonStat.player_id == player_id)
        .order_by(Season.start_date.desc(), Competition.name)
    )
    if season_id is not None:
        stmt = stmt.where(Season.id == season_id)
    return (await db.execute(stmt)).all()


def sum_stat_lines(stats: Iterable[PlayerSeasonStat]) -> Dict[str, int]:
    totals = dict(appearances=0, goals=0, assists=0, yellow_cards=0,
                  red_cards=0, minutes_played=0, clean_sheets=0)
    for s in stats:
        for key in totals:
            totals[key] += getattr(s, key) or 0
    return totals


async def get_player_career_totals(db: AsyncSession, player_id: UUID) -> Dict[str, int]:
    """Sum of every stat row for the player across all competition seasons."""
    stmt = select(
        func.coalesce(func.sum(PlayerSeasonStat.appearances), 0),
        func.coalesce(func.sum(PlayerSeasonStat.goals), 0),
        func.coalesce(func.sum(PlayerSeasonStat.assists), 0),
        func.coalesce(func.sum(PlayerSeasonStat.yellow_cards), 0),
        func.coalesce(func.sum(PlayerSeasonStat.red_cards), 0),
        func.coalesce(func.sum(PlayerSeasonStat.minutes_played), 0),
        func.coalesce(func.sum(PlayerSeasonStat.clean_sheets), 0),
    ).where(PlayerSeasonStat.player_id == player_id)
    row = (await db.execute(stmt)).one()
    keys = ("appearances", "goals", "assists", "yellow_cards", "red_cards", "minutes_played", "clean_sheets")
    return {k: int(v) for k, v in zip(keys, row)}


async def get_head_to_head(db: AsyncSession, team1_id: UUID, team2_id: UUID, limit: int = 10):
    """All finished meetings summarized, plus the most recent `limit` matches."""
    stmt = (
        select(Match)
        .options(selectinload(Match.home_team), selectinload(Match.away_team))
        .where(
            Match.status == MatchStatus.FINISHED,
            or_(
                and_(Match.home_team_id == team1_id, Match.away_team_id == team2_id),
                and_(Match.home_team_id == team2_id, Match.away_team_id == team1_id),
            ),
        )
        .order_by(Match.scheduled_at.desc())
    )
    matches = (await db.execute(stmt)).scalars().all()
    summary = summarize_head_to_head(team1_id, team2_id, [_as_result(m) for m in matches])
    return summary, matches[:limit]


async def get_matches(
    db: AsyncSession,
    competition_season_id: UUID,
    status: Optional[MatchStatus] = None,
    limit: int = 100,
) -> Sequence[Match]:
    stmt = (
        select(Match)
        .options(selectinload(Match.home_team), selectinload(Match.away_team))
        .where(Match.competition_season_id == competition_season_id)
        .order_by(Match.scheduled_at, Match.id)
        .limit(limit)
    )
    if status is not None:
        stmt = stmt.where(Match.status == status)
    return (await db.execute(stmt)).scalars().all()
