"""
Competitions Router
===================

Competition endpoints: listing, detail with editions, standings, top
scorers and fixtures.

A competition's season is chosen by the `season` label (e.g. `2023/24` or
`2023-24`); when omitted, the current season is used, falling back to the
most recent edition.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.dependencies import get_db
from app.models import Competition, EntityType, MatchStatus
from app.schemas import (
    CompetitionBrief,
    CompetitionDetail,
    CompetitionRead,
    CompetitionSeasonRead,
    MatchBrief,
    PlayerBrief,
    SeasonRead,
    StandingRead,
    StandingsResponse,
    TeamBrief,
    TopScorer,
)
from app.services.entities import list_competitions, resolve_entity
from app.services.follows import get_follower_count
from app.services.seasons import get_competition_season, list_competition_seasons
from app.services.standings import get_matches, get_standings, get_top_scorers

router = APIRouter(prefix="/competitions", tags=["Competitions"])


@router.get("", response_model=List[CompetitionRead])
async def get_competitions(db: AsyncSession = Depends(get_db)) -> List[CompetitionRead]:
    """List all competitions alphabetically."""
    return [CompetitionRead.model_validate(c) for c in await list_competitions(db)]


@router.get("/{competition_id}", response_model=CompetitionDetail)
async def get_competition(
    competition_id: str,
    db: AsyncSession = Depends(get_db)
) -> CompetitionDetail:
    """Competition by id or slug, with every edition newest first."""
    competition = await resolve_entity(db, Competition, competition_id)
    editions = await list_competition_seasons(db, competition.id)

    detail = CompetitionDetail.model_validate(competition)
    detail.seasons = [CompetitionSeasonRead.model_validate(cs) for cs in editions]
    detail.follower_count = await get_follower_count(db, EntityType.COMPETITION, competition.id)
    return detail


@router.get("/{competition_id}/standings", response_model=StandingsResponse)
async def get_competition_standings(
    competition_id: str,
    season: Optional[str] = Query(None, description="Season label, e.g. 2023/24"),
    db: AsyncSession = Depends(get_db)
) -> StandingsResponse:
    """
    League table for a competition season.

    Ordered by points, then goal difference, then goals scored; remaining
    ties are broken deterministically by team id.
    """
    competition = await resolve_entity(db, Competition, competition_id)
    cs = await get_competition_season(db, competition, season)
    rows = await get_standings(db, cs.id)

    return StandingsResponse(
        competition=CompetitionBrief.model_validate(competition),
        season=SeasonRead.model_validate(cs.season),
        competition_season_id=cs.id,
        standings=[
            StandingRead(
                position=position,
                team=TeamBrief.model_validate(team),
                played=standing.played,
                won=standing.won,
                drawn=standing.drawn,
                lost=standing.lost,
                goals_for=standing.goals_for,
                goals_against=standing.goals_against,
                goal_difference=standing.goal_difference,
                points=standing.points,
                form=standing.form,
            )
            for position, (standing, team) in enumerate(rows, start=1)
        ],
    )


@router.get("/{competition_id}/top-scorers", response_model=List[TopScorer])
async def get_competition_top_scorers(
    competition_id: str,
    season: Optional[str] = Query(None),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db)
) -> List[TopScorer]:
    competition = await resolve_entity(db, Competition, competition_id)
    cs = await get_competition_season(db, competition, season)
    rows = await get_top_scorers(db, cs.id, limit)

    return [
        TopScorer(
            rank=rank,
            player=PlayerBrief.model_validate(player),
            team=TeamBrief.model_validate(team),
            goals=stat.goals,
            assists=stat.assists,
            appearances=stat.appearances,
        )
        for rank, (stat, player, team) in enumerate(rows, start=1)
    ]


@router.get("/{competition_id}/matches", response_model=List[MatchBrief])
async def get_competition_matches(
    competition_id: str,
    season: Optional[str] = Query(None),
    status: Optional[MatchStatus] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db)
) -> List[MatchBrief]:
    """Fixtures and results in kickoff order."""
    competition = await resolve_entity(db, Competition, competition_id)
    cs = await get_competition_season(db, competition, season)
    return [MatchBrief.from_match(m) for m in await get_matches(db, cs.id, status, limit)]
