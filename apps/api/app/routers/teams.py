"""
Teams Router
============

Team endpoints: detail, squad for a season, former players, venue
history and head-to-head records.
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.dependencies import get_db
from app.models import EntityType, Team
from app.schemas import (
    HeadToHeadResponse,
    MatchBrief,
    PlayerBrief,
    SquadMember,
    SquadResponse,
    TeamBrief,
    TeamDetail,
    TemporalContextRead,
    VenueHistoryResponse,
    VenueRead,
    VenueTenancy,
)
from app.services.affiliations import get_current_venue, get_former_players, get_squad, get_team_venues
from app.services.entities import resolve_entity
from app.services.follows import get_follower_count
from app.services.seasons import resolve_temporal_context
from app.services.standings import get_head_to_head

router = APIRouter(prefix="/teams", tags=["Teams"])


def squad_member(record) -> SquadMember:
    return SquadMember(
        affiliation_id=record.id,
        player=PlayerBrief.model_validate(record.player),
        shirt_number=record.shirt_number,
        valid_from=record.valid_from,
        valid_to=record.valid_to,
    )


@router.get("/{team_id}", response_model=TeamDetail)
async def get_team(
    team_id: str,
    db: AsyncSession = Depends(get_db)
) -> TeamDetail:
    """Get team information by id or slug, with its current venue."""
    team = await resolve_entity(db, Team, team_id)
    tenancy = await get_current_venue(db, team.id)

    detail = TeamDetail.model_validate(team)
    if tenancy is not None:
        detail.current_venue = VenueRead.model_validate(tenancy.venue)
    detail.follower_count = await get_follower_count(db, EntityType.TEAM, team.id)
    return detail


@router.get("/{team_id}/squad", response_model=SquadResponse)
async def get_team_squad(
    team_id: str,
    season_id: Optional[UUID] = Query(None, description="Season to view; omit for the present"),
    db: AsyncSession = Depends(get_db)
) -> SquadResponse:
    """
    Squad for a season, or the current squad.

    A player who joined or left during the season is listed, since their
    affiliation overlaps the season's dates.
    """
    team = await resolve_entity(db, Team, team_id)
    context = await resolve_temporal_context(db, season_id)
    records = await get_squad(db, team.id, context)

    return SquadResponse(
        team=TeamBrief.model_validate(team),
        context=TemporalContextRead.from_context(context),
        players=[squad_member(r) for r in records],
        total=len(records),
    )


@router.get("/{team_id}/former-players", response_model=List[SquadMember])
async def get_team_former_players(
    team_id: str,
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db)
) -> List[SquadMember]:
    """Closed affiliations with the team, most recent departure first."""
    team = await resolve_entity(db, Team, team_id)
    return [squad_member(r) for r in await get_former_players(db, team.id, limit)]


@router.get("/{team_id}/venues", response_model=VenueHistoryResponse)
async def get_team_venue_history(
    team_id: str,
    season_id: Optional[UUID] = Query(None),
    db: AsyncSession = Depends(get_db)
) -> VenueHistoryResponse:
    """Where the team played in a season, or plays now."""
    team = await resolve_entity(db, Team, team_id)
    context = await resolve_temporal_context(db, season_id)
    records = await get_team_venues(db, team.id, context)

    return VenueHistoryResponse(
        team=TeamBrief.model_validate(team),
        context=TemporalContextRead.from_context(context),
        venues=[
            VenueTenancy(
                id=r.id,
                venue=VenueRead.model_validate(r.venue),
                valid_from=r.valid_from,
                valid_to=r.valid_to,
            )
            for r in records
        ],
    )


@router.get("/{team_id}/head-to-head/{other_team_id}", response_model=HeadToHeadResponse)
async def get_team_head_to_head(
    team_id: str,
    other_team_id: str,
    limit: int = Query(10, ge=1, le=50),
    db: AsyncSession = Depends(get_db)
) -> HeadToHeadResponse:
    """Record across all finished meetings plus the most recent matches."""
    team1 = await resolve_entity(db, Team, team_id)
    team2 = await resolve_entity(db, Team, other_team_id)
    summary, matches = await get_head_to_head(db, team1.id, team2.id, limit)

    return HeadToHeadResponse(
        team1=TeamBrief.model_validate(team1),
        team2=TeamBrief.model_validate(team2),
        played=summary.played,
        team1_wins=summary.team1_wins,
        team2_wins=summary.team2_wins,
        draws=summary.draws,
        team1_goals=summary.team1_goals,
        team2_goals=summary.team2_goals,
        recent_matches=[MatchBrief.from_match(m) for m in matches],
    )
