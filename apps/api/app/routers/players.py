"""
Players Router
==============

Player-related endpoints including:
- Player detail with current club and national team
- Affiliations for a season or the present (the ledger view)
- Career history
- Per-season stats, gated by subscription tier
- Stats export
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.dependencies import get_auth_context, get_db, get_optional_auth_context
from app.errors import QuotaExceededError
from app.models import EntityType, MembershipType, Player
from app.schemas import (
    AffiliationRead,
    AffiliationsResponse,
    CompetitionBrief,
    PlayerBrief,
    PlayerDetail,
    PlayerStatsResponse,
    SeasonRead,
    SeasonStatLine,
    StatTotals,
    TeamBrief,
    TemporalContextRead,
)
from app.services.affiliations import get_affiliations, get_current_team, get_player_career
from app.services.auth import AuthContext
from app.services.entities import calculate_age, resolve_entity
from app.services.follows import get_follower_count
from app.services.seasons import resolve_temporal_context
from app.services.standings import get_player_stats, sum_stat_lines
from app.services.subscriptions import consume_daily_usage, user_can_access
from app.tiers import Feature, UsageFeature

router = APIRouter(prefix="/players", tags=["Players"])


# =============================================================================
# HELPERS
# =============================================================================

def affiliation_read(record) -> AffiliationRead:
    return AffiliationRead(
        id=record.id,
        team=TeamBrief.model_validate(record.team),
        shirt_number=record.shirt_number,
        membership_type=record.membership_type,
        transfer_type=record.transfer_type,
        valid_from=record.valid_from,
        valid_to=record.valid_to,
        is_current=record.valid_to is None,
    )


def stat_totals(values: dict, advanced: bool) -> StatTotals:
    totals = StatTotals(
        appearances=values["appearances"],
        goals=values["goals"],
        assists=values["assists"],
        yellow_cards=values["yellow_cards"],
        red_cards=values["red_cards"],
    )
    if advanced:
        minutes = values["minutes_played"]
        totals.minutes_played = minutes
        totals.clean_sheets = values["clean_sheets"]
        totals.goals_per_90 = round(values["goals"] * 90 / minutes, 2) if minutes else 0.0
    return totals


async def build_player_detail(db: AsyncSession, player: Player) -> PlayerDetail:
    club = await get_current_team(db, player.id, MembershipType.CLUB)
    national = await get_current_team(db, player.id, MembershipType.INTERNATIONAL)

    detail = PlayerDetail.model_validate(player)
    detail.age = calculate_age(player.date_of_birth)
    if club is not None:
        detail.current_team = TeamBrief.model_validate(club.team)
        detail.shirt_number = club.shirt_number
    if national is not None:
        detail.national_team = TeamBrief.model_validate(national.team)
    detail.follower_count = await get_follower_count(db, EntityType.PLAYER, player.id)
    return detail


async def build_player_stats(
    db: AsyncSession,
    player: Player,
    advanced: bool,
    season_id: Optional[UUID] = None,
) -> PlayerStatsResponse:
    rows = await get_player_stats(db, player.id, season_id)
    seasons: List[SeasonStatLine] = []
    for stat, team, competition, season in rows:
        line = stat_totals(sum_stat_lines([stat]), advanced)
        seasons.append(SeasonStatLine(
            **line.model_dump(),
            competition=CompetitionBrief.model_validate(competition),
            season=SeasonRead.model_validate(season),
            team=TeamBrief.model_validate(team),
        ))

    return PlayerStatsResponse(
        player=PlayerBrief.model_validate(player),
        totals=stat_totals(sum_stat_lines(row[0] for row in rows), advanced),
        seasons=seasons,
        advanced=advanced,
    )


async def has_advanced_stats(db: AsyncSession, auth: Optional[AuthContext]) -> bool:
    if auth is None:
        return False
    return await user_can_access(db, auth.user_id, Feature.ADVANCED_STATS)


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.get("/{player_id}", response_model=PlayerDetail)
async def get_player(
    player_id: str,
    db: AsyncSession = Depends(get_db)
) -> PlayerDetail:
    """
    Get detailed player information by id or slug.

    Includes the current club (and shirt number), the current national
    team and the follower count.
    """
    player = await resolve_entity(db, Player, player_id)
    return await build_player_detail(db, player)


@router.get("/{player_id}/affiliations", response_model=AffiliationsResponse)
async def get_player_affiliations(
    player_id: str,
    season_id: Optional[UUID] = Query(None, description="Season to view; omit for the present"),
    membership_type: Optional[MembershipType] = Query(None),
    db: AsyncSession = Depends(get_db)
) -> AffiliationsResponse:
    """
    Teams the player belonged to in a season, or right now.

    Without `season_id` only open affiliations are returned. With a season,
    any affiliation whose validity overlaps the season's dates is included,
    so a mid-season transfer lists both teams.
    """
    player = await resolve_entity(db, Player, player_id)
    context = await resolve_temporal_context(db, season_id)
    records = await get_affiliations(db, player.id, context, membership_type)

    return AffiliationsResponse(
        player=PlayerBrief.model_validate(player),
        context=TemporalContextRead.from_context(context),
        affiliations=[affiliation_read(r) for r in records],
    )


@router.get("/{player_id}/career", response_model=List[AffiliationRead])
async def get_career(
    player_id: str,
    db: AsyncSession = Depends(get_db)
) -> List[AffiliationRead]:
    """Full affiliation history, oldest first."""
    player = await resolve_entity(db, Player, player_id)
    return [affiliation_read(r) for r in await get_player_career(db, player.id)]


@router.get("/{player_id}/stats", response_model=PlayerStatsResponse)
async def get_stats(
    player_id: str,
    season_id: Optional[UUID] = Query(None),
    auth: Optional[AuthContext] = Depends(get_optional_auth_context),
    db: AsyncSession = Depends(get_db)
) -> PlayerStatsResponse:
    """
    Per competition-season stat lines plus career totals.

    Minutes, clean sheets and goals per 90 are only populated for
    subscribers whose tier includes advanced stats.
    """
    player = await resolve_entity(db, Player, player_id)
    advanced = await has_advanced_stats(db, auth)
    return await build_player_stats(db, player, advanced, season_id)


@router.get("/{player_id}/stats/export", response_model=PlayerStatsResponse)
async def export_stats(
    player_id: str,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db)
) -> PlayerStatsResponse:
    """
    Export every stat line for a player.

    **Requires a subscription with data export.** Each export counts as
    one API call against the daily allowance.
    """
    if not await user_can_access(db, auth.user_id, Feature.EXPORT_DATA):
        raise QuotaExceededError(
            "Data export is not included in your plan",
            feature=Feature.EXPORT_DATA.value,
        )
    player = await resolve_entity(db, Player, player_id)
    await consume_daily_usage(db, auth.user_id, UsageFeature.API_CALL)
    return await build_player_stats(db, player, advanced=True)
