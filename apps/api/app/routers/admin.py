"""
Admin Router
============

Admin-only endpoints for data management.
Protected by API key authentication.

Ledger writes go through the affiliation services, which close the open
record and append the new one in a single transaction.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.dependencies import get_admin_api_key, get_db
from app.models import EntityType, NotificationType, Player
from app.routers.players import affiliation_read
from app.schemas import (
    AffiliationClose,
    AffiliationRead,
    FinalizeResponse,
    MatchBrief,
    MatchFinalize,
    RebuildResponse,
    SeasonCreate,
    SeasonRead,
    TransferCreate,
    VenueMoveCreate,
    VenueRead,
    VenueTenancy,
)
from app.services.affiliations import close_affiliation, record_transfer, record_venue_move
from app.services.matches import finalize_match
from app.services.notifications import notify_followers
from app.services.seasons import create_season, get_competition_season_by_id, set_current_season
from app.services.standings import rebuild_player_stats, rebuild_standings

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
    dependencies=[Depends(get_admin_api_key)]
)


# =============================================================================
# SEASONS
# =============================================================================

@router.post("/seasons", response_model=SeasonRead, status_code=status.HTTP_201_CREATED)
async def add_season(
    season: SeasonCreate,
    db: AsyncSession = Depends(get_db)
) -> SeasonRead:
    """
    Create a season.

    **Requires API key authentication** via `X-API-Key` header.

    Seasons may not overlap one another. Setting `is_current` clears the
    flag on every other season.
    """
    created = await create_season(db, season.label, season.start_date, season.end_date, season.is_current)
    return SeasonRead.model_validate(created)


@router.post("/seasons/{season_id}/current", response_model=SeasonRead)
async def make_current_season(
    season_id: UUID,
    db: AsyncSession = Depends(get_db)
) -> SeasonRead:
    return SeasonRead.model_validate(await set_current_season(db, season_id))


# =============================================================================
# LEDGER
# =============================================================================

@router.post("/transfers", response_model=AffiliationRead, status_code=status.HTTP_201_CREATED)
async def create_transfer(
    transfer: TransferCreate,
    db: AsyncSession = Depends(get_db)
) -> AffiliationRead:
    """
    Record a player joining a team.

    The player's open affiliation of the same membership type is closed
    the day before `valid_from`. Followers of the player are notified.

    **Example request:**
    ```json
    {
        "player_id": "uuid",
        "team_id": "uuid",
        "valid_from": "2024-01-15",
        "shirt_number": 9,
        "transfer_type": "loan"
    }
    ```
    """
    record = await record_transfer(
        db,
        transfer.player_id,
        transfer.team_id,
        transfer.valid_from,
        shirt_number=transfer.shirt_number,
        transfer_type=transfer.transfer_type,
        membership_type=transfer.membership_type,
    )

    player = await db.get(Player, transfer.player_id)
    await notify_followers(
        db,
        EntityType.PLAYER,
        player.id,
        NotificationType.TRANSFER,
        "Transfer",
        f"{player.known_as or player.name} joins {record.team.name}",
    )
    return affiliation_read(record)


@router.post("/affiliations/{affiliation_id}/close", response_model=AffiliationRead)
async def end_affiliation(
    affiliation_id: UUID,
    body: AffiliationClose,
    db: AsyncSession = Depends(get_db)
) -> AffiliationRead:
    """Close an open affiliation without a new one, e.g. a release or retirement."""
    return affiliation_read(await close_affiliation(db, affiliation_id, body.valid_to))


@router.post("/venue-moves", response_model=VenueTenancy, status_code=status.HTTP_201_CREATED)
async def create_venue_move(
    move: VenueMoveCreate,
    db: AsyncSession = Depends(get_db)
) -> VenueTenancy:
    record = await record_venue_move(db, move.team_id, move.venue_id, move.valid_from)
    return VenueTenancy(
        id=record.id,
        venue=VenueRead.model_validate(record.venue),
        valid_from=record.valid_from,
        valid_to=record.valid_to,
    )


# =============================================================================
# AGGREGATES & MATCHES
# =============================================================================

@router.post("/competition-seasons/{competition_season_id}/rebuild", response_model=RebuildResponse)
async def rebuild_competition_season(
    competition_season_id: UUID,
    db: AsyncSession = Depends(get_db)
) -> RebuildResponse:
    """
    Recompute standings and player stats from finished matches.

    Rebuilding is idempotent: running it twice leaves the same rows.
    """
    cs = await get_competition_season_by_id(db, competition_season_id)
    table = await rebuild_standings(db, cs.id)
    stat_lines = await rebuild_player_stats(db, cs.id)
    logger.info("Rebuilt competition season %s: %d rows, %d stat lines", cs.id, len(table), stat_lines)
    return RebuildResponse(competition_season_id=cs.id, standings_rows=len(table), stat_lines=stat_lines)


@router.post("/matches/{match_id}/finalize", response_model=FinalizeResponse)
async def finalize(
    match_id: UUID,
    body: MatchFinalize,
    db: AsyncSession = Depends(get_db)
) -> FinalizeResponse:
    """
    Record a final score.

    Scores predictions, rebuilds the competition season's standings and
    stats, and notifies followers of both teams.
    """
    result = await finalize_match(db, match_id, body.home_score, body.away_score)
    return FinalizeResponse(
        match=MatchBrief.from_match(result.match),
        predictions_scored=result.predictions_scored,
        standings_rows=result.standings_rows,
        stat_lines=result.stat_lines,
        notifications_sent=result.notifications_sent,
    )
