"""
Affiliation Ledger
==================

Player/team and team/venue history. Records are append-only: a move
closes the open record (sets valid_to) and appends a new one. Queries are
evaluated against a TemporalContext:

- current: valid_to IS NULL
- season S: valid_from <= S.end AND (valid_to IS NULL OR valid_to >= S.start)
"""

import logging
from collections import Counter
from datetime import date, timedelta
from typing import Callable, Hashable, Iterable, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.errors import ConflictError, NotFoundError, ValidationError
from app.models import (
    MembershipType,
    Player,
    PlayerTeamHistory,
    Team,
    TeamVenueHistory,
    TransferType,
    Venue,
)
from app.temporal import TemporalContext, overlap_clause

logger = logging.getLogger(__name__)


def _window_filter(valid_from_col, valid_to_col, context: TemporalContext):
    if context.is_current:
        return valid_to_col.is_(None)
    return overlap_clause(valid_from_col, valid_to_col, context.window)


def find_open_conflicts(records: Iterable, key: Callable[[object], Hashable]) -> List[Hashable]:
    """Relation keys that have more than one open (valid_to is None) record."""
    counts = Counter(key(r) for r in records if r.valid_to is None)
    return [k for k, n in counts.items() if n > 1]


# =============================================================================
# PLAYER / TEAM
# =============================================================================

async def get_affiliations(
    db: AsyncSession,
    player_id: UUID,
    context: TemporalContext,
    membership_type: Optional[MembershipType] = None,
) -> Sequence[PlayerTeamHistory]:
    stmt = (
        select(PlayerTeamHistory)
        .options(selectinload(PlayerTeamHistory.team))
        .where(
            PlayerTeamHistory.player_id == player_id,
            _window_filter(PlayerTeamHistory.valid_from, PlayerTeamHistory.valid_to, context),
        )
        .order_by(PlayerTeamHistory.valid_from, PlayerTeamHistory.id)
    )
    if membership_type is not None:
        stmt = stmt.where(PlayerTeamHistory.membership_type == membership_type)
    return (await db.execute(stmt)).scalars().all()


async def get_player_career(db: AsyncSession, player_id: UUID) -> Sequence[PlayerTeamHistory]:
    stmt = (
        select(PlayerTeamHistory)
        .options(selectinload(PlayerTeamHistory.team))
        .where(PlayerTeamHistory.player_id == player_id)
        .order_by(PlayerTeamHistory.valid_from, PlayerTeamHistory.id)
    )
    return (await db.execute(stmt)).scalars().all()


async def get_current_team(
    db: AsyncSession,
    player_id: UUID,
    membership_type: MembershipType = MembershipType.CLUB,
) -> Optional[PlayerTeamHistory]:
    stmt = (
        select(PlayerTeamHistory)
        .options(selectinload(PlayerTeamHistory.team))
        .where(
            PlayerTeamHistory.player_id == player_id,
            PlayerTeamHistory.membership_type == membership_type,
            PlayerTeamHistory.valid_to.is_(None),
        )
    )
    return (await db.execute(stmt)).scalar_one_or_none()


async def get_squad(db: AsyncSession, team_id: UUID, context: TemporalContext) -> Sequence[PlayerTeamHistory]:
    """Players affiliated with the team in the given context, by shirt number then name."""
    stmt = (
        select(PlayerTeamHistory)
        .join(Player, PlayerTeamHistory.player_id == Player.id)
        .options(selectinload(PlayerTeamHistory.player))
        .where(
            PlayerTeamHistory.team_id == team_id,
            _window_filter(PlayerTeamHistory.valid_from, PlayerTeamHistory.valid_to, context),
        )
        .order_by(PlayerTeamHistory.shirt_number.is_(None), PlayerTeamHistory.shirt_number, Player.name)
    )
    return (await db.execute(stmt)).scalars().all()


async def get_former_players(db: AsyncSession, team_id: UUID, limit: int = 50) -> Sequence[PlayerTeamHistory]:
    stmt = (
        select(PlayerTeamHistory)
        .options(selectinload(PlayerTeamHistory.player))
        .where(
            PlayerTeamHistory.team_id == team_id,
            PlayerTeamHistory.valid_to.is_not(None),
        )
        .order_by(PlayerTeamHistory.valid_to.desc(), PlayerTeamHistory.id)
        .limit(limit)
    )
    return (await db.execute(stmt)).scalars().all()


async def record_transfer(
    db: AsyncSession,
    player_id: UUID,
    team_id: UUID,
    valid_from: date,
    shirt_number: Optional[int] = None,
    transfer_type: Optional[TransferType] = TransferType.PERMANENT,
    membership_type: MembershipType = MembershipType.CLUB,
) -> PlayerTeamHistory:
    """
    Move a player to `team_id` from `valid_from` onwards.

    The open record of the same membership type (if any) is closed the day
    before, so consecutive affiliations never share a day.
    """
    if await db.get(Player, player_id) is None:
        raise NotFoundError("Player not found")
    if await db.get(Team, team_id) is None:
        raise NotFoundError("Team not found")

    current = await get_current_team(db, player_id, membership_type)
    if current is not None:
        if current.team_id == team_id:
            raise ConflictError("Player is already affiliated with this team")
        if valid_from <= current.valid_from:
            raise ValidationError(
                f"Transfer date must be after the current affiliation start ({current.valid_from})",
                field="valid_from",
            )
        current.valid_to = valid_from - timedelta(days=1)
        # Close before insert so the open-record index never sees two rows
        await db.flush()

    record = PlayerTeamHistory(
        player_id=player_id,
        team_id=team_id,
        valid_from=valid_from,
        shirt_number=shirt_number,
        transfer_type=transfer_type,
        membership_type=membership_type,
    )
    db.add(record)
    await db.commit()
    await db.refresh(record, attribute_names=["team"])
    logger.info("Recorded %s affiliation of player %s with team %s from %s",
                membership_type.value, player_id, team_id, valid_from)
    return record


async def close_affiliation(db: AsyncSession, affiliation_id: UUID, valid_to: date) -> PlayerTeamHistory:
    record = await db.get(PlayerTeamHistory, affiliation_id)
    if record is None:
        raise NotFoundError("Affiliation not found")
    if record.valid_to is not None:
        raise ConflictError("Affiliation is already closed")
    if valid_to < record.valid_from:
        raise ValidationError("End date is before the affiliation start", field="valid_to")
    record.valid_to = valid_to
    await db.commit()
    await db.refresh(record, attribute_names=["team"])
    return record


# =============================================================================
# TEAM / VENUE
# =============================================================================

async def get_team_venues(db: AsyncSession, team_id: UUID, context: TemporalContext) -> Sequence[TeamVenueHistory]:
    stmt = (
        select(TeamVenueHistory)
        .options(selectinload(TeamVenueHistory.venue))
        .where(
            TeamVenueHistory.team_id == team_id,
            _window_filter(TeamVenueHistory.valid_from, TeamVenueHistory.valid_to, context),
        )
        .order_by(TeamVenueHistory.valid_from)
    )
    return (await db.execute(stmt)).scalars().all()


async def get_current_venue(db: AsyncSession, team_id: UUID) -> Optional[TeamVenueHistory]:
    stmt = (
        select(TeamVenueHistory)
        .options(selectinload(TeamVenueHistory.venue))
        .where(TeamVenueHistory.team_id == team_id, TeamVenueHistory.valid_to.is_(None))
    )
    return (await db.execute(stmt)).scalar_one_or_none()


async def record_venue_move(db: AsyncSession, team_id: UUID, venue_id: UUID, valid_from: date) -> TeamVenueHistory:
    if await db.get(Team, team_id) is None:
        raise NotFoundError("Team not found")
    if await db.get(Venue, venue_id) is None:
        raise NotFoundError("Venue not found")

    current = await get_current_venue(db, team_id)
    if current is not None:
        if current.venue_id == venue_id:
            raise ConflictError("Team already plays at this venue")
        if valid_from <= current.valid_from:
            raise ValidationError(
                f"Move date must be after the current tenancy start ({current.valid_from})",
                field="valid_from",
            )
        current.valid_to = valid_from - timedelta(days=1)
        await db.flush()

    record = TeamVenueHistory(team_id=team_id, venue_id=venue_id, valid_from=valid_from)
    db.add(record)
    await db.commit()
    await db.refresh(record, attribute_names=["venue"])
    logger.info("Team %s moved to venue %s from %s", team_id, venue_id, valid_from)
    return record
