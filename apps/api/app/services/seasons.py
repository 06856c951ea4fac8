"""
Seasons & Temporal Context
==========================

Seasons never overlap and at most one is current. A temporal context is
resolved once per request: no season id means "now", an explicit id must
name an existing season (unknown ids are NotFound, never an empty result).
"""

import logging
from datetime import date
from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.errors import ConflictError, NotFoundError, ValidationError
from app.models import Competition, CompetitionSeason, Season
from app.temporal import Interval, TemporalContext

logger = logging.getLogger(__name__)


def normalize_season_label(label: str) -> str:
    """URL-friendly `2024-25` and stored `2024/25` name the same season."""
    return label.strip().replace("-", "/")


async def list_seasons(db: AsyncSession) -> Sequence[Season]:
    result = await db.execute(select(Season).order_by(Season.start_date.desc()))
    return result.scalars().all()


async def get_current_season(db: AsyncSession) -> Optional[Season]:
    result = await db.execute(select(Season).where(Season.is_current.is_(True)))
    return result.scalar_one_or_none()


async def get_season(db: AsyncSession, season_id: UUID) -> Season:
    season = await db.get(Season, season_id)
    if season is None:
        raise NotFoundError("Season not found")
    return season


async def resolve_temporal_context(db: AsyncSession, season_id: Optional[UUID] = None) -> TemporalContext:
    if season_id is None:
        return TemporalContext.now()
    return TemporalContext.for_season(await get_season(db, season_id))


async def create_season(
    db: AsyncSession,
    label: str,
    start_date: date,
    end_date: date,
    is_current: bool = False,
) -> Season:
    """Insert a season, rejecting overlaps and moving the current flag if asked."""
    if end_date <= start_date:
        raise ValidationError("Season end date must be after its start date", field="end_date")

    label = normalize_season_label(label)
    window = Interval(start_date, end_date)
    for existing in await list_seasons(db):
        if existing.label == label:
            raise ConflictError(f"Season {label} already exists")
        if window.overlaps(Interval(existing.start_date, existing.end_date)):
            raise ConflictError(f"Season {label} overlaps {existing.label}")

    if is_current:
        await db.execute(update(Season).where(Season.is_current.is_(True)).values(is_current=False))

    season = Season(label=label, start_date=start_date, end_date=end_date, is_current=is_current)
    db.add(season)
    await db.commit()
    await db.refresh(season)
    logger.info("Created season %s (current=%s)", label, is_current)
    return season


async def set_current_season(db: AsyncSession, season_id: UUID) -> Season:
    season = await get_season(db, season_id)
    await db.execute(update(Season).where(Season.id != season.id).values(is_current=False))
    season.is_current = True
    await db.commit()
    return season


# =============================================================================
# COMPETITION SEASONS
# =============================================================================

async def get_competition_season(
    db: AsyncSession,
    competition: Competition,
    season_label: Optional[str] = None,
) -> CompetitionSeason:
    """
    Pick the edition of `competition` to read from.

    An explicit label wins; otherwise the current season; otherwise the
    edition with the most recent season start.
    """
    base = (
        select(CompetitionSeason)
        .join(Season, CompetitionSeason.season_id == Season.id)
        .options(selectinload(CompetitionSeason.season), selectinload(CompetitionSeason.competition))
        .where(CompetitionSeason.competition_id == competition.id)
    )

    if season_label:
        stmt = base.where(Season.label == normalize_season_label(season_label))
        cs = (await db.execute(stmt)).scalar_one_or_none()
        if cs is None:
            raise NotFoundError(f"{competition.name} has no season {season_label}")
        return cs

    cs = (await db.execute(base.where(Season.is_current.is_(True)))).scalar_one_or_none()
    if cs is not None:
        return cs

    cs = (await db.execute(base.order_by(Season.start_date.desc()).limit(1))).scalar_one_or_none()
    if cs is None:
        raise NotFoundError(f"{competition.name} has no seasons")
    return cs


async def get_competition_season_by_id(db: AsyncSession, competition_season_id: UUID) -> CompetitionSeason:
    stmt = (
        select(CompetitionSeason)
        .options(selectinload(CompetitionSeason.season), selectinload(CompetitionSeason.competition))
        .where(CompetitionSeason.id == competition_season_id)
    )
    cs = (await db.execute(stmt)).scalar_one_or_none()
    if cs is None:
        raise NotFoundError("Competition season not found")
    return cs


async def list_competition_seasons(db: AsyncSession, competition_id: UUID) -> Sequence[CompetitionSeason]:
    stmt = (
        select(CompetitionSeason)
        .join(Season, CompetitionSeason.season_id == Season.id)
        .options(selectinload(CompetitionSeason.season))
        .where(CompetitionSeason.competition_id == competition_id)
        .order_by(Season.start_date.desc())
    )
    return (await db.execute(stmt)).scalars().all()
