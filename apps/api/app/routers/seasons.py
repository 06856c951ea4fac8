"""
Seasons Router
==============

Season listing. Season ids returned here are the `season_id` values the
ledger endpoints accept.
"""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.dependencies import get_db
from app.errors import NotFoundError
from app.schemas import SeasonRead
from app.services.seasons import get_current_season, list_seasons

router = APIRouter(prefix="/seasons", tags=["Seasons"])


@router.get("", response_model=List[SeasonRead])
async def get_seasons(db: AsyncSession = Depends(get_db)) -> List[SeasonRead]:
    """All seasons, most recent first."""
    return [SeasonRead.model_validate(s) for s in await list_seasons(db)]


@router.get("/current", response_model=SeasonRead)
async def get_current(db: AsyncSession = Depends(get_db)) -> SeasonRead:
    season = await get_current_season(db)
    if season is None:
        raise NotFoundError("No current season")
    return SeasonRead.model_validate(season)
