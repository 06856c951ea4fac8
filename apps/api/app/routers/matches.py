"""
Matches Router
==============

Match detail with its event timeline.
"""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.dependencies import get_db
from app.schemas import MatchBrief, MatchDetail, MatchEventRead
from app.services.matches import get_match, get_match_events

router = APIRouter(prefix="/matches", tags=["Matches"])


@router.get("/{match_id}", response_model=MatchDetail)
async def get_match_detail(
    match_id: UUID,
    db: AsyncSession = Depends(get_db)
) -> MatchDetail:
    match = await get_match(db, match_id)
    events = await get_match_events(db, match.id)

    return MatchDetail(
        **MatchBrief.from_match(match).model_dump(),
        attendance=match.attendance,
        referee=match.referee,
        events=[MatchEventRead.model_validate(e) for e in events],
    )
