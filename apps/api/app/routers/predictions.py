"""
Predictions Router
==================

Score predictions for upcoming matches, personal history and stats,
badges and the global leaderboard.

Scoring: 3 points for the exact score, 1 for the correct result, 0
otherwise. Predictions close at kickoff.
"""

from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.dependencies import get_auth_context, get_db
from app.schemas import (
    BadgeRead,
    LeaderboardEntry,
    MatchBrief,
    PredictionCreate,
    PredictionProfile,
    PredictionRead,
    PredictionStats,
    PredictionWithMatch,
)
from app.services import predictions as prediction_service
from app.services.auth import AuthContext

router = APIRouter(prefix="/predictions", tags=["Predictions"])


@router.post("", response_model=PredictionRead, status_code=status.HTTP_201_CREATED)
async def submit_prediction(
    body: PredictionCreate,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db)
) -> PredictionRead:
    """
    Create or replace a prediction.

    Resubmitting before kickoff overwrites the earlier scoreline. Returns
    400 once the match has started.
    """
    prediction = await prediction_service.submit_prediction(
        db, auth.user_id, body.match_id, body.home_score, body.away_score
    )
    return PredictionRead.model_validate(prediction)


@router.get("/me", response_model=List[PredictionWithMatch])
async def my_predictions(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db)
) -> List[PredictionWithMatch]:
    rows = await prediction_service.get_user_predictions(db, auth.user_id, limit, offset)
    return [
        PredictionWithMatch(
            **PredictionRead.model_validate(prediction).model_dump(),
            match=MatchBrief.from_match(match),
        )
        for prediction, match in rows
    ]


@router.get("/stats", response_model=PredictionProfile)
async def my_stats(
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db)
) -> PredictionProfile:
    stats = await prediction_service.get_user_prediction_stats(db, auth.user_id)
    badges = await prediction_service.get_user_badges(db, auth.user_id)
    return PredictionProfile(
        stats=PredictionStats(**stats),
        badges=[BadgeRead.model_validate(b) for b in badges],
    )


@router.get("/leaderboard", response_model=List[LeaderboardEntry])
async def leaderboard(
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db)
) -> List[LeaderboardEntry]:
    """Users ranked by total prediction points."""
    return [LeaderboardEntry(**entry) for entry in await prediction_service.get_global_leaderboard(db, limit)]


@router.get("/matches", response_model=List[MatchBrief])
async def available_matches(
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db)
) -> List[MatchBrief]:
    """Scheduled matches in the next seven days that still accept predictions."""
    return [MatchBrief.from_match(m) for m in await prediction_service.get_available_matches(db, limit)]
