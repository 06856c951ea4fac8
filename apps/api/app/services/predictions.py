"""
Match Predictions
=================

Users predict the score of scheduled matches until kick-off. When a match
is finished, every prediction on it is scored:

- exact score: 3 points
- correct result (home win / draw / away win): 1 point
- otherwise: 0
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Dict, List, Sequence
from uuid import UUID

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.database import dialect_insert, to_utc, utcnow
from app.errors import NotFoundError, ValidationError
from app.models import Badge, BadgeType, Match, MatchStatus, Prediction, User

logger = logging.getLogger(__name__)

POINTS_EXACT = 3
POINTS_RESULT = 1
EARLY_BIRD_HOURS = 24
MASTER_PREDICTOR_CORRECT = 100
AVAILABLE_WINDOW_DAYS = 7


@dataclass(frozen=True)
class PredictionScore:
    points: int
    is_exact_score: bool
    is_correct_result: bool


def _outcome(home: int, away: int) -> str:
    if home > away:
        return "home"
    if home < away:
        return "away"
    return "draw"


def score_prediction(pred_home: int, pred_away: int, actual_home: int, actual_away: int) -> PredictionScore:
    exact = pred_home == actual_home and pred_away == actual_away
    correct = _outcome(pred_home, pred_away) == _outcome(actual_home, actual_away)
    points = POINTS_EXACT if exact else POINTS_RESULT if correct else 0
    return PredictionScore(points=points, is_exact_score=exact, is_correct_result=correct)


async def award_badge(db: AsyncSession, user_id: UUID, badge_type: BadgeType) -> None:
    await db.execute(
        dialect_insert(db, Badge)
        .values(user_id=user_id, badge_type=badge_type, awarded_at=utcnow())
        .on_conflict_do_nothing(index_elements=["user_id", "badge_type"])
    )


async def get_user_badges(db: AsyncSession, user_id: UUID) -> Sequence[Badge]:
    stmt = select(Badge).where(Badge.user_id == user_id).order_by(Badge.awarded_at)
    return (await db.execute(stmt)).scalars().all()


async def submit_prediction(
    db: AsyncSession, user_id: UUID, match_id: UUID, home_score: int, away_score: int
) -> Prediction:
    """Create or overwrite the user's prediction while the match is still open."""
    match = await db.get(Match, match_id)
    if match is None:
        raise NotFoundError("Match not found")

    now = utcnow()
    kickoff = to_utc(match.scheduled_at)
    if match.status != MatchStatus.SCHEDULED or kickoff <= now:
        raise ValidationError("Predictions are closed for this match")

    insert_stmt = dialect_insert(db, Prediction).values(
        user_id=user_id,
        match_id=match_id,
        home_score=home_score,
        away_score=away_score,
        submitted_at=now,
    )
    await db.execute(insert_stmt.on_conflict_do_update(
        index_elements=["user_id", "match_id"],
        set_=dict(home_score=home_score, away_score=away_score, submitted_at=now),
    ))

    await award_badge(db, user_id, BadgeType.FIRST_BLOOD)
    if kickoff - now >= timedelta(hours=EARLY_BIRD_HOURS):
        await award_badge(db, user_id, BadgeType.EARLY_BIRD)
    await db.commit()

    stmt = select(Prediction).where(Prediction.user_id == user_id, Prediction.match_id == match_id)
    prediction = (await db.execute(stmt.execution_options(populate_existing=True))).scalar_one()
    return prediction


async def score_predictions_for_match(db: AsyncSession, match_id: UUID) -> int:
    """Score every prediction on a finished match; returns how many were scored."""
    match = await db.get(Match, match_id)
    if match is None:
        raise NotFoundError("Match not found")
    if match.status != MatchStatus.FINISHED or match.home_score is None or match.away_score is None:
        return 0

    predictions = (await db.execute(
        select(Prediction).where(Prediction.match_id == match_id)
    )).scalars().all()

    now = utcnow()
    correct_users: List[UUID] = []
    for prediction in predictions:
        score = score_prediction(
            prediction.home_score, prediction.away_score, match.home_score, match.away_score
        )
        prediction.points = score.points
        prediction.is_exact_score = score.is_exact_score
        prediction.is_correct_result = score.is_correct_result
        prediction.scored_at = now
        if score.is_correct_result:
            correct_users.append(prediction.user_id)
    await db.flush()

    for user_id in correct_users:
        stats = await get_user_prediction_stats(db, user_id)
        if stats["correct_results"] >= MASTER_PREDICTOR_CORRECT:
            await award_badge(db, user_id, BadgeType.MASTER_PREDICTOR)
    await db.commit()
    logger.info("Scored %d predictions for match %s", len(predictions), match_id)
    return len(predictions)


async def get_user_predictions(db: AsyncSession, user_id: UUID, limit: int = 20, offset: int = 0):
    stmt = (
        select(Prediction, Match)
        .join(Match, Prediction.match_id == Match.id)
        .options(selectinload(Match.home_team), selectinload(Match.away_team))
        .where(Prediction.user_id == user_id)
        .order_by(Match.scheduled_at.desc())
        .limit(limit)
        .offset(offset)
    )
    return (await db.execute(stmt)).all()


async def get_user_prediction_stats(db: AsyncSession, user_id: UUID) -> Dict[str, float]:
    stmt = select(
        func.count(Prediction.id),
        func.sum(case((Prediction.is_correct_result.is_(True), 1), else_=0)),
        func.sum(case((Prediction.is_exact_score.is_(True), 1), else_=0)),
        func.sum(Prediction.points),
    ).where(Prediction.user_id == user_id)
    total, correct, exact, points = (await db.execute(stmt)).one()
    total = int(total or 0)
    correct = int(correct or 0)
    return {
        "total_predictions": total,
        "correct_results": correct,
        "exact_scores": int(exact or 0),
        "total_points": int(points or 0),
        "accuracy": (correct / total * 100) if total else 0.0,
    }


async def get_global_leaderboard(db: AsyncSession, limit: int = 50) -> List[Dict]:
    total_points = func.coalesce(func.sum(Prediction.points), 0).label("total_points")
    stmt = (
        select(
            Prediction.user_id,
            User.name,
            total_points,
            func.sum(case((Prediction.is_correct_result.is_(True), 1), else_=0)).label("correct"),
            func.count(Prediction.id).label("total"),
        )
        .join(User, Prediction.user_id == User.id)
        .group_by(Prediction.user_id, User.name)
        .order_by(total_points.desc(), Prediction.user_id)
        .limit(limit)
    )
    rows = (await db.execute(stmt)).all()
    return [
        {
            "rank": index,
            "user_id": row.user_id,
            "user_name": row.name or "Anonymous",
            "total_points": int(row.total_points or 0),
            "correct_predictions": int(row.correct or 0),
            "total_predictions": int(row.total or 0),
        }
        for index, row in enumerate(rows, start=1)
    ]


async def get_available_matches(db: AsyncSession, limit: int = 20) -> Sequence[Match]:
    """Scheduled matches kicking off within the next week."""
    now = utcnow()
    stmt = (
        select(Match)
        .options(selectinload(Match.home_team), selectinload(Match.away_team))
        .where(
            Match.status == MatchStatus.SCHEDULED,
            Match.scheduled_at >= now,
            Match.scheduled_at <= now + timedelta(days=AVAILABLE_WINDOW_DAYS),
        )
        .order_by(Match.scheduled_at)
        .limit(limit)
    )
    return (await db.execute(stmt)).scalars().all()
