"""Learner statistics routes."""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from quizapp.api.deps import get_current_user_id
from quizapp.db.models import AttemptStatusEnum, QuizAttempt
from quizapp.db.session import get_db
from quizapp.schemas.stats import UserStats

router = APIRouter()


@router.get("/me", response_model=UserStats)
def get_my_stats(
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Return totals over the current learner's attempt history.

    Average and best score count completed attempts only; time spent
    includes abandoned and expired attempts too.
    """
    rows = db.query(QuizAttempt).filter(QuizAttempt.user_id == user_id).all()

    total_attempts = len(rows)
    completed = [r for r in rows if r.status == AttemptStatusEnum.COMPLETED]
    total_time_spent = sum(r.time_spent_seconds or 0.0 for r in rows)

    average_score = (
        round(sum(r.score for r in completed) / len(completed), 2) if completed else 0.0
    )
    best_score = max((r.score for r in completed), default=0.0)
    completion_rate = (
        round(len(completed) / total_attempts * 100, 2) if total_attempts else 0.0
    )

    return UserStats(
        user_id=user_id,
        total_attempts=total_attempts,
        completed_attempts=len(completed),
        average_score=average_score,
        best_score=best_score,
        total_time_spent=round(total_time_spent, 3),
        completion_rate=completion_rate,
    )
