"""Quiz generation routes."""

import logging
import uuid

from fastapi import APIRouter, Depends, Query, status

from quizapp.api.deps import get_current_user_id, get_quiz_service
from quizapp.celery_app import celery_app
from quizapp.db.models import Question, QuizAttempt
from quizapp.schemas.quiz import (
    CategoryAvailability,
    Difficulty,
    QuestionRead,
    QuizConfig,
    QuizGenerated,
)
from quizapp.services.quiz_session import QuizSessionService
from quizapp.services.rate_limiter import require_generate_rate_limit
from quizapp.tasks import expire_attempt

logger = logging.getLogger(__name__)
router = APIRouter()


def question_reads(attempt: QuizAttempt, questions: list[Question]) -> list[QuestionRead]:
    """Learner-facing questions, numbered by their slot in the attempt."""
    return [
        QuestionRead(
            id=q.id,
            text=q.text,
            category=q.category,
            difficulty=q.difficulty.value,
            options=list(q.options or []),
            points=q.points,
            image_url=q.image_url,
            position=attempt.question_ids.index(str(q.id)) + 1,
        )
        for q in questions
    ]


@router.post("/generate", response_model=QuizGenerated, status_code=status.HTTP_201_CREATED)
def generate_quiz(
    body: QuizConfig,
    user_id: uuid.UUID = Depends(get_current_user_id),
    service: QuizSessionService = Depends(get_quiz_service),
    _rl=Depends(require_generate_rate_limit),
):
    """Select questions for the configuration and start a new attempt.

    Timed attempts also get an expiry task queued for just after their
    deadline plus the grace window.
    """
    attempt, questions = service.generate(user_id, body)

    limit = attempt.time_limit_seconds
    # Eager mode runs tasks inline and ignores countdown; lazy expiry covers dev.
    if limit and not celery_app.conf.task_always_eager:
        try:
            expire_attempt.apply_async(
                args=[str(attempt.id)],
                countdown=limit + service.governor.grace_seconds,
            )
        except Exception as exc:
            # Lazy expiry and the beat sweep still close the attempt.
            logger.warning("Could not schedule expiry for attempt %s: %s", attempt.id, exc)

    return QuizGenerated(
        attempt_id=attempt.id,
        question_ids=[q.id for q in questions],
        questions=question_reads(attempt, questions),
        status=attempt.status.value,
        started_at=attempt.started_at,
        time_limit_seconds=limit,
        deadline_at=attempt.deadline_at,
    )


@router.get("/categories", response_model=list[CategoryAvailability])
def list_categories(
    difficulty: Difficulty | None = Query(None),
    user_id: uuid.UUID = Depends(get_current_user_id),
    service: QuizSessionService = Depends(get_quiz_service),
):
    """Categories with active questions, and how many each has.

    Lets the configuration form warn before ``generate`` would fail.
    """
    counts = service.pool.category_counts(difficulty)
    return [
        CategoryAvailability(category=name, available=count)
        for name, count in sorted(counts.items())
    ]
