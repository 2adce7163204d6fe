"""Attempt answering, submission and retrieval routes."""

import logging
import uuid

from fastapi import APIRouter, Depends, Query

from quizapp.api.deps import get_current_user_id, get_quiz_service
from quizapp.api.quizzes import question_reads
from quizapp.db.models import AttemptStatusEnum, QuizAttempt
from quizapp.schemas.attempt import (
    AnswerReceipt,
    AnswerSubmit,
    AttemptDetailRead,
    AttemptRead,
    AttemptStatus,
    FinalResult,
    ProgressRead,
    ResponseRead,
    ReviewFilter,
    ReviewItem,
    SubmitRequest,
)
from quizapp.services.quiz_session import QuizSessionService

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/", response_model=list[AttemptRead])
def list_my_attempts(
    status_filter: AttemptStatus | None = Query(None, alias="status"),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    user_id: uuid.UUID = Depends(get_current_user_id),
    service: QuizSessionService = Depends(get_quiz_service),
):
    """Return the current learner's attempts, newest first."""
    overdue = (
        service.db.query(QuizAttempt)
        .filter(
            QuizAttempt.user_id == user_id,
            QuizAttempt.status == AttemptStatusEnum.IN_PROGRESS,
            QuizAttempt.deadline_at.is_not(None),
        )
        .all()
    )
    for attempt in overdue:
        service.governor.expire_if_due(service.lifecycle, attempt)

    query = service.db.query(QuizAttempt).filter(QuizAttempt.user_id == user_id)
    if status_filter is not None:
        query = query.filter(QuizAttempt.status == AttemptStatusEnum(status_filter.value))
    return (
        query.order_by(QuizAttempt.started_at.desc())
        .offset(skip)
        .limit(limit)
        .populate_existing()
        .all()
    )


@router.get("/{attempt_id}", response_model=AttemptDetailRead)
def get_attempt(
    attempt_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    service: QuizSessionService = Depends(get_quiz_service),
):
    """Reload an attempt with its questions, e.g. to resume after a refresh.

    Correctness of saved responses is only revealed once the attempt is over.
    """
    attempt = service.get_attempt(user_id, attempt_id)
    finished = attempt.status.is_terminal

    responses = [
        ResponseRead(
            question_id=r.question_id,
            question_position=r.question_position,
            user_answer=r.user_answer,
            skipped=r.skipped,
            answered_at=r.answered_at,
            is_correct=r.is_correct if finished else None,
            points_awarded=r.points_awarded if finished else None,
            max_points=r.max_points if finished else None,
        )
        for r in service.ledger.responses(attempt.id)
    ]

    base = AttemptRead.model_validate(attempt)
    return AttemptDetailRead(
        **base.model_dump(),
        questions=question_reads(attempt, service.ordered_questions(attempt)),
        responses=responses,
        time_left_seconds=None if finished else service.governor.remaining(attempt),
    )


@router.post("/{attempt_id}/answers", response_model=AnswerReceipt)
def submit_answer(
    attempt_id: uuid.UUID,
    body: AnswerSubmit,
    user_id: uuid.UUID = Depends(get_current_user_id),
    service: QuizSessionService = Depends(get_quiz_service),
):
    """Save (or replace) the answer to one question of an active attempt."""
    response = service.submit_answer(user_id, attempt_id, body)
    attempt = service.lifecycle.get(attempt_id, user_id)
    totals = service.ledger.aggregate(attempt.id)
    return AnswerReceipt(
        attempt_id=attempt.id,
        question_id=response.question_id,
        question_position=response.question_position,
        skipped=response.skipped,
        answered_at=response.answered_at,
        answered_count=totals.responses,
        time_left_seconds=service.governor.remaining(attempt),
    )


@router.post("/{attempt_id}/submit", response_model=FinalResult)
def submit_attempt(
    attempt_id: uuid.UUID,
    body: SubmitRequest | None = None,
    user_id: uuid.UUID = Depends(get_current_user_id),
    service: QuizSessionService = Depends(get_quiz_service),
):
    """Finish the attempt and receive its score.

    Any answers in the body are saved in the same transaction as the
    finalization: either all of them land and the attempt completes, or
    nothing changes.
    """
    pending = body.answers if body else []
    return service.submit(user_id, attempt_id, pending)


@router.post("/{attempt_id}/abandon", response_model=FinalResult)
def abandon_attempt(
    attempt_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    service: QuizSessionService = Depends(get_quiz_service),
):
    """Leave the attempt without submitting; answers so far are still scored."""
    return service.abandon(user_id, attempt_id)


@router.get("/{attempt_id}/progress", response_model=ProgressRead)
def get_progress(
    attempt_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    service: QuizSessionService = Depends(get_quiz_service),
):
    return service.get_progress(user_id, attempt_id)


@router.get("/{attempt_id}/review", response_model=list[ReviewItem])
def review_attempt(
    attempt_id: uuid.UUID,
    review_filter: ReviewFilter = Query(ReviewFilter.ALL, alias="filter"),
    user_id: uuid.UUID = Depends(get_current_user_id),
    service: QuizSessionService = Depends(get_quiz_service),
):
    """Per-question breakdown of a finished attempt.

    Unanswered questions appear as incorrect with no user answer.
    """
    attempt = service.get_result(user_id, attempt_id)
    by_question = {str(r.question_id): r for r in service.ledger.responses(attempt.id)}

    items: list[ReviewItem] = []
    for question in service.ordered_questions(attempt):
        response = by_question.get(str(question.id))
        answered = response is not None and not response.skipped
        is_correct = bool(response and response.is_correct)
        if review_filter == ReviewFilter.CORRECT and not is_correct:
            continue
        if review_filter == ReviewFilter.INCORRECT and is_correct:
            continue
        items.append(
            ReviewItem(
                position=attempt.question_ids.index(str(question.id)) + 1,
                question_id=question.id,
                text=question.text,
                options=list(question.options or []),
                correct_answer=question.correct_answer,
                explanation=question.explanation,
                user_answer=response.user_answer if answered else None,
                is_correct=is_correct,
                skipped=bool(response and response.skipped),
                answered=answered,
                points_awarded=response.points_awarded if response else 0.0,
                points=question.points,
            )
        )
    return items
