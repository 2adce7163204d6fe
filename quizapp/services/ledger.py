"""Response ledger: one scored answer per (attempt, question).

``upsert`` overwrites by key while the attempt is open and refuses writes
once it is terminal. ``aggregate`` is a pure fold over the stored rows, so
it can back both finalization and live progress displays.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from sqlalchemy.orm import Session

from quizapp.core.exceptions import LedgerClosed
from quizapp.db.models import SKIPPED_ANSWER, Question, QuizAttempt, QuizResponse

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LedgerTotals:
    correct: int = 0
    total_points: float = 0.0
    max_points: float = 0.0
    time_spent: float = 0.0
    answered: int = 0
    skipped: int = 0

    @property
    def responses(self) -> int:
        return self.answered + self.skipped

    @property
    def score(self) -> float:
        return compute_score(self.total_points, self.max_points)


def compute_score(total_points: float, max_points: float) -> float:
    """Percentage of available points earned, rounded to 2 places."""
    if max_points <= 0:
        return 0.0
    return round(100 * total_points / max_points, 2)


def fold_responses(responses: Iterable[QuizResponse]) -> LedgerTotals:
    correct = answered = skipped = 0
    total_points = max_points = time_spent = 0.0
    for r in responses:
        if r.skipped:
            skipped += 1
        else:
            answered += 1
        if r.is_correct:
            correct += 1
        total_points += r.points_awarded or 0.0
        max_points += r.max_points or 0.0
        time_spent += r.time_spent_seconds or 0.0
    return LedgerTotals(
        correct=correct,
        total_points=total_points,
        max_points=max_points,
        time_spent=round(time_spent, 3),
        answered=answered,
        skipped=skipped,
    )


def score_answer(question: Question, answer: str | None, skipped: bool) -> tuple[bool, float]:
    """Exact-match scoring against the question's correct option."""
    if skipped or answer is None:
        return False, 0.0
    is_correct = answer == question.correct_answer
    return is_correct, (question.points if is_correct else 0.0)


class ResponseLedger:
    """Deduplicated, queryable store of responses for attempts."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, attempt_id, question_id) -> QuizResponse | None:
        return (
            self.db.query(QuizResponse)
            .filter(
                QuizResponse.attempt_id == attempt_id,
                QuizResponse.question_id == question_id,
            )
            .first()
        )

    def responses(self, attempt_id) -> list[QuizResponse]:
        return (
            self.db.query(QuizResponse)
            .filter(QuizResponse.attempt_id == attempt_id)
            .order_by(QuizResponse.question_position)
            .all()
        )

    def upsert(
        self,
        attempt: QuizAttempt,
        question: Question,
        answer: str | None,
        *,
        position: int,
        time_spent: float,
        answered_at: datetime,
        skipped: bool = False,
    ) -> QuizResponse:
        """Insert or overwrite the response for ``(attempt, question)``.

        Does not commit; the caller owns the transaction.

        Raises:
            LedgerClosed: the attempt is no longer in progress.
        """
        if attempt.status.is_terminal:
            raise LedgerClosed(attempt.id, attempt.status.value)

        skipped = skipped or answer is None
        is_correct, points_awarded = score_answer(question, answer, skipped)
        values = dict(
            user_id=attempt.user_id,
            user_answer=SKIPPED_ANSWER if skipped else answer,
            is_correct=is_correct,
            points_awarded=points_awarded,
            max_points=question.points,
            question_position=position,
            skipped=skipped,
            time_spent_seconds=time_spent,
            answered_at=answered_at,
        )

        response = self.get(attempt.id, question.id)
        if response is None:
            response = QuizResponse(attempt_id=attempt.id, question_id=question.id, **values)
            self.db.add(response)
        else:
            for field, value in values.items():
                setattr(response, field, value)
            response.updated_at = answered_at
        self.db.flush()
        return response

    def aggregate(self, attempt_id) -> LedgerTotals:
        return fold_responses(self.responses(attempt_id))
