"""Quiz session engine facade.

The operations exposed to the API layer:

  - ``generate``       → select questions and open an attempt
  - ``submit_answer``  → record one answer (or skip)
  - ``submit``         → finalize and return the scored result
  - ``get_progress``   → answered / remaining / time left
  - ``abandon``        → learner exits without submitting

A service instance is built per request around a DB session; no session
state is held between calls, so concurrent attempts never share memory.
"""

from __future__ import annotations

import logging
import random
from typing import Iterable

from sqlalchemy.orm import Session

from quizapp.core.exceptions import AttemptStillActive
from quizapp.db.models import Question, QuizAttempt, QuizResponse
from quizapp.schemas.attempt import AnswerSubmit, FinalResult, ProgressRead
from quizapp.schemas.quiz import QuizConfig
from quizapp.services.ledger import ResponseLedger
from quizapp.services.lifecycle import AttemptLifecycle, validate_config
from quizapp.services.question_pool import QuestionPool
from quizapp.services.selector import select_question_ids
from quizapp.services.time_governor import TimeGovernor

logger = logging.getLogger(__name__)


def final_result(attempt: QuizAttempt) -> FinalResult:
    return FinalResult(
        attempt_id=attempt.id,
        status=attempt.status.value,
        total_questions=attempt.total_questions,
        correct_answers=attempt.correct_answers,
        score=attempt.score,
        total_points=attempt.total_points,
        max_points=attempt.max_points,
        time_spent_seconds=attempt.time_spent_seconds,
        started_at=attempt.started_at,
        completed_at=attempt.completed_at,
    )


class QuizSessionService:
    def __init__(
        self,
        db: Session,
        governor: TimeGovernor | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.db = db
        self.governor = governor or TimeGovernor()
        self.rng = rng
        self.pool = QuestionPool(db)
        self.ledger = ResponseLedger(db)
        self.lifecycle = AttemptLifecycle(db, self.governor, self.ledger, self.pool)

    # ── generate ─────────────────────────────────────────────────────────

    def generate(self, user_id, config: QuizConfig) -> tuple[QuizAttempt, list[Question]]:
        """Select questions for ``config`` and open an attempt over them.

        Selection happens before anything is written, so a config that
        cannot be satisfied never leaves a partial attempt behind.
        """
        validate_config(config)
        question_ids = select_question_ids(self.pool, config, self.rng)
        attempt = self.lifecycle.create_attempt(user_id, config, question_ids)
        return attempt, self.ordered_questions(attempt)

    def ordered_questions(self, attempt: QuizAttempt) -> list[Question]:
        """The attempt's questions in presentation order."""
        by_id = self.pool.get_many(attempt.question_ids)
        return [by_id[qid] for qid in attempt.question_ids if qid in by_id]

    # ── answering ────────────────────────────────────────────────────────

    def submit_answer(self, user_id, attempt_id, body: AnswerSubmit) -> QuizResponse:
        return self.lifecycle.record_answer(
            attempt_id,
            body.question_id,
            body.answer,
            body.elapsed_seconds,
            skipped=body.skipped,
            user_id=user_id,
        )

    def submit(
        self, user_id, attempt_id, pending: Iterable[AnswerSubmit] | None = None
    ) -> FinalResult:
        attempt = self.lifecycle.finalize(attempt_id, pending=pending, user_id=user_id)
        return final_result(attempt)

    def abandon(self, user_id, attempt_id) -> FinalResult:
        return final_result(self.lifecycle.abandon(attempt_id, user_id=user_id))

    # ── reading ──────────────────────────────────────────────────────────

    def get_attempt(self, user_id, attempt_id) -> QuizAttempt:
        """Load an attempt, expiring it first if its time ran out."""
        attempt = self.lifecycle.get(attempt_id, user_id)
        if self.governor.expire_if_due(self.lifecycle, attempt):
            self.db.refresh(attempt)
        return attempt

    def get_progress(self, user_id, attempt_id) -> ProgressRead:
        attempt = self.get_attempt(user_id, attempt_id)
        totals = self.ledger.aggregate(attempt.id)
        return ProgressRead(
            attempt_id=attempt.id,
            status=attempt.status.value,
            total_questions=attempt.total_questions,
            answered=totals.answered,
            skipped=totals.skipped,
            remaining=max(0, attempt.total_questions - totals.responses),
            time_left_seconds=(
                self.governor.remaining(attempt) if not attempt.status.is_terminal else None
            ),
            deadline_at=attempt.deadline_at,
        )

    def get_result(self, user_id, attempt_id) -> QuizAttempt:
        """A finished attempt, for results and review screens."""
        attempt = self.get_attempt(user_id, attempt_id)
        if not attempt.status.is_terminal:
            raise AttemptStillActive(attempt.id)
        return attempt
