"""Attempt lifecycle state machine.

    in_progress ──submit──▶ completed
        │ ├────abandon────▶ abandoned
        │ └────timeout────▶ expired

Every transition is one database transaction. Terminal transitions lock the
attempt row and flip ``status`` with a compare-and-set on ``in_progress``,
so a manual submit racing the expiry timer produces exactly one winner and
the loser gets ``AttemptNotActive``. Answers take a shared lock: answers to
different questions run side by side but never interleave with a close.
"""

from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from typing import Any, Iterable, Iterator

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from quizapp.config import settings
from quizapp.core.exceptions import (
    AttemptNotActive,
    AttemptNotFound,
    InvalidConfig,
    PersistenceFailure,
    QuizEngineError,
    UnknownQuestion,
)
from quizapp.db.models import AttemptStatusEnum, QuizAttempt, QuizResponse
from quizapp.schemas.quiz import QuizConfig
from quizapp.services.ledger import ResponseLedger
from quizapp.services.question_pool import QuestionPool
from quizapp.services.time_governor import TimeGovernor

logger = logging.getLogger(__name__)


def _as_uuid(value: Any) -> uuid.UUID:
    return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))


def validate_config(config: QuizConfig) -> None:
    """Raise ``InvalidConfig`` unless the configuration can produce a quiz."""
    if config.num_questions <= 0:
        raise InvalidConfig(
            "Number of questions must be positive",
            details={"field": "num_questions", "value": config.num_questions},
        )
    if config.num_questions > settings.MAX_QUESTIONS_PER_QUIZ:
        raise InvalidConfig(
            f"Number of questions cannot exceed {settings.MAX_QUESTIONS_PER_QUIZ}",
            details={"field": "num_questions", "value": config.num_questions},
        )
    if not config.category_set:
        raise InvalidConfig(
            "At least one category must be selected",
            details={"field": "categories"},
        )
    if config.time_limit_seconds is not None and config.time_limit_seconds < 0:
        raise InvalidConfig(
            "Time limit cannot be negative",
            details={"field": "time_limit_seconds", "value": config.time_limit_seconds},
        )


class AttemptLifecycle:
    """Owns every mutation of ``QuizAttempt`` rows."""

    def __init__(
        self,
        db: Session,
        governor: TimeGovernor | None = None,
        ledger: ResponseLedger | None = None,
        pool: QuestionPool | None = None,
    ) -> None:
        self.db = db
        self.governor = governor or TimeGovernor()
        self.ledger = ledger or ResponseLedger(db)
        self.pool = pool or QuestionPool(db)

    # ── plumbing ─────────────────────────────────────────────────────────

    @contextmanager
    def _transaction(self, action: str) -> Iterator[None]:
        """Commit on success; roll back everything on any failure."""
        try:
            yield
            self.db.commit()
        except QuizEngineError:
            self.db.rollback()
            raise
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Could not %s, rolled back: %s", action, exc)
            raise PersistenceFailure(
                f"Could not {action}; no changes were saved",
                details={"operation": action},
            ) from exc

    def get(self, attempt_id, user_id=None) -> QuizAttempt:
        """Load an attempt, optionally scoped to its owner."""
        query = self.db.query(QuizAttempt).filter(QuizAttempt.id == _as_uuid(attempt_id))
        if user_id is not None:
            query = query.filter(QuizAttempt.user_id == _as_uuid(user_id))
        attempt = query.first()
        if attempt is None:
            raise AttemptNotFound(attempt_id)
        return attempt

    def _lock(self, attempt_id, user_id=None, *, shared: bool = False) -> QuizAttempt:
        query = self.db.query(QuizAttempt).filter(QuizAttempt.id == _as_uuid(attempt_id))
        if user_id is not None:
            query = query.filter(QuizAttempt.user_id == _as_uuid(user_id))
        attempt = query.with_for_update(read=shared).populate_existing().first()
        if attempt is None:
            raise AttemptNotFound(attempt_id)
        return attempt

    def _ensure_open(self, attempt: QuizAttempt) -> None:
        """Reject terminal attempts, expiring any that ran past their cutoff."""
        if attempt.status.is_terminal:
            raise AttemptNotActive(attempt.id, attempt.status.value)
        if self.governor.expire_if_due(self, attempt):
            raise AttemptNotActive(attempt.id, AttemptStatusEnum.EXPIRED.value)
        # expire_if_due may have lost a race; re-read the committed status.
        self.db.refresh(attempt)
        if attempt.status.is_terminal:
            raise AttemptNotActive(attempt.id, attempt.status.value)

    def _write_answer(
        self,
        attempt: QuizAttempt,
        question_id,
        answer: str | None,
        elapsed_seconds: float,
        skipped: bool,
    ) -> QuizResponse:
        key = str(question_id)
        if key not in attempt.question_ids:
            logger.warning(
                "Rejected answer for question %s not in attempt %s", key, attempt.id
            )
            raise UnknownQuestion(attempt.id, question_id)
        question = self.pool.get_many([key]).get(key)
        if question is None:
            logger.warning("Question %s of attempt %s is missing from the bank", key, attempt.id)
            raise UnknownQuestion(attempt.id, question_id)

        now = self.governor.now()
        # Client timing is advisory: clamp to what the server clock allows.
        time_spent = min(max(0.0, float(elapsed_seconds or 0.0)), self.governor.elapsed(attempt, now))
        return self.ledger.upsert(
            attempt,
            question,
            answer,
            position=attempt.question_ids.index(key) + 1,
            time_spent=round(time_spent, 3),
            answered_at=now,
            skipped=skipped,
        )

    # ── transitions ──────────────────────────────────────────────────────

    def create_attempt(self, user_id, config: QuizConfig, question_ids: Iterable) -> QuizAttempt:
        """Open a new ``in_progress`` attempt over a fixed question order."""
        validate_config(config)
        ids = [str(qid) for qid in question_ids]
        if len(ids) != config.num_questions or len(set(ids)) != len(ids):
            raise InvalidConfig(
                "Question set must hold exactly num_questions distinct questions",
                details={"required": config.num_questions, "received": len(ids)},
            )

        now = self.governor.now()
        snapshot = config.snapshot()
        attempt = QuizAttempt(
            user_id=_as_uuid(user_id),
            config=snapshot,
            question_ids=ids,
            status=AttemptStatusEnum.IN_PROGRESS,
            total_questions=len(ids),
            started_at=now,
            deadline_at=self.governor.deadline_for(now, snapshot["time_limit_seconds"]),
            created_at=now,
            updated_at=now,
        )
        with self._transaction("create attempt"):
            self.db.add(attempt)
            self.db.flush()
        logger.info(
            "Attempt %s created for user %s (%d questions, limit=%s)",
            attempt.id, attempt.user_id, attempt.total_questions,
            snapshot["time_limit_seconds"],
        )
        return attempt

    def record_answer(
        self,
        attempt_id,
        question_id,
        answer: str | None,
        elapsed_seconds: float = 0.0,
        *,
        skipped: bool = False,
        user_id=None,
    ) -> QuizResponse:
        """Score and store one answer, replacing any earlier one for the question."""
        self._ensure_open(self.get(attempt_id, user_id))
        with self._transaction("record answer"):
            attempt = self._lock(attempt_id, user_id, shared=True)
            if attempt.status.is_terminal:
                raise AttemptNotActive(attempt.id, attempt.status.value)
            response = self._write_answer(attempt, question_id, answer, elapsed_seconds, skipped)
        return response

    def finalize(self, attempt_id, pending: Iterable | None = None, user_id=None) -> QuizAttempt:
        """Learner submit: persist ``pending`` answers, score, and complete."""
        self._ensure_open(self.get(attempt_id, user_id))
        return self._close(attempt_id, AttemptStatusEnum.COMPLETED, pending=pending, user_id=user_id)

    def abandon(self, attempt_id, user_id=None) -> QuizAttempt:
        """Learner left without submitting; scores whatever was answered."""
        self._ensure_open(self.get(attempt_id, user_id))
        return self._close(attempt_id, AttemptStatusEnum.ABANDONED, user_id=user_id)

    def expire(self, attempt_id) -> QuizAttempt:
        """Timeout: close the attempt with the responses present right now."""
        return self._close(attempt_id, AttemptStatusEnum.EXPIRED)

    def _close(
        self,
        attempt_id,
        status: AttemptStatusEnum,
        *,
        pending: Iterable | None = None,
        user_id=None,
    ) -> QuizAttempt:
        with self._transaction(f"mark attempt {status.value}"):
            attempt = self._lock(attempt_id, user_id)
            if attempt.status.is_terminal:
                raise AttemptNotActive(attempt.id, attempt.status.value)

            for item in pending or ():
                self._write_answer(
                    attempt,
                    item.question_id,
                    item.answer,
                    item.elapsed_seconds,
                    item.skipped,
                )

            totals = self.ledger.aggregate(attempt.id)
            now = self.governor.now()
            result = self.db.execute(
                update(QuizAttempt)
                .where(
                    QuizAttempt.id == attempt.id,
                    QuizAttempt.status == AttemptStatusEnum.IN_PROGRESS,
                )
                .values(
                    status=status,
                    correct_answers=totals.correct,
                    score=totals.score,
                    total_points=totals.total_points,
                    max_points=totals.max_points,
                    time_spent_seconds=totals.time_spent,
                    completed_at=now,
                    updated_at=now,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                self.db.refresh(attempt)
                raise AttemptNotActive(attempt.id, attempt.status.value)

        self.db.refresh(attempt)
        logger.info(
            "Attempt %s %s: %d/%d correct, score=%.2f",
            attempt.id, status.value, attempt.correct_answers,
            attempt.total_questions, attempt.score,
        )
        return attempt
