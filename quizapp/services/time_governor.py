"""Authoritative attempt timing.

All timing is derived from the attempt's ``started_at`` (stamped by the
server when the attempt is created) and the server clock. Client-side
countdowns are display only and never consulted.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Callable

from quizapp.config import settings
from quizapp.core.exceptions import AttemptNotActive
from quizapp.db.models import AttemptStatusEnum, QuizAttempt

if TYPE_CHECKING:
    from quizapp.services.lifecycle import AttemptLifecycle

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops the offset on read)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class TimeGovernor:
    """Computes remaining time and fires expiry exactly once per attempt."""

    def __init__(self, clock: Clock | None = None, grace_seconds: float | None = None) -> None:
        self._clock = clock or utcnow
        self.grace_seconds = (
            settings.EXPIRY_GRACE_SECONDS if grace_seconds is None else grace_seconds
        )

    def now(self) -> datetime:
        return as_utc(self._clock())

    @staticmethod
    def deadline_for(started_at: datetime, time_limit_seconds: int | None) -> datetime | None:
        if not time_limit_seconds:
            return None
        return as_utc(started_at) + timedelta(seconds=time_limit_seconds)

    def elapsed(self, attempt: QuizAttempt, now: datetime | None = None) -> float:
        """Seconds since the attempt started, never negative."""
        now = now or self.now()
        return max(0.0, (now - as_utc(attempt.started_at)).total_seconds())

    def remaining(self, attempt: QuizAttempt, now: datetime | None = None) -> float | None:
        """Seconds left in the time budget, or None for untimed attempts."""
        limit = attempt.time_limit_seconds
        if not limit:
            return None
        return max(0.0, limit - self.elapsed(attempt, now))

    def is_past_cutoff(self, attempt: QuizAttempt, now: datetime | None = None) -> bool:
        """True once the deadline plus the grace window has passed."""
        limit = attempt.time_limit_seconds
        if not limit:
            return False
        return self.elapsed(attempt, now) >= limit + self.grace_seconds

    def expire_if_due(self, lifecycle: "AttemptLifecycle", attempt: QuizAttempt) -> bool:
        """Expire ``attempt`` if its cutoff has passed.

        Returns True only for the call that performed the transition; calls
        that find the attempt already terminal (or not yet due) are no-ops.
        """
        if attempt.status != AttemptStatusEnum.IN_PROGRESS or not self.is_past_cutoff(attempt):
            return False
        try:
            lifecycle.expire(attempt.id)
        except AttemptNotActive:
            # Lost the race to a submit or another expiry.
            return False
        return True

    def sweep(self, lifecycle: "AttemptLifecycle", limit: int = 500) -> int:
        """Expire every overdue in-progress attempt; returns how many."""
        cutoff = self.now() - timedelta(seconds=self.grace_seconds)
        overdue = (
            lifecycle.db.query(QuizAttempt)
            .filter(
                QuizAttempt.status == AttemptStatusEnum.IN_PROGRESS,
                QuizAttempt.deadline_at.is_not(None),
                QuizAttempt.deadline_at <= cutoff,
            )
            .order_by(QuizAttempt.deadline_at)
            .limit(limit)
            .all()
        )
        expired = sum(1 for attempt in overdue if self.expire_if_due(lifecycle, attempt))
        if expired:
            logger.info("Expiry sweep expired %d attempt(s)", expired)
        return expired
