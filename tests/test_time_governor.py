"""Tests for server-authoritative timing, lazy expiry and the expiry tasks."""

import uuid
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from quizapp.core.exceptions import AttemptNotActive
from quizapp.db.models import AttemptStatusEnum
from quizapp.schemas.quiz import QuizConfig
from quizapp.services.lifecycle import AttemptLifecycle
from quizapp.services.time_governor import TimeGovernor, as_utc
from quizapp.tasks import expire_attempt, sweep_expired_attempts


@pytest.fixture
def lifecycle(db, governor):
    return AttemptLifecycle(db, governor)


@pytest.fixture
def questions(make_questions, category):
    return make_questions(3, category)


def _open(lifecycle, questions, category, user_id, limit=5):
    config = QuizConfig(num_questions=3, categories=[category], time_limit_seconds=limit)
    return lifecycle.create_attempt(user_id, config, [q.id for q in questions])


def test_as_utc_attaches_timezone():
    naive = datetime(2026, 1, 1, 12, 0, 0)
    assert as_utc(naive).tzinfo == timezone.utc
    aware = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone(timedelta(hours=2)))
    assert as_utc(aware).hour == 10


def test_remaining_counts_down(lifecycle, questions, category, user_id, clock):
    attempt = _open(lifecycle, questions, category, user_id, limit=60)
    governor = lifecycle.governor
    assert governor.remaining(attempt) == pytest.approx(60)
    clock.advance(45)
    assert governor.remaining(attempt) == pytest.approx(15)
    clock.advance(100)
    assert governor.remaining(attempt) == 0.0


def test_untimed_attempt_never_expires(lifecycle, questions, category, user_id, clock):
    attempt = _open(lifecycle, questions, category, user_id, limit=None)
    clock.advance(10_000)
    assert lifecycle.governor.remaining(attempt) is None
    assert lifecycle.governor.is_past_cutoff(attempt) is False
    assert lifecycle.governor.expire_if_due(lifecycle, attempt) is False


def test_answer_within_grace_window_is_accepted(lifecycle, questions, category, user_id, clock):
    attempt = _open(lifecycle, questions, category, user_id, limit=5)
    clock.advance(7)  # past the deadline, inside the 5s grace
    row = lifecycle.record_answer(attempt.id, questions[0].id, "A")
    assert row.is_correct is True


def test_five_second_timeout(lifecycle, questions, category, user_id, clock):
    attempt = _open(lifecycle, questions, category, user_id, limit=5)
    clock.advance(2)
    lifecycle.record_answer(attempt.id, questions[0].id, "A")
    clock.advance(9)  # 11s: past limit + grace

    with pytest.raises(AttemptNotActive) as exc:
        lifecycle.record_answer(attempt.id, questions[1].id, "A")
    assert exc.value.status == "expired"

    expired = lifecycle.get(attempt.id)
    assert expired.status == AttemptStatusEnum.EXPIRED
    assert expired.completed_at is not None
    # Only the answer made in time counts.
    assert expired.correct_answers == 1
    assert expired.score == 100.0
    assert len(lifecycle.ledger.responses(attempt.id)) == 1


def test_expiry_fires_exactly_once(lifecycle, questions, category, user_id, clock):
    attempt = _open(lifecycle, questions, category, user_id, limit=5)
    clock.advance(30)
    governor = lifecycle.governor

    assert governor.expire_if_due(lifecycle, attempt) is True
    first_completed_at = lifecycle.get(attempt.id).completed_at
    assert governor.expire_if_due(lifecycle, lifecycle.get(attempt.id)) is False
    assert lifecycle.get(attempt.id).completed_at == first_completed_at


def test_submit_after_cutoff_is_rejected(lifecycle, questions, category, user_id, clock):
    attempt = _open(lifecycle, questions, category, user_id, limit=5)
    clock.advance(11)
    with pytest.raises(AttemptNotActive):
        lifecycle.finalize(attempt.id)
    assert lifecycle.get(attempt.id).status == AttemptStatusEnum.EXPIRED


def test_submit_before_cutoff_beats_timer(lifecycle, questions, category, user_id, clock):
    attempt = _open(lifecycle, questions, category, user_id, limit=5)
    clock.advance(3)
    lifecycle.finalize(attempt.id)
    clock.advance(60)
    assert lifecycle.governor.expire_if_due(lifecycle, lifecycle.get(attempt.id)) is False
    assert lifecycle.get(attempt.id).status == AttemptStatusEnum.COMPLETED


def test_sweep_expires_only_overdue(lifecycle, questions, category, user_id, clock):
    overdue = _open(lifecycle, questions, category, user_id, limit=5)
    clock.advance(4)
    fresh = _open(lifecycle, questions, category, user_id, limit=60)
    untimed = _open(lifecycle, questions, category, user_id, limit=None)
    clock.advance(20)

    assert lifecycle.governor.sweep(lifecycle) >= 1
    assert lifecycle.get(overdue.id).status == AttemptStatusEnum.EXPIRED
    assert lifecycle.get(fresh.id).status == AttemptStatusEnum.IN_PROGRESS
    assert lifecycle.get(untimed.id).status == AttemptStatusEnum.IN_PROGRESS


# ── Celery tasks ───────────────────────────────────────────────────────────────


@pytest.fixture
def started_a_minute_ago(db, make_clock, make_questions, category, user_id):
    """A 5s attempt whose start was stamped 60s before the real clock."""
    past = make_clock(datetime.now(timezone.utc) - timedelta(seconds=60))
    lifecycle = AttemptLifecycle(db, TimeGovernor(clock=past, grace_seconds=5))
    questions = make_questions(3, category)
    return _open(lifecycle, questions, category, user_id, limit=5)


def test_expire_attempt_task(db, started_a_minute_ago):
    attempt_id = str(started_a_minute_ago.id)
    with patch("quizapp.tasks.get_session_factory", return_value=lambda: db):
        first = expire_attempt(attempt_id)
        second = expire_attempt(attempt_id)

    assert first["expired"] is True
    assert second["expired"] is False
    assert second["status"] == "expired"
    assert AttemptLifecycle(db).get(attempt_id).status == AttemptStatusEnum.EXPIRED


def test_expire_attempt_task_unknown_attempt(db):
    with patch("quizapp.tasks.get_session_factory", return_value=lambda: db):
        result = expire_attempt(str(uuid.uuid4()))
    assert result == {"expired": False, "reason": "attempt_not_found"}


def test_expire_attempt_task_before_deadline_is_noop(db, lifecycle, questions, category, user_id):
    attempt = _open(lifecycle, questions, category, user_id, limit=600)
    with patch("quizapp.tasks.get_session_factory", return_value=lambda: db):
        result = expire_attempt(str(attempt.id))
    assert result["expired"] is False
    assert result["status"] == "in_progress"


def test_sweep_task(db, started_a_minute_ago):
    with patch("quizapp.tasks.get_session_factory", return_value=lambda: db):
        result = sweep_expired_attempts()
    assert result["expired"] >= 1
    assert AttemptLifecycle(db).get(started_a_minute_ago.id).status == AttemptStatusEnum.EXPIRED
