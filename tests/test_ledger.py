"""Tests for the response ledger and scoring fold."""

from types import SimpleNamespace

import pytest

from quizapp.core.exceptions import LedgerClosed
from quizapp.db.models import AttemptStatusEnum
from quizapp.schemas.quiz import QuizConfig
from quizapp.services.ledger import ResponseLedger, compute_score, fold_responses
from quizapp.services.lifecycle import AttemptLifecycle


def _response(correct: bool, points: float = 10.0, skipped: bool = False, spent: float = 1.0):
    return SimpleNamespace(
        is_correct=correct,
        points_awarded=points if correct else 0.0,
        max_points=points,
        skipped=skipped,
        time_spent_seconds=spent,
    )


def test_compute_score():
    assert compute_score(20.0, 30.0) == 66.67
    assert compute_score(0.0, 0.0) == 0.0
    assert compute_score(30.0, 30.0) == 100.0


def test_fold_two_of_three():
    totals = fold_responses([_response(True), _response(True), _response(False)])
    assert totals.correct == 2
    assert totals.total_points == 20.0
    assert totals.max_points == 30.0
    assert totals.score == 66.67
    assert totals.time_spent == 3.0
    assert totals.answered == 3


def test_fold_counts_skips_against_max_points():
    totals = fold_responses([_response(True), _response(False, skipped=True)])
    assert totals.answered == 1
    assert totals.skipped == 1
    assert totals.responses == 2
    assert totals.score == 50.0


def test_fold_empty():
    totals = fold_responses([])
    assert totals.correct == 0
    assert totals.score == 0.0


@pytest.fixture
def attempt(db, governor, make_questions, category, user_id):
    questions = make_questions(3, category)
    lifecycle = AttemptLifecycle(db, governor)
    config = QuizConfig(num_questions=3, categories=[category])
    return lifecycle.create_attempt(user_id, config, [q.id for q in questions]), questions


def test_upsert_overwrites_by_question(db, attempt, clock):
    attempt, questions = attempt
    ledger = ResponseLedger(db)
    q = questions[0]

    ledger.upsert(attempt, q, "B", position=1, time_spent=1.0, answered_at=clock())
    ledger.upsert(attempt, q, "A", position=1, time_spent=2.0, answered_at=clock())
    db.commit()

    rows = ledger.responses(attempt.id)
    assert len(rows) == 1
    assert rows[0].user_answer == "A"
    assert rows[0].is_correct is True
    assert rows[0].points_awarded == 10.0
    assert ledger.aggregate(attempt.id).correct == 1


def test_none_answer_is_stored_as_skip(db, attempt, clock):
    attempt, questions = attempt
    ledger = ResponseLedger(db)
    row = ledger.upsert(attempt, questions[1], None, position=2, time_spent=0.0, answered_at=clock())
    assert row.skipped is True
    assert row.user_answer == "skipped"
    assert row.is_correct is False
    assert row.max_points == 10.0
    db.rollback()


def test_upsert_refused_once_attempt_is_terminal(db, attempt, clock):
    attempt, questions = attempt
    attempt.status = AttemptStatusEnum.COMPLETED
    with pytest.raises(LedgerClosed):
        ResponseLedger(db).upsert(
            attempt, questions[0], "A", position=1, time_spent=0.0, answered_at=clock()
        )
    db.rollback()
