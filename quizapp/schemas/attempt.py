"""Attempt, answer, and result schemas."""

import uuid
from datetime import datetime
from enum import Enum

from pydantic import BaseModel

from quizapp.schemas.quiz import QuestionRead


class AttemptStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ABANDONED = "abandoned"
    EXPIRED = "expired"


class ReviewFilter(str, Enum):
    ALL = "all"
    CORRECT = "correct"
    INCORRECT = "incorrect"


class AnswerSubmit(BaseModel):
    """POST /api/attempts/{id}/answers — one answer (or skip).

    ``elapsed_seconds`` is the client's own measure of time spent on the
    question; it is clamped to the server-side elapsed time.
    """

    question_id: uuid.UUID
    answer: str | None = None
    elapsed_seconds: float = 0.0
    skipped: bool = False


class AnswerReceipt(BaseModel):
    """Acknowledgement of a stored answer (correctness stays hidden)."""

    attempt_id: uuid.UUID
    question_id: uuid.UUID
    question_position: int
    skipped: bool
    answered_at: datetime
    answered_count: int
    time_left_seconds: float | None = None


class SubmitRequest(BaseModel):
    """POST /api/attempts/{id}/submit — optional answers not yet sent."""

    answers: list[AnswerSubmit] = []


class FinalResult(BaseModel):
    """Scored outcome of a finished attempt."""

    attempt_id: uuid.UUID
    status: AttemptStatus
    total_questions: int
    correct_answers: int
    score: float
    total_points: float
    max_points: float
    time_spent_seconds: float
    started_at: datetime
    completed_at: datetime | None = None


class ProgressRead(BaseModel):
    """Live progress of an attempt, timed by the server clock."""

    attempt_id: uuid.UUID
    status: AttemptStatus
    total_questions: int
    answered: int
    skipped: int
    remaining: int
    time_left_seconds: float | None = None
    deadline_at: datetime | None = None


class ResponseRead(BaseModel):
    """A saved response; scoring fields are only filled after the attempt ends."""

    question_id: uuid.UUID
    question_position: int
    user_answer: str
    skipped: bool
    answered_at: datetime
    is_correct: bool | None = None
    points_awarded: float | None = None
    max_points: float | None = None


class AttemptRead(BaseModel):
    """Attempt summary for history lists."""

    id: uuid.UUID
    user_id: uuid.UUID
    status: AttemptStatus
    config: dict
    total_questions: int
    correct_answers: int
    score: float
    time_spent_seconds: float
    started_at: datetime
    completed_at: datetime | None = None

    model_config = {"from_attributes": True}


class AttemptDetailRead(AttemptRead):
    """Attempt with its questions in presentation order, for resuming."""

    questions: list[QuestionRead] = []
    responses: list[ResponseRead] = []
    time_left_seconds: float | None = None


class ReviewItem(BaseModel):
    """Per-question breakdown shown on the results page."""

    position: int
    question_id: uuid.UUID
    text: str
    options: list[str]
    correct_answer: str
    explanation: str | None = None
    user_answer: str | None = None
    is_correct: bool
    skipped: bool
    answered: bool
    points_awarded: float
    points: float
