"""Quiz configuration and generation schemas."""

import uuid
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    MIXED = "mixed"


class QuizConfig(BaseModel):
    """POST /api/quizzes/generate — what the learner asked for.

    Field defaults:
      - difficulty: ``None`` behaves like ``mixed`` (no difficulty filter)
      - time_limit_seconds: ``None`` or ``0`` means the quiz is untimed

    Range checks (positive count, non-empty categories, non-negative limit)
    are done by the engine so they surface as ``INVALID_CONFIG``.
    """

    num_questions: int
    difficulty: Difficulty | None = Difficulty.MIXED
    categories: list[str] = Field(default_factory=list)
    time_limit_seconds: int | None = None

    @property
    def effective_difficulty(self) -> Difficulty:
        return self.difficulty or Difficulty.MIXED

    @property
    def category_set(self) -> list[str]:
        """Categories de-duplicated, blanks dropped, in first-seen order."""
        seen: dict[str, None] = {}
        for name in self.categories:
            name = name.strip()
            if name:
                seen.setdefault(name, None)
        return list(seen)

    def snapshot(self) -> dict:
        """Normalised configuration stored on the attempt.

        Top-level fields hold the values the engine acted on (effective
        difficulty, de-duplicated categories, ``0`` limit as ``None``); the
        request exactly as the learner sent it is kept under ``requested``.
        """
        return {
            "num_questions": self.num_questions,
            "difficulty": self.effective_difficulty.value,
            "categories": self.category_set,
            "time_limit_seconds": self.time_limit_seconds or None,
            "requested": self.model_dump(mode="json", exclude_unset=True),
        }


class QuestionRead(BaseModel):
    """Question as shown to a learner (never includes the answer)."""

    id: uuid.UUID
    text: str
    category: str
    difficulty: str
    options: list[str]
    points: float
    image_url: str | None = None
    position: int

    model_config = {"from_attributes": True}


class QuizGenerated(BaseModel):
    """Result of ``generate``: the new attempt and its fixed question order."""

    attempt_id: uuid.UUID
    question_ids: list[uuid.UUID]
    questions: list[QuestionRead] = []
    status: str
    started_at: datetime
    time_limit_seconds: int | None = None
    deadline_at: datetime | None = None


class CategoryAvailability(BaseModel):
    """Active question count for one category."""

    category: str
    available: int
