"""Question selection for a new attempt.

Over-fetches candidates from the pool, applies a uniform Fisher-Yates
shuffle and keeps the first ``num_questions``. The resulting order is the
presentation order for the attempt and is never reshuffled afterwards.
"""

from __future__ import annotations

import logging
import math
import random
import uuid
from typing import Protocol, Sequence

from quizapp.config import settings
from quizapp.core.exceptions import InsufficientQuestions
from quizapp.schemas.quiz import Difficulty, QuizConfig

logger = logging.getLogger(__name__)


class CandidateSource(Protocol):
    def fetch_candidates(
        self, categories: Sequence[str], difficulty: Difficulty | None, min_count: int
    ) -> list: ...


def fetch_window(num_questions: int) -> int:
    """How many candidates to request for a quiz of ``num_questions``."""
    return max(
        settings.SELECTOR_MIN_FETCH,
        math.ceil(num_questions * settings.SELECTOR_OVERFETCH_FACTOR),
    )


def shuffle_in_place(items: list, rng: random.Random) -> None:
    """Fisher-Yates: walk from the end, swapping each slot with a random
    slot at or before it. Every permutation is equally likely."""
    for i in range(len(items) - 1, 0, -1):
        j = rng.randint(0, i)
        items[i], items[j] = items[j], items[i]


def select_question_ids(
    pool: CandidateSource,
    config: QuizConfig,
    rng: random.Random | None = None,
) -> list[uuid.UUID]:
    """Pick ``config.num_questions`` distinct question ids in presentation order.

    Raises:
        InsufficientQuestions: fewer matching active questions than requested.
    """
    required = config.num_questions
    candidates = pool.fetch_candidates(
        config.category_set, config.effective_difficulty, fetch_window(required)
    )

    # Guard against a source returning the same row twice.
    unique = list({str(q.id): q for q in candidates}.values())
    if len(unique) < required:
        logger.info(
            "Insufficient questions: available=%d required=%d categories=%s difficulty=%s",
            len(unique), required, config.category_set, config.effective_difficulty.value,
        )
        raise InsufficientQuestions(available=len(unique), required=required)

    shuffle_in_place(unique, rng or random.SystemRandom())
    return [q.id for q in unique[:required]]
