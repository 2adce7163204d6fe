"""Read-only access to the shared question bank."""

import logging
import uuid
from typing import Iterable

from sqlalchemy import func
from sqlalchemy.orm import Session

from quizapp.db.models import DifficultyEnum, Question
from quizapp.schemas.quiz import Difficulty
from quizapp.services.cache import cache_get, cache_set

logger = logging.getLogger(__name__)


class QuestionPool:
    """Filtered sampling over active questions."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def _active(self, categories: Iterable[str] | None, difficulty: Difficulty | None):
        query = self.db.query(Question).filter(Question.is_active.is_(True))
        if categories is not None:
            query = query.filter(Question.category.in_(list(categories)))
        if difficulty is not None and difficulty != Difficulty.MIXED:
            query = query.filter(Question.difficulty == DifficultyEnum(difficulty.value))
        return query

    def fetch_candidates(
        self,
        categories: Iterable[str],
        difficulty: Difficulty | None,
        min_count: int,
    ) -> list[Question]:
        """Return up to ``min_count`` active questions matching the filters.

        Rows come back in random database order so that banks larger than the
        fetch window are sampled fairly; callers must not rely on ordering.
        """
        categories = list(categories)
        if not categories or min_count <= 0:
            return []
        rows = (
            self._active(categories, difficulty)
            .order_by(func.random())
            .limit(min_count)
            .all()
        )
        logger.debug(
            "Fetched %d candidates (categories=%s, difficulty=%s, window=%d)",
            len(rows), categories, difficulty, min_count,
        )
        return rows

    def get_many(self, question_ids: Iterable) -> dict[str, Question]:
        """Load questions by id, keyed by the string form of the id."""
        ids = [uuid.UUID(str(qid)) for qid in question_ids]
        if not ids:
            return {}
        rows = self.db.query(Question).filter(Question.id.in_(ids)).all()
        return {str(q.id): q for q in rows}

    def category_counts(self, difficulty: Difficulty | None = None) -> dict[str, int]:
        """Active question count per category (cached)."""
        params = {"difficulty": difficulty.value if difficulty else None}
        cached = cache_get("category_counts", params)
        if cached is not None:
            return cached

        query = self.db.query(Question.category, func.count(Question.id)).filter(
            Question.is_active.is_(True)
        )
        if difficulty is not None and difficulty != Difficulty.MIXED:
            query = query.filter(Question.difficulty == DifficultyEnum(difficulty.value))
        counts = {
            category: count
            for category, count in query.group_by(Question.category).order_by(Question.category)
        }
        cache_set("category_counts", params, counts)
        return counts
