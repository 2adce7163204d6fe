"""Pydantic schemas — re‑exported for convenience."""

from quizapp.schemas.common import ErrorResponse  # noqa: F401
from quizapp.schemas.quiz import (  # noqa: F401
    CategoryAvailability,
    Difficulty,
    QuestionRead,
    QuizConfig,
    QuizGenerated,
)
from quizapp.schemas.attempt import (  # noqa: F401
    AnswerReceipt,
    AnswerSubmit,
    AttemptDetailRead,
    AttemptRead,
    AttemptStatus,
    FinalResult,
    ProgressRead,
    ResponseRead,
    ReviewFilter,
    ReviewItem,
    SubmitRequest,
)
from quizapp.schemas.stats import UserStats  # noqa: F401
