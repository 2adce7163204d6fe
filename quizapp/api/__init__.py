"""API route package — imports all routers for main.py."""

from quizapp.api.health import router as health_router  # noqa: F401
from quizapp.api.quizzes import router as quizzes_router  # noqa: F401
from quizapp.api.attempts import router as attempts_router  # noqa: F401
from quizapp.api.stats import router as stats_router  # noqa: F401
