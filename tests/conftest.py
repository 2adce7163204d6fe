"""Shared pytest fixtures for quiz engine tests."""

import uuid
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from quizapp.api.deps import get_quiz_service
from quizapp.config import settings
from quizapp.core.security import create_access_token
from quizapp.db.models import DifficultyEnum, Question
from quizapp.db.session import Base, get_db
from quizapp.main import app
from quizapp.services.quiz_session import QuizSessionService
from quizapp.services.rate_limiter import require_generate_rate_limit
from quizapp.services.time_governor import TimeGovernor


# Use an in-memory SQLite database for testing with static pool
SQLALCHEMY_TEST_URL = "sqlite:///:memory:"
engine = create_engine(
    SQLALCHEMY_TEST_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,  # Use StaticPool to keep connection alive
    echo=False,
)
TestSession = sessionmaker(bind=engine, autocommit=False, autoflush=False)

# Create all tables once at startup
Base.metadata.create_all(bind=engine)


class FakeClock:
    """Manually advanced UTC clock for deterministic timing tests."""

    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime.now(timezone.utc)

    def __call__(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)


@pytest.fixture(autouse=True)
def mock_celery_tasks():
    """Mock Celery tasks for all tests to prevent Redis connection."""
    mock_task = MagicMock()
    mock_task.apply_async = MagicMock(return_value=MagicMock(id="fake-task-id"))

    # Patch at the import point in the quizzes module
    with patch("quizapp.api.quizzes.expire_attempt", mock_task):
        yield mock_task


@pytest.fixture(autouse=True)
def no_redis(monkeypatch):
    """Keep the catalog cache out of the way; tests never touch Redis."""
    monkeypatch.setattr(settings, "CATALOG_CACHE_ENABLED", False)


@pytest.fixture(scope="function")
def db():
    """Get a fresh DB session for each test."""
    session = TestSession()
    try:
        yield session
    finally:
        session.rollback()  # Rollback changes after each test
        session.close()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def governor(clock: FakeClock) -> TimeGovernor:
    return TimeGovernor(clock=clock, grace_seconds=5)


@pytest.fixture(scope="function")
def client(db: Session, governor: TimeGovernor):
    """FastAPI test client with overridden DB, clock and rate limiter."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_quiz_service] = lambda: QuizSessionService(db, governor)
    app.dependency_overrides[require_generate_rate_limit] = lambda: None

    # Remove TrustedHostMiddleware for tests to allow 'testserver' host
    app.user_middleware = [m for m in app.user_middleware if "TrustedHost" not in str(m)]

    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# ── Helpers ────────────────────────────────────────────────────────────────────


@pytest.fixture
def user_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def auth_headers(user_id: uuid.UUID) -> dict:
    token = create_access_token({"sub": str(user_id)})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def category() -> str:
    """A category name unique to the test, so committed rows never collide."""
    return f"science-{uuid.uuid4().hex[:8]}"


@pytest.fixture
def make_questions(db: Session):
    """Factory that commits ``count`` active questions and returns them.

    Every question's correct answer is ``"A"``.
    """

    def _make(
        count: int,
        category: str,
        difficulty: DifficultyEnum = DifficultyEnum.EASY,
        points: float = 10.0,
        is_active: bool = True,
    ) -> list[Question]:
        questions = [
            Question(
                text=f"{category} question {i}",
                category=category,
                difficulty=difficulty,
                options=["A", "B", "C", "D"],
                correct_answer="A",
                explanation=f"Because A ({i})",
                points=points,
                is_active=is_active,
            )
            for i in range(count)
        ]
        db.add_all(questions)
        db.commit()
        for q in questions:
            db.refresh(q)
        return questions

    return _make


@pytest.fixture
def make_clock():
    """The ``FakeClock`` class, for tests that need a clock of their own."""
    return FakeClock
