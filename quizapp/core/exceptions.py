"""Quiz engine error taxonomy.

Every engine error carries a stable ``error_code`` and an HTTP status so the
API layer can render it with the shared ``ErrorResponse`` envelope.
"""

from typing import Any


class QuizEngineError(Exception):
    """Base class for errors raised by the quiz session engine."""

    error_code = "QUIZ_ENGINE_ERROR"
    status_code = 400

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class InvalidConfig(QuizEngineError):
    """Quiz configuration rejected (user-correctable)."""

    error_code = "INVALID_CONFIG"
    status_code = 422


class InsufficientQuestions(QuizEngineError):
    """Fewer matching active questions than the configuration requires."""

    error_code = "INSUFFICIENT_QUESTIONS"
    status_code = 409

    def __init__(self, available: int, required: int) -> None:
        super().__init__(
            f"Not enough questions available. Found {available}, required {required}",
            details={"available": available, "required": required},
        )
        self.available = available
        self.required = required


class AttemptNotFound(QuizEngineError):
    error_code = "ATTEMPT_NOT_FOUND"
    status_code = 404

    def __init__(self, attempt_id: Any) -> None:
        super().__init__("Attempt not found", details={"attempt_id": str(attempt_id)})


class AttemptNotActive(QuizEngineError):
    """Operation attempted on an attempt that already left ``in_progress``."""

    error_code = "ATTEMPT_NOT_ACTIVE"
    status_code = 409

    def __init__(self, attempt_id: Any, status: str) -> None:
        super().__init__(
            f"Quiz attempt already {'submitted' if status == 'completed' else status}",
            details={"attempt_id": str(attempt_id), "status": status},
        )
        self.status = status


class LedgerClosed(AttemptNotActive):
    """Response write after the owning attempt reached a terminal state."""

    error_code = "LEDGER_CLOSED"


class UnknownQuestion(QuizEngineError):
    error_code = "UNKNOWN_QUESTION"
    status_code = 400

    def __init__(self, attempt_id: Any, question_id: Any) -> None:
        super().__init__(
            "Question is not part of this attempt",
            details={"attempt_id": str(attempt_id), "question_id": str(question_id)},
        )


class AttemptStillActive(QuizEngineError):
    """Results requested while the attempt is still running."""

    error_code = "ATTEMPT_STILL_ACTIVE"
    status_code = 409

    def __init__(self, attempt_id: Any) -> None:
        super().__init__(
            "Results are available once the attempt is submitted",
            details={"attempt_id": str(attempt_id)},
        )


class PersistenceFailure(QuizEngineError):
    """The durable store failed mid-operation; the caller may retry."""

    error_code = "PERSISTENCE_FAILURE"
    status_code = 503
