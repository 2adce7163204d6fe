"""Background tasks executed by Celery workers."""

import logging

from quizapp.celery_app import celery_app
from quizapp.core.exceptions import AttemptNotFound
from quizapp.db.session import get_session_factory
from quizapp.services.lifecycle import AttemptLifecycle
from quizapp.services.time_governor import TimeGovernor

logger = logging.getLogger(__name__)


@celery_app.task(name="expire_attempt")
def expire_attempt(attempt_id: str) -> dict:
    """Expire one attempt once its deadline plus grace has passed.

    Scheduled with a countdown when a timed attempt is created. Safe to run
    early, late, or more than once: it only acts on an overdue attempt that
    is still in progress.
    """
    factory = get_session_factory()
    db = factory()
    try:
        lifecycle = AttemptLifecycle(db, TimeGovernor())
        try:
            attempt = lifecycle.get(attempt_id)
        except AttemptNotFound:
            logger.error("Attempt %s not found, skipping expiry", attempt_id)
            return {"expired": False, "reason": "attempt_not_found"}

        expired = lifecycle.governor.expire_if_due(lifecycle, attempt)
        if not expired:
            db.refresh(attempt)
            logger.debug("Attempt %s not expired (status=%s)", attempt_id, attempt.status.value)
        return {"expired": expired, "attempt_id": attempt_id, "status": attempt.status.value}
    finally:
        db.close()


@celery_app.task(name="sweep_expired_attempts")
def sweep_expired_attempts() -> dict:
    """Expire every in-progress attempt whose cutoff has passed."""
    factory = get_session_factory()
    db = factory()
    try:
        governor = TimeGovernor()
        count = governor.sweep(AttemptLifecycle(db, governor))
        return {"expired": count}
    finally:
        db.close()
