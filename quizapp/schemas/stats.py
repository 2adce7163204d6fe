"""Learner statistics schemas."""

import uuid

from pydantic import BaseModel


class UserStats(BaseModel):
    """Aggregate over every attempt of one learner."""

    user_id: uuid.UUID
    total_attempts: int
    completed_attempts: int
    average_score: float
    best_score: float
    total_time_spent: float
    completion_rate: float
