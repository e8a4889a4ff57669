"""Test history Pydantic models."""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from quiz_api.models.db.session import SessionStatus


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class HistoryTestInfo(_CamelModel):
    id: str
    title: str
    description: str | None = None
    time_limit: int


class AttemptStats(_CamelModel):
    """Statistics for one completed attempt."""

    id: str
    status: SessionStatus
    start_time: datetime
    end_time: datetime | None = None
    score: int
    time_spent: int
    total_questions: int
    total_answered: int
    correct_answers: int
    skipped_questions: int
    percentage: int
    avg_time_per_question: int


class OverallStats(_CamelModel):
    total_attempts: int = 0
    completed_attempts: int = 0
    average_score: int = 0
    best_score: int = 0
    average_time: int = 0


class TestHistoryResponse(_CamelModel):
    test: HistoryTestInfo
    sessions: list[AttemptStats] = Field(default_factory=list)
    overall_stats: OverallStats
