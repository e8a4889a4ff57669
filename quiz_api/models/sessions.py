"""Session-related Pydantic models."""
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from quiz_api.models.db.session import SessionStatus
from quiz_api.models.questions import SubmittedResponse


class SessionCreateRequest(BaseModel):
    """Model for starting or resuming a session."""

    testId: str = Field(..., min_length=1)


class SessionUpdateRequest(BaseModel):
    """Model for checkpointing a session. Omitted fields are left unchanged."""

    sessionId: str = Field(..., min_length=1)
    status: SessionStatus | None = None
    score: int | None = Field(default=None, ge=0, le=100)
    timeSpent: int | None = Field(default=None, ge=0)
    endTime: datetime | None = None
    currentQuestionIndex: int | None = Field(default=None, ge=0)
    sessionData: dict[str, Any] | None = None

    def to_fields(self) -> dict[str, Any]:
        """Map explicitly provided fields to column names."""
        mapping = {
            "status": "status",
            "score": "score",
            "timeSpent": "time_spent",
            "endTime": "end_time",
            "currentQuestionIndex": "current_question_index",
            "sessionData": "session_data",
        }
        provided = self.model_dump(exclude_unset=True)
        return {
            column: provided[name]
            for name, column in mapping.items()
            if name in provided and (provided[name] is not None or name == "sessionData")
        }


class SessionResponse(BaseModel):
    """Session row as returned to clients."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    test_id: str
    user_id: str
    status: SessionStatus
    start_time: datetime
    end_time: datetime | None = None
    time_spent: int = 0
    score: int = 0
    current_question_index: int = 0
    session_data: dict[str, Any] = Field(default_factory=dict)


class StartSessionResponse(BaseModel):
    session: SessionResponse
    resumed: bool


class ActiveSessionResponse(BaseModel):
    session: SessionResponse | None = None


class UpdateSessionResponse(BaseModel):
    session: SessionResponse


class AnswerSubmission(BaseModel):
    """One question's response as submitted by the client."""

    questionId: str = Field(..., min_length=1)
    answers: SubmittedResponse = None
    timeSpent: int = Field(default=0, ge=0)


class SubmitAnswersRequest(BaseModel):
    sessionId: str = Field(..., min_length=1)
    answers: list[AnswerSubmission]
    totalQuestions: int | None = Field(default=None, ge=0)
    score: int | None = Field(default=None, ge=0, le=100)


class SubmitAnswersResponse(BaseModel):
    success: bool = True
    score: int
    correctCount: int
    totalQuestions: int
    answeredCount: int
    skippedCount: int
