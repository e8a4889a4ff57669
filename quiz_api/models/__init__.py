"""Pydantic models."""
from quiz_api.models.access import (
    AccessResult,
    AccessStatus,
    BatchAccessRequest,
    TestAccessInfo,
)
from quiz_api.models.history import AttemptStats, OverallStats, TestHistoryResponse
from quiz_api.models.purchases import PurchasedTest, PurchasedTestsResponse, PurchaseStats
from quiz_api.models.questions import QuestionModel, QuestionType, TestPayload
from quiz_api.models.sessions import (
    ActiveSessionResponse,
    AnswerSubmission,
    SessionCreateRequest,
    SessionResponse,
    SessionUpdateRequest,
    StartSessionResponse,
    SubmitAnswersRequest,
    SubmitAnswersResponse,
    UpdateSessionResponse,
)

__all__ = [
    "AccessResult",
    "AccessStatus",
    "ActiveSessionResponse",
    "AnswerSubmission",
    "AttemptStats",
    "BatchAccessRequest",
    "OverallStats",
    "PurchaseStats",
    "PurchasedTest",
    "PurchasedTestsResponse",
    "QuestionModel",
    "QuestionType",
    "SessionCreateRequest",
    "SessionResponse",
    "SessionUpdateRequest",
    "StartSessionResponse",
    "SubmitAnswersRequest",
    "SubmitAnswersResponse",
    "TestAccessInfo",
    "TestHistoryResponse",
    "TestPayload",
    "UpdateSessionResponse",
]
