"""Database models."""
from quiz_api.models.db.user import User
from quiz_api.models.db.test import Category, Test, TestCategory, TestQuestion
from quiz_api.models.db.question import (
    ChoiceAnswer,
    DragDropItem,
    DropdownItem,
    MatchItem,
    Question,
    SequenceItem,
)
from quiz_api.models.db.session import SelectedAnswer, SessionStatus, TestSession, UserAnswer
from quiz_api.models.db.purchase import PurchaseRecord, PurchaseStatus

__all__ = [
    "User",
    "Category",
    "Test",
    "TestCategory",
    "TestQuestion",
    "ChoiceAnswer",
    "DragDropItem",
    "DropdownItem",
    "MatchItem",
    "Question",
    "SequenceItem",
    "SelectedAnswer",
    "SessionStatus",
    "TestSession",
    "UserAnswer",
    "PurchaseRecord",
    "PurchaseStatus",
]
