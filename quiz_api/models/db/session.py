"""
TestSession, UserAnswer and SelectedAnswer database models.
"""

from __future__ import annotations

import enum
import json
import uuid
from datetime import datetime, timezone
from typing import Any

import sqlalchemy as sa
from sqlalchemy import ForeignKey, Index, String, Text, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from quiz_api.database import Base


class SessionStatus(str, enum.Enum):
    """Status of a test session."""

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    EXPIRED = "expired"

    @property
    def is_terminal(self) -> bool:
        return self is not SessionStatus.IN_PROGRESS


_IN_PROGRESS_ONLY = text("status = 'in_progress'")


class TestSession(Base):
    """
    One timed attempt by one user at one test.
    At most one in_progress row may exist per (user_id, test_id).
    """

    __tablename__ = "test_sessions"

    id: Mapped[str] = mapped_column(
        String(64), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    test_id: Mapped[str] = mapped_column(
        ForeignKey("tests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    status: Mapped[str] = mapped_column(
        String(20), default=SessionStatus.IN_PROGRESS.value, nullable=False
    )

    # Timing
    start_time: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    end_time: Mapped[datetime | None] = mapped_column(
        sa.DateTime(timezone=True), nullable=True
    )
    time_spent: Mapped[int] = mapped_column(default=0, nullable=False)

    # Progress
    score: Mapped[int] = mapped_column(default=0, nullable=False)
    current_question_index: Mapped[int] = mapped_column(default=0, nullable=False)
    session_data_json: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Bumped on every submission; used for compare-and-swap writes
    version: Mapped[int] = mapped_column(default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    __table_args__ = (
        Index(
            "uq_session_user_test_in_progress",
            "user_id",
            "test_id",
            unique=True,
            sqlite_where=_IN_PROGRESS_ONLY,
            postgresql_where=_IN_PROGRESS_ONLY,
        ),
    )

    # Relationships
    answers: Mapped[list["UserAnswer"]] = relationship(
        "UserAnswer", back_populates="session", cascade="all, delete-orphan"
    )

    @property
    def session_data(self) -> dict[str, Any]:
        """Parse progress snapshot from JSON."""
        if not self.session_data_json:
            return {}
        try:
            return json.loads(self.session_data_json)
        except (json.JSONDecodeError, TypeError):
            return {}

    @session_data.setter
    def session_data(self, value: dict[str, Any] | None) -> None:
        """Serialize progress snapshot to JSON."""
        self.session_data_json = json.dumps(value) if value else None

    @property
    def session_status(self) -> SessionStatus:
        return SessionStatus(self.status)

    @property
    def is_in_progress(self) -> bool:
        return self.status == SessionStatus.IN_PROGRESS.value


class UserAnswer(Base):
    """
    Scored answer to one question within a session.
    Replaced wholesale on every submission.
    """

    __tablename__ = "user_answers"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    test_session_id: Mapped[str] = mapped_column(
        ForeignKey("test_sessions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    question_id: Mapped[str] = mapped_column(
        ForeignKey("questions.id", ondelete="CASCADE"), nullable=False
    )
    time_spent: Mapped[int] = mapped_column(default=0, nullable=False)
    is_correct: Mapped[bool] = mapped_column(default=False, nullable=False)
    is_skipped: Mapped[bool] = mapped_column(default=False, nullable=False)

    __table_args__ = (
        UniqueConstraint("test_session_id", "question_id", name="uq_session_question"),
    )

    # Relationships
    session: Mapped["TestSession"] = relationship("TestSession", back_populates="answers")
    selected: Mapped[list["SelectedAnswer"]] = relationship(
        "SelectedAnswer", back_populates="user_answer", cascade="all, delete-orphan"
    )


class SelectedAnswer(Base):
    """Choice option picked for a choice-type question."""

    __tablename__ = "selected_answers"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    user_answer_id: Mapped[int] = mapped_column(
        ForeignKey("user_answers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    answer_id: Mapped[str] = mapped_column(String(64), nullable=False)

    user_answer: Mapped["UserAnswer"] = relationship("UserAnswer", back_populates="selected")
