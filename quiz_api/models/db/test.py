"""
Test, Category and the test/question and test/category link tables.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING

import sqlalchemy as sa
from sqlalchemy import ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from quiz_api.database import Base

if TYPE_CHECKING:
    from quiz_api.models.db.question import Question


def _uuid() -> str:
    return str(uuid.uuid4())


class Category(Base):
    """Question/test category."""

    __tablename__ = "categories"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)


class Test(Base):
    """
    A timed test made of an ordered set of questions.
    Authored out of band; read-only for the attempt engine.
    """

    __tablename__ = "tests"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_uuid)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    instructions: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Seconds
    time_limit: Mapped[int] = mapped_column(default=3600, nullable=False)

    # Pricing: price > 0 implies is_free == False
    price: Mapped[float] = mapped_column(sa.Float, default=0, nullable=False)
    currency: Mapped[str | None] = mapped_column(String(3), nullable=True)
    is_free: Mapped[bool] = mapped_column(default=True, nullable=False)

    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)
    is_archived: Mapped[bool] = mapped_column(default=False, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    # Relationships
    test_questions: Mapped[list["TestQuestion"]] = relationship(
        "TestQuestion",
        back_populates="test",
        cascade="all, delete-orphan",
        order_by="TestQuestion.position",
    )
    categories: Mapped[list["Category"]] = relationship(
        "Category", secondary="test_categories"
    )

    @property
    def is_available(self) -> bool:
        """Whether new sessions may be started for this test."""
        return self.is_active and not self.is_archived


class TestQuestion(Base):
    """Position of a question inside a test."""

    __tablename__ = "test_questions"

    id: Mapped[int] = mapped_column(primary_key=True)
    test_id: Mapped[str] = mapped_column(
        ForeignKey("tests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    question_id: Mapped[str] = mapped_column(
        ForeignKey("questions.id", ondelete="CASCADE"), nullable=False
    )
    position: Mapped[int] = mapped_column(default=0, nullable=False)

    __table_args__ = (
        UniqueConstraint("test_id", "question_id", name="uq_test_question"),
    )

    test: Mapped["Test"] = relationship("Test", back_populates="test_questions")
    question: Mapped["Question"] = relationship("Question")


class TestCategory(Base):
    """Category membership of a test."""

    __tablename__ = "test_categories"

    test_id: Mapped[str] = mapped_column(
        ForeignKey("tests.id", ondelete="CASCADE"), primary_key=True
    )
    category_id: Mapped[str] = mapped_column(
        ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True
    )
