"""Purchase records written by the payment collaborator."""
from __future__ import annotations

import enum
import uuid
from datetime import datetime, timezone

import sqlalchemy as sa
from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from quiz_api.database import Base


class PurchaseStatus(str, enum.Enum):
    """Status of a purchase record."""

    ACTIVE = "active"
    REFUNDED = "refunded"


class PurchaseRecord(Base):
    """A user owns a test iff an active record exists for the pair."""

    __tablename__ = "user_test_purchases"

    id: Mapped[str] = mapped_column(
        String(64), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    test_id: Mapped[str] = mapped_column(
        ForeignKey("tests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(
        String(20), default=PurchaseStatus.ACTIVE.value, nullable=False
    )
    purchase_date: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    payment_amount: Mapped[float] = mapped_column(sa.Float, default=0, nullable=False)
    currency: Mapped[str | None] = mapped_column(String(3), nullable=True)
    transaction_ref: Mapped[str | None] = mapped_column(String(255), nullable=True)
