"""Pydantic models for access control API."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class AccessStatus(str, Enum):
    """Outcome of an access check."""

    GRANTED = "granted"
    LOCKED = "locked"  # Paid test, not purchased
    AUTH_REQUIRED = "auth_required"  # Paid test, anonymous caller


class TestAccessInfo(BaseModel):
    """Pricing information an access decision needs."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    price: float | None = 0
    currency: str | None = None
    is_free: bool | None = True


class AccessResult(BaseModel):
    """Access decision for one (identity, test) pair."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    status: AccessStatus
    can_access: bool
    reason: str
    is_free: bool
    test_price: float
    test_currency: str
    has_purchased: bool = False


class BatchAccessRequest(BaseModel):
    """Request to check several tests at once."""

    testIds: list[str] = Field(..., min_length=1, max_length=200)
