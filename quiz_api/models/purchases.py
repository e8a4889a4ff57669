"""Purchase view Pydantic models."""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


class PurchasedTest(_CamelModel):
    id: str
    test_id: str
    test_title: str | None = None
    status: str
    purchase_date: datetime
    payment_amount: float
    currency: str | None = None


class PurchaseStats(_CamelModel):
    total_purchased: int = 0
    total_spent: float = 0
    most_recent_purchase: datetime | None = None


class PurchasedTestsResponse(_CamelModel):
    purchases: list[PurchasedTest] = Field(default_factory=list)
    stats: PurchaseStats
