"""Read views over purchase records."""
from sqlalchemy import select
from sqlalchemy.orm import Session as DbSession

from quiz_api.models.db.purchase import PurchaseRecord, PurchaseStatus
from quiz_api.models.db.test import Test
from quiz_api.models.purchases import PurchasedTest, PurchasedTestsResponse, PurchaseStats


def get_user_purchases(db: DbSession, user_id: str) -> list[PurchasedTest]:
    """Active purchases of a user, newest first."""
    stmt = (
        select(PurchaseRecord, Test.title)
        .join(Test, Test.id == PurchaseRecord.test_id)
        .where(
            PurchaseRecord.user_id == user_id,
            PurchaseRecord.status == PurchaseStatus.ACTIVE.value,
        )
        .order_by(PurchaseRecord.purchase_date.desc())
    )
    return [
        PurchasedTest(
            id=record.id,
            test_id=record.test_id,
            test_title=title,
            status=record.status,
            purchase_date=record.purchase_date,
            payment_amount=record.payment_amount,
            currency=record.currency,
        )
        for record, title in db.execute(stmt).all()
    ]


def summarize_purchases(purchases: list[PurchasedTest]) -> PurchaseStats:
    if not purchases:
        return PurchaseStats()
    return PurchaseStats(
        total_purchased=len(purchases),
        total_spent=sum(p.payment_amount or 0 for p in purchases),
        most_recent_purchase=max(p.purchase_date for p in purchases),
    )


def get_purchased_tests(db: DbSession, user_id: str) -> PurchasedTestsResponse:
    purchases = get_user_purchases(db, user_id)
    return PurchasedTestsResponse(purchases=purchases, stats=summarize_purchases(purchases))
