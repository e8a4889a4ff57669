"""Access control for paid tests."""
import logging
from typing import Iterable

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as DbSession

from quiz_api.config import DEFAULT_CURRENCY
from quiz_api.models.access import AccessResult, AccessStatus, TestAccessInfo
from quiz_api.models.db.purchase import PurchaseRecord, PurchaseStatus
from quiz_api.models.db.test import Test
from quiz_api.models.db.user import User

logger = logging.getLogger(__name__)


def _as_info(test: TestAccessInfo | Test) -> TestAccessInfo:
    if isinstance(test, TestAccessInfo):
        return test
    return TestAccessInfo.model_validate(test)


def is_free_test(test: TestAccessInfo) -> bool:
    """Free tests are open to everyone, signed in or not."""
    return bool(test.is_free) or (test.price or 0) <= 0


def _result(
    test: TestAccessInfo,
    status: AccessStatus,
    reason: str,
    has_purchased: bool = False,
) -> AccessResult:
    free = is_free_test(test)
    return AccessResult(
        status=status,
        can_access=status == AccessStatus.GRANTED,
        reason=reason,
        is_free=free,
        test_price=0 if free else float(test.price or 0),
        test_currency=test.currency or DEFAULT_CURRENCY,
        has_purchased=has_purchased,
    )


def is_admin(db: DbSession, user_id: str) -> bool:
    """Check the admin capability of a user. Lookup errors propagate."""
    stmt = select(User.is_admin).where(User.id == user_id)
    return db.execute(stmt).scalar_one_or_none() is True


def has_active_purchase(db: DbSession, user_id: str, test_id: str) -> bool:
    """Check whether an active purchase exists for (user, test)."""
    stmt = select(PurchaseRecord.id).where(
        PurchaseRecord.user_id == user_id,
        PurchaseRecord.test_id == test_id,
        PurchaseRecord.status == PurchaseStatus.ACTIVE.value,
    ).limit(1)
    return db.execute(stmt).first() is not None


def check_access(
    db: DbSession, user_id: str | None, test: TestAccessInfo | Test
) -> AccessResult:
    """
    Decide whether a user may take a test.

    Free tests are granted to everyone. Paid tests need a signed-in user
    who is either an admin or owns an active purchase. Lookup failures
    fail closed.
    """
    info = _as_info(test)

    if is_free_test(info):
        return _result(info, AccessStatus.GRANTED, "Test is free and available to all users")

    if not user_id:
        return _result(
            info,
            AccessStatus.AUTH_REQUIRED,
            "Authentication required to access this paid test",
        )

    try:
        if is_admin(db, user_id):
            return _result(
                info,
                AccessStatus.GRANTED,
                "Admin access - full access to all tests",
                has_purchased=True,
            )

        if has_active_purchase(db, user_id, info.id):
            return _result(
                info,
                AccessStatus.GRANTED,
                "User has purchased this test",
                has_purchased=True,
            )
    except SQLAlchemyError:
        logger.exception("Access lookup failed for user %s, test %s", user_id, info.id)
        return _result(info, AccessStatus.LOCKED, "Unable to verify purchase status")

    return _result(info, AccessStatus.LOCKED, "Test requires purchase")


def check_access_many(
    db: DbSession,
    user_id: str | None,
    tests: Iterable[TestAccessInfo | Test],
) -> dict[str, AccessResult]:
    """
    Batch variant of check_access.

    Free tests never touch storage; the remaining paid tests are resolved
    with one admin lookup and one purchase query.
    """
    results: dict[str, AccessResult] = {}
    paid: list[TestAccessInfo] = []

    for test in tests:
        info = _as_info(test)
        if is_free_test(info):
            results[info.id] = _result(info, AccessStatus.GRANTED, "Test is free")
        else:
            paid.append(info)

    if not paid:
        return results

    if not user_id:
        for info in paid:
            results[info.id] = _result(
                info, AccessStatus.AUTH_REQUIRED, "Authentication required"
            )
        return results

    try:
        admin = is_admin(db, user_id)
        purchased: set[str] = set()
        if not admin:
            stmt = select(PurchaseRecord.test_id).where(
                PurchaseRecord.user_id == user_id,
                PurchaseRecord.status == PurchaseStatus.ACTIVE.value,
                PurchaseRecord.test_id.in_([info.id for info in paid]),
            )
            purchased = set(db.execute(stmt).scalars().all())
    except SQLAlchemyError:
        logger.exception("Batch access lookup failed for user %s", user_id)
        for info in paid:
            results[info.id] = _result(
                info, AccessStatus.LOCKED, "Unable to verify purchase status"
            )
        return results

    for info in paid:
        if admin:
            results[info.id] = _result(
                info,
                AccessStatus.GRANTED,
                "Admin access - full access to all tests",
                has_purchased=True,
            )
        elif info.id in purchased:
            results[info.id] = _result(
                info, AccessStatus.GRANTED, "User has purchased this test", has_purchased=True
            )
        else:
            results[info.id] = _result(info, AccessStatus.LOCKED, "Test requires purchase")

    return results


def get_test_or_404(db: DbSession, test_id: str) -> Test:
    """Load a test row or raise 404."""
    test = db.get(Test, test_id)
    if test is None:
        raise HTTPException(status_code=404, detail="Test not found")
    return test


def check_access_by_test_id(
    db: DbSession, user_id: str | None, test_id: str
) -> AccessResult:
    """Check access for a test id; a missing test is a 404, not 'locked'."""
    return check_access(db, user_id, get_test_or_404(db, test_id))


def require_access(db: DbSession, user_id: str | None, test: Test) -> AccessResult:
    """Raise 401/403 unless access is granted."""
    result = check_access(db, user_id, test)
    if result.status == AccessStatus.AUTH_REQUIRED:
        raise HTTPException(
            status_code=401,
            detail={"status": result.status.value, "reason": result.reason},
        )
    if result.status == AccessStatus.LOCKED:
        raise HTTPException(
            status_code=403,
            detail={"status": result.status.value, "reason": result.reason},
        )
    return result
