"""Access control API routes."""

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session as DbSession

from quiz_api.database import get_db
from quiz_api.dependencies import get_optional_user
from quiz_api.models.access import AccessResult, BatchAccessRequest
from quiz_api.models.db.test import Test
from quiz_api.models.db.user import User
from quiz_api.services import access_service

router = APIRouter(prefix="/api/tests", tags=["access"])


@router.get("/{test_id}/access", response_model=AccessResult)
def get_test_access(
    test_id: str,
    current_user: User | None = Depends(get_optional_user),
    db: DbSession = Depends(get_db),
) -> AccessResult:
    """Check whether the caller may take a test."""
    user_id = current_user.id if current_user else None
    return access_service.check_access_by_test_id(db, user_id, test_id)


@router.post("/access", response_model=dict[str, AccessResult])
def get_tests_access(
    payload: BatchAccessRequest,
    current_user: User | None = Depends(get_optional_user),
    db: DbSession = Depends(get_db),
) -> dict[str, AccessResult]:
    """Check access for several tests. Unknown ids are omitted."""
    tests = db.execute(select(Test).where(Test.id.in_(payload.testIds))).scalars().all()
    user_id = current_user.id if current_user else None
    return access_service.check_access_many(db, user_id, tests)
