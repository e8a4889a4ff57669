"""Test content, listing and history endpoints."""
from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy.orm import Session as DbSession

from quiz_api.cache import DerivedDataCaches
from quiz_api.database import get_db
from quiz_api.dependencies import get_caches, get_current_user, get_optional_user
from quiz_api.models import AccessResult, TestHistoryResponse, TestPayload
from quiz_api.models.db.user import User
from quiz_api.services import access_service, history_service, test_service

router = APIRouter(prefix="/api", tags=["tests"])


class PublicTestItem(BaseModel):
    """Listing entry for an available test."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    title: str
    description: str | None = None
    time_limit: int
    question_count: int
    access: AccessResult


@router.get("/tests/public", response_model=list[PublicTestItem])
def list_public_tests(
    current_user: User | None = Depends(get_optional_user),
    db: DbSession = Depends(get_db),
) -> list[PublicTestItem]:
    """List available tests with the caller's access status."""
    tests = test_service.list_available_tests(db)
    user_id = current_user.id if current_user else None
    access = access_service.check_access_many(db, user_id, tests)
    return [
        PublicTestItem(
            id=test.id,
            title=test.title,
            description=test.description,
            time_limit=test.time_limit,
            question_count=len(test.test_questions),
            access=access[test.id],
        )
        for test in tests
    ]


@router.get("/test/{test_id}", response_model=TestPayload)
def get_test(
    test_id: str,
    current_user: User | None = Depends(get_optional_user),
    db: DbSession = Depends(get_db),
    caches: DerivedDataCaches = Depends(get_caches),
) -> TestPayload:
    """Get a test with its questions, if the caller has access."""
    test = access_service.get_test_or_404(db, test_id)
    access_service.require_access(db, current_user.id if current_user else None, test)
    return test_service.load_test_payload(db, test_id, caches)


@router.get("/test/{test_id}/history", response_model=TestHistoryResponse)
def get_test_history(
    test_id: str,
    current_user: User = Depends(get_current_user),
    db: DbSession = Depends(get_db),
) -> TestHistoryResponse:
    """Get the caller's attempt history for a test."""
    return history_service.get_test_history(db, current_user.id, test_id)
