"""User-scoped endpoints."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session as DbSession

from quiz_api.database import get_db
from quiz_api.dependencies import get_current_user
from quiz_api.models import PurchasedTestsResponse
from quiz_api.models.db.user import User
from quiz_api.services import purchase_service

router = APIRouter(prefix="/api/user", tags=["users"])


@router.get("/purchased-tests", response_model=PurchasedTestsResponse)
def get_purchased_tests(
    current_user: User = Depends(get_current_user),
    db: DbSession = Depends(get_db),
) -> PurchasedTestsResponse:
    """List the caller's active purchases with totals."""
    return purchase_service.get_purchased_tests(db, current_user.id)
