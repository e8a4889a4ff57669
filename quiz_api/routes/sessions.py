"""Test session endpoints."""
import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session as DbSession

from quiz_api.cache import DerivedDataCaches
from quiz_api.database import get_db
from quiz_api.dependencies import get_caches, get_current_user
from quiz_api.models import (
    ActiveSessionResponse,
    SessionCreateRequest,
    SessionResponse,
    SessionUpdateRequest,
    StartSessionResponse,
    SubmitAnswersRequest,
    SubmitAnswersResponse,
    UpdateSessionResponse,
)
from quiz_api.models.db.user import User
from quiz_api.services import session_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/test/session", tags=["sessions"])


@router.get("", response_model=ActiveSessionResponse)
def get_active_session(
    test_id: str | None = Query(default=None, alias="testId"),
    current_user: User = Depends(get_current_user),
    db: DbSession = Depends(get_db),
) -> ActiveSessionResponse:
    """Get the caller's in-progress session, optionally for one test."""
    session = session_service.get_active_session(db, current_user.id, test_id)
    return ActiveSessionResponse(
        session=SessionResponse.model_validate(session) if session else None
    )


@router.post("", response_model=StartSessionResponse)
def start_session(
    payload: SessionCreateRequest,
    current_user: User = Depends(get_current_user),
    db: DbSession = Depends(get_db),
) -> StartSessionResponse:
    """Start a new session or resume the in-progress one."""
    session, resumed = session_service.start_or_resume_session(
        db, current_user.id, payload.testId.strip()
    )
    return StartSessionResponse(
        session=SessionResponse.model_validate(session), resumed=resumed
    )


@router.put("", response_model=UpdateSessionResponse)
def update_session(
    payload: SessionUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: DbSession = Depends(get_db),
) -> UpdateSessionResponse:
    """Checkpoint progress or finish a session."""
    session = session_service.update_session(
        db, payload.sessionId, current_user.id, payload.to_fields()
    )
    return UpdateSessionResponse(session=SessionResponse.model_validate(session))


@router.post("/answers", response_model=SubmitAnswersResponse)
def submit_answers(
    payload: SubmitAnswersRequest,
    current_user: User = Depends(get_current_user),
    db: DbSession = Depends(get_db),
    caches: DerivedDataCaches = Depends(get_caches),
) -> SubmitAnswersResponse:
    """Score and store the answers of a session."""
    logger.debug(
        "Submission for session %s: %s answers", payload.sessionId, len(payload.answers)
    )
    return session_service.submit_answers(
        db,
        payload.sessionId,
        current_user.id,
        payload.answers,
        total_questions=payload.totalQuestions,
        client_score=payload.score,
        caches=caches,
    )
