"""
Service layer for test sessions.

Owns the session state machine: in_progress -> completed | expired. Both
terminal states are absorbing. Expiry is derived on read: any function that
hands a session back runs the elapsed-time check first, so an in_progress
session is never returned past its time limit.
"""
import logging
from datetime import datetime
from typing import Any

from fastapi import HTTPException
from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session as DBSession

from quiz_api.cache import DerivedDataCaches
from quiz_api.models.db.session import SelectedAnswer, SessionStatus, TestSession, UserAnswer
from quiz_api.models.db.test import Test
from quiz_api.models.questions import CHOICE_TYPES
from quiz_api.models.sessions import AnswerSubmission, SubmitAnswersResponse
from quiz_api.services import access_service
from quiz_api.services.scoring_service import score_answer
from quiz_api.services.test_service import load_test_questions
from quiz_api.utils import elapsed_seconds, percent, utc_now

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset(
    {"status", "score", "time_spent", "end_time", "current_question_index", "session_data"}
)

_CONCURRENT_SUBMISSION = "Session was modified by a concurrent submission"


def is_expired(session: TestSession, test: Test, now: datetime | None = None) -> bool:
    """An in-progress session expires once its time limit has elapsed."""
    if not session.is_in_progress:
        return False
    now = now or utc_now()
    return elapsed_seconds(session.start_time, now) >= test.time_limit


def expire_if_elapsed(
    db: DBSession,
    session: TestSession,
    test: Test | None = None,
    now: datetime | None = None,
) -> TestSession:
    """Flip an elapsed in-progress session to expired before returning it."""
    if not session.is_in_progress:
        return session

    test = test or db.get(Test, session.test_id)
    if test is None or not is_expired(session, test, now):
        return session

    now = now or utc_now()
    result = db.execute(
        update(TestSession)
        .where(
            TestSession.id == session.id,
            TestSession.status == SessionStatus.IN_PROGRESS.value,
        )
        .values(status=SessionStatus.EXPIRED.value, end_time=now, updated_at=now)
    )
    db.commit()
    db.refresh(session)
    if result.rowcount:
        logger.info("Session %s expired after %ss limit", session.id, test.time_limit)
    return session


def _find_in_progress(
    db: DBSession, user_id: str, test_id: str | None = None
) -> TestSession | None:
    query = select(TestSession).where(
        TestSession.user_id == user_id,
        TestSession.status == SessionStatus.IN_PROGRESS.value,
    )
    if test_id:
        query = query.where(TestSession.test_id == test_id)
    query = query.order_by(TestSession.start_time.desc()).limit(1)
    return db.execute(query).scalars().first()


def start_or_resume_session(
    db: DBSession,
    user_id: str,
    test_id: str,
    now: datetime | None = None,
) -> tuple[TestSession, bool]:
    """
    Return the caller's in-progress session for a test, or create one.

    Returns:
        Tuple of (session, resumed)
    """
    test = access_service.get_test_or_404(db, test_id)
    if not test.is_available:
        raise HTTPException(status_code=404, detail="Test is not available")
    access_service.require_access(db, user_id, test)

    existing = _find_in_progress(db, user_id, test_id)
    if existing is not None:
        existing = expire_if_elapsed(db, existing, test, now)
        if existing.is_in_progress:
            logger.info("Resuming session %s for user %s", existing.id, user_id)
            return existing, True

    now = now or utc_now()
    session = TestSession(
        test_id=test_id,
        user_id=user_id,
        status=SessionStatus.IN_PROGRESS.value,
        start_time=now,
        score=0,
        time_spent=0,
        current_question_index=0,
    )
    db.add(session)
    try:
        db.commit()
    except IntegrityError:
        # A concurrent request created the in-progress row first
        db.rollback()
        existing = _find_in_progress(db, user_id, test_id)
        if existing is None:
            raise
        logger.info("Lost session creation race, resuming %s", existing.id)
        return existing, True

    db.refresh(session)
    logger.info("Created session %s for user %s, test %s", session.id, user_id, test_id)
    return session, False


def get_active_session(
    db: DBSession,
    user_id: str,
    test_id: str | None = None,
    now: datetime | None = None,
) -> TestSession | None:
    """Get the newest in-progress session, expiring it first if elapsed."""
    session = _find_in_progress(db, user_id, test_id)
    if session is None:
        return None
    session = expire_if_elapsed(db, session, now=now)
    return session if session.is_in_progress else None


def get_owned_session(
    db: DBSession,
    session_id: str,
    user_id: str,
    now: datetime | None = None,
) -> TestSession:
    """
    Get a session owned by the caller.
    Sessions of other users are reported as not found.
    """
    session = db.execute(
        select(TestSession).where(
            TestSession.id == session_id,
            TestSession.user_id == user_id,
        )
    ).scalar_one_or_none()
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return expire_if_elapsed(db, session, now=now)


def update_session(
    db: DBSession,
    session_id: str,
    user_id: str,
    fields: dict[str, Any],
    now: datetime | None = None,
) -> TestSession:
    """
    Checkpoint progress on a session owned by the caller.

    A request that moves an in-progress session to a terminal status is
    applied as is; anything else runs the expiry check first. Status
    changes out of a terminal state are rejected.
    """
    unknown = set(fields) - UPDATABLE_FIELDS
    if unknown:
        raise HTTPException(
            status_code=400, detail=f"Unsupported fields: {', '.join(sorted(unknown))}"
        )

    requested = fields.get("status")
    requested = SessionStatus(requested) if requested is not None else None

    session = db.execute(
        select(TestSession).where(
            TestSession.id == session_id,
            TestSession.user_id == user_id,
        )
    ).scalar_one_or_none()
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")

    if not (session.is_in_progress and requested is not None and requested.is_terminal):
        session = expire_if_elapsed(db, session, now=now)

    current = session.session_status
    if requested is not None and requested != current and current.is_terminal:
        raise HTTPException(
            status_code=409,
            detail=f"Session is already {current.value}",
        )

    for name, value in fields.items():
        if name == "status":
            session.status = requested.value
        else:
            setattr(session, name, value)

    if requested is not None and requested.is_terminal and session.end_time is None:
        session.end_time = now or utc_now()

    db.commit()
    db.refresh(session)
    return session


def submit_answers(
    db: DBSession,
    session_id: str,
    user_id: str,
    answers: list[AnswerSubmission],
    total_questions: int | None = None,
    client_score: int | None = None,
    caches: DerivedDataCaches | None = None,
    now: datetime | None = None,
) -> SubmitAnswersResponse:
    """
    Replace the session's answers, score them and store the session score.

    The score denominator is the test's total question count, so
    unanswered questions count against the result; a missing or zero total
    falls back to the number of submitted questions. Percentages round
    halves up. A score supplied by the client takes precedence over the
    computed one.
    """
    session = get_owned_session(db, session_id, user_id, now=now)
    if session.status == SessionStatus.COMPLETED.value:
        raise HTTPException(status_code=409, detail="Session is already completed")
    version = session.version

    questions = {
        question.id: question
        for question in load_test_questions(db, session.test_id, caches)
    }
    missing = [a.questionId for a in answers if a.questionId not in questions]
    if missing:
        raise HTTPException(
            status_code=404,
            detail=f"Questions not found in test: {', '.join(missing)}",
        )

    # Last submission wins when the same question appears twice
    by_question = {answer.questionId: answer for answer in answers}
    results = {
        question_id: score_answer(questions[question_id], submission.answers)
        for question_id, submission in by_question.items()
    }

    correct_count = 0
    answered_count = 0
    for result in results.values():
        if result.is_correct:
            correct_count += 1
        if result.answered:
            answered_count += 1

    total = total_questions or len(by_question)
    score = percent(correct_count, total)
    skipped_count = max(total - answered_count, 0)
    stored_score = client_score if client_score is not None else score

    # Claim the session row before touching its answers; a concurrent
    # submission either blocks here or finds the version already bumped
    swapped = db.execute(
        update(TestSession)
        .where(TestSession.id == session_id, TestSession.version == version)
        .values(score=stored_score, version=version + 1, updated_at=now or utc_now())
    )
    if swapped.rowcount != 1:
        db.rollback()
        raise HTTPException(status_code=409, detail=_CONCURRENT_SUBMISSION)

    previous = select(UserAnswer.id).where(UserAnswer.test_session_id == session_id)
    db.execute(delete(SelectedAnswer).where(SelectedAnswer.user_answer_id.in_(previous)))
    db.execute(delete(UserAnswer).where(UserAnswer.test_session_id == session_id))

    for question_id, submission in by_question.items():
        question = questions[question_id]
        result = results[question_id]
        user_answer = UserAnswer(
            test_session_id=session_id,
            question_id=question_id,
            time_spent=submission.timeSpent,
            is_correct=result.is_correct,
            is_skipped=not result.answered,
        )
        if (
            result.answered
            and question.question_type in CHOICE_TYPES
            and isinstance(submission.answers, list)
        ):
            user_answer.selected = [
                SelectedAnswer(answer_id=answer_id) for answer_id in submission.answers
            ]
        db.add(user_answer)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning("Answer rows of session %s collided with another write", session_id)
        raise HTTPException(status_code=409, detail=_CONCURRENT_SUBMISSION)

    logger.info(
        "Session %s scored %s%% (%s/%s correct, %s answered)",
        session_id,
        score,
        correct_count,
        total,
        answered_count,
    )
    return SubmitAnswersResponse(
        score=score,
        correctCount=correct_count,
        totalQuestions=total,
        answeredCount=answered_count,
        skippedCount=skipped_count,
    )


def expire_stale_sessions(db: DBSession, now: datetime | None = None) -> int:
    """Expire every elapsed in-progress session. Used by the CLI sweep."""
    now = now or utc_now()
    rows = db.execute(
        select(TestSession, Test)
        .join(Test, Test.id == TestSession.test_id)
        .where(TestSession.status == SessionStatus.IN_PROGRESS.value)
    ).all()

    expired = 0
    for session, test in rows:
        if is_expired(session, test, now):
            session.status = SessionStatus.EXPIRED.value
            session.end_time = now
            expired += 1

    db.commit()
    if expired:
        logger.info("Expired %s stale sessions", expired)
    return expired
