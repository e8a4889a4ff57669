"""Read-only aggregation over a user's attempts at a test."""
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session as DBSession, selectinload

from quiz_api.models.db.session import SessionStatus, TestSession
from quiz_api.models.history import (
    AttemptStats,
    HistoryTestInfo,
    OverallStats,
    TestHistoryResponse,
)
from quiz_api.services import access_service, session_service
from quiz_api.services.test_service import count_test_questions
from quiz_api.utils import percent, round_half_up

logger = logging.getLogger(__name__)


def build_attempt_stats(session: TestSession, total_questions: int) -> AttemptStats:
    """Per-attempt statistics against the test's full question count."""
    correct = sum(1 for answer in session.answers if answer.is_correct)
    answered = sum(1 for answer in session.answers if not answer.is_skipped)
    return AttemptStats(
        id=session.id,
        status=SessionStatus(session.status),
        start_time=session.start_time,
        end_time=session.end_time,
        score=session.score,
        time_spent=session.time_spent,
        total_questions=total_questions,
        total_answered=answered,
        correct_answers=correct,
        skipped_questions=max(total_questions - answered, 0),
        percentage=percent(correct, total_questions),
        avg_time_per_question=(
            round_half_up(session.time_spent / answered) if answered else 0
        ),
    )


def build_overall_stats(sessions: list[TestSession], completed: list[TestSession]) -> OverallStats:
    if not completed:
        return OverallStats(total_attempts=len(sessions))

    scores = [session.score or 0 for session in completed]
    times = [session.time_spent or 0 for session in completed]
    return OverallStats(
        total_attempts=len(sessions),
        completed_attempts=len(completed),
        average_score=round_half_up(sum(scores) / len(completed)),
        best_score=max(scores),
        average_time=round_half_up(sum(times) / len(completed)),
    )


def get_test_history(db: DBSession, user_id: str, test_id: str) -> TestHistoryResponse:
    """Stats for each completed attempt plus overall stats."""
    test = access_service.get_test_or_404(db, test_id)

    sessions = list(
        db.execute(
            select(TestSession)
            .options(selectinload(TestSession.answers))
            .where(TestSession.test_id == test_id, TestSession.user_id == user_id)
            .order_by(TestSession.created_at.desc())
        ).scalars().all()
    )
    # Reading sessions counts as a read: expire elapsed ones first
    sessions = [session_service.expire_if_elapsed(db, s, test) for s in sessions]

    total_questions = count_test_questions(db, test_id)
    completed = [s for s in sessions if s.status == SessionStatus.COMPLETED.value]

    logger.debug(
        "History for user %s, test %s: %s sessions, %s completed",
        user_id,
        test_id,
        len(sessions),
        len(completed),
    )
    return TestHistoryResponse(
        test=HistoryTestInfo(
            id=test.id,
            title=test.title,
            description=test.description,
            time_limit=test.time_limit,
        ),
        sessions=[build_attempt_stats(s, total_questions) for s in completed],
        overall_stats=build_overall_stats(sessions, completed),
    )
