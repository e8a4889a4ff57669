from datetime import datetime, timedelta, timezone

import pytest
from fastapi import HTTPException
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError

from quiz_api.models.db import session as session_db
from quiz_api.models.db.session import SelectedAnswer, SessionStatus, UserAnswer
from quiz_api.models.sessions import AnswerSubmission
from quiz_api.services import session_service


START = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)


def _answer(question_id: str, answers, time_spent: int = 5) -> AnswerSubmission:
    return AnswerSubmission(questionId=question_id, answers=answers, timeSpent=time_spent)


def _count(db, model, **filters) -> int:
    stmt = select(func.count()).select_from(model)
    for name, value in filters.items():
        stmt = stmt.where(getattr(model, name) == value)
    return db.execute(stmt).scalar_one()


def test_start_then_resume_returns_same_session(db, make_user, make_test) -> None:
    user = make_user()
    test = make_test()

    first, resumed = session_service.start_or_resume_session(db, user.id, test.id, now=START)
    assert not resumed
    assert first.status == SessionStatus.IN_PROGRESS.value

    again, resumed = session_service.start_or_resume_session(
        db, user.id, test.id, now=START + timedelta(seconds=30)
    )
    assert resumed
    assert again.id == first.id


def test_elapsed_session_expires_and_new_one_starts(db, make_user, make_test) -> None:
    user = make_user()
    test = make_test(time_limit=600)

    old, _ = session_service.start_or_resume_session(db, user.id, test.id, now=START)
    old_id = old.id

    later = START + timedelta(seconds=600)
    new, resumed = session_service.start_or_resume_session(db, user.id, test.id, now=later)

    assert not resumed
    assert new.id != old_id
    assert db.get(session_db.TestSession, old_id).status == SessionStatus.EXPIRED.value
    assert _count(db, session_db.TestSession, status=SessionStatus.IN_PROGRESS.value) == 1


def test_get_active_session_hides_elapsed_sessions(db, make_user, make_test) -> None:
    user = make_user()
    test = make_test(time_limit=60)
    session_service.start_or_resume_session(db, user.id, test.id, now=START)

    active = session_service.get_active_session(
        db, user.id, test.id, now=START + timedelta(seconds=30)
    )
    assert active is not None

    assert session_service.get_active_session(
        db, user.id, test.id, now=START + timedelta(seconds=61)
    ) is None


def test_concurrent_start_resumes_winner(db, make_user, make_test, monkeypatch) -> None:
    user = make_user()
    test = make_test()
    winner, _ = session_service.start_or_resume_session(db, user.id, test.id, now=START)
    winner_id = winner.id

    real_find = session_service._find_in_progress
    calls = []

    def find_after_race(*args, **kwargs):
        calls.append(args)
        if len(calls) == 1:
            return None
        return real_find(*args, **kwargs)

    monkeypatch.setattr(session_service, "_find_in_progress", find_after_race)

    session, resumed = session_service.start_or_resume_session(db, user.id, test.id, now=START)
    assert resumed
    assert session.id == winner_id
    assert _count(db, session_db.TestSession, user_id=user.id) == 1


def test_start_checks_availability_and_access(db, make_user, make_test) -> None:
    user = make_user()

    archived = make_test(is_archived=True)
    with pytest.raises(HTTPException) as exc:
        session_service.start_or_resume_session(db, user.id, archived.id)
    assert exc.value.status_code == 404

    paid = make_test(price=10, is_free=False)
    with pytest.raises(HTTPException) as exc:
        session_service.start_or_resume_session(db, user.id, paid.id)
    assert exc.value.status_code == 403


def test_foreign_sessions_are_not_found(db, make_user, make_test) -> None:
    owner = make_user()
    stranger = make_user()
    test = make_test()
    session, _ = session_service.start_or_resume_session(db, owner.id, test.id, now=START)

    with pytest.raises(HTTPException) as exc:
        session_service.get_owned_session(db, session.id, stranger.id, now=START)
    assert exc.value.status_code == 404

    with pytest.raises(HTTPException) as exc:
        session_service.update_session(db, session.id, stranger.id, {"score": 10}, now=START)
    assert exc.value.status_code == 404


def test_update_checkpoints_progress(db, make_user, make_test) -> None:
    user = make_user()
    test = make_test()
    session, _ = session_service.start_or_resume_session(db, user.id, test.id, now=START)

    updated = session_service.update_session(
        db,
        session.id,
        user.id,
        {"current_question_index": 3, "time_spent": 42, "session_data": {"flagged": ["q1"]}},
        now=START + timedelta(seconds=42),
    )
    assert updated.current_question_index == 3
    assert updated.time_spent == 42
    assert updated.session_data == {"flagged": ["q1"]}
    assert updated.is_in_progress


def test_update_rejects_unknown_fields(db, make_user, make_test) -> None:
    user = make_user()
    test = make_test()
    session, _ = session_service.start_or_resume_session(db, user.id, test.id, now=START)

    with pytest.raises(HTTPException) as exc:
        session_service.update_session(db, session.id, user.id, {"user_id": "other"})
    assert exc.value.status_code == 400


def test_completing_after_time_limit_is_applied(db, make_user, make_test) -> None:
    user = make_user()
    test = make_test(time_limit=60)
    session, _ = session_service.start_or_resume_session(db, user.id, test.id, now=START)

    late = START + timedelta(seconds=90)
    completed = session_service.update_session(
        db, session.id, user.id, {"status": "completed", "time_spent": 60}, now=late
    )
    assert completed.status == SessionStatus.COMPLETED.value
    assert completed.end_time is not None


def test_terminal_status_cannot_change(db, make_user, make_test) -> None:
    user = make_user()
    test = make_test()
    session, _ = session_service.start_or_resume_session(db, user.id, test.id, now=START)
    session_service.update_session(db, session.id, user.id, {"status": "completed"}, now=START)

    for status in ("in_progress", "expired"):
        with pytest.raises(HTTPException) as exc:
            session_service.update_session(
                db, session.id, user.id, {"status": status}, now=START
            )
        assert exc.value.status_code == 409


def test_submit_scores_against_total_question_count(
    db, make_user, make_test, add_choice_question
) -> None:
    user = make_user()
    test = make_test()
    questions = [add_choice_question(test) for _ in range(10)]
    session, _ = session_service.start_or_resume_session(db, user.id, test.id, now=START)

    answers = [_answer(q.id, [correct]) for q, correct, _ in questions[:5]]
    answers += [_answer(q.id, [wrong]) for q, _, wrong in questions[5:7]]

    result = session_service.submit_answers(
        db, session.id, user.id, answers, total_questions=10, now=START
    )

    assert result.success
    assert result.score == 50
    assert result.correctCount == 5
    assert result.answeredCount == 7
    assert result.skippedCount == 3
    assert result.totalQuestions == 10

    db.refresh(session)
    assert session.score == 50
    assert _count(db, UserAnswer, test_session_id=session.id) == 7
    assert _count(db, UserAnswer, test_session_id=session.id, is_correct=True) == 5
    assert _count(db, SelectedAnswer) == 7


def test_resubmission_replaces_previous_answers(
    db, make_user, make_test, add_choice_question
) -> None:
    user = make_user()
    test = make_test()
    questions = [add_choice_question(test) for _ in range(3)]
    session, _ = session_service.start_or_resume_session(db, user.id, test.id, now=START)

    session_service.submit_answers(
        db, session.id, user.id, [_answer(q.id, [c]) for q, c, _ in questions], now=START
    )
    question, correct, _ = questions[0]
    result = session_service.submit_answers(
        db, session.id, user.id, [_answer(question.id, [correct])], now=START
    )

    assert result.totalQuestions == 1
    assert result.score == 100
    assert _count(db, UserAnswer, test_session_id=session.id) == 1
    assert _count(db, SelectedAnswer) == 1


def test_client_score_is_stored(db, make_user, make_test, add_choice_question) -> None:
    user = make_user()
    test = make_test()
    question, _, wrong = add_choice_question(test)
    session, _ = session_service.start_or_resume_session(db, user.id, test.id, now=START)

    result = session_service.submit_answers(
        db, session.id, user.id, [_answer(question.id, [wrong])], client_score=80, now=START
    )

    assert result.score == 0
    db.refresh(session)
    assert session.score == 80


def test_submit_rejects_completed_sessions(
    db, make_user, make_test, add_choice_question
) -> None:
    user = make_user()
    test = make_test()
    question, correct, _ = add_choice_question(test)
    session, _ = session_service.start_or_resume_session(db, user.id, test.id, now=START)
    session_service.update_session(db, session.id, user.id, {"status": "completed"}, now=START)

    with pytest.raises(HTTPException) as exc:
        session_service.submit_answers(
            db, session.id, user.id, [_answer(question.id, [correct])], now=START
        )
    assert exc.value.status_code == 409


def test_submit_accepts_expired_sessions(
    db, make_user, make_test, add_choice_question
) -> None:
    user = make_user()
    test = make_test(time_limit=60)
    question, correct, _ = add_choice_question(test)
    session, _ = session_service.start_or_resume_session(db, user.id, test.id, now=START)

    result = session_service.submit_answers(
        db,
        session.id,
        user.id,
        [_answer(question.id, [correct])],
        now=START + timedelta(seconds=120),
    )

    assert result.score == 100
    db.refresh(session)
    assert session.status == SessionStatus.EXPIRED.value


def test_submit_rejects_questions_outside_the_test(
    db, make_user, make_test, add_choice_question
) -> None:
    user = make_user()
    test = make_test()
    other = make_test(title="Other")
    stray, correct, _ = add_choice_question(other)
    session, _ = session_service.start_or_resume_session(db, user.id, test.id, now=START)

    with pytest.raises(HTTPException) as exc:
        session_service.submit_answers(
            db, session.id, user.id, [_answer(stray.id, [correct])], now=START
        )
    assert exc.value.status_code == 404


def test_concurrent_submission_conflicts(
    db, make_user, make_test, add_choice_question, monkeypatch
) -> None:
    user = make_user()
    test = make_test()
    question, correct, _ = add_choice_question(test)
    session, _ = session_service.start_or_resume_session(db, user.id, test.id, now=START)
    session_id = session.id

    real_load = session_service.load_test_questions

    def load_during_other_submission(db, test_id, caches=None):
        db.execute(
            update(session_db.TestSession)
            .where(session_db.TestSession.id == session_id)
            .values(version=session_db.TestSession.version + 1)
        )
        return real_load(db, test_id, caches)

    monkeypatch.setattr(session_service, "load_test_questions", load_during_other_submission)

    with pytest.raises(HTTPException) as exc:
        session_service.submit_answers(
            db, session_id, user.id, [_answer(question.id, [correct])], now=START
        )
    assert exc.value.status_code == 409
    assert _count(db, UserAnswer, test_session_id=session_id) == 0


def test_expire_stale_sessions(db, make_user, make_test) -> None:
    user = make_user()
    short = make_test(title="Short", time_limit=60)
    long = make_test(title="Long", time_limit=3600)
    session_service.start_or_resume_session(db, user.id, short.id, now=START)
    session_service.start_or_resume_session(db, user.id, long.id, now=START)

    expired = session_service.expire_stale_sessions(db, now=START + timedelta(minutes=5))

    assert expired == 1
    assert _count(db, session_db.TestSession, status=SessionStatus.EXPIRED.value) == 1
    assert _count(db, session_db.TestSession, status=SessionStatus.IN_PROGRESS.value) == 1


def test_score_rounds_halves_up(db, make_user, make_test, add_choice_question) -> None:
    user = make_user()
    test = make_test()
    question, correct, _ = add_choice_question(test)
    session, _ = session_service.start_or_resume_session(db, user.id, test.id, now=START)

    result = session_service.submit_answers(
        db,
        session.id,
        user.id,
        [_answer(question.id, [correct])],
        total_questions=8,
        now=START,
    )

    assert result.score == 13
    db.refresh(session)
    assert session.score == 13


def test_zero_total_falls_back_to_submitted_count(
    db, make_user, make_test, add_choice_question
) -> None:
    user = make_user()
    test = make_test()
    question, correct, _ = add_choice_question(test)
    session, _ = session_service.start_or_resume_session(db, user.id, test.id, now=START)

    result = session_service.submit_answers(
        db,
        session.id,
        user.id,
        [_answer(question.id, [correct])],
        total_questions=0,
        now=START,
    )

    assert result.totalQuestions == 1
    assert result.score == 100
    assert result.skippedCount == 0


def test_answer_row_collision_is_a_conflict(
    db, make_user, make_test, add_choice_question, monkeypatch
) -> None:
    user = make_user()
    test = make_test()
    question, correct, _ = add_choice_question(test)
    session, _ = session_service.start_or_resume_session(db, user.id, test.id, now=START)
    session_id = session.id

    def collide() -> None:
        raise IntegrityError(
            "INSERT INTO user_answers", {}, Exception("UNIQUE constraint failed")
        )

    monkeypatch.setattr(db, "commit", collide)

    with pytest.raises(HTTPException) as exc:
        session_service.submit_answers(
            db, session_id, user.id, [_answer(question.id, [correct])], now=START
        )
    assert exc.value.status_code == 409

    monkeypatch.undo()
    assert db.get(session_db.TestSession, session_id).version == 0
