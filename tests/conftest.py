import os
from datetime import datetime, timezone

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import quiz_api.models.db  # noqa: F401
from quiz_api.cache import DerivedDataCaches
from quiz_api.config import ALGORITHM, SECRET_KEY
from quiz_api.database import Base, get_db
from quiz_api.models.db.purchase import PurchaseRecord, PurchaseStatus
from quiz_api.models.db.question import ChoiceAnswer, Question
from quiz_api.models.db.test import Test, TestQuestion
from quiz_api.models.db.user import User

START = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced time source for cache tests."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def caches(clock) -> DerivedDataCaches:
    return DerivedDataCaches.from_config(clock)


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(is_admin: bool = False) -> User:
        counter["n"] += 1
        user = User(email=f"user{counter['n']}@example.com", is_admin=is_admin)
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture
def make_test(db):
    def _make(
        title: str = "Sample test",
        price: float = 0,
        is_free: bool = True,
        time_limit: int = 600,
        currency: str | None = None,
        is_active: bool = True,
        is_archived: bool = False,
    ) -> Test:
        test = Test(
            title=title,
            price=price,
            is_free=is_free,
            time_limit=time_limit,
            currency=currency,
            is_active=is_active,
            is_archived=is_archived,
        )
        db.add(test)
        db.commit()
        return test

    return _make


@pytest.fixture
def add_question(db):
    """Attach a question with its answer records to the end of a test."""

    def _add(test: Test, question_type: str, records=()) -> Question:
        question = Question(text=f"{question_type} question", type=question_type)
        db.add(question)
        db.flush()
        for record in records:
            record.question_id = question.id
            db.add(record)

        position = db.execute(
            select(func.count(TestQuestion.id)).where(TestQuestion.test_id == test.id)
        ).scalar_one()
        db.add(TestQuestion(test_id=test.id, question_id=question.id, position=position))
        db.commit()
        return question

    return _add


@pytest.fixture
def add_choice_question(add_question):
    """Single-choice question with one correct and one wrong option.

    Returns (question, correct_option_id, wrong_option_id).
    """

    def _add(test: Test, question_type: str = "single-choice"):
        correct = ChoiceAnswer(text="Right", is_correct=True, position=0)
        wrong = ChoiceAnswer(text="Wrong", is_correct=False, position=1)
        question = add_question(test, question_type, [correct, wrong])
        return question, correct.id, wrong.id

    return _add


@pytest.fixture
def purchase(db):
    def _purchase(
        user: User, test: Test, status: PurchaseStatus = PurchaseStatus.ACTIVE
    ) -> PurchaseRecord:
        record = PurchaseRecord(
            user_id=user.id,
            test_id=test.id,
            status=status.value,
            payment_amount=test.price,
            currency=test.currency,
        )
        db.add(record)
        db.commit()
        return record

    return _purchase


def auth_headers(user: User) -> dict[str, str]:
    token = jwt.encode({"sub": user.id}, SECRET_KEY, algorithm=ALGORITHM)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers():
    return auth_headers


@pytest.fixture
def client(session_factory, caches):
    from quiz_api.app import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    previous = app.state.caches
    app.state.caches = caches
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        app.state.caches = previous
