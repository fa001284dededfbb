"""Pytest configuration and fixtures."""

import os

# Settings are read at import time, so configure the environment first
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["CACHE_ENABLED"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["PASSWORD_SALT_ROUNDS"] = "4"
os.environ["ENVIRONMENT"] = "test"

from collections.abc import Generator
from datetime import datetime
from typing import Any

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

import mathlearn.models  # noqa: F401
from mathlearn.database import Base, SessionLocal, engine, get_db
from mathlearn.main import app
from mathlearn.models import Lesson, Problem, ProblemOption, User
from mathlearn.utils.passwords import hash_password


@pytest.fixture
def db_session() -> Generator[Session, None, None]:
    """Create a fresh database session for each test."""
    Base.metadata.create_all(bind=engine)

    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db_session: Session) -> Generator[TestClient, Any, None]:
    """Create a test client with database session."""

    def override_get_db() -> Generator[Session, None, None]:
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def demo_user(db_session: Session) -> User:
    user = User(
        id="1",
        email="demo@mathlearn.com",
        username="demo_learner",
        first_name="Demo",
        last_name="Learner",
        display_name="Demo Learner",
        password=hash_password("DemoPass123"),
        is_verified=True,
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def lessons(db_session: Session) -> list[Lesson]:
    """Two lessons: lesson-1 mixes both problem types, lesson-2 is one hard input problem."""
    lesson_1 = Lesson(id="lesson-1", title="Basic Arithmetic", description="Adding and subtracting", order=1)
    lesson_2 = Lesson(id="lesson-2", title="Multiplication Mastery", description="Times tables", order=2)
    db_session.add_all([lesson_1, lesson_2])

    db_session.add_all([
        Problem(
            id="p1",
            lesson_id="lesson-1",
            question="What is 7 + 5?",
            problem_type="multiple_choice",
            order=1,
            explanation="Count on from seven.",
            difficulty="easy",
            xp_reward=10,
        ),
        Problem(
            id="p2",
            lesson_id="lesson-1",
            question="What is 15 - 8?",
            problem_type="input",
            order=2,
            correct_answer="7",
            explanation="8 + 7 = 15.",
            difficulty="easy",
            xp_reward=15,
        ),
        Problem(
            id="p3",
            lesson_id="lesson-2",
            question="What is 12 x 11?",
            problem_type="input",
            order=1,
            correct_answer="132",
            difficulty="hard",
            xp_reward=20,
        ),
    ])
    db_session.add_all([
        ProblemOption(id="o1", problem_id="p1", option_text="11", is_correct=False, order=1),
        ProblemOption(id="o2", problem_id="p1", option_text="12", is_correct=True, order=2),
        ProblemOption(id="o3", problem_id="p1", option_text="13", is_correct=False, order=3),
    ])
    db_session.commit()
    return [lesson_1, lesson_2]


@pytest.fixture
def now() -> datetime:
    return datetime(2024, 3, 10, 12, 0, 0)
