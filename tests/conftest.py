"""Pytest configuration and shared fixtures for Habitline tests.

This module provides database fixtures, test data factories, and a Flask test
client for exercising the domain, repositories, services and HTTP routes
without touching a real database.
"""

from __future__ import annotations

import tempfile
import uuid
from datetime import date
from pathlib import Path

import pytest
from sqlmodel import Session, SQLModel, create_engine

from habitline import create_app
from habitline.config import TestConfig
from habitline.domain.schedule import TargetDaySchedule

# Import all models to ensure they're registered with SQLModel metadata
from habitline.models import Habit, HabitCompletion, User
from habitline.services.google_oauth import GoogleUserInfo
from habitline.services.tokens import create_access_token

TEST_ACCESS_SECRET = "test-access-secret-0123456789abcdef"
TEST_REFRESH_SECRET = "test-refresh-secret-0123456789abcdef"


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def db_engine():
    """Create an isolated SQLite database file for each test.

    Yields:
        Engine: SQLModel engine connected to test database
    """
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    engine = create_engine(
        f"sqlite:///{db_path}", echo=False, connect_args={"check_same_thread": False}
    )
    SQLModel.metadata.create_all(engine)

    yield engine

    engine.dispose()
    db_path.unlink(missing_ok=True)


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Return a ``Callable[[], Session]`` bound to the test database."""

    def factory() -> Session:
        return Session(db_engine, expire_on_commit=False)

    return factory


def _persist(session_factory, obj):
    with session_factory() as session:
        session.add(obj)
        session.commit()
        session.refresh(obj)
        session.expunge(obj)
    return obj


# =============================================================================
# Test Data Factories
# =============================================================================


@pytest.fixture
def user_factory(session_factory):
    """Factory for persisted users."""

    def _create_user(
        *, email: str | None = None, name: str = "Tester", google_id: str | None = None
    ) -> User:
        suffix = uuid.uuid4().hex[:8]
        return _persist(
            session_factory,
            User(
                id=str(uuid.uuid4()),
                google_id=google_id or f"google-{suffix}",
                email=email or f"{suffix}@example.com",
                name=name,
            ),
        )

    return _create_user


@pytest.fixture
def user(user_factory) -> User:
    """Default user owning the test data."""

    return user_factory(name="Primary Tester")


@pytest.fixture
def other_user(user_factory) -> User:
    return user_factory(name="Someone Else")


@pytest.fixture
def habit_factory(session_factory, user):
    """Factory for persisted habits.

    Extra keyword arguments (``current_streak``, ``total_completions`` ...) are
    applied to the habit before it is saved.
    """

    def _create_habit(
        *,
        owner: User | None = None,
        name: str = "Read 20 pages",
        frequency: str = "daily",
        target_count: int = 1,
        color: str = "#336699",
        target_days=None,
        **fields,
    ) -> Habit:
        habit = Habit.create(
            id=str(uuid.uuid4()),
            user_id=(owner or user).id,
            name=name,
            frequency=frequency,
            target_count=target_count,
            color=color,
            schedule=TargetDaySchedule.parse(target_days),
        )
        for key, value in fields.items():
            setattr(habit, key, value)
        return _persist(session_factory, habit)

    return _create_habit


@pytest.fixture
def completion_factory(session_factory):
    """Factory for completion rows written directly, bypassing habit statistics."""

    def _create_completion(
        habit: Habit, *, completion_date: date, count: int = 1, notes: str | None = None
    ) -> HabitCompletion:
        completion = HabitCompletion.create(
            id=str(uuid.uuid4()),
            habit_id=habit.id,
            user_id=habit.user_id,
            completion_date=completion_date,
            count=count,
            notes=notes,
        )
        return _persist(session_factory, completion)

    return _create_completion


@pytest.fixture
def load_habit(session_factory):
    """Return a function that re-reads a habit straight from the database."""

    def _load(habit_id: str) -> Habit | None:
        with session_factory() as session:
            habit = session.get(Habit, habit_id)
            if habit is not None:
                session.expunge(habit)
            return habit

    return _load


@pytest.fixture
def load_completion(session_factory):
    def _load(completion_id: str) -> HabitCompletion | None:
        with session_factory() as session:
            completion = session.get(HabitCompletion, completion_id)
            if completion is not None:
                session.expunge(completion)
            return completion

    return _load


# =============================================================================
# Application Fixtures
# =============================================================================


class FakeOAuthClient:
    """Stands in for ``GoogleOAuthClient`` without network access."""

    def __init__(self, info: GoogleUserInfo | None = None) -> None:
        self.info = info or GoogleUserInfo(
            id="google-123", email="ada@example.com", name="Ada", picture=None
        )
        self.exchanged: list[str] = []

    def authorization_url(self, state: str) -> str:
        return f"https://accounts.example.test/auth?state={state}"

    def exchange_code(self, code: str) -> str:
        self.exchanged.append(code)
        return f"google-token-for-{code}"

    def fetch_user_info(self, access_token: str) -> GoogleUserInfo:
        return self.info


@pytest.fixture
def test_config(tmp_path, monkeypatch) -> TestConfig:
    """Test configuration writing its data directory under ``tmp_path``."""

    monkeypatch.setenv("HABITLINE_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("HABITLINE_DATABASE_URL", f"sqlite:///{tmp_path / 'unused.db'}")
    monkeypatch.setenv("JWT_ACCESS_SECRET", TEST_ACCESS_SECRET)
    monkeypatch.setenv("JWT_REFRESH_SECRET", TEST_REFRESH_SECRET)
    monkeypatch.setenv("FRONTEND_URL", "http://frontend.test")
    monkeypatch.delenv("HABITLINE_DEV_MODE", raising=False)
    return TestConfig()


@pytest.fixture
def fake_oauth() -> FakeOAuthClient:
    return FakeOAuthClient()


@pytest.fixture
def app(test_config, session_factory, fake_oauth):
    """Flask app sharing the test database."""

    return create_app(test_config, session_factory=session_factory, oauth_client=fake_oauth)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_headers(test_config, user) -> dict[str, str]:
    """Bearer header for ``user``."""

    token = create_access_token(user.id, test_config.JWT)
    return {"Authorization": f"Bearer {token}"}
