"""
Pytest configuration and shared fixtures for Streakly tests.
"""

from datetime import datetime, timedelta

import pytest

from streakly import create_app
from streakly.config import GamificationConfig
from streakly.database import Storage
from streakly.gamification import GamificationEngine
from streakly.models import Habit, Task

USER_ID = "user-1"


class FrozenClock:
    """Callable clock that tests can move forward."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def now():
    """Fixed local time used across tests: Friday 15 March 2024, 10:30."""
    return datetime(2024, 3, 15, 10, 30)


@pytest.fixture
def clock(now):
    return FrozenClock(now)


@pytest.fixture
def user_id():
    return USER_ID


@pytest.fixture
def make_task(now):
    """
    Factory for Task records.

    Returns:
        Callable: make_task(id, completed=False, **fields)
    """

    def _make(task_id="t1", completed=False, **fields):
        fields.setdefault("text", f"Task {task_id}")
        fields.setdefault("created_at", now - timedelta(days=1))
        if completed:
            fields.setdefault("completed_at", now)
        return Task(id=task_id, completed=completed, **fields)

    return _make


@pytest.fixture
def make_habit(now):
    """
    Factory for Habit records.

    Returns:
        Callable: make_habit(id, streak=0, completed_today=False, **fields)
    """

    def _make(habit_id="h1", streak=0, completed_today=False, **fields):
        fields.setdefault("name", f"Habit {habit_id}")
        fields.setdefault("created_at", now - timedelta(days=10))
        if completed_today:
            fields.setdefault("last_completed", now)
        return Habit(id=habit_id, streak=streak, completed_today=completed_today, **fields)

    return _make


@pytest.fixture
def sample_tasks(make_task):
    """Ten tasks, four of them completed."""
    return [make_task(f"t{i}", completed=i < 4) for i in range(10)]


@pytest.fixture
def sample_habits(make_habit):
    """Two habits with streaks 7 and 3; only the first is done today."""
    return [
        make_habit("h1", streak=7, completed_today=True, name="Read"),
        make_habit("h2", streak=3, name="Exercise"),
    ]


@pytest.fixture
def storage(tmp_path):
    """Fresh SQLite storage in a temporary directory."""
    store = Storage(tmp_path / "streakly.db")
    store.init_db()
    return store


@pytest.fixture
def engine(storage, clock):
    return GamificationEngine(storage, GamificationConfig(), clock=clock)


@pytest.fixture
def app(tmp_path, storage, clock, monkeypatch):
    """Flask app backed by the temporary storage and the frozen clock."""
    monkeypatch.delenv("STREAKLY_CONFIG", raising=False)
    app = create_app(config_path=tmp_path / "config.yaml", storage=storage, clock=clock)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def headers(user_id):
    return {"X-User-Id": user_id}
