"""
Shared pytest fixtures.

Uses an in-memory SQLite database so tests never touch the real database.
"""
import os
import tempfile

# Must be set before tracker.database / tracker.main are imported
os.environ.setdefault("TRACKER_DATABASE_URL", "sqlite://")
os.environ.setdefault("TRACKER_LOG_DIR", tempfile.mkdtemp(prefix="tracker-logs-"))

import pytest
from datetime import date, timedelta
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tracker.database import Base, get_db
from tracker.models import DailyScore, Habit, HabitCompletion, StreakRecord, Task, TimeLog

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db_session():
    """Fresh schema per test"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def client(db_session):
    from tracker.main import app

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def day1():
    return date(2026, 3, 1)


@pytest.fixture
def day2(day1):
    return day1 + timedelta(days=1)


@pytest.fixture
def day3(day1):
    return day1 + timedelta(days=2)


@pytest.fixture
def full_habit(db_session):
    """A habit worth a full day (weight 1.0)"""
    habit = Habit(name="Deep work block", current_weight=1.0)
    db_session.add(habit)
    db_session.commit()
    db_session.refresh(habit)
    return habit


def add_habit_completion(db, habit, target_date, weight=None):
    completion = HabitCompletion(
        habit_id=habit.id,
        completion_date=target_date,
        weight_at_completion=habit.current_weight if weight is None else weight
    )
    db.add(completion)
    db.commit()
    return completion


def add_task(db, target_date, is_done=True, is_assigned=True, description="Write report"):
    task = Task(
        description=description,
        target_date=target_date,
        is_assigned=is_assigned,
        is_done=is_done,
        completion_date=target_date if is_done else None
    )
    db.add(task)
    db.commit()
    db.refresh(task)
    return task


def add_time_log(db, target_date, minutes, log_type="productive"):
    time_log = TimeLog(type=log_type, date_logged_for=target_date, duration_minutes=minutes)
    db.add(time_log)
    db.commit()
    return time_log


def seed_perfect_day(db, habit, target_date):
    """
    Habit 100%, task 100%, 6h net productive time.

    Base score: 100*0.45 + 100*0.45 + 60*0.10 = 96
    """
    add_habit_completion(db, habit, target_date)
    task = add_task(db, target_date, is_done=True)
    add_time_log(db, target_date, 360)
    return task


def store_day(db, target_date, habit=0.0, task=0.0, time=0.0,
              bonus=0.0, is_rest_day=False, streak=None):
    """Insert a score row (and optionally a streak row) without composing it"""
    record = DailyScore(
        date=target_date,
        habit_component=habit,
        task_component=task,
        time_component=time,
        streak_bonus_component=bonus,
        is_rest_day=is_rest_day,
        notes=""
    )
    record.total_score = record.base_score + bonus
    db.add(record)
    if streak is not None:
        db.add(StreakRecord(date=target_date, current_streak_days=streak))
    db.commit()
    return record


def get_streak(db, target_date):
    record = db.query(StreakRecord).filter(StreakRecord.date == target_date).first()
    return record.current_streak_days if record else None
