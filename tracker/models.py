from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Float, Date, ForeignKey,
    UniqueConstraint
)
from sqlalchemy.orm import relationship
from datetime import datetime

from tracker.constants import (
    HABIT_WEIGHT, TASK_WEIGHT, TIME_WEIGHT, TIME_LOG_PRODUCTIVE
)
from tracker.database import Base


class Habit(Base):
    __tablename__ = "habits"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    current_weight = Column(Float, nullable=False, default=0.0)  # 0.0-1.0 share of a full day
    is_archived = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    completions = relationship(
        "HabitCompletion", back_populates="habit", cascade="all, delete-orphan"
    )


class HabitCompletion(Base):
    __tablename__ = "habit_completions"
    __table_args__ = (
        UniqueConstraint("habit_id", "completion_date", name="uq_habit_completion_day"),
    )

    id = Column(Integer, primary_key=True, index=True)
    habit_id = Column(Integer, ForeignKey("habits.id", ondelete="CASCADE"), nullable=False)
    completion_date = Column(Date, nullable=False, index=True)
    # Weight is frozen at completion so later habit edits don't rewrite history
    weight_at_completion = Column(Float, nullable=False)
    created_at = Column(DateTime, default=datetime.now)

    habit = relationship("Habit", back_populates="completions")


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    description = Column(String, nullable=False)
    target_date = Column(Date, nullable=False, index=True)
    is_assigned = Column(Boolean, default=True)
    is_done = Column(Boolean, default=False)
    completion_date = Column(Date, nullable=True)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)


class TimeLog(Base):
    __tablename__ = "time_logs"

    id = Column(Integer, primary_key=True, index=True)
    type = Column(String, nullable=False, default=TIME_LOG_PRODUCTIVE)  # productive, distracting
    start_time = Column(DateTime, nullable=True)
    end_time = Column(DateTime, nullable=True)
    date_logged_for = Column(Date, nullable=False, index=True)
    duration_minutes = Column(Integer, default=0)
    created_at = Column(DateTime, default=datetime.now)


class DailyScore(Base):
    __tablename__ = "daily_scores"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(Date, nullable=False, unique=True, index=True)

    # Score components (already scaled to points)
    habit_component = Column(Float, default=0.0)
    task_component = Column(Float, default=0.0)
    time_component = Column(Float, default=0.0)
    streak_bonus_component = Column(Float, default=0.0)
    total_score = Column(Float, default=0.0)

    is_rest_day = Column(Boolean, default=False)
    notes = Column(String, default="")

    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    @property
    def base_score(self) -> float:
        """Weighted component sum, without the streak bonus"""
        return (
            (self.habit_component or 0.0) * HABIT_WEIGHT
            + (self.task_component or 0.0) * TASK_WEIGHT
            + (self.time_component or 0.0) * TIME_WEIGHT
        )


class StreakRecord(Base):
    __tablename__ = "streak_data"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(Date, nullable=False, unique=True, index=True)
    current_streak_days = Column(Integer, default=0)  # Streak as of this date
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)
