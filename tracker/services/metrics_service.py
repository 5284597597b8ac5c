"""
Metric calculation service.
Computes the three raw daily metrics the composite score is built from.
"""
from dataclasses import dataclass
from datetime import date
from sqlalchemy.orm import Session

from tracker.constants import TIME_POINTS_PER_HOUR
from tracker.repositories.source_repository import (
    HabitRepository, TaskRepository, TimeLogRepository
)


@dataclass(frozen=True)
class DailyMetrics:
    """Raw, unscaled metrics for one day"""
    task_ratio: float
    habit_points: float
    time_score: float


class MetricsService:
    """Service for per-date metric calculation"""

    def __init__(self, db: Session):
        self.db = db
        self.habit_repo = HabitRepository()
        self.task_repo = TaskRepository()
        self.time_log_repo = TimeLogRepository()

    def calculate_task_ratio(self, target_date: date) -> float:
        """
        Calculate completed / assigned for tasks targeted at the date.

        When nothing was assigned the completed count itself is used
        (0.0 when nothing was done either).
        """
        completed = self.task_repo.count_completed(self.db, target_date)
        assigned = self.task_repo.count_assigned(self.db, target_date)

        if assigned > 0:
            return completed / assigned
        return float(completed) if completed > 0 else 0.0

    def calculate_habit_points(self, target_date: date) -> float:
        """Sum of weights captured when each habit was completed on the date"""
        return self.habit_repo.sum_completion_weights(self.db, target_date)

    def calculate_time_score(self, target_date: date) -> float:
        """
        Calculate net productive time score.

        Formula: (productive_minutes - distracting_minutes) / 60 * 10
        Negative when distractions outweigh productive time.
        """
        productive, distracting = self.time_log_repo.sum_minutes_by_type(
            self.db, target_date
        )
        return (productive - distracting) / 60.0 * TIME_POINTS_PER_HOUR

    def collect(self, target_date: date) -> DailyMetrics:
        """Calculate all three metrics for a date"""
        # Independent reads; they share one session so run sequentially
        return DailyMetrics(
            task_ratio=self.calculate_task_ratio(target_date),
            habit_points=self.calculate_habit_points(target_date),
            time_score=self.calculate_time_score(target_date)
        )
