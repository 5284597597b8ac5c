"""
Source data repository - Data access layer for habits, tasks and time logs.
Handles CRUD plus the per-date aggregates consumed by the metric calculators.
"""
from datetime import date
from typing import List, Optional, Tuple
from sqlalchemy import and_, case, func
from sqlalchemy.orm import Session

from tracker.constants import TIME_LOG_PRODUCTIVE, TIME_LOG_DISTRACTING
from tracker.models import Habit, HabitCompletion, Task, TimeLog


class HabitRepository:
    """Repository for Habit and HabitCompletion data access"""

    @staticmethod
    def get_by_id(db: Session, habit_id: int) -> Optional[Habit]:
        """Get habit by ID"""
        return db.query(Habit).filter(Habit.id == habit_id).first()

    @staticmethod
    def get_all(db: Session, include_archived: bool = False) -> List[Habit]:
        """Get all habits"""
        query = db.query(Habit)
        if not include_archived:
            query = query.filter(Habit.is_archived == False)
        return query.order_by(Habit.id).all()

    @staticmethod
    def get_archived(db: Session) -> List[Habit]:
        """Get archived habits only"""
        return db.query(Habit).filter(Habit.is_archived == True).order_by(Habit.id).all()

    @staticmethod
    def create(db: Session, habit: Habit) -> Habit:
        """Create new habit"""
        db.add(habit)
        db.commit()
        db.refresh(habit)
        return habit

    @staticmethod
    def update(db: Session, habit: Habit) -> Habit:
        """Update existing habit"""
        db.commit()
        db.refresh(habit)
        return habit

    @staticmethod
    def get_completion(
        db: Session, habit_id: int, target_date: date
    ) -> Optional[HabitCompletion]:
        """Get completion of a habit on a date"""
        return db.query(HabitCompletion).filter(
            and_(
                HabitCompletion.habit_id == habit_id,
                HabitCompletion.completion_date == target_date
            )
        ).first()

    @staticmethod
    def get_completions_for_date(db: Session, target_date: date) -> List[HabitCompletion]:
        """Get completions of all habits on a date"""
        return db.query(HabitCompletion).filter(
            HabitCompletion.completion_date == target_date
        ).order_by(HabitCompletion.habit_id).all()

    @staticmethod
    def get_completions_in_range(
        db: Session, habit_id: int, start_date: date, end_date: date
    ) -> List[HabitCompletion]:
        """Get completions of one habit between two dates (inclusive)"""
        return db.query(HabitCompletion).filter(
            and_(
                HabitCompletion.habit_id == habit_id,
                HabitCompletion.completion_date >= start_date,
                HabitCompletion.completion_date <= end_date
            )
        ).order_by(HabitCompletion.completion_date).all()

    @staticmethod
    def get_completion_dates(db: Session, habit_id: int) -> List[date]:
        """Distinct dates a habit was completed on, ascending"""
        rows = db.query(HabitCompletion.completion_date).filter(
            HabitCompletion.habit_id == habit_id
        ).distinct().order_by(HabitCompletion.completion_date).all()
        return [row[0] for row in rows]

    @staticmethod
    def sum_completion_weights(db: Session, target_date: date) -> float:
        """Sum of weight_at_completion for all completions on a date"""
        total = db.query(
            func.sum(HabitCompletion.weight_at_completion)
        ).filter(HabitCompletion.completion_date == target_date).scalar()
        return float(total or 0.0)


class TaskRepository:
    """Repository for Task data access"""

    @staticmethod
    def get_by_id(db: Session, task_id: int) -> Optional[Task]:
        """Get task by ID"""
        return db.query(Task).filter(Task.id == task_id).first()

    @staticmethod
    def get_all(db: Session, target_date: Optional[date] = None) -> List[Task]:
        """Get tasks, optionally only those targeted at a date"""
        query = db.query(Task)
        if target_date is not None:
            query = query.filter(Task.target_date == target_date)
        return query.order_by(Task.target_date, Task.id).all()

    @staticmethod
    def count_assigned(db: Session, target_date: date) -> int:
        """Count tasks assigned for a date"""
        return db.query(Task).filter(
            and_(
                Task.target_date == target_date,
                Task.is_assigned == True
            )
        ).count()

    @staticmethod
    def count_completed(db: Session, target_date: date) -> int:
        """Count tasks targeted at a date that are done"""
        return db.query(Task).filter(
            and_(
                Task.target_date == target_date,
                Task.is_done == True
            )
        ).count()


class TimeLogRepository:
    """Repository for TimeLog data access"""

    @staticmethod
    def get_for_date(db: Session, target_date: date) -> List[TimeLog]:
        """Get all time logs recorded for a date"""
        return db.query(TimeLog).filter(
            TimeLog.date_logged_for == target_date
        ).order_by(TimeLog.id).all()

    @staticmethod
    def sum_minutes_by_type(db: Session, target_date: date) -> Tuple[int, int]:
        """
        Sum logged minutes for a date.

        Returns:
            Tuple of (productive_minutes, distracting_minutes)
        """
        productive, distracting = db.query(
            func.sum(
                case((TimeLog.type == TIME_LOG_PRODUCTIVE, TimeLog.duration_minutes), else_=0)
            ),
            func.sum(
                case((TimeLog.type == TIME_LOG_DISTRACTING, TimeLog.duration_minutes), else_=0)
            )
        ).filter(TimeLog.date_logged_for == target_date).one()
        return int(productive or 0), int(distracting or 0)
