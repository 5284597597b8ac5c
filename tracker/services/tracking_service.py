"""
Tracking service.
Handles mutations of habits, tasks, time logs and day status, and triggers
score recalculation for every date a mutation touches.
"""
import logging
from datetime import date
from typing import List, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tracker.exceptions import (
    DatabaseException, HabitNotFoundException, TaskNotFoundException,
    ValidationException
)
from tracker.models import DailyScore, Habit, HabitCompletion, Task, TimeLog
from tracker.repositories.score_repository import DailyScoreRepository
from tracker.repositories.source_repository import (
    HabitRepository, TaskRepository, TimeLogRepository
)
from tracker.schemas import (
    HabitCreate, HabitUpdate, TaskCreate, TaskUpdate, TimeLogCreate
)
from tracker.services.date_service import DateService, DateLike
from tracker.services.scoring_service import ScoringService, recalculation_lock

logger = logging.getLogger("tracker.tracking")


class TrackingService:
    """Service for source-data mutations and their score side effects"""

    def __init__(self, db: Session):
        self.db = db
        self.habit_repo = HabitRepository()
        self.task_repo = TaskRepository()
        self.time_log_repo = TimeLogRepository()
        self.score_repo = DailyScoreRepository()
        self.scoring_service = ScoringService(db)
        self.date_service = DateService()

    # ===== HABITS =====

    def create_habit(self, habit_data: HabitCreate) -> Habit:
        """Create a habit"""
        habit = Habit(**habit_data.model_dump())
        return self._commit(self.habit_repo.create, habit, operation="habit create")

    def list_habits(self, include_archived: bool = False) -> List[Habit]:
        return self.habit_repo.get_all(self.db, include_archived)

    def list_archived_habits(self) -> List[Habit]:
        return self.habit_repo.get_archived(self.db)

    def update_habit(self, habit_id: int, habit_data: HabitUpdate) -> Habit:
        """
        Update a habit.

        Weight changes apply to future completions only; stored completions
        keep the weight they were recorded with, so no day is recalculated.
        """
        habit = self._get_habit(habit_id)
        for field, value in habit_data.model_dump(exclude_unset=True).items():
            setattr(habit, field, value)
        return self._commit(self.habit_repo.update, habit, operation="habit update")

    def complete_habit(self, habit_id: int, target_date: DateLike) -> DailyScore:
        """
        Mark a habit done on a date, capturing its current weight.

        Completing an already completed habit refreshes the captured weight
        to the habit's current weight.
        """
        target_date = self.date_service.parse_date(target_date)
        habit = self._get_habit(habit_id)

        with recalculation_lock():
            completion = self.habit_repo.get_completion(self.db, habit_id, target_date)
            if completion is None:
                self.db.add(HabitCompletion(
                    habit_id=habit.id,
                    completion_date=target_date,
                    weight_at_completion=habit.current_weight
                ))
            else:
                completion.weight_at_completion = habit.current_weight
            self._commit_session("habit completion")
            logger.info(
                f"Habit {habit.id} completed for {target_date} "
                f"(weight {habit.current_weight})"
            )
            return self.scoring_service.recalculate(target_date)

    def uncomplete_habit(self, habit_id: int, target_date: DateLike) -> DailyScore:
        """Remove a habit completion and recalculate the date and its successors"""
        target_date = self.date_service.parse_date(target_date)
        self._get_habit(habit_id)

        with recalculation_lock():
            completion = self.habit_repo.get_completion(self.db, habit_id, target_date)
            if completion is not None:
                self.db.delete(completion)
                self._commit_session("habit uncompletion")
                logger.info(f"Habit {habit_id} uncompleted for {target_date}")
            return self.scoring_service.recalculate(target_date)

    def delete_habit(self, habit_id: int) -> List[date]:
        """
        Delete a habit together with its completions.

        Every date that lost a completion is recalculated, earliest first.

        Returns:
            The recalculated dates
        """
        habit = self._get_habit(habit_id)

        with recalculation_lock():
            affected_dates = self.habit_repo.get_completion_dates(self.db, habit_id)
            self.db.delete(habit)
            self._commit_session("habit delete")
            logger.info(
                f"Habit {habit_id} deleted; recalculating {len(affected_dates)} day(s)"
            )

            for affected_date in affected_dates:
                self.scoring_service.recalculate(affected_date)
        return affected_dates

    def get_completions_for_date(self, target_date: DateLike) -> List[HabitCompletion]:
        target_date = self.date_service.parse_date(target_date)
        return self.habit_repo.get_completions_for_date(self.db, target_date)

    def get_habit_history(
        self, habit_id: int, start_date: DateLike, end_date: DateLike
    ) -> List[dict]:
        """
        Completion state of one habit for every day in a range.

        Raises:
            HabitNotFoundException: If the habit doesn't exist
            ValidationException: If start_date is after end_date
        """
        start_date, end_date = self._parse_range(start_date, end_date)
        self._get_habit(habit_id)

        weights = {
            completion.completion_date: completion.weight_at_completion
            for completion in self.habit_repo.get_completions_in_range(
                self.db, habit_id, start_date, end_date
            )
        }
        return [
            {
                "date": day,
                "completed": day in weights,
                "weight_at_completion": weights.get(day)
            }
            for day in self.date_service.iter_days(start_date, end_date)
        ]

    # ===== TASKS =====

    def list_tasks(self, target_date: Optional[DateLike] = None) -> List[Task]:
        """All tasks, or only those targeted at a date"""
        if target_date is not None:
            target_date = self.date_service.parse_date(target_date)
        return self.task_repo.get_all(self.db, target_date)

    def create_task(self, task_data: TaskCreate) -> Task:
        """Create a task and recalculate its target date"""
        task = Task(**task_data.model_dump())
        if task.is_done:
            task.completion_date = task.target_date

        with recalculation_lock():
            self.db.add(task)
            self._commit_session("task create")
            self.db.refresh(task)
            self.scoring_service.recalculate(task.target_date)
        return task

    def update_task(self, task_id: int, task_data: TaskUpdate) -> Task:
        """
        Update a task.

        When the task moves to another date both the old and the new date
        are recalculated, earliest first.
        """
        task = self._get_task(task_id)
        updates = task_data.model_dump(exclude_unset=True)
        old_target_date = task.target_date

        with recalculation_lock():
            for field, value in updates.items():
                setattr(task, field, value)

            task.completion_date = task.target_date if task.is_done else None

            self._commit_session("task update")
            self.db.refresh(task)

            for affected_date in sorted({old_target_date, task.target_date}):
                self.scoring_service.recalculate(affected_date)
        return task

    def delete_task(self, task_id: int) -> None:
        """Delete a task and recalculate the date it was targeted at"""
        task = self._get_task(task_id)
        target_date = task.target_date

        with recalculation_lock():
            self.db.delete(task)
            self._commit_session("task delete")
            self.scoring_service.recalculate(target_date)

    # ===== TIME LOGS =====

    def list_time_logs(self, target_date: DateLike) -> List[TimeLog]:
        target_date = self.date_service.parse_date(target_date)
        return self.time_log_repo.get_for_date(self.db, target_date)

    def log_time(self, time_log_data: TimeLogCreate) -> TimeLog:
        """Record productive or distracting time and recalculate the date"""
        duration = time_log_data.duration_minutes
        if duration is None:
            duration = self.date_service.minutes_between(
                time_log_data.start_time, time_log_data.end_time
            )

        time_log = TimeLog(
            type=time_log_data.type,
            start_time=time_log_data.start_time,
            end_time=time_log_data.end_time,
            date_logged_for=time_log_data.date_logged_for,
            duration_minutes=duration
        )

        with recalculation_lock():
            self.db.add(time_log)
            self._commit_session("time log create")
            self.db.refresh(time_log)
            self.scoring_service.recalculate(time_log.date_logged_for)
        return time_log

    # ===== DAILY STATUS =====

    def set_rest_day(self, target_date: DateLike, is_rest_day: bool) -> DailyScore:
        """Flag or unflag a rest day; later streaks are re-derived"""
        target_date = self.date_service.parse_date(target_date)

        with recalculation_lock():
            record = self.score_repo.get_or_create(self.db, target_date)
            record.is_rest_day = is_rest_day
            self._commit_session("rest day update")
            logger.info(f"Rest day for {target_date} set to {is_rest_day}")
            return self.scoring_service.recalculate(target_date)

    def save_notes(self, target_date: DateLike, notes: str) -> DailyScore:
        """Store free-text notes for a date; the score itself is unaffected"""
        target_date = self.date_service.parse_date(target_date)

        with recalculation_lock():
            record = self.score_repo.get_or_create(self.db, target_date)
            record.notes = notes
            self._commit_session("notes update")
            return self.scoring_service.compose_daily_score(target_date)

    def get_daily_score(self, target_date: DateLike) -> DailyScore:
        """
        Stored score for a date, calculated on demand when missing.

        A missing day inside existing history also re-derives the streaks
        of the stored days after it.
        """
        target_date = self.date_service.parse_date(target_date)
        record = self.score_repo.get_by_date(self.db, target_date)
        if record is not None:
            return record
        logger.info(f"Daily score for {target_date} not stored yet. Calculating now...")
        return self.scoring_service.recalculate(target_date)

    def get_score_history(self, start_date: DateLike, end_date: DateLike) -> List[dict]:
        """
        Total score for every day in a range, 0 for unscored days.

        Raises:
            ValidationException: If start_date is after end_date
        """
        start_date, end_date = self._parse_range(start_date, end_date)

        scores = {
            record.date: record.total_score
            for record in self.score_repo.get_range(self.db, start_date, end_date)
        }
        return [
            {"date": day, "total_score": scores.get(day, 0.0)}
            for day in self.date_service.iter_days(start_date, end_date)
        ]

    # ===== HELPERS =====

    def _parse_range(self, start_date: DateLike, end_date: DateLike):
        start_date = self.date_service.parse_date(start_date)
        end_date = self.date_service.parse_date(end_date)
        if start_date > end_date:
            raise ValidationException("start_date", "start_date cannot be after end_date")
        return start_date, end_date

    def _get_habit(self, habit_id: int) -> Habit:
        habit = self.habit_repo.get_by_id(self.db, habit_id)
        if not habit:
            raise HabitNotFoundException(habit_id)
        return habit

    def _get_task(self, task_id: int) -> Task:
        task = self.task_repo.get_by_id(self.db, task_id)
        if not task:
            raise TaskNotFoundException(task_id)
        return task

    def _commit_session(self, operation: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"{operation} failed: {e}")
            raise DatabaseException(operation, str(e)) from e

    def _commit(self, write, entity, operation: str):
        try:
            return write(self.db, entity)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"{operation} failed: {e}")
            raise DatabaseException(operation, str(e)) from e
