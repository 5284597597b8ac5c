"""
Daily scoring service.

Composes a day's score from its metrics and keeps the streak chain
consistent when past days change. Each day's streak depends on the stored
streak of the day before, so retroactive edits are propagated forward one
day at a time.
"""
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date
from typing import Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tracker.constants import HABIT_POINTS_SCALE, TASK_POINTS_SCALE
from tracker.exceptions import DatabaseException, StreakReconciliationException
from tracker.models import DailyScore
from tracker.repositories.score_repository import (
    DailyScoreRepository, StreakRepository
)
from tracker.services.date_service import DateService, DateLike
from tracker.services.metrics_service import MetricsService
from tracker.services.streak_service import (
    apply_streak_transition, calculate_streak_bonus
)

logger = logging.getLogger("tracker.scoring")

# Single user, single timeline: one process-wide lock serializes recalculations
_recalculation_lock = threading.RLock()


@contextmanager
def recalculation_lock():
    """Hold the timeline lock for a compose/reconcile sequence"""
    with _recalculation_lock:
        yield


@dataclass
class ReconciliationReport:
    """Outcome of a forward streak reconciliation"""
    start_date: date
    end_date: Optional[date]
    days_processed: int = 0
    days_changed: int = 0
    days_composed: int = 0


class ScoringService:
    """Service for daily score composition and streak reconciliation"""

    def __init__(self, db: Session):
        self.db = db
        self.score_repo = DailyScoreRepository()
        self.streak_repo = StreakRepository()
        self.metrics_service = MetricsService(db)
        self.date_service = DateService()

    def compose_daily_score(self, target_date: DateLike) -> DailyScore:
        """
        Recalculate and store the full score for a date.

        Reads the rest-day flag, measures the three metrics, applies the
        streak rule against the previous day's stored streak and upserts
        the score and streak rows in a single commit. Calling it again
        with unchanged inputs stores identical values.

        Args:
            target_date: date or "YYYY-MM-DD"

        Returns:
            The stored DailyScore

        Raises:
            InvalidDateException: If the date is malformed
            DatabaseException: If any read or write fails (nothing is committed)
        """
        target_date = self.date_service.parse_date(target_date)

        with recalculation_lock():
            try:
                record = self.score_repo.get_by_date(self.db, target_date)
                is_rest_day = bool(record.is_rest_day) if record else False

                metrics = self.metrics_service.collect(target_date)

                if record is None:
                    record = self.score_repo.get_or_create(self.db, target_date)

                record.habit_component = metrics.habit_points * HABIT_POINTS_SCALE
                record.task_component = metrics.task_ratio * TASK_POINTS_SCALE
                record.time_component = metrics.time_score
                base_score = record.base_score

                prev_streak = self.streak_repo.get_streak_days(
                    self.db, self.date_service.previous_day(target_date)
                )
                transition = apply_streak_transition(prev_streak, base_score, is_rest_day)
                bonus = calculate_streak_bonus(transition)

                record.streak_bonus_component = bonus
                record.total_score = base_score + bonus
                record.is_rest_day = is_rest_day

                self.streak_repo.upsert(self.db, target_date, transition.new_streak)
                self.db.commit()
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(f"Failed to compose daily score for {target_date}: {e}")
                raise DatabaseException("daily score composition", str(e)) from e

            self.db.refresh(record)

        logger.info(
            f"Daily score for {target_date} recalculated. "
            f"Base: {base_score:.2f}, Bonus: {bonus:.2f}, "
            f"Total: {record.total_score:.2f}, Rest: {is_rest_day}, "
            f"Streak: {transition.new_streak}"
        )
        return record

    def reconcile_streaks_forward(self, start_date: DateLike) -> ReconciliationReport:
        """
        Re-derive streaks and bonuses from start_date to the latest stored day.

        Uses each day's stored components (no re-measuring) and the freshly
        reconciled streak of the day before. Walks every day up to the last
        known date even when a day is unchanged, since later days still
        depend on it. Each day is committed as it is processed.

        Args:
            start_date: First date whose streak may have changed

        Returns:
            ReconciliationReport with counts of processed/changed/composed days

        Raises:
            InvalidDateException: If the date is malformed
            StreakReconciliationException: On a storage error; days before
                the failing date stay committed
        """
        start_date = self.date_service.parse_date(start_date)

        with recalculation_lock():
            last_date = self._get_last_known_date()
            report = ReconciliationReport(start_date=start_date, end_date=last_date)

            if last_date is None or start_date > last_date:
                logger.info(
                    f"No stored history on or after {start_date}; "
                    "no forward streak recalculation needed"
                )
                return report

            logger.info(f"Starting forward streak recalculation {start_date} -> {last_date}")

            last_processed = None
            for current_date in self.date_service.iter_days(start_date, last_date):
                try:
                    changed, composed = self._reconcile_day(current_date)
                except (SQLAlchemyError, DatabaseException) as e:
                    self.db.rollback()
                    logger.error(
                        f"Forward streak recalculation stopped at {current_date} "
                        f"(last processed: {last_processed}): {e}"
                    )
                    raise StreakReconciliationException(
                        current_date, last_processed, str(e)
                    ) from e

                report.days_processed += 1
                if composed:
                    report.days_composed += 1
                elif changed:
                    report.days_changed += 1
                last_processed = current_date

        logger.info(
            f"Forward streak recalculation completed: {report.days_processed} day(s) "
            f"processed, {report.days_changed} changed, {report.days_composed} composed"
        )
        return report

    def recalculate(self, target_date: DateLike) -> DailyScore:
        """
        Compose a date and propagate the result to every later stored day.

        Returns:
            The composed DailyScore for target_date
        """
        target_date = self.date_service.parse_date(target_date)

        with recalculation_lock():
            record = self.compose_daily_score(target_date)
            self.reconcile_streaks_forward(self.date_service.next_day(target_date))
        return record

    def _get_last_known_date(self) -> Optional[date]:
        """Latest date present in either the score or the streak table"""
        dates = [
            d for d in (
                self.score_repo.get_max_date(self.db),
                self.streak_repo.get_max_date(self.db),
            )
            if d is not None
        ]
        return max(dates) if dates else None

    def _reconcile_day(self, current_date: date) -> tuple[bool, bool]:
        """
        Bring one day's streak and bonus in line with the previous day.

        Returns:
            Tuple of (changed, composed)
        """
        record = self.score_repo.get_by_date(self.db, current_date)

        if record is None:
            # Never scored: no components to reuse, run the full composer
            logger.info(f"No daily score for {current_date}; composing it first")
            self.compose_daily_score(current_date)
            return False, True

        base_score = record.base_score
        prev_streak = self.streak_repo.get_streak_days(
            self.db, self.date_service.previous_day(current_date)
        )
        transition = apply_streak_transition(prev_streak, base_score, bool(record.is_rest_day))

        streak_changed = self.streak_repo.upsert(
            self.db, current_date, transition.new_streak
        )

        new_bonus = calculate_streak_bonus(transition)
        bonus_changed = new_bonus != record.streak_bonus_component
        if bonus_changed:
            record.streak_bonus_component = new_bonus
            record.total_score = base_score + new_bonus

        if streak_changed or bonus_changed:
            self.db.commit()
            logger.debug(
                f" -> {current_date}: streak {transition.new_streak}, "
                f"bonus {new_bonus:.2f}, total {record.total_score:.2f}"
            )

        return streak_changed or bonus_changed, False
