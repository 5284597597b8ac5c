"""
Score repository - Data access layer for daily scores and streak records.

Writes only add/flush; committing is left to the calling service so that a
day's score and streak land in the same transaction.
"""
from datetime import date
from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session

from tracker.models import DailyScore, StreakRecord


class DailyScoreRepository:
    """Repository for DailyScore data access"""

    @staticmethod
    def get_by_date(db: Session, target_date: date) -> Optional[DailyScore]:
        """Get daily score for specific date"""
        return db.query(DailyScore).filter(DailyScore.date == target_date).first()

    @staticmethod
    def get_range(db: Session, start_date: date, end_date: date) -> List[DailyScore]:
        """Get daily scores between two dates (inclusive), oldest first"""
        return db.query(DailyScore).filter(
            DailyScore.date >= start_date,
            DailyScore.date <= end_date
        ).order_by(DailyScore.date.asc()).all()

    @staticmethod
    def get_max_date(db: Session) -> Optional[date]:
        """Get the latest scored date"""
        return db.query(func.max(DailyScore.date)).scalar()

    @staticmethod
    def get_or_create(db: Session, target_date: date) -> DailyScore:
        """Get the score row for a date, adding an empty one if missing"""
        record = DailyScoreRepository.get_by_date(db, target_date)
        if record is None:
            record = DailyScore(
                date=target_date,
                habit_component=0.0,
                task_component=0.0,
                time_component=0.0,
                streak_bonus_component=0.0,
                total_score=0.0,
                is_rest_day=False,
                notes=""
            )
            db.add(record)
            db.flush()
        return record


class StreakRepository:
    """Repository for StreakRecord data access"""

    @staticmethod
    def get_by_date(db: Session, target_date: date) -> Optional[StreakRecord]:
        """Get streak record for specific date"""
        return db.query(StreakRecord).filter(StreakRecord.date == target_date).first()

    @staticmethod
    def get_streak_days(db: Session, target_date: date) -> int:
        """Get streak value for a date, 0 when no record exists"""
        record = StreakRepository.get_by_date(db, target_date)
        return record.current_streak_days if record else 0

    @staticmethod
    def get_latest(db: Session) -> Optional[StreakRecord]:
        """Get the streak record with the maximum date"""
        return db.query(StreakRecord).order_by(StreakRecord.date.desc()).first()

    @staticmethod
    def get_max_date(db: Session) -> Optional[date]:
        """Get the latest date with a streak record"""
        return db.query(func.max(StreakRecord.date)).scalar()

    @staticmethod
    def upsert(db: Session, target_date: date, streak_days: int) -> bool:
        """
        Create or update the streak for a date.

        Returns:
            True if a row was created or its value changed
        """
        record = StreakRepository.get_by_date(db, target_date)
        if record is None:
            db.add(StreakRecord(date=target_date, current_streak_days=streak_days))
            db.flush()
            return True

        if record.current_streak_days == streak_days:
            return False

        record.current_streak_days = streak_days
        db.flush()
        return True
