"""
Streak rules and queries.

The transition rule and bonus formula live here so the daily composer and
the forward reconciler cannot drift apart.
"""
import math
from typing import NamedTuple
from sqlalchemy.orm import Session

from tracker.constants import (
    STREAK_THRESHOLD, STREAK_BONUS_HORIZON_DAYS, STREAK_BONUS_PRECISION
)
from tracker.repositories.score_repository import StreakRepository


class StreakTransition(NamedTuple):
    new_streak: int  # stored for this date, carried into the next day
    bonus_basis: int  # streak value the bonus is computed from


def apply_streak_transition(
    prev_streak: int,
    base_score: float,
    is_rest_day: bool
) -> StreakTransition:
    """
    Derive a day's streak from the previous day's streak.

    - Rest day: streak carries over unchanged, bonus uses the carried value
    - Base score >= threshold: streak grows by one
    - Otherwise: streak resets to 0

    The base score is compared at display precision, so float sums such as
    59.99999999999999 count as 60.00.
    """
    if is_rest_day:
        return StreakTransition(new_streak=prev_streak, bonus_basis=prev_streak)

    if round_half_away_from_zero(base_score) >= STREAK_THRESHOLD:
        new_streak = prev_streak + 1
        return StreakTransition(new_streak=new_streak, bonus_basis=new_streak)

    return StreakTransition(new_streak=0, bonus_basis=0)


def round_half_away_from_zero(value: float, digits: int = STREAK_BONUS_PRECISION) -> float:
    """Round the scaled value half away from zero, not banker's rounding"""
    factor = 10 ** digits
    return math.copysign(math.floor(abs(value) * factor + 0.5), value) / factor


def calculate_streak_bonus(transition: StreakTransition) -> float:
    """
    Calculate the streak bonus for a day.

    Formula: round2(log2(2 + basis / 365)), 0 when there is no streak
    """
    if transition.new_streak <= 0 and transition.bonus_basis <= 0:
        return 0.0

    raw = math.log2(2 + transition.bonus_basis / STREAK_BONUS_HORIZON_DAYS)
    return round_half_away_from_zero(raw)


class StreakService:
    """Service for streak queries"""

    def __init__(self, db: Session):
        self.db = db
        self.streak_repo = StreakRepository()

    def get_current_streak(self) -> int:
        """Streak of the most recent date, 0 without history"""
        latest = self.streak_repo.get_latest(self.db)
        return latest.current_streak_days if latest else 0
