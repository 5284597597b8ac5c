"""
Date parsing and calendar helpers.
Every date entering the scoring engine goes through parse_date first.
"""
import re
from datetime import date, datetime, timedelta
from typing import Iterator, Union

from tracker.constants import ISO_DATE_PATTERN
from tracker.exceptions import InvalidDateException

_ISO_DATE_RE = re.compile(ISO_DATE_PATTERN)

DateLike = Union[date, str]


class DateService:
    """Service for date-related operations"""

    @staticmethod
    def parse_date(value: DateLike) -> date:
        """
        Normalize a date or an ISO "YYYY-MM-DD" string to a date.

        Args:
            value: date object or ISO string

        Returns:
            Calendar date

        Raises:
            InvalidDateException: If the value is not a real calendar day
        """
        # datetime is a date subclass; keep only the day
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value

        if not isinstance(value, str) or not _ISO_DATE_RE.match(value):
            raise InvalidDateException(value)

        try:
            return date.fromisoformat(value)
        except ValueError:
            raise InvalidDateException(value)

    @staticmethod
    def previous_day(target_date: date) -> date:
        return target_date - timedelta(days=1)

    @staticmethod
    def next_day(target_date: date) -> date:
        return target_date + timedelta(days=1)

    @staticmethod
    def iter_days(start_date: date, end_date: date) -> Iterator[date]:
        """Yield every calendar day from start_date to end_date inclusive"""
        current = start_date
        while current <= end_date:
            yield current
            current += timedelta(days=1)

    @staticmethod
    def minutes_between(start_time: datetime, end_time: datetime) -> int:
        """Whole minutes between two timestamps (never negative)"""
        seconds = (end_time - start_time).total_seconds()
        return max(0, int(seconds // 60))
