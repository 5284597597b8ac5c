"""
Custom exceptions for the productivity tracker.
Provides specific exception types for better error handling and recovery.
"""
from datetime import date
from typing import Optional


class TrackerException(Exception):
    """Base exception for the tracker application"""
    pass


class ValidationException(TrackerException):
    """Raised when data validation fails"""
    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"Validation error for {field}: {message}")


class InvalidDateException(ValidationException):
    """Raised when a date is not a valid YYYY-MM-DD calendar day"""
    def __init__(self, value):
        self.value = value
        super().__init__("date", f"{value!r} is not a valid YYYY-MM-DD date")


class HabitNotFoundException(TrackerException):
    """Raised when a habit is not found"""
    def __init__(self, habit_id: int):
        self.habit_id = habit_id
        super().__init__(f"Habit with ID {habit_id} not found")


class TaskNotFoundException(TrackerException):
    """Raised when a task is not found"""
    def __init__(self, task_id: int):
        self.task_id = task_id
        super().__init__(f"Task with ID {task_id} not found")


class DatabaseException(TrackerException):
    """Raised when database operations fail"""
    def __init__(self, operation: str, details: str):
        self.operation = operation
        self.details = details
        super().__init__(f"Database {operation} failed: {details}")


class StreakReconciliationException(DatabaseException):
    """
    Raised when forward streak reconciliation stops on a storage error.

    Days before failed_date are committed; streaks from failed_date onward
    are suspect and reconciliation can be re-run from there.
    """
    def __init__(
        self,
        failed_date: date,
        last_processed_date: Optional[date],
        details: str
    ):
        self.failed_date = failed_date
        self.last_processed_date = last_processed_date
        super().__init__(
            "streak reconciliation",
            f"stopped at {failed_date.isoformat()} "
            f"(last processed: {last_processed_date.isoformat() if last_processed_date else 'none'}): "
            f"{details}"
        )
