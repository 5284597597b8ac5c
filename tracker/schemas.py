from pydantic import BaseModel, Field, model_validator
from datetime import datetime, date
from typing import List, Literal, Optional


# Habit schemas
class HabitBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    current_weight: float = Field(default=0.0, ge=0.0, le=1.0)  # share of a full day

class HabitCreate(HabitBase):
    pass

class HabitUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    current_weight: Optional[float] = Field(None, ge=0.0, le=1.0)
    is_archived: Optional[bool] = None

class HabitResponse(HabitBase):
    id: int
    is_archived: bool = False
    created_at: datetime

    class Config:
        from_attributes = True

class HabitCompletionResponse(BaseModel):
    id: int
    habit_id: int
    completion_date: date
    weight_at_completion: float

    class Config:
        from_attributes = True

class HabitHistoryPoint(BaseModel):
    date: date
    completed: bool
    weight_at_completion: Optional[float] = None

class HabitHistoryResponse(BaseModel):
    habit_id: int
    start_date: date
    end_date: date
    data: List[HabitHistoryPoint]


# Task schemas
class TaskBase(BaseModel):
    description: str = Field(..., min_length=1, max_length=500)
    target_date: date
    is_assigned: bool = True
    is_done: bool = False

class TaskCreate(TaskBase):
    pass

class TaskUpdate(BaseModel):
    description: Optional[str] = Field(None, min_length=1, max_length=500)
    target_date: Optional[date] = None
    is_assigned: Optional[bool] = None
    is_done: Optional[bool] = None

class TaskResponse(TaskBase):
    id: int
    completion_date: Optional[date] = None
    created_at: datetime

    class Config:
        from_attributes = True


# Time log schemas
class TimeLogCreate(BaseModel):
    type: Literal["productive", "distracting"]
    date_logged_for: date
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    duration_minutes: Optional[int] = Field(None, ge=0)

    @model_validator(mode="after")
    def check_duration_source(self):
        """Either an explicit duration or a start/end pair is required"""
        if self.duration_minutes is None:
            if self.start_time is None or self.end_time is None:
                raise ValueError("duration_minutes or both start_time and end_time are required")
            if self.end_time < self.start_time:
                raise ValueError("end_time must not be before start_time")
        return self

class TimeLogResponse(BaseModel):
    id: int
    type: str
    date_logged_for: date
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    duration_minutes: int

    class Config:
        from_attributes = True


# Daily status schemas
class RestDayUpdate(BaseModel):
    is_rest_day: bool

class NotesUpdate(BaseModel):
    notes: str = Field(default="", max_length=10000)


# Score schemas
class DailyScoreResponse(BaseModel):
    date: date
    habit_component: float
    task_component: float
    time_component: float
    streak_bonus_component: float
    total_score: float
    is_rest_day: bool
    notes: str = ""

    class Config:
        from_attributes = True

class StreakResponse(BaseModel):
    current_streak_days: int

class ScoreHistoryPoint(BaseModel):
    date: date
    total_score: float

class ReconciliationResponse(BaseModel):
    start_date: date
    end_date: Optional[date]
    days_processed: int
    days_changed: int
    days_composed: int

    class Config:
        from_attributes = True

class ScoreHistoryResponse(BaseModel):
    start_date: date
    end_date: date
    data: List[ScoreHistoryPoint]
