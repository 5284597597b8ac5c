from fastapi import FastAPI, Depends, Query, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from typing import List, Optional
import logging
import os
from pathlib import Path

from tracker.database import get_db, init_db
from tracker.schemas import (
    HabitCreate, HabitUpdate, HabitResponse,
    HabitCompletionResponse, HabitHistoryResponse,
    TaskCreate, TaskUpdate, TaskResponse,
    TimeLogCreate, TimeLogResponse,
    RestDayUpdate, NotesUpdate,
    DailyScoreResponse, StreakResponse, ScoreHistoryResponse,
    ReconciliationResponse
)
from tracker.exceptions import (
    TrackerException, ValidationException, HabitNotFoundException,
    TaskNotFoundException, DatabaseException
)
from tracker.services.scoring_service import ScoringService
from tracker.services.streak_service import StreakService
from tracker.services.tracking_service import TrackingService
from tracker.constants import (
    CORS_ALLOWED_ORIGINS, DEFAULT_LOG_DIRECTORY_PROD, DEFAULT_LOG_DIRECTORY_DEV
)

LOG_DIR = os.getenv("TRACKER_LOG_DIR", DEFAULT_LOG_DIRECTORY_PROD)
LOG_FILE = os.getenv("TRACKER_LOG_FILE", "app.log")

# Fall back to a local directory without permissions for /var/log
try:
    Path(LOG_DIR).mkdir(parents=True, exist_ok=True)
    log_path = Path(LOG_DIR) / LOG_FILE
except PermissionError:
    LOG_DIR = DEFAULT_LOG_DIRECTORY_DEV
    Path(LOG_DIR).mkdir(parents=True, exist_ok=True)
    log_path = Path(LOG_DIR) / LOG_FILE

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(log_path),
        logging.StreamHandler()
    ]
)

logger = logging.getLogger("tracker")

app = FastAPI(
    title="Productivity Tracker API",
    description="Habits, tasks and time logs rolled into a daily score and streak",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(TrackerException)
async def tracker_exception_handler(request: Request, exc: TrackerException):
    """Map tracker errors to HTTP status codes"""
    if isinstance(exc, ValidationException):
        status_code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, (HabitNotFoundException, TaskNotFoundException)):
        status_code = status.HTTP_404_NOT_FOUND
    else:
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    if isinstance(exc, DatabaseException):
        logger.error(f"{request.method} {request.url.path} failed: {exc}")

    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


@app.on_event("startup")
async def startup_event():
    init_db()
    logger.info(f"Productivity Tracker API started. Logging to: {log_path}")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down Productivity Tracker API")


# Health check
@app.get("/")
async def root():
    return {"message": "Productivity Tracker API", "status": "active"}


# ===== HABIT ENDPOINTS =====

@app.get("/api/habits", response_model=List[HabitResponse])
async def list_habits(include_archived: bool = False, db: Session = Depends(get_db)):
    """Get habits (active only unless include_archived)"""
    return TrackingService(db).list_habits(include_archived)


@app.get("/api/habits/archived", response_model=List[HabitResponse])
async def list_archived_habits(db: Session = Depends(get_db)):
    return TrackingService(db).list_archived_habits()


@app.get("/api/habits/completions", response_model=List[HabitCompletionResponse])
async def get_completions_for_date(
    target_date: str = Query(..., alias="date"),
    db: Session = Depends(get_db)
):
    """Get completions of all habits on a date"""
    return TrackingService(db).get_completions_for_date(target_date)


@app.get("/api/habits/{habit_id}/history", response_model=HabitHistoryResponse)
async def get_habit_history(
    habit_id: int, start_date: str, end_date: str, db: Session = Depends(get_db)
):
    """Per-day completion state of one habit; days without a completion are included"""
    data = TrackingService(db).get_habit_history(habit_id, start_date, end_date)
    return {
        "habit_id": habit_id,
        "start_date": data[0]["date"],
        "end_date": data[-1]["date"],
        "data": data
    }


@app.post("/api/habits", response_model=HabitResponse, status_code=status.HTTP_201_CREATED)
async def create_habit(habit: HabitCreate, db: Session = Depends(get_db)):
    return TrackingService(db).create_habit(habit)


@app.put("/api/habits/{habit_id}", response_model=HabitResponse)
async def update_habit(habit_id: int, habit: HabitUpdate, db: Session = Depends(get_db)):
    """Update a habit; past completions keep their recorded weight"""
    return TrackingService(db).update_habit(habit_id, habit)


@app.delete("/api/habits/{habit_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_habit(habit_id: int, db: Session = Depends(get_db)):
    """Delete a habit and recalculate every day it was completed on"""
    TrackingService(db).delete_habit(habit_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.post("/api/habits/{habit_id}/completions/{target_date}", response_model=DailyScoreResponse)
async def complete_habit(habit_id: int, target_date: str, db: Session = Depends(get_db)):
    """Complete a habit for a date and return the recalculated score"""
    return TrackingService(db).complete_habit(habit_id, target_date)


@app.delete("/api/habits/{habit_id}/completions/{target_date}", response_model=DailyScoreResponse)
async def uncomplete_habit(habit_id: int, target_date: str, db: Session = Depends(get_db)):
    """Undo a habit completion and return the recalculated score"""
    return TrackingService(db).uncomplete_habit(habit_id, target_date)


# ===== TASK ENDPOINTS =====

@app.get("/api/tasks", response_model=List[TaskResponse])
async def list_tasks(
    target_date: Optional[str] = Query(None, alias="date"),
    db: Session = Depends(get_db)
):
    """Get tasks, optionally filtered by target date"""
    return TrackingService(db).list_tasks(target_date)


@app.post("/api/tasks", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(task: TaskCreate, db: Session = Depends(get_db)):
    return TrackingService(db).create_task(task)


@app.put("/api/tasks/{task_id}", response_model=TaskResponse)
async def update_task(task_id: int, task: TaskUpdate, db: Session = Depends(get_db)):
    return TrackingService(db).update_task(task_id, task)


@app.delete("/api/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(task_id: int, db: Session = Depends(get_db)):
    TrackingService(db).delete_task(task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ===== TIME LOG ENDPOINTS =====

@app.get("/api/time-logs", response_model=List[TimeLogResponse])
async def list_time_logs(
    target_date: str = Query(..., alias="date"),
    db: Session = Depends(get_db)
):
    return TrackingService(db).list_time_logs(target_date)


@app.post("/api/time-logs", response_model=TimeLogResponse, status_code=status.HTTP_201_CREATED)
async def log_time(time_log: TimeLogCreate, db: Session = Depends(get_db)):
    return TrackingService(db).log_time(time_log)


# ===== DAILY STATUS ENDPOINTS =====

@app.put("/api/daily-status/{target_date}", response_model=DailyScoreResponse)
async def set_rest_day(target_date: str, body: RestDayUpdate, db: Session = Depends(get_db)):
    """Mark or unmark a rest day"""
    return TrackingService(db).set_rest_day(target_date, body.is_rest_day)


@app.put("/api/daily-notes/{target_date}", response_model=DailyScoreResponse)
async def save_notes(target_date: str, body: NotesUpdate, db: Session = Depends(get_db)):
    return TrackingService(db).save_notes(target_date, body.notes)


# ===== SCORE ENDPOINTS =====

@app.get("/api/daily-score/{target_date}", response_model=DailyScoreResponse)
async def get_daily_score(target_date: str, db: Session = Depends(get_db)):
    """Get the score for a date, calculating it if it was never stored"""
    return TrackingService(db).get_daily_score(target_date)


@app.get("/api/streak", response_model=StreakResponse)
async def get_streak(db: Session = Depends(get_db)):
    return {"current_streak_days": StreakService(db).get_current_streak()}


@app.get("/api/scores/history", response_model=ScoreHistoryResponse)
async def get_score_history(start_date: str, end_date: str, db: Session = Depends(get_db)):
    """Total score per day in a range; unscored days read as 0"""
    data = TrackingService(db).get_score_history(start_date, end_date)
    return {"start_date": data[0]["date"], "end_date": data[-1]["date"], "data": data}


@app.post("/api/streaks/reconcile/{start_date}", response_model=ReconciliationResponse)
async def reconcile_streaks(start_date: str, db: Session = Depends(get_db)):
    """Re-run forward streak reconciliation, e.g. after a failed run"""
    return ScoringService(db).reconcile_streaks_forward(start_date)
