"""
Application constants.
Scoring weights, streak rules, source-data enums and environment-driven paths.
"""
import os

# Score weights (base score = habit*0.45 + task*0.45 + time*0.10)
HABIT_WEIGHT = 0.45
TASK_WEIGHT = 0.45
TIME_WEIGHT = 0.10

# Raw metric -> component scaling
HABIT_POINTS_SCALE = 100
TASK_POINTS_SCALE = 100
TIME_POINTS_PER_HOUR = 10

# Streak rules
STREAK_THRESHOLD = 60  # base score >= threshold counts toward the streak
STREAK_BONUS_HORIZON_DAYS = 365  # bonus = log2(2 + streak / horizon)
STREAK_BONUS_PRECISION = 2

# Time log types
TIME_LOG_PRODUCTIVE = "productive"
TIME_LOG_DISTRACTING = "distracting"
TIME_LOG_TYPES = (TIME_LOG_PRODUCTIVE, TIME_LOG_DISTRACTING)

# Habit weights are fractions of a full day
HABIT_WEIGHT_MIN = 0.0
HABIT_WEIGHT_MAX = 1.0

ISO_DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"

# Storage
DEFAULT_DB_DIRECTORY = "/var/lib/productivity-tracker"
DB_FILE = "tracker.db"
DATABASE_URL_ENV = "TRACKER_DATABASE_URL"
DB_DIR_ENV = "TRACKER_DB_DIR"

# Logging
DEFAULT_LOG_DIRECTORY_PROD = "/var/log/productivity-tracker"
DEFAULT_LOG_DIRECTORY_DEV = "./logs"

# CORS
CORS_ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "TRACKER_CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000"
    ).split(",")
    if origin.strip()
]
