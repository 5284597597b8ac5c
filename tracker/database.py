"""
Database setup: engine, session factory and declarative base.
"""
import os
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from tracker.constants import (
    DATABASE_URL_ENV, DB_DIR_ENV, DB_FILE, DEFAULT_DB_DIRECTORY
)


def get_database_url() -> str:
    """
    Resolve the database URL.

    TRACKER_DATABASE_URL wins; otherwise a SQLite file in TRACKER_DB_DIR,
    falling back to the working directory when that path is not writable.
    """
    url = os.getenv(DATABASE_URL_ENV)
    if url:
        return url

    db_dir = Path(os.getenv(DB_DIR_ENV, DEFAULT_DB_DIRECTORY))
    try:
        db_dir.mkdir(parents=True, exist_ok=True)
    except OSError:
        db_dir = Path(".")
    return f"sqlite:///{db_dir / DB_FILE}"


SQLALCHEMY_DATABASE_URL = get_database_url()

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False}
    if SQLALCHEMY_DATABASE_URL.startswith("sqlite")
    else {},
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """FastAPI dependency yielding a session per request"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None) -> None:
    """Create missing tables and apply additive column migrations"""
    from tracker import models  # noqa: F401  (registers tables on Base)
    from tracker.auto_migrate import auto_migrate

    bind = bind or engine
    Base.metadata.create_all(bind=bind)
    auto_migrate(bind)
