"""
Tests for the additive schema migration.
"""
import pytest
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.pool import StaticPool

from tracker.auto_migrate import auto_migrate, build_add_column_sql, get_default_value
from tracker.database import init_db
from tracker.models import DailyScore


@pytest.fixture
def legacy_engine():
    """Database with an old daily_scores table lacking most columns"""
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    with engine.begin() as conn:
        conn.execute(text(
            "CREATE TABLE daily_scores ("
            "id INTEGER PRIMARY KEY, date DATE NOT NULL UNIQUE, total_score FLOAT)"
        ))
        conn.execute(text(
            "INSERT INTO daily_scores (date, total_score) VALUES ('2026-03-01', 42.0)"
        ))
    yield engine
    engine.dispose()


class TestAutoMigrate:
    def test_adds_missing_columns(self, legacy_engine):
        added = auto_migrate(legacy_engine)

        columns = {col["name"] for col in inspect(legacy_engine).get_columns("daily_scores")}
        assert added == 8
        assert {"habit_component", "is_rest_day", "notes", "updated_at"} <= columns

    def test_existing_rows_get_defaults(self, legacy_engine):
        auto_migrate(legacy_engine)

        with legacy_engine.connect() as conn:
            row = conn.execute(text(
                "SELECT total_score, streak_bonus_component, is_rest_day, notes FROM daily_scores"
            )).one()

        assert row.total_score == 42.0
        assert row.streak_bonus_component == 0.0
        assert row.is_rest_day == 0
        assert row.notes == ""

    def test_second_run_is_noop(self, legacy_engine):
        auto_migrate(legacy_engine)

        assert auto_migrate(legacy_engine) == 0

    def test_init_db_creates_all_tables(self):
        engine = create_engine("sqlite://", poolclass=StaticPool)

        init_db(engine)

        assert set(inspect(engine).get_table_names()) == {
            "habits", "habit_completions", "tasks", "time_logs",
            "daily_scores", "streak_data"
        }


class TestColumnSql:
    def test_default_literals(self):
        columns = DailyScore.__table__.columns

        assert get_default_value(columns["is_rest_day"]) == "0"
        assert get_default_value(columns["notes"]) == "''"
        assert get_default_value(columns["created_at"]) == "NULL"

    def test_build_statement(self, legacy_engine):
        sql = build_add_column_sql(
            "daily_scores", DailyScore.__table__.columns["time_component"], legacy_engine
        )

        assert sql == "ALTER TABLE daily_scores ADD COLUMN time_component FLOAT DEFAULT 0.0"
