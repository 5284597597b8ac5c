"""
Automatic database migration system.
Compares SQLAlchemy models with the live schema and adds missing columns.
"""
import logging
from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from tracker.database import Base
from tracker import models  # noqa: F401  (registers tables on Base)

logger = logging.getLogger("tracker.migrations")


def column_type_to_sql(column, engine: Engine) -> str:
    """Render a model column type in the target dialect"""
    return column.type.compile(dialect=engine.dialect)


def get_default_value(column) -> str:
    """Get a column's scalar default as an SQL literal, 'NULL' if none"""
    default = column.default
    if default is None or not hasattr(default, "arg"):
        return "NULL"

    value = default.arg
    # Callable defaults (datetime.now) can't be expressed in ALTER TABLE
    if callable(value):
        return "NULL"
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        escaped = value.replace("'", "''")
        return f"'{escaped}'"
    return "NULL"


def build_add_column_sql(table_name: str, column, engine: Engine) -> str:
    """Build the ALTER TABLE statement adding one model column"""
    default_value = get_default_value(column)
    alter_sql = (
        f"ALTER TABLE {table_name} ADD COLUMN {column.name} "
        f"{column_type_to_sql(column, engine)}"
    )

    if default_value != "NULL":
        alter_sql += f" DEFAULT {default_value}"
        # NOT NULL needs a default when added to a populated table
        if not column.nullable:
            alter_sql += " NOT NULL"

    return alter_sql


def auto_migrate(engine: Engine) -> int:
    """
    Add model columns missing from existing tables.

    Tables that don't exist yet are left to Base.metadata.create_all().

    Returns:
        Number of columns added
    """
    logger.info("Starting automatic schema migration...")

    inspector = inspect(engine)
    existing_tables = set(inspector.get_table_names())

    missing = []
    for table_name, table in Base.metadata.tables.items():
        if table_name not in existing_tables:
            logger.warning(f"Table '{table_name}' doesn't exist. Run init_db() first.")
            continue

        existing_columns = {col["name"] for col in inspector.get_columns(table_name)}
        missing.extend(
            (table_name, column)
            for column in table.columns
            if column.name not in existing_columns
        )

    migrations_applied = 0
    with engine.begin() as conn:
        for table_name, column in missing:
            alter_sql = build_add_column_sql(table_name, column, engine)
            logger.info(f"Adding column '{column.name}' to table '{table_name}'")
            logger.debug(f"SQL: {alter_sql}")

            try:
                conn.execute(text(alter_sql))
            except SQLAlchemyError as e:
                logger.error(f"Failed to add column {table_name}.{column.name}: {e}")
                raise
            migrations_applied += 1

    if migrations_applied > 0:
        logger.info(f"Migration completed: {migrations_applied} column(s) added")
    else:
        logger.info("Schema is up to date - no migrations needed")

    return migrations_applied
