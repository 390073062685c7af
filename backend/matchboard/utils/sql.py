"""
SQL utilities for consistent handling of query results and idempotent inserts.

SQLModel/SQLAlchemy may return COUNT/MAX results as int or as a 1-tuple/Row.
Use scalar_int() to safely coerce to int everywhere.
"""
from typing import Any, Dict, Optional

from sqlalchemy import Table, insert
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlmodel import Session


def scalar_int(x: Any, default: Optional[int] = None) -> Optional[int]:
    """Convert COUNT/aggregate result to int. Handles int, None or 1-tuple/Row."""
    if x is None:
        return default
    try:
        value = x[0]
    except (TypeError, IndexError, KeyError):
        value = x
    if value is None:
        return default
    return int(value)


def insert_ignoring_conflicts(session: Session, table: Table, values: Dict[str, Any]) -> bool:
    """Insert one row inside the session's transaction; skip it if a unique key already holds it.

    Uses INSERT ... ON CONFLICT DO NOTHING on SQLite and PostgreSQL.
    Returns True when the row was written, False when the database ignored it.
    """
    dialect = session.get_bind().dialect.name
    if dialect == "sqlite":
        stmt = sqlite_insert(table).values(**values).on_conflict_do_nothing()
    elif dialect == "postgresql":
        stmt = pg_insert(table).values(**values).on_conflict_do_nothing()
    else:
        stmt = insert(table).values(**values)

    result = session.connection().execute(stmt)
    return (result.rowcount or 0) > 0
