from __future__ import annotations

import logging
from typing import Dict, List, Tuple

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)

# Columns added after the first release, per table.
# (name, sqlite_type, postgres_type, default clause or "")
REQUIRED_BRACKET_COLUMNS: List[Tuple[str, str, str, str]] = [
    ("category_id", "VARCHAR", "VARCHAR", ""),
    ("draw_type", "VARCHAR", "VARCHAR", "DEFAULT 'bracket'"),
    ("round_name", "VARCHAR", "VARCHAR", ""),
]

REQUIRED_LEAGUE_COLUMNS: List[Tuple[str, str, str, str]] = [
    ("category_id", "VARCHAR", "VARCHAR", ""),
    ("rules", "JSON", "JSON", ""),
]

REQUIRED_MATCH_COLUMNS: List[Tuple[str, str, str, str]] = [
    ("category_id", "VARCHAR", "VARCHAR", ""),
    ("winner", "VARCHAR", "VARCHAR", ""),
    ("score", "JSON", "JSON", ""),
]


def _is_sqlite(engine: Engine) -> bool:
    return engine.dialect.name.lower() == "sqlite"


def _table_exists(engine: Engine, table_name: str) -> bool:
    if _is_sqlite(engine):
        sql = "SELECT name FROM sqlite_master WHERE type='table' AND name=:table_name"
    else:
        sql = """
        SELECT 1 FROM information_schema.tables
        WHERE table_schema = 'public' AND table_name = :table_name
        """
    with engine.connect() as conn:
        return conn.execute(text(sql), {"table_name": table_name}).fetchone() is not None


def _get_existing_columns(engine: Engine, table_name: str) -> Dict[str, str]:
    cols: Dict[str, str] = {}
    with engine.connect() as conn:
        if _is_sqlite(engine):
            # PRAGMA table_info returns rows: (cid, name, type, notnull, dflt_value, pk)
            for row in conn.execute(text(f'PRAGMA table_info("{table_name}");')).fetchall():
                cols[str(row[1])] = str(row[2])
        else:
            sql = """
            SELECT column_name, data_type
            FROM information_schema.columns
            WHERE table_schema = 'public' AND table_name = :table_name;
            """
            for row in conn.execute(text(sql), {"table_name": table_name}).fetchall():
                cols[str(row[0])] = str(row[1])
    return cols


def ensure_columns(engine: Engine, table_name: str, required: List[Tuple[str, str, str, str]]) -> List[str]:
    """
    Idempotently adds missing columns to a table. Safe to run at every startup.
    A table that does not exist yet is skipped (create_all builds it complete).
    Returns the names of the columns that were added.
    """
    added: List[str] = []
    try:
        if not _table_exists(engine, table_name):
            return added

        existing = _get_existing_columns(engine, table_name)
        sqlite = _is_sqlite(engine)
        with engine.begin() as conn:
            for name, sqlite_type, pg_type, default in required:
                if name in existing:
                    continue
                if sqlite:
                    # SQLite supports ADD COLUMN without IF NOT EXISTS
                    ddl = f'ALTER TABLE "{table_name}" ADD COLUMN {name} {sqlite_type} {default}'
                else:
                    ddl = f'ALTER TABLE "{table_name}" ADD COLUMN IF NOT EXISTS {name} {pg_type} {default}'
                conn.execute(text(ddl.strip() + ";"))
                added.append(name)
    except SQLAlchemyError as e:
        # Don't crash the server over a schema patch
        logger.warning("Failed to ensure %s columns: %s", table_name, e)
        return added

    if added:
        logger.info("Added column(s) %s to %s", ", ".join(added), table_name)
    return added


def ensure_bracket_columns(engine: Engine) -> List[str]:
    from matchboard.models.bracket import EventBracket

    return ensure_columns(engine, EventBracket.__table__.name, REQUIRED_BRACKET_COLUMNS)


def ensure_league_columns(engine: Engine) -> List[str]:
    from matchboard.models.league import League

    return ensure_columns(engine, League.__table__.name, REQUIRED_LEAGUE_COLUMNS)


def ensure_match_columns(engine: Engine) -> List[str]:
    from matchboard.models.match import Match

    return ensure_columns(engine, Match.__table__.name, REQUIRED_MATCH_COLUMNS)
