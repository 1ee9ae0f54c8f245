"""Database schema setup.

Applies the bundled migrations. Statements are idempotent
(`IF NOT EXISTS`), so this is safe to call on every startup.
"""

from __future__ import annotations

import logging
import pathlib
from typing import List

from sqlalchemy import text
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = pathlib.Path(__file__).parent / "migrations"


def _load_statements() -> List[str]:
    statements: List[str] = []
    for sql_file in sorted(MIGRATIONS_DIR.glob("*.sql")):
        sql_content = sql_file.read_text(encoding="utf-8")
        # Split by semicolon and execute each statement
        statements.extend(s.strip() for s in sql_content.split(";") if s.strip())
    return statements


def ensure_schema(engine: Engine) -> None:
    """Ensure tables and indexes exist.

    Args:
        engine: SQLAlchemy engine (PostgreSQL or SQLite)
    """
    logger.info("[Schema] Ensuring schema exists backend=%s", engine.dialect.name)

    statements = _load_statements()
    if not statements:
        logger.warning("[Schema] No migration files found in %s - skipping", MIGRATIONS_DIR)
        return

    try:
        with engine.begin() as conn:
            for statement in statements:
                conn.execute(text(statement))

        logger.info("[Schema] Schema ready (%d statements)", len(statements))

    except Exception as e:
        logger.exception("[Schema] Schema creation failed: %s", e)
        raise
