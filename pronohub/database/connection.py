"""Database connection management.

Simple SQLite connection handling with schema initialization.
"""

import logging
import sqlite3
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

logger = logging.getLogger(__name__)

# Schema file location
SCHEMA_PATH = Path(__file__).parent / "schema.sql"


def _default_path() -> Path:
    from pronohub.config import Config

    return Path(Config.DATABASE_PATH)


def get_connection(db_path: Path | str | None = None) -> sqlite3.Connection:
    """Get a database connection.

    Args:
        db_path: Path to database file. Uses Config.DATABASE_PATH if not specified.

    Returns:
        SQLite connection with row factory set to sqlite3.Row
    """
    path = Path(db_path) if db_path else _default_path()

    # check_same_thread=False: scheduler thread and API workers share the file
    conn = sqlite3.connect(path, timeout=30.0, check_same_thread=False)
    conn.row_factory = sqlite3.Row

    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA busy_timeout=30000")
    conn.execute("PRAGMA foreign_keys = ON")

    return conn


@contextmanager
def get_db(db_path: Path | str | None = None) -> Generator[sqlite3.Connection, None, None]:
    """Context manager for database connections.

    Commits on success, rolls back on error, always closes.

    Usage:
        with get_db() as conn:
            rows = conn.execute("SELECT * FROM competitions").fetchall()
    """
    conn = get_connection(db_path)
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def make_db_factory(db_path: Path | str | None = None):
    """Bind get_db to a specific file.

    Consumers take a zero-argument factory so tests can point them at a
    temporary database.
    """

    def factory():
        return get_db(db_path)

    return factory


def init_db(db_path: Path | str | None = None) -> None:
    """Initialize database with schema.

    Creates tables if they don't exist. Safe to call multiple times.
    """
    path = Path(db_path) if db_path else _default_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    with get_db(path) as conn:
        conn.executescript(SCHEMA_PATH.read_text())

    logger.info("[DB] Schema initialized at %s", path)


def reset_db(db_path: Path | str | None = None) -> None:
    """Drop every table and re-create the schema.

    WARNING: destroys all data. Used by tests and local resets.
    """
    path = Path(db_path) if db_path else _default_path()

    with get_db(path) as conn:
        tables = conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%'"
        ).fetchall()
        conn.execute("PRAGMA foreign_keys = OFF")
        for row in tables:
            conn.execute(f"DROP TABLE IF EXISTS {row['name']}")
        conn.execute("PRAGMA foreign_keys = ON")

    logger.warning("[DB] All tables dropped at %s", path)
    init_db(path)
