"""Database initialization and connection management."""
import sqlite3
from contextlib import contextmanager
from pathlib import Path

SCHEMA = """
CREATE TABLE IF NOT EXISTS questions (
    id INTEGER PRIMARY KEY,
    category TEXT NOT NULL,
    type TEXT NOT NULL CHECK (type IN ('select', 'input', 'sort')),
    question TEXT NOT NULL,
    answers TEXT NOT NULL,
    choices TEXT DEFAULT '[]',
    explanation TEXT DEFAULT '',
    source TEXT DEFAULT 'seeded'
);

CREATE INDEX IF NOT EXISTS idx_questions_category ON questions(category);

CREATE TABLE IF NOT EXISTS store_slots (
    slot TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT
);
"""


def get_connection(db_path: str) -> sqlite3.Connection:
    """Return a SQLite connection with row factory enabled.

    Transactions are managed explicitly (``isolation_level=None``) so that a
    whole session write-back can run under one ``BEGIN IMMEDIATE``.
    """
    conn = sqlite3.connect(db_path, timeout=10, isolation_level=None)
    conn.row_factory = sqlite3.Row
    return conn


@contextmanager
def transaction(db_path: str):
    """Yield a connection holding the write lock; commit on success, roll back on error."""
    conn = get_connection(db_path)
    try:
        conn.execute("BEGIN IMMEDIATE")
        try:
            yield conn
        except BaseException:
            conn.execute("ROLLBACK")
            raise
        conn.execute("COMMIT")
    finally:
        conn.close()


def init_db(db_path: str) -> None:
    """Initialize the database, creating all tables if they don't exist."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = get_connection(db_path)
    conn.executescript(SCHEMA)
    conn.close()
