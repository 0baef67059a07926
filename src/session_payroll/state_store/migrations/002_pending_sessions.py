"""
Migration 002: Add pending_sessions table.

Tracks sessions marked pending-payment across periods. A session stays
outstanding until a later session of the same client settles it.
"""

import sqlite3

VERSION = 2
NAME = "pending_sessions"


def upgrade(conn: sqlite3.Connection) -> None:
    """Create pending_sessions table."""
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS pending_sessions (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            employee_id TEXT NOT NULL,
            client_name TEXT NOT NULL,
            event_id TEXT NOT NULL,
            session_date TEXT NOT NULL,  -- YYYY-MM-DD
            event_title TEXT,
            settled_by_event_id TEXT,
            settled_on TEXT,  -- YYYY-MM-DD
            recorded_at TEXT NOT NULL,
            UNIQUE (employee_id, client_name, event_id)
        )
    """
    )
    conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_pending_sessions_employee_date "
        "ON pending_sessions(employee_id, session_date)"
    )


def downgrade(conn: sqlite3.Connection) -> None:
    """Remove pending_sessions table."""
    conn.execute("DROP TABLE IF EXISTS pending_sessions")
