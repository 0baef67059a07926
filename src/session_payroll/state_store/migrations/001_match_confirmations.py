"""
Migration 001: Add match_confirmations table.

Stores the user's decision for an uncertain event title, one row per
(employee, normalized title). A rejection has no client name.
"""

import sqlite3

VERSION = 1
NAME = "match_confirmations"


def upgrade(conn: sqlite3.Connection) -> None:
    """Create match_confirmations table."""
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS match_confirmations (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            employee_id TEXT NOT NULL,
            normalized_title TEXT NOT NULL,
            event_title TEXT NOT NULL,
            resolution TEXT NOT NULL,  -- confirmed, rejected
            client_name TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            UNIQUE (employee_id, normalized_title),
            CHECK (
                (resolution = 'confirmed' AND client_name IS NOT NULL)
                OR (resolution = 'rejected' AND client_name IS NULL)
            )
        )
    """
    )
    conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_match_confirmations_employee "
        "ON match_confirmations(employee_id)"
    )


def downgrade(conn: sqlite3.Connection) -> None:
    """Remove match_confirmations table."""
    conn.execute("DROP TABLE IF EXISTS match_confirmations")
