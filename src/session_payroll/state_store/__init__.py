"""
State Store (SQLite-based).

Lightweight persistent DB for tracking:
- Employees and client rosters
- Confirmed and rejected event titles
- Pending-payment sessions across periods

Enforces uniqueness on (employee, client name) and (employee, normalized title).
"""

from .sqlite_store import StateStore

__all__ = ["StateStore"]
