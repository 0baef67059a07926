"""
SQLite-based state store implementation.

Tables:
- employees: Payroll subjects
- clients: Per-employee client roster with session prices
- match_confirmations: User decisions on uncertain titles (migration 001)
- pending_sessions: Pending-payment sessions across periods (migration 002)
"""

import logging
import sqlite3
import uuid
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import date, datetime, timezone
from decimal import Decimal
from pathlib import Path

from ..errors import (
    ConfirmationSaveError,
    DuplicateClientError,
    EmployeeNotFoundError,
    RosterError,
)
from ..matching.normalize import normalize
from ..schemas.confirmation import ConfirmationRecord, Resolution, ResolutionKind
from ..schemas.payroll import PendingSession, Settlement
from ..schemas.roster import Client, Employee

logger = logging.getLogger(__name__)

# Milliseconds a writer waits on a locked database
BUSY_TIMEOUT_MS = 5000


def _now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _employee_from_row(row: sqlite3.Row) -> Employee:
    return Employee(
        id=row["id"],
        name=row["name"],
        email=row["email"] or "",
        calendar_id=row["calendar_id"] or "",
        supervision_price=(
            Decimal(row["supervision_price"]) if row["supervision_price"] is not None else None
        ),
        color=row["color"],
    )


def _client_from_row(row: sqlite3.Row) -> Client:
    return Client(
        id=row["id"],
        name=row["name"],
        employee_id=row["employee_id"],
        price=Decimal(row["price"]),
        employee_price=Decimal(row["employee_price"]),
        company_price=Decimal(row["company_price"]),
        has_pending_balance=bool(row["has_pending_balance"]),
    )


def _resolution_from_row(row: sqlite3.Row) -> Resolution:
    kind = ResolutionKind(row["resolution"])
    if kind == ResolutionKind.CONFIRMED:
        return Resolution.confirmed(row["client_name"])
    return Resolution.rejected()


def _confirmation_from_row(row: sqlite3.Row) -> ConfirmationRecord:
    return ConfirmationRecord(
        employee_id=row["employee_id"],
        event_title=row["event_title"],
        normalized_title=row["normalized_title"],
        resolution=_resolution_from_row(row),
        created_at=_parse_timestamp(row["created_at"]),
        updated_at=_parse_timestamp(row["updated_at"]),
    )


def _pending_from_row(row: sqlite3.Row) -> PendingSession:
    return PendingSession(
        client_name=row["client_name"],
        event_id=row["event_id"],
        session_date=date.fromisoformat(row["session_date"]),
        event_title=row["event_title"] or "",
    )


class StateStore:
    """
    SQLite-based state store for the payroll engine.

    Provides persistent tracking of:
    - Employees and their client rosters
    - Confirmed / rejected event titles
    - Pending-payment sessions carried between periods

    Opens one connection per operation. WAL mode lets readers proceed while a
    writer holds the lock; writers wait up to BUSY_TIMEOUT_MS.
    """

    def __init__(self, db_path: Path | str, run_migrations: bool = True):
        """
        Initialize state store.

        Args:
            db_path: Path to SQLite database file
            run_migrations: Whether to run pending migrations (default True)
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()
        if run_migrations:
            self._run_migrations()

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection with row factory."""
        conn = sqlite3.connect(str(self.db_path), timeout=BUSY_TIMEOUT_MS / 1000)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        conn.execute(f"PRAGMA busy_timeout = {BUSY_TIMEOUT_MS}")
        return conn

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database transactions."""
        conn = self._get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_db(self) -> None:
        """Initialize database schema."""
        with self._transaction() as conn:
            conn.execute("PRAGMA journal_mode = WAL")

            # Employees table
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS employees (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    email TEXT,
                    calendar_id TEXT,
                    supervision_price TEXT,  -- Decimal as string
                    color TEXT NOT NULL DEFAULT '#2196F3',
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """
            )

            # Clients table (roster order = insertion order)
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS clients (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    employee_id TEXT NOT NULL,
                    name TEXT NOT NULL,
                    price TEXT NOT NULL DEFAULT '0',
                    employee_price TEXT NOT NULL DEFAULT '0',
                    company_price TEXT NOT NULL DEFAULT '0',
                    has_pending_balance INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    UNIQUE (employee_id, name),
                    FOREIGN KEY (employee_id) REFERENCES employees(id) ON DELETE CASCADE
                )
            """
            )

            conn.execute("CREATE INDEX IF NOT EXISTS idx_clients_employee ON clients(employee_id)")

    def _run_migrations(self) -> None:
        """Run pending database migrations."""
        from .migrations import MigrationRunner

        conn = self._get_connection()
        try:
            runner = MigrationRunner(conn)
            runner.run_pending()
        finally:
            conn.close()

    # Employee methods

    def create_employee(self, employee: Employee) -> Employee:
        """Insert an employee; a blank id is replaced by a generated one."""
        employee_id = employee.id or uuid.uuid4().hex[:12]
        now = _now()
        try:
            with self._transaction() as conn:
                conn.execute(
                    """
                    INSERT INTO employees
                    (id, name, email, calendar_id, supervision_price, color, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                    (
                        employee_id,
                        employee.name,
                        employee.email,
                        employee.calendar_id,
                        str(employee.supervision_price)
                        if employee.supervision_price is not None
                        else None,
                        employee.color,
                        now,
                        now,
                    ),
                )
        except sqlite3.IntegrityError as e:
            raise RosterError(f"Employee {employee_id} already exists") from e
        logger.info("Created employee %s (%s)", employee.name, employee_id)
        return self.get_employee(employee_id)

    def get_employee(self, employee_id: str) -> Employee | None:
        """Get an employee by id."""
        with self._transaction() as conn:
            row = conn.execute("SELECT * FROM employees WHERE id = ?", (employee_id,)).fetchone()
        return _employee_from_row(row) if row else None

    def list_employees(self) -> list[Employee]:
        """All employees, by name."""
        with self._transaction() as conn:
            rows = conn.execute("SELECT * FROM employees ORDER BY name, id").fetchall()
        return [_employee_from_row(row) for row in rows]

    def update_employee(self, employee: Employee) -> Employee:
        """Update an existing employee.

        Raises:
            EmployeeNotFoundError: If no employee has this id.
        """
        with self._transaction() as conn:
            cursor = conn.execute(
                """
                UPDATE employees
                SET name = ?, email = ?, calendar_id = ?, supervision_price = ?,
                    color = ?, updated_at = ?
                WHERE id = ?
            """,
                (
                    employee.name,
                    employee.email,
                    employee.calendar_id,
                    str(employee.supervision_price)
                    if employee.supervision_price is not None
                    else None,
                    employee.color,
                    _now(),
                    employee.id,
                ),
            )
            if cursor.rowcount == 0:
                raise EmployeeNotFoundError(employee.id)
        return employee

    def delete_employee(self, employee_id: str) -> bool:
        """Delete an employee with their roster, confirmations and pending sessions."""
        with self._transaction() as conn:
            conn.execute("DELETE FROM match_confirmations WHERE employee_id = ?", (employee_id,))
            conn.execute("DELETE FROM pending_sessions WHERE employee_id = ?", (employee_id,))
            cursor = conn.execute("DELETE FROM employees WHERE id = ?", (employee_id,))
            deleted = cursor.rowcount > 0
        if deleted:
            logger.info("Deleted employee %s", employee_id)
        return deleted

    # Client methods

    def create_client(self, client: Client) -> Client:
        """Insert a client into an employee's roster.

        Raises:
            DuplicateClientError: If the employee already has a client with this name.
            EmployeeNotFoundError: If the employee does not exist.
        """
        now = _now()
        try:
            with self._transaction() as conn:
                cursor = conn.execute(
                    """
                    INSERT INTO clients
                    (employee_id, name, price, employee_price, company_price,
                     has_pending_balance, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                    (
                        client.employee_id,
                        client.name,
                        str(client.price),
                        str(client.employee_price),
                        str(client.company_price),
                        1 if client.has_pending_balance else 0,
                        now,
                        now,
                    ),
                )
                client_id = cursor.lastrowid
        except sqlite3.IntegrityError as e:
            raise self._roster_integrity_error(e, client) from e
        return self.get_client(client_id)

    def get_client(self, client_id: int) -> Client | None:
        """Get a client by id."""
        with self._transaction() as conn:
            row = conn.execute("SELECT * FROM clients WHERE id = ?", (client_id,)).fetchone()
        return _client_from_row(row) if row else None

    def get_clients_by_employee(self, employee_id: str) -> list[Client]:
        """An employee's roster in insertion order."""
        with self._transaction() as conn:
            rows = conn.execute(
                "SELECT * FROM clients WHERE employee_id = ? ORDER BY id", (employee_id,)
            ).fetchall()
        return [_client_from_row(row) for row in rows]

    def get_client_by_employee_and_name(self, employee_id: str, name: str) -> Client | None:
        """Exact-name lookup within one roster."""
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT * FROM clients WHERE employee_id = ? AND name = ?", (employee_id, name)
            ).fetchone()
        return _client_from_row(row) if row else None

    def update_client(self, client: Client) -> Client:
        """Update name and prices of an existing client.

        A rename carries the client's pending sessions and confirmed titles
        over to the new name in the same transaction.

        Raises:
            DuplicateClientError: If the new name collides within the roster.
            RosterError: If the client does not exist.
        """
        try:
            with self._transaction() as conn:
                row = conn.execute(
                    "SELECT employee_id, name FROM clients WHERE id = ?", (client.id,)
                ).fetchone()
                if row is None:
                    raise RosterError(f"Client {client.id} not found")
                conn.execute(
                    """
                    UPDATE clients
                    SET name = ?, price = ?, employee_price = ?, company_price = ?,
                        has_pending_balance = ?, updated_at = ?
                    WHERE id = ?
                """,
                    (
                        client.name,
                        str(client.price),
                        str(client.employee_price),
                        str(client.company_price),
                        1 if client.has_pending_balance else 0,
                        _now(),
                        client.id,
                    ),
                )
                if row["name"] != client.name:
                    self._rename_client_references(
                        conn, row["employee_id"], row["name"], client.name
                    )
        except sqlite3.IntegrityError as e:
            raise self._roster_integrity_error(e, client) from e
        return client

    def delete_client(self, client_id: int) -> bool:
        """Delete a client. Returns False if it did not exist."""
        with self._transaction() as conn:
            cursor = conn.execute("DELETE FROM clients WHERE id = ?", (client_id,))
            return cursor.rowcount > 0

    def set_client_pending_balance(self, client_id: int, has_pending_balance: bool) -> None:
        """Set the has-pending-balance flag of a client."""
        with self._transaction() as conn:
            conn.execute(
                "UPDATE clients SET has_pending_balance = ?, updated_at = ? WHERE id = ?",
                (1 if has_pending_balance else 0, _now(), client_id),
            )

    @staticmethod
    def _rename_client_references(
        conn: sqlite3.Connection, employee_id: str, old_name: str, new_name: str
    ) -> None:
        pending = conn.execute(
            """
            UPDATE pending_sessions SET client_name = ?
            WHERE employee_id = ? AND client_name = ?
        """,
            (new_name, employee_id, old_name),
        )
        confirmed = conn.execute(
            """
            UPDATE match_confirmations SET client_name = ?, updated_at = ?
            WHERE employee_id = ? AND resolution = ? AND client_name = ?
        """,
            (new_name, _now(), employee_id, ResolutionKind.CONFIRMED.value, old_name),
        )
        logger.info(
            "Renamed client '%s' to '%s' (%d pending, %d confirmed)",
            old_name,
            new_name,
            pending.rowcount,
            confirmed.rowcount,
        )

    @staticmethod
    def _roster_integrity_error(error: sqlite3.IntegrityError, client: Client) -> RosterError:
        message = str(error).upper()
        if "UNIQUE" in message:
            return DuplicateClientError(client.employee_id, client.name)
        if "FOREIGN KEY" in message:
            return EmployeeNotFoundError(client.employee_id)
        return RosterError(str(error))

    # Confirmation methods

    def save_confirmation(
        self, event_title: str, resolution: Resolution, employee_id: str
    ) -> ConfirmationRecord:
        """Insert or overwrite the decision for a title (last writer wins).

        Raises:
            ConfirmationSaveError: If the title is blank or the write fails.
        """
        normalized = normalize(event_title or "")
        if not normalized:
            raise ConfirmationSaveError("Cannot save a confirmation for a blank title")

        now = _now()
        try:
            with self._transaction() as conn:
                conn.execute(
                    """
                    INSERT INTO match_confirmations
                    (employee_id, normalized_title, event_title, resolution, client_name,
                     created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT (employee_id, normalized_title) DO UPDATE SET
                        event_title = excluded.event_title,
                        resolution = excluded.resolution,
                        client_name = excluded.client_name,
                        updated_at = excluded.updated_at
                """,
                    (
                        employee_id,
                        normalized,
                        event_title,
                        resolution.kind.value,
                        resolution.client_name,
                        now,
                        now,
                    ),
                )
        except sqlite3.Error as e:
            logger.error("Failed to save confirmation for '%s': %s", event_title, e)
            raise ConfirmationSaveError(f"Failed to save confirmation: {e}") from e

        record = self.get_confirmation(event_title, employee_id)
        if record is None:
            raise ConfirmationSaveError(f"Confirmation for '{event_title}' was not persisted")
        return record

    def get_all_confirmed_matches_map(self, employee_id: str) -> dict[str, Resolution]:
        """All resolutions of an employee, keyed by normalized title (one query)."""
        with self._transaction() as conn:
            rows = conn.execute(
                "SELECT * FROM match_confirmations WHERE employee_id = ?", (employee_id,)
            ).fetchall()
        return {row["normalized_title"]: _resolution_from_row(row) for row in rows}

    def get_confirmation(self, event_title: str, employee_id: str) -> ConfirmationRecord | None:
        """Get the stored decision for a title, if any."""
        with self._transaction() as conn:
            row = conn.execute(
                """
                SELECT * FROM match_confirmations
                WHERE employee_id = ? AND normalized_title = ?
            """,
                (employee_id, normalize(event_title)),
            ).fetchone()
        return _confirmation_from_row(row) if row else None

    def delete_confirmation(self, event_title: str, employee_id: str) -> bool:
        """Forget the decision for a title so it is matched afresh."""
        with self._transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM match_confirmations WHERE employee_id = ? AND normalized_title = ?",
                (employee_id, normalize(event_title)),
            )
            return cursor.rowcount > 0

    def list_confirmations(self, employee_id: str) -> list[ConfirmationRecord]:
        """All stored decisions of an employee, most recent first."""
        with self._transaction() as conn:
            rows = conn.execute(
                """
                SELECT * FROM match_confirmations
                WHERE employee_id = ?
                ORDER BY updated_at DESC, id DESC
            """,
                (employee_id,),
            ).fetchall()
        return [_confirmation_from_row(row) for row in rows]

    # Pending session methods

    def get_unresolved_pending(
        self, employee_id: str, before: date
    ) -> dict[str, list[PendingSession]]:
        """Sessions dated before `before` that were still owed on that day.

        Returns:
            Pending sessions by client name, oldest first.
        """
        cutoff = before.isoformat()
        with self._transaction() as conn:
            rows = conn.execute(
                """
                SELECT * FROM pending_sessions
                WHERE employee_id = ? AND session_date < ?
                  AND (settled_on IS NULL OR settled_on >= ?)
                ORDER BY session_date, id
            """,
                (employee_id, cutoff, cutoff),
            ).fetchall()

        result: dict[str, list[PendingSession]] = {}
        for row in rows:
            result.setdefault(row["client_name"], []).append(_pending_from_row(row))
        return result

    def record_pending_activity(
        self,
        employee_id: str,
        period_start: date,
        period_end: date,
        raised: Iterable[PendingSession],
        settlements: Iterable[Settlement],
    ) -> None:
        """Persist the pending sessions raised and settled within one period.

        Recording the same period again replaces what the previous run recorded
        for it, so recalculating a period is idempotent.
        """
        start, end = period_start.isoformat(), period_end.isoformat()
        raised = list(raised)
        settlements = list(settlements)
        raised_keys = {(s.client_name, s.event_id) for s in raised}
        now = _now()

        with self._transaction() as conn:
            existing = conn.execute(
                """
                SELECT id, client_name, event_id FROM pending_sessions
                WHERE employee_id = ? AND session_date BETWEEN ? AND ?
            """,
                (employee_id, start, end),
            ).fetchall()
            stale = [
                (row["id"],)
                for row in existing
                if (row["client_name"], row["event_id"]) not in raised_keys
            ]
            conn.executemany("DELETE FROM pending_sessions WHERE id = ?", stale)

            conn.execute(
                """
                UPDATE pending_sessions
                SET settled_by_event_id = NULL, settled_on = NULL
                WHERE employee_id = ? AND settled_on BETWEEN ? AND ?
            """,
                (employee_id, start, end),
            )

            conn.executemany(
                """
                INSERT INTO pending_sessions
                (employee_id, client_name, event_id, session_date, event_title, recorded_at)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT (employee_id, client_name, event_id) DO UPDATE SET
                    session_date = excluded.session_date,
                    event_title = excluded.event_title
            """,
                [
                    (
                        employee_id,
                        s.client_name,
                        s.event_id,
                        s.session_date.isoformat(),
                        s.event_title,
                        now,
                    )
                    for s in raised
                ],
            )

            conn.executemany(
                """
                UPDATE pending_sessions
                SET settled_by_event_id = ?, settled_on = ?
                WHERE employee_id = ? AND client_name = ? AND event_id = ?
            """,
                [
                    (
                        s.settled_by_event_id,
                        s.settled_on.isoformat(),
                        employee_id,
                        s.client_name,
                        s.pending_event_id,
                    )
                    for s in settlements
                ],
            )

        logger.debug(
            "Recorded %d pending and %d settled session(s) for %s",
            len(raised),
            len(settlements),
            employee_id,
        )
