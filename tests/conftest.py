"""Test fixtures and utilities."""

import json
from datetime import datetime, timedelta
from decimal import Decimal
from pathlib import Path

import pytest

from session_payroll.schemas.calendar import CalendarEvent
from session_payroll.schemas.roster import Client, Employee
from session_payroll.state_store import StateStore

EMPLOYEE_ID = "emp-1"
CALENDAR_ID = "therapist@example.com"

# Sample calendar export (January 2024)
SAMPLE_CALENDAR_EXPORT = {
    "calendars": [
        {
            "id": CALENDAR_ID,
            "name": "Sessions",
            "primary": True,
            "events": [
                {
                    "id": "evt-1",
                    "summary": "Maria Papadopoulou",
                    "start": "2024-01-08T10:00:00",
                    "end": "2024-01-08T10:50:00",
                },
                {
                    "id": "evt-2",
                    "summary": "Maria Papadopoulou Online",
                    "start": "2024-01-15T10:00:00",
                    "end": "2024-01-15T10:50:00",
                },
                {
                    "id": "evt-3",
                    "summary": "Papadopoulou-Maria",
                    "start": "2024-01-22T10:00:00",
                    "end": "2024-01-22T10:50:00",
                },
                {
                    "id": "evt-4",
                    "summary": "Nikos Georgiou",
                    "start": "2024-01-09T12:00:00",
                    "end": "2024-01-09T12:50:00",
                    "colorId": "11",
                },
                {
                    "id": "evt-5",
                    "summary": "Supervision",
                    "start": "2024-01-10T18:00:00",
                    "end": "2024-01-10T19:00:00",
                },
                {
                    "id": "evt-6",
                    "summary": "Dentist",
                    "start": "2024-01-11T09:00:00",
                    "end": "2024-01-11T09:30:00",
                },
                {
                    "id": "evt-7",
                    "summary": "Maria Papadopoulou",
                    "start": "2024-02-05T10:00:00",
                    "end": "2024-02-05T10:50:00",
                },
            ],
        },
        {"id": "holidays", "name": "Holidays", "events": []},
    ]
}


@pytest.fixture
def temp_db(tmp_path) -> Path:
    """Temporary database path for testing."""
    return tmp_path / "test_state.db"


@pytest.fixture
def store(temp_db) -> StateStore:
    """Fresh state store."""
    return StateStore(temp_db)


@pytest.fixture
def employee() -> Employee:
    """Sample employee with a calendar and supervision price."""
    return Employee(
        id=EMPLOYEE_ID,
        name="Eleni Markou",
        email="eleni@example.com",
        calendar_id=CALENDAR_ID,
        supervision_price=Decimal("40.00"),
    )


@pytest.fixture
def clients() -> list[Client]:
    """Sample roster in display order."""
    return [
        Client.create("Maria Papadopoulou", EMPLOYEE_ID, "50.00", "22.50", "27.50", id=1),
        Client.create("Nikos Georgiou", EMPLOYEE_ID, "40.00", "20.00", "20.00", id=2),
        Client.create("John - Γιάννης Κωστόπουλος", EMPLOYEE_ID, "60", "30", "30", id=3),
    ]


@pytest.fixture
def seeded_store(store, employee, clients) -> StateStore:
    """Store holding the sample employee and roster."""
    store.create_employee(employee)
    for client in clients:
        store.create_client(client)
    return store


@pytest.fixture
def make_event():
    """Factory for calendar events: make_event("Title", "2024-01-08T10:00")."""

    def _make(
        title: str,
        start: str = "2024-01-08T10:00",
        event_id: str | None = None,
        minutes: int = 50,
        color_id: str | None = None,
        cancelled: bool = False,
        pending: bool = False,
    ) -> CalendarEvent:
        start_time = datetime.fromisoformat(start)
        return CalendarEvent(
            id=event_id or f"{title}@{start}",
            title=title,
            start_time=start_time,
            end_time=start_time + timedelta(minutes=minutes),
            color_id=color_id,
            is_cancelled=cancelled,
            is_pending_payment=pending,
        )

    return _make


@pytest.fixture
def calendar_file(tmp_path) -> Path:
    """Sample calendar export written as JSON."""
    path = tmp_path / "calendar.json"
    path.write_text(json.dumps(SAMPLE_CALENDAR_EXPORT, ensure_ascii=False), encoding="utf-8")
    return path


@pytest.fixture
def january() -> tuple[datetime, datetime]:
    """Inclusive January 2024 period."""
    return datetime(2024, 1, 1), datetime(2024, 1, 31, 23, 59, 59)
