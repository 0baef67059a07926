"""
Payroll report models.

A PayrollReport is the only output of a calculation run. It is built once by
the aggregator and not modified afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any

from .calendar import CalendarEvent
from .money import ZERO
from .roster import Employee

if TYPE_CHECKING:
    from session_payroll.matching.engine import UncertainMatch

SUPERVISION_ENTRY_NAME = "Εποπτεία (Supervision)"
DEFAULT_SUPERVISION_KEYWORDS = ("Εποπτεία", "Supervision")


@dataclass(frozen=True)
class SupervisionConfig:
    """Pricing and keywords for pooled supervision sessions.

    Keyword matching is case- and accent-insensitive, so "εποπτεια" and
    "SUPERVISION" are covered by the defaults.
    """

    enabled: bool = True
    price: Decimal = Decimal("0")
    employee_price: Decimal = Decimal("0")
    company_price: Decimal = Decimal("0")
    keywords: tuple[str, ...] = DEFAULT_SUPERVISION_KEYWORDS
    entry_name: str = SUPERVISION_ENTRY_NAME


class EventStatus(str, Enum):
    """Per-event classification from the pending-payment resolver."""

    COMPLETED = "completed"
    PENDING_PAYMENT = "pending_payment"
    CANCELLED = "cancelled"
    PAID_FOR_PENDING = "paid_for_pending"


@dataclass(frozen=True)
class PendingSession:
    """A session the client still owes for."""

    client_name: str
    event_id: str
    session_date: date
    event_title: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "client_name": self.client_name,
            "event_id": self.event_id,
            "session_date": self.session_date.isoformat(),
            "event_title": self.event_title,
        }


@dataclass(frozen=True)
class Settlement:
    """A payment in one period that covers a session owed from before."""

    client_name: str
    pending_event_id: str
    settled_by_event_id: str
    settled_on: date


@dataclass
class EventDetail:
    """Display-ready view of one classified event."""

    event_id: str
    date: date
    time: str  # HH:MM
    duration_minutes: int
    status: EventStatus
    color_id: str | None
    amount: Decimal
    pending_date: date | None = None  # Session settled by this payment
    settled_event_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "event_id": self.event_id,
            "date": self.date.isoformat(),
            "time": self.time,
            "duration": f"{self.duration_minutes}min",
            "status": self.status.value,
            "color_id": self.color_id,
            "amount": str(self.amount),
            "is_pending": self.status == EventStatus.PENDING_PAYMENT,
            "paid_for_pending": self.status == EventStatus.PAID_FOR_PENDING,
            "pending_date": self.pending_date.isoformat() if self.pending_date else None,
            "settled_event_id": self.settled_event_id,
        }


@dataclass
class ClientBreakdown:
    """Status counts and event details for one client in one period."""

    client_name: str
    completed_sessions: int = 0
    pending_sessions: int = 0
    paid_pending_count: int = 0
    cancelled_sessions: int = 0
    unresolved_pending_count: int = 0  # Earlier-period sessions still owed
    event_details: list[EventDetail] = field(default_factory=list)
    carry_over: list[PendingSession] = field(default_factory=list)
    raised_pending: list[PendingSession] = field(default_factory=list)
    settlements: list[Settlement] = field(default_factory=list)

    @property
    def total_events(self) -> int:
        return (
            self.completed_sessions
            + self.pending_sessions
            + self.paid_pending_count
            + self.cancelled_sessions
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "client_name": self.client_name,
            "completed_sessions": self.completed_sessions,
            "pending_sessions": self.pending_sessions,
            "paid_pending_count": self.paid_pending_count,
            "cancelled_sessions": self.cancelled_sessions,
            "unresolved_pending_count": self.unresolved_pending_count,
            "event_details": [d.to_dict() for d in self.event_details],
            "carry_over": [p.to_dict() for p in self.carry_over],
        }


@dataclass
class PayrollEntry:
    """One client's (or the supervision pool's) billed sessions."""

    client_name: str
    client_price: Decimal
    employee_price: Decimal
    company_price: Decimal
    sessions_count: int
    total_revenue: Decimal
    employee_earnings: Decimal
    company_earnings: Decimal
    events: list[CalendarEvent] = field(default_factory=list)
    is_supervision: bool = False
    breakdown: ClientBreakdown | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "client_name": self.client_name,
            "client_price": str(self.client_price),
            "employee_price": str(self.employee_price),
            "company_price": str(self.company_price),
            "sessions_count": self.sessions_count,
            "total_revenue": str(self.total_revenue),
            "employee_earnings": str(self.employee_earnings),
            "company_earnings": str(self.company_earnings),
            "is_supervision": self.is_supervision,
            "events": [e.to_dict() for e in self.events],
            "breakdown": self.breakdown.to_dict() if self.breakdown else None,
        }


@dataclass
class PayrollReport:
    """Complete payroll for one employee over one period."""

    employee: Employee
    period_start: datetime
    period_end: datetime
    entries: list[PayrollEntry] = field(default_factory=list)
    total_sessions: int = 0
    total_revenue: Decimal = ZERO
    total_employee_earnings: Decimal = ZERO
    total_company_earnings: Decimal = ZERO
    unmatched_events: list[CalendarEvent] = field(default_factory=list)
    uncertain_matches: list[UncertainMatch] = field(default_factory=list)
    rejected_events: list[CalendarEvent] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    pending_carry_over: dict[str, list[PendingSession]] = field(default_factory=dict)
    generated_at: datetime = field(default_factory=datetime.now)

    @property
    def matched_events(self) -> int:
        return sum(len(entry.events) for entry in self.entries)

    @property
    def event_tracking(self) -> dict[str, int]:
        """Counts of where each in-period event ended up."""
        unmatched = len(self.unmatched_events)
        uncertain = len(self.uncertain_matches)
        return {
            "total_events": self.matched_events + unmatched + uncertain,
            "matched_events": self.matched_events,
            "unmatched_events": unmatched,
            "uncertain_matches": uncertain,
            "rejected_events": len(self.rejected_events),
        }

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "employee": self.employee.to_dict(),
            "period_start": self.period_start.isoformat(),
            "period_end": self.period_end.isoformat(),
            "summary": {
                "total_sessions": self.total_sessions,
                "total_revenue": str(self.total_revenue),
                "employee_earnings": str(self.total_employee_earnings),
                "company_earnings": str(self.total_company_earnings),
            },
            "entries": [e.to_dict() for e in self.entries],
            "unmatched_events": [e.to_dict() for e in self.unmatched_events],
            "uncertain_matches": [m.to_dict() for m in self.uncertain_matches],
            "rejected_events": [e.to_dict() for e in self.rejected_events],
            "warnings": list(self.warnings),
            "pending_carry_over": {
                name: [p.to_dict() for p in sessions]
                for name, sessions in self.pending_carry_over.items()
            },
            "event_tracking": self.event_tracking,
            "generated_at": self.generated_at.isoformat(),
        }
