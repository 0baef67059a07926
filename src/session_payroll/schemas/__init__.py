"""
Data models shared across the matcher, the aggregator and the state store.
"""

from .calendar import CalendarColors, CalendarEvent, CalendarInfo
from .confirmation import ConfirmationRecord, Resolution, ResolutionKind
from .money import CURRENCY_PRECISION, ZERO, round_to_cents, to_decimal
from .payroll import (
    ClientBreakdown,
    EventDetail,
    EventStatus,
    PayrollEntry,
    PayrollReport,
    PendingSession,
    Settlement,
    SupervisionConfig,
)
from .roster import Client, Employee

__all__ = [
    "CURRENCY_PRECISION",
    "ZERO",
    "CalendarColors",
    "CalendarEvent",
    "CalendarInfo",
    "Client",
    "ClientBreakdown",
    "ConfirmationRecord",
    "Employee",
    "EventDetail",
    "EventStatus",
    "PayrollEntry",
    "PayrollReport",
    "PendingSession",
    "Resolution",
    "ResolutionKind",
    "Settlement",
    "SupervisionConfig",
    "round_to_cents",
    "to_decimal",
]
