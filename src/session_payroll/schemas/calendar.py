"""
Calendar event models.

Events are read once from the calendar collaborator and never mutated.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any


class CalendarColors:
    """Colour ids used to flag cancellation classes."""

    GREY_CANCELLED = "8"  # Cancelled, client still owes the session
    RED_CANCELLED = "11"  # Cancelled, not billed


@dataclass(frozen=True)
class CalendarEvent:
    """A single calendar session."""

    id: str
    title: str
    start_time: datetime
    end_time: datetime
    color_id: str | None = None
    is_cancelled: bool = False
    is_pending_payment: bool = False
    attendees: tuple[str, ...] = ()

    @property
    def is_valid_session(self) -> bool:
        """True if the session is billable.

        A cancellation still counts when it is flagged pending-payment: the
        client owes for that session.
        """
        return not self.is_cancelled or self.is_pending_payment

    @property
    def duration_minutes(self) -> int:
        """Length of the session in whole minutes."""
        return int((self.end_time - self.start_time).total_seconds() // 60)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "title": self.title,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "color_id": self.color_id,
            "is_cancelled": self.is_cancelled,
            "is_pending_payment": self.is_pending_payment,
        }


@dataclass
class CalendarInfo:
    """Basic calendar info."""

    id: str
    name: str
    is_primary: bool = False
