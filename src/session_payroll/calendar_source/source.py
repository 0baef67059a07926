"""
Calendar event sources.

The payroll engine only needs two operations from a calendar: list the
calendars and fetch the events of one calendar for a period. FileEventSource
serves both from a JSON or YAML export:

    calendars:
      - id: "therapist@example.com"
        name: "Sessions"
        primary: true
        events:
          - id: "evt-1"
            summary: "Maria Papadopoulou"
            start: "2024-01-08T10:00:00"
            end: "2024-01-08T10:50:00"
            colorId: "8"          # optional
            status: "confirmed"   # "cancelled" marks a cancelled event
            attendees: ["maria@example.com"]

Colour markers map to flags the same way the hosted calendar does:
- pending colour (grey): client still owes -> is_pending_payment
- cancelled colour (red): cancelled, not billed -> is_cancelled
  (except supervision sessions, which are never cancelled by colour)
"""

import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import date, datetime, time
from pathlib import Path
from typing import Any

import yaml

from ..errors import EventSourceError
from ..matching.normalize import normalize
from ..schemas.calendar import CalendarColors, CalendarEvent, CalendarInfo
from ..schemas.payroll import DEFAULT_SUPERVISION_KEYWORDS

logger = logging.getLogger(__name__)

UNTITLED_EVENT = "(no title)"


class EventSource(ABC):
    """Read-only access to calendar events."""

    @abstractmethod
    def get_calendar_list(self) -> list[CalendarInfo]:
        """List the calendars available to the user."""
        pass

    @abstractmethod
    def get_events_for_period(
        self, calendar_id: str, start: datetime, end: datetime
    ) -> list[CalendarEvent]:
        """Events of one calendar starting within [start, end], by start time.

        Raises:
            EventSourceError: If the events cannot be read.
        """
        pass


def _parse_when(value: Any, end_of_day: bool) -> datetime:
    """Parse an ISO timestamp or an all-day date.

    Aware timestamps are converted to local wall-clock time.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return datetime.combine(value, time(23, 59, 59) if end_of_day else time(0, 0))
    elif isinstance(value, dict):
        # Google-style {"dateTime": ...} / {"date": ...}
        if value.get("dateTime"):
            return _parse_when(value["dateTime"], end_of_day)
        if value.get("date"):
            return _parse_when(value["date"], end_of_day)
        raise ValueError(f"Missing dateTime/date in {value!r}")
    else:
        text = str(value).strip()
        if len(text) == 10:
            return _parse_when(date.fromisoformat(text), end_of_day)
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


class FileEventSource(EventSource):
    """Event source backed by a calendar export file."""

    def __init__(
        self,
        path: Path | str,
        pending_color_id: str = CalendarColors.GREY_CANCELLED,
        cancelled_color_id: str = CalendarColors.RED_CANCELLED,
        supervision_keywords: Iterable[str] = DEFAULT_SUPERVISION_KEYWORDS,
    ):
        self.path = Path(path)
        self.pending_color_id = pending_color_id
        self.cancelled_color_id = cancelled_color_id
        self._supervision_titles = {normalize(k) for k in supervision_keywords}
        self._data: dict[str, Any] | None = None

    def _load(self) -> dict[str, Any]:
        if self._data is not None:
            return self._data

        if not self.path.exists():
            raise EventSourceError(f"Calendar export not found: {self.path}")

        try:
            with open(self.path, encoding="utf-8") as f:
                if self.path.suffix.lower() in (".yaml", ".yml"):
                    data = yaml.safe_load(f) or {}
                else:
                    data = json.load(f)
        except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
            raise EventSourceError(f"Failed to read calendar export {self.path}: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get("calendars", []), list):
            raise EventSourceError(f"Calendar export {self.path} has no 'calendars' list")

        self._data = data
        logger.debug("Loaded calendar export %s", self.path)
        return data

    def _calendars(self) -> list[dict[str, Any]]:
        return [c for c in self._load().get("calendars", []) if isinstance(c, dict)]

    def get_calendar_list(self) -> list[CalendarInfo]:
        return [
            CalendarInfo(
                id=str(c.get("id", "")),
                name=str(c.get("name") or c.get("summary") or ""),
                is_primary=bool(c.get("primary", False)),
            )
            for c in self._calendars()
        ]

    def get_events_for_period(
        self, calendar_id: str, start: datetime, end: datetime
    ) -> list[CalendarEvent]:
        calendar = next((c for c in self._calendars() if str(c.get("id")) == calendar_id), None)
        if calendar is None:
            raise EventSourceError(f"Calendar not found: {calendar_id}")

        events: list[CalendarEvent] = []
        for raw in calendar.get("events") or []:
            try:
                event = self._to_event(raw)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping malformed event %r: %s", raw, e)
                continue
            if start <= event.start_time <= end:
                events.append(event)

        events.sort(key=lambda e: e.start_time)
        logger.info("Read %d event(s) from calendar %s", len(events), calendar_id)
        return events

    def _is_supervision(self, title: str) -> bool:
        return normalize(title) in self._supervision_titles

    def _to_event(self, raw: dict[str, Any]) -> CalendarEvent:
        title = raw.get("summary") or raw.get("title") or UNTITLED_EVENT
        color_id = raw.get("colorId", raw.get("color_id"))
        color_id = str(color_id) if color_id is not None else None

        is_cancelled = raw.get("status") == "cancelled" or (
            color_id == self.cancelled_color_id and not self._is_supervision(title)
        )

        return CalendarEvent(
            id=str(raw.get("id", "")),
            title=title,
            start_time=_parse_when(raw["start"], end_of_day=False),
            end_time=_parse_when(raw["end"], end_of_day=True),
            color_id=color_id,
            is_cancelled=is_cancelled,
            is_pending_payment=color_id == self.pending_color_id,
            attendees=tuple(
                a["email"] if isinstance(a, dict) else str(a) for a in raw.get("attendees") or ()
            ),
        )
