"""
User decisions on uncertain matches.

A Resolution is either "this title belongs to client X" or "this title is not
a client session". The kind is an explicit tag, so no client name can ever be
mistaken for a rejection.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any


class ResolutionKind(str, Enum):
    """Outcome of a human decision on an event title."""

    CONFIRMED = "confirmed"
    REJECTED = "rejected"


@dataclass(frozen=True)
class Resolution:
    """Resolution of one event title for one employee."""

    kind: ResolutionKind
    client_name: str | None = None

    def __post_init__(self) -> None:
        if self.kind == ResolutionKind.CONFIRMED and not self.client_name:
            raise ValueError("A confirmed resolution needs a client name")
        if self.kind == ResolutionKind.REJECTED and self.client_name is not None:
            raise ValueError("A rejected resolution cannot carry a client name")

    @classmethod
    def confirmed(cls, client_name: str) -> "Resolution":
        return cls(kind=ResolutionKind.CONFIRMED, client_name=client_name)

    @classmethod
    def rejected(cls) -> "Resolution":
        return cls(kind=ResolutionKind.REJECTED)

    @property
    def is_confirmed(self) -> bool:
        return self.kind == ResolutionKind.CONFIRMED

    @property
    def is_rejected(self) -> bool:
        return self.kind == ResolutionKind.REJECTED

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {"kind": self.kind.value, "client_name": self.client_name}


@dataclass
class ConfirmationRecord:
    """A stored confirmation row."""

    employee_id: str
    event_title: str  # As first seen
    normalized_title: str  # Lookup key
    resolution: Resolution
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "employee_id": self.employee_id,
            "event_title": self.event_title,
            "normalized_title": self.normalized_title,
            "resolution": self.resolution.to_dict(),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
