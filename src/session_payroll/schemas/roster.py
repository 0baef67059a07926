"""
Employee and client roster models.

An employee owns a roster of clients (1:N). Client names are unique within
one employee's roster.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from .money import to_decimal


@dataclass(frozen=True)
class Employee:
    """An employee whose calendar drives one payroll run per period."""

    id: str
    name: str
    email: str = ""
    calendar_id: str = ""
    supervision_price: Decimal | None = None
    color: str = "#2196F3"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "calendar_id": self.calendar_id,
            "supervision_price": (
                str(self.supervision_price) if self.supervision_price is not None else None
            ),
            "color": self.color,
        }


@dataclass(frozen=True)
class Client:
    """A billed client with per-session pricing.

    price is the total session price; employee_price and company_price are
    the two shares of it.
    """

    name: str
    employee_id: str
    price: Decimal = Decimal("0")
    employee_price: Decimal = Decimal("0")
    company_price: Decimal = Decimal("0")
    has_pending_balance: bool = False
    id: int = 0

    @classmethod
    def create(
        cls,
        name: str,
        employee_id: str,
        price: Decimal | float | str | None = None,
        employee_price: Decimal | float | str | None = None,
        company_price: Decimal | float | str | None = None,
        has_pending_balance: bool = False,
        id: int = 0,
    ) -> "Client":
        """Build a client from loosely typed price values (None -> 0)."""
        return cls(
            id=id,
            name=name,
            employee_id=employee_id,
            price=to_decimal(price),
            employee_price=to_decimal(employee_price),
            company_price=to_decimal(company_price),
            has_pending_balance=has_pending_balance,
        )

    @property
    def has_price(self) -> bool:
        """True if a session price is configured."""
        return self.price != 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "employee_id": self.employee_id,
            "price": str(self.price),
            "employee_price": str(self.employee_price),
            "company_price": str(self.company_price),
            "has_pending_balance": self.has_pending_balance,
        }
