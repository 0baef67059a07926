"""
Roster validation rules.

Client rules:
1. Name must not be blank
2. All prices must be finite and >= 0
3. No price may exceed the per-session maximum
4. Employee and company shares must not exceed the total price
5. employee_price + company_price == price (within tolerance)
6. Name must be unique per employee (case-insensitive)

Employee rules:
1. Name must not be blank
2. Email, when given, must be a valid address
3. Supervision price must be finite, >= 0 and below the maximum
4. Email must be unique (case-insensitive)
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from ..errors import ValidationFailedError
from ..schemas.roster import Client, Employee

MAX_SESSION_PRICE = Decimal("1000")
MAX_SUPERVISION_PRICE = Decimal("500")
PRICE_TOLERANCE = Decimal("0.01")

EMAIL_RE = re.compile(r"^[A-Za-z0-9+_.-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")


class ErrorCode(str, Enum):
    """Machine-readable validation error codes."""

    REQUIRED_FIELD = "REQUIRED_FIELD"
    INVALID_FORMAT = "INVALID_FORMAT"
    INVALID_VALUE = "INVALID_VALUE"
    PRICE_MISMATCH = "PRICE_MISMATCH"
    NEGATIVE_VALUE = "NEGATIVE_VALUE"
    DUPLICATE = "DUPLICATE"
    INVALID_NUMBER = "INVALID_NUMBER"
    EXCEEDS_MAXIMUM = "EXCEEDS_MAXIMUM"


@dataclass(frozen=True)
class ValidationError:
    """A single failed rule."""

    field: str
    message: str
    code: ErrorCode


@dataclass
class ValidationResult:
    """Outcome of validating one record."""

    errors: list[ValidationError] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def codes_for(self, field_name: str) -> list[ErrorCode]:
        """Error codes reported against one field."""
        return [e.code for e in self.errors if e.field == field_name]

    def raise_if_invalid(self) -> None:
        """Raise ValidationFailedError carrying every error."""
        if self.errors:
            raise ValidationFailedError(self.errors)


def _check_price(
    errors: list[ValidationError], field_name: str, label: str, value: Decimal, maximum: Decimal
) -> bool:
    """Append errors for one price; returns True if the value is usable."""
    if not value.is_finite():
        errors.append(
            ValidationError(field_name, f"{label} must be a valid number", ErrorCode.INVALID_NUMBER)
        )
        return False
    if value < 0:
        errors.append(
            ValidationError(field_name, f"{label} cannot be negative", ErrorCode.NEGATIVE_VALUE)
        )
    if value > maximum:
        errors.append(
            ValidationError(
                field_name, f"{label} cannot exceed {maximum}", ErrorCode.EXCEEDS_MAXIMUM
            )
        )
    return True


class ClientValidator:
    """Validates a client for creation or update."""

    def __init__(
        self,
        max_session_price: Decimal = MAX_SESSION_PRICE,
        price_tolerance: Decimal = PRICE_TOLERANCE,
    ) -> None:
        self.max_session_price = max_session_price
        self.price_tolerance = price_tolerance

    def validate(self, client: Client, existing: Iterable[Client] = ()) -> ValidationResult:
        errors: list[ValidationError] = []

        if not client.name or not client.name.strip():
            errors.append(
                ValidationError("name", "Client name is required", ErrorCode.REQUIRED_FIELD)
            )

        usable = [
            _check_price(errors, "price", "Price", client.price, self.max_session_price),
            _check_price(
                errors,
                "employee_price",
                "Employee price",
                client.employee_price,
                self.max_session_price,
            ),
            _check_price(
                errors,
                "company_price",
                "Company price",
                client.company_price,
                self.max_session_price,
            ),
        ]

        if all(usable):
            if client.employee_price > client.price:
                errors.append(
                    ValidationError(
                        "employee_price",
                        f"Employee price ({client.employee_price}) exceeds total price "
                        f"({client.price})",
                        ErrorCode.INVALID_VALUE,
                    )
                )
            if client.company_price > client.price:
                errors.append(
                    ValidationError(
                        "company_price",
                        f"Company price ({client.company_price}) exceeds total price "
                        f"({client.price})",
                        ErrorCode.INVALID_VALUE,
                    )
                )

            shares = client.employee_price + client.company_price
            if abs(client.price - shares) > self.price_tolerance:
                errors.append(
                    ValidationError(
                        "company_price",
                        f"Employee ({client.employee_price}) + company ({client.company_price}) "
                        f"= {shares}, expected {client.price}",
                        ErrorCode.PRICE_MISMATCH,
                    )
                )

        name = client.name.strip().casefold() if client.name else ""
        if name and any(
            other.id != client.id
            and other.employee_id == client.employee_id
            and other.name.strip().casefold() == name
            for other in existing
        ):
            errors.append(
                ValidationError(
                    "name", f"Client '{client.name}' already exists", ErrorCode.DUPLICATE
                )
            )

        return ValidationResult(errors)


class EmployeeValidator:
    """Validates an employee for creation or update."""

    def __init__(self, max_supervision_price: Decimal = MAX_SUPERVISION_PRICE) -> None:
        self.max_supervision_price = max_supervision_price

    def validate(self, employee: Employee, existing: Iterable[Employee] = ()) -> ValidationResult:
        errors: list[ValidationError] = []

        if not employee.name or not employee.name.strip():
            errors.append(
                ValidationError("name", "Employee name is required", ErrorCode.REQUIRED_FIELD)
            )

        email = (employee.email or "").strip()
        if email and not EMAIL_RE.match(email):
            errors.append(
                ValidationError(
                    "email", f"Invalid email address: {email}", ErrorCode.INVALID_FORMAT
                )
            )

        if employee.supervision_price is not None:
            _check_price(
                errors,
                "supervision_price",
                "Supervision price",
                employee.supervision_price,
                self.max_supervision_price,
            )

        if email and any(
            other.id != employee.id and (other.email or "").strip().casefold() == email.casefold()
            for other in existing
        ):
            errors.append(
                ValidationError("email", f"Email {email} is already in use", ErrorCode.DUPLICATE)
            )

        return ValidationResult(errors)
