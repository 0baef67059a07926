"""Employee and client roster management with validation."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import TYPE_CHECKING

from session_payroll.errors import EmployeeNotFoundError
from session_payroll.schemas.roster import Client, Employee
from session_payroll.validation import ClientValidator, EmployeeValidator

if TYPE_CHECKING:
    from session_payroll.config import ValidationConfig
    from session_payroll.state_store import StateStore

logger = logging.getLogger(__name__)


class RosterService:
    """Validated create/update/delete for employees and their clients.

    Every write is validated against the current roster first; failures raise
    ValidationFailedError with all broken rules.
    """

    def __init__(self, state_store: StateStore, limits: ValidationConfig | None = None) -> None:
        self.store = state_store
        if limits is None:
            self.client_validator = ClientValidator()
            self.employee_validator = EmployeeValidator()
        else:
            self.client_validator = ClientValidator(
                max_session_price=limits.max_session_price,
                price_tolerance=limits.price_tolerance,
            )
            self.employee_validator = EmployeeValidator(
                max_supervision_price=limits.max_supervision_price
            )

    # Employees

    def add_employee(
        self,
        name: str,
        email: str = "",
        calendar_id: str = "",
        supervision_price: Decimal | None = None,
        employee_id: str = "",
    ) -> Employee:
        employee = Employee(
            id=employee_id,
            name=name.strip(),
            email=email.strip(),
            calendar_id=calendar_id.strip(),
            supervision_price=supervision_price,
        )
        self.employee_validator.validate(employee, self.store.list_employees()).raise_if_invalid()
        return self.store.create_employee(employee)

    def update_employee(self, employee: Employee) -> Employee:
        others = self.store.list_employees()
        self.employee_validator.validate(employee, others).raise_if_invalid()
        return self.store.update_employee(employee)

    def get_employee(self, employee_id: str) -> Employee:
        """Get an employee or raise EmployeeNotFoundError."""
        employee = self.store.get_employee(employee_id)
        if employee is None:
            raise EmployeeNotFoundError(employee_id)
        return employee

    def list_employees(self) -> list[Employee]:
        return self.store.list_employees()

    def remove_employee(self, employee_id: str) -> bool:
        return self.store.delete_employee(employee_id)

    # Clients

    def add_client(
        self,
        employee_id: str,
        name: str,
        price: Decimal,
        employee_price: Decimal,
        company_price: Decimal,
    ) -> Client:
        """Add a client to an employee's roster.

        Raises:
            EmployeeNotFoundError: If the employee does not exist.
            ValidationFailedError: If any client rule fails.
        """
        self.get_employee(employee_id)
        client = Client.create(
            name=name.strip(),
            employee_id=employee_id,
            price=price,
            employee_price=employee_price,
            company_price=company_price,
        )
        existing = self.store.get_clients_by_employee(employee_id)
        self.client_validator.validate(client, existing).raise_if_invalid()

        created = self.store.create_client(client)
        logger.info("Added client '%s' for employee %s", created.name, employee_id)
        return created

    def update_client(self, client: Client) -> Client:
        existing = self.store.get_clients_by_employee(client.employee_id)
        self.client_validator.validate(client, existing).raise_if_invalid()
        return self.store.update_client(client)

    def list_clients(self, employee_id: str) -> list[Client]:
        return self.store.get_clients_by_employee(employee_id)

    def remove_client(self, employee_id: str, name: str) -> bool:
        """Remove a client by exact name. Returns False if not found."""
        client = self.store.get_client_by_employee_and_name(employee_id, name)
        if client is None:
            return False
        self.store.delete_client(client.id)
        logger.info("Removed client '%s' from employee %s", name, employee_id)
        return True
