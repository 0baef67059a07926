"""
Exception hierarchy for the payroll engine.

Data-quality conditions (zero prices, ambiguous names) are never raised;
they surface as report warnings or uncertain matches instead.
"""


class PayrollError(Exception):
    """Base exception for payroll engine errors."""

    pass


class InvalidPeriodError(PayrollError, ValueError):
    """Raised when a payroll period does not satisfy start < end."""

    def __init__(self, period_start, period_end):
        self.period_start = period_start
        self.period_end = period_end
        super().__init__(
            f"Invalid payroll period: start {period_start} must be before end {period_end}"
        )


class EventSourceError(PayrollError):
    """The calendar event source could not deliver events."""

    pass


class RosterError(PayrollError):
    """Base exception for employee/client roster errors."""

    pass


class EmployeeNotFoundError(RosterError):
    """Requested employee does not exist."""

    def __init__(self, employee_id: str):
        self.employee_id = employee_id
        super().__init__(f"Employee not found: {employee_id}")


class DuplicateClientError(RosterError):
    """A client with the same name already exists for this employee."""

    def __init__(self, employee_id: str, name: str):
        self.employee_id = employee_id
        self.name = name
        super().__init__(f"Client '{name}' already exists for employee {employee_id}")


class ValidationFailedError(RosterError):
    """Roster record failed validation."""

    def __init__(self, errors: list):
        self.errors = errors
        messages = "; ".join(e.message for e in errors)
        super().__init__(f"Validation failed: {messages}")


class ConfirmationSaveError(PayrollError):
    """A match confirmation could not be persisted."""

    pass
