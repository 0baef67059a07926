"""
Application services (use-cases) built on the store, the calendar source and
the payroll core.
"""

from .confirmations import ConfirmationOutcome, ConfirmationStatus, MatchConfirmationService
from .payroll import CalculationResult, PayrollCalculationService
from .roster import RosterService

__all__ = [
    "CalculationResult",
    "ConfirmationOutcome",
    "ConfirmationStatus",
    "MatchConfirmationService",
    "PayrollCalculationService",
    "RosterService",
]
