"""
Roster validation (clients and employees).
"""

from .validators import (
    ClientValidator,
    EmployeeValidator,
    ErrorCode,
    ValidationError,
    ValidationResult,
)

__all__ = [
    "ClientValidator",
    "EmployeeValidator",
    "ErrorCode",
    "ValidationError",
    "ValidationResult",
]
