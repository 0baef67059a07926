"""
Payroll aggregation and pending-payment resolution.
"""

from .calculator import PayrollCalculator
from .pending import PendingPaymentResolver

__all__ = ["PayrollCalculator", "PendingPaymentResolver"]
