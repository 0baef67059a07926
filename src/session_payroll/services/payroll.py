"""Payroll calculation use-case.

One run for one employee and one period:
1. Load the employee and their roster
2. Fetch the period's events from the calendar source
3. Load the confirmation map and earlier pending sessions (one query each)
4. Run the aggregator
5. Persist pending-session activity and refresh client pending flags

Nothing is persisted unless the full report was produced.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from session_payroll.errors import EmployeeNotFoundError, EventSourceError, PayrollError
from session_payroll.matching.engine import ClientMatcher, UncertainMatch
from session_payroll.payroll.calculator import PayrollCalculator

if TYPE_CHECKING:
    from session_payroll.calendar_source import EventSource
    from session_payroll.config import Config
    from session_payroll.schemas.payroll import PayrollReport
    from session_payroll.schemas.roster import Client
    from session_payroll.state_store import StateStore

logger = logging.getLogger(__name__)


@dataclass
class CalculationResult:
    """Result of a payroll calculation run."""

    success: bool
    report: PayrollReport | None = None
    error: str | None = None

    @property
    def uncertain_matches(self) -> list[UncertainMatch]:
        """Matches still awaiting a user decision."""
        return self.report.uncertain_matches if self.report else []


class PayrollCalculationService:
    """Runs payroll calculations against the store and a calendar source.

    Usage:
        service = PayrollCalculationService(store, event_source, config)
        result = service.calculate(employee_id, start, end)
    """

    def __init__(
        self,
        state_store: StateStore,
        event_source: EventSource,
        config: Config,
    ) -> None:
        self.store = state_store
        self.events = event_source
        self.config = config
        self.calculator = PayrollCalculator(
            matcher=ClientMatcher(min_partial_length=config.matching.min_partial_length)
        )

    def calculate(
        self,
        employee_id: str,
        period_start: datetime,
        period_end: datetime,
        persist: bool = True,
    ) -> CalculationResult:
        """Calculate payroll for an employee within a period.

        Args:
            employee_id: Employee to calculate.
            period_start: Start of the period (inclusive).
            period_end: End of the period (inclusive).
            persist: If False, nothing is written (preview run).

        Returns:
            CalculationResult with the report, or the error that stopped the run.
        """
        try:
            employee = self.store.get_employee(employee_id)
            if employee is None:
                raise EmployeeNotFoundError(employee_id)
            if not employee.calendar_id:
                raise EventSourceError(f"Employee {employee.name} has no calendar configured")

            logger.info(
                "Calculating payroll for %s from %s to %s",
                employee.name,
                period_start.date(),
                period_end.date(),
            )

            clients = self.store.get_clients_by_employee(employee_id)
            events = self.events.get_events_for_period(
                employee.calendar_id, period_start, period_end
            )
            confirmations = self.store.get_all_confirmed_matches_map(employee_id)
            prior_pending = self.store.get_unresolved_pending(
                employee_id, before=period_start.date()
            )

            report = self.calculator.calculate_payroll(
                employee,
                clients,
                events,
                period_start,
                period_end,
                supervision_config=self.config.supervision.to_supervision_config(),
                confirmations=confirmations,
                prior_pending=prior_pending,
            )

            if persist:
                self._persist_pending(employee_id, clients, report)

        except (PayrollError, sqlite3.Error) as e:
            logger.error("Payroll calculation failed: %s", e)
            return CalculationResult(success=False, error=str(e))

        logger.info(
            "Calculation successful. %d uncertain matches need review",
            len(report.uncertain_matches),
        )
        return CalculationResult(success=True, report=report)

    def _persist_pending(
        self, employee_id: str, clients: list[Client], report: PayrollReport
    ) -> None:
        breakdowns = [e.breakdown for e in report.entries if e.breakdown is not None]
        self.store.record_pending_activity(
            employee_id,
            report.period_start.date(),
            report.period_end.date(),
            raised=[s for b in breakdowns for s in b.raised_pending],
            settlements=[s for b in breakdowns for s in b.settlements],
        )

        for client in clients:
            owes = bool(report.pending_carry_over.get(client.name))
            if owes != client.has_pending_balance:
                self.store.set_client_pending_balance(client.id, owes)
                logger.debug("Client %s pending balance -> %s", client.name, owes)
