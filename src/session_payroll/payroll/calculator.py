"""
Payroll aggregation.

Turns one employee's calendar events for one period into a PayrollReport:

1. Drop events outside [period_start, period_end] and blank titles
2. Confident (EXACT/HIGH) match -> bucket under that client or keyword
3. Otherwise consult the confirmation map (confirmed / rejected titles)
4. Otherwise MEDIUM/LOW candidates -> uncertain, none -> unmatched
5. Per client: count valid sessions, multiply by prices, round to cents
6. Keyword buckets are pooled into one supervision entry

The calculator performs no I/O. Confirmations and earlier pending sessions are
loaded by the caller and passed in.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from datetime import datetime
from decimal import Decimal

from session_payroll.errors import InvalidPeriodError
from session_payroll.matching.engine import ClientMatcher, UncertainMatch
from session_payroll.matching.normalize import normalize
from session_payroll.schemas.calendar import CalendarEvent
from session_payroll.schemas.confirmation import Resolution
from session_payroll.schemas.money import add_and_round, multiply_and_round
from session_payroll.schemas.payroll import (
    PayrollEntry,
    PayrollReport,
    PendingSession,
    SupervisionConfig,
)
from session_payroll.schemas.roster import Client, Employee

from .pending import PendingPaymentResolver

logger = logging.getLogger(__name__)


class PayrollCalculator:
    """Core payroll calculation for one employee."""

    def __init__(
        self,
        matcher: ClientMatcher | None = None,
        resolver: PendingPaymentResolver | None = None,
    ) -> None:
        self.matcher = matcher or ClientMatcher()
        self.resolver = resolver or PendingPaymentResolver()

    def calculate_payroll(
        self,
        employee: Employee,
        clients: Sequence[Client],
        events: Sequence[CalendarEvent],
        period_start: datetime,
        period_end: datetime,
        supervision_config: SupervisionConfig | None = None,
        confirmations: Mapping[str, Resolution] | None = None,
        prior_pending: Mapping[str, Sequence[PendingSession]] | None = None,
    ) -> PayrollReport:
        """Calculate payroll for an employee based on calendar events.

        Args:
            employee: The employee to calculate payroll for.
            clients: The employee's roster, in display order.
            events: All calendar events fetched for the period.
            period_start: Start of the period (inclusive).
            period_end: End of the period (inclusive).
            supervision_config: Optional supervision pricing and keywords.
            confirmations: Resolutions keyed by normalized event title.
            prior_pending: Sessions still owed from earlier periods, by client name.

        Returns:
            Complete payroll report.

        Raises:
            InvalidPeriodError: If period_start is not before period_end.
        """
        if period_start >= period_end:
            raise InvalidPeriodError(period_start, period_end)

        confirmations = confirmations or {}
        prior_pending = prior_pending or {}

        client_names = [c.name for c in clients]
        client_lookup = {c.name: c for c in clients}
        keywords = tuple(supervision_config.keywords) if supervision_config else ()

        client_events: dict[str, list[CalendarEvent]] = {name: [] for name in client_names}
        keyword_events: dict[str, list[CalendarEvent]] = {kw: [] for kw in keywords}
        unmatched_events: list[CalendarEvent] = []
        uncertain_matches: list[UncertainMatch] = []
        rejected_events: list[CalendarEvent] = []
        warnings: list[str] = []

        for event in events:
            if not period_start <= event.start_time <= period_end:
                continue
            if not event.title or not event.title.strip():
                continue

            candidates = self.matcher.find_client_matches_with_confidence(
                event.title, client_names, keywords
            )
            confident = [c for c in candidates if c.confidence.is_confident]
            if confident:
                best = confident[0].client_name
                if best in keyword_events:
                    keyword_events[best].append(event)
                else:
                    client_events[best].append(event)
                continue

            resolution = confirmations.get(normalize(event.title))
            if resolution is not None and resolution.is_rejected:
                logger.debug("Skipping rejected title '%s'", event.title)
                rejected_events.append(event)
                continue
            if resolution is not None and resolution.is_confirmed:
                if resolution.client_name in client_events:
                    client_events[resolution.client_name].append(event)
                else:
                    warnings.append(
                        f"'{event.title}' was confirmed as '{resolution.client_name}', "
                        "which is no longer in the roster"
                    )
                    unmatched_events.append(event)
                continue

            uncertain = [c for c in candidates if c.confidence.is_uncertain]
            if uncertain:
                uncertain_matches.append(UncertainMatch.from_candidates(event, uncertain))
            else:
                unmatched_events.append(event)

        report = PayrollReport(
            employee=employee,
            period_start=period_start,
            period_end=period_end,
            unmatched_events=unmatched_events,
            uncertain_matches=uncertain_matches,
            rejected_events=rejected_events,
            warnings=warnings,
        )

        for name in client_names:
            client = client_lookup[name]
            bucket = client_events[name]
            prior = prior_pending.get(name, ())

            if bucket or prior:
                breakdown = self.resolver.resolve(name, client.price, bucket, prior)
                report.pending_carry_over[name] = breakdown.carry_over
            else:
                breakdown = None

            valid_events = [e for e in bucket if e.is_valid_session]
            if not valid_events:
                continue

            if not client.has_price:
                warnings.append(f"Client '{name}' has no price configured")

            entry = self._build_entry(
                name,
                client.price,
                client.employee_price,
                client.company_price,
                valid_events,
            )
            entry.breakdown = breakdown
            self._add_entry(report, entry)

        for name, owed in prior_pending.items():
            if owed and name not in client_lookup:
                warnings.append(
                    f"{len(owed)} pending session(s) owed by '{name}', "
                    "which is no longer in the roster"
                )

        if supervision_config is not None and supervision_config.enabled:
            pooled = [
                e for bucket in keyword_events.values() for e in bucket if e.is_valid_session
            ]
            if pooled:
                price = supervision_config.price
                employee_price = supervision_config.employee_price
                company_price = supervision_config.company_price
                if not price and employee.supervision_price is not None:
                    # The employee's own rate is the whole session price
                    price = employee_price = employee.supervision_price
                    company_price = Decimal("0")
                entry = self._build_entry(
                    supervision_config.entry_name,
                    price,
                    employee_price,
                    company_price,
                    pooled,
                )
                entry.is_supervision = True
                self._add_entry(report, entry)
        elif any(keyword_events.values()):
            logger.debug("Supervision disabled; keyword events are not billed")

        logger.info(
            "Payroll for %s: %d sessions, %s revenue, %d unmatched, %d uncertain",
            employee.name,
            report.total_sessions,
            report.total_revenue,
            len(unmatched_events),
            len(uncertain_matches),
        )
        return report

    @staticmethod
    def _build_entry(
        name: str,
        price: Decimal,
        employee_price: Decimal,
        company_price: Decimal,
        valid_events: list[CalendarEvent],
    ) -> PayrollEntry:
        count = len(valid_events)
        return PayrollEntry(
            client_name=name,
            client_price=price,
            employee_price=employee_price,
            company_price=company_price,
            sessions_count=count,
            total_revenue=multiply_and_round(price, count),
            employee_earnings=multiply_and_round(employee_price, count),
            company_earnings=multiply_and_round(company_price, count),
            events=valid_events,
        )

    @staticmethod
    def _add_entry(report: PayrollReport, entry: PayrollEntry) -> None:
        report.entries.append(entry)
        report.total_sessions += entry.sessions_count
        report.total_revenue = add_and_round(report.total_revenue, entry.total_revenue)
        report.total_employee_earnings = add_and_round(
            report.total_employee_earnings, entry.employee_earnings
        )
        report.total_company_earnings = add_and_round(
            report.total_company_earnings, entry.company_earnings
        )
