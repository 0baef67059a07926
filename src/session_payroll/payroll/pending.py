"""
Pending-payment resolution.

Every event of one client in one period is classified as:

- pending_payment: session marked pending (client owes, billed later)
- paid_for_pending: valid session that settles the oldest outstanding pending one
- completed: valid session with nothing outstanding
- cancelled: cancelled and not pending

Outstanding sessions from earlier periods are passed in oldest first and are
settled before anything raised in the current period. Whatever is still owed
afterwards becomes the carry-over for the next run.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from session_payroll.schemas.calendar import CalendarEvent
from session_payroll.schemas.money import ZERO
from session_payroll.schemas.payroll import (
    ClientBreakdown,
    EventDetail,
    EventStatus,
    PendingSession,
    Settlement,
)

logger = logging.getLogger(__name__)


@dataclass
class _Outstanding:
    session: PendingSession
    from_prior_period: bool


class PendingPaymentResolver:
    """Classifies a client's events and tracks sessions still owed."""

    def resolve(
        self,
        client_name: str,
        price: Decimal,
        events: Iterable[CalendarEvent],
        prior_pending: Iterable[PendingSession] = (),
    ) -> ClientBreakdown:
        """Classify events chronologically against the outstanding queue.

        Args:
            client_name: Name the breakdown is reported under.
            price: Per-session price shown on settled and completed sessions.
            events: All of the client's in-period events, in any order.
            prior_pending: Sessions still owed from earlier periods.

        Returns:
            ClientBreakdown whose four status counts sum to the event count.
        """
        queue: deque[_Outstanding] = deque(
            _Outstanding(session, True)
            for session in sorted(prior_pending, key=lambda s: s.session_date)
        )
        breakdown = ClientBreakdown(client_name=client_name)

        for event in sorted(events, key=lambda e: e.start_time):
            pending_date = None
            settled_event_id = None
            if event.is_pending_payment:
                status = EventStatus.PENDING_PAYMENT
                amount = ZERO
                raised = PendingSession(
                    client_name=client_name,
                    event_id=event.id,
                    session_date=event.start_time.date(),
                    event_title=event.title,
                )
                queue.append(_Outstanding(raised, False))
                breakdown.raised_pending.append(raised)
                breakdown.pending_sessions += 1
            elif event.is_cancelled:
                status = EventStatus.CANCELLED
                amount = ZERO
                breakdown.cancelled_sessions += 1
            elif queue:
                settled = queue.popleft().session
                status = EventStatus.PAID_FOR_PENDING
                amount = price
                pending_date = settled.session_date
                settled_event_id = settled.event_id
                breakdown.paid_pending_count += 1
                breakdown.settlements.append(
                    Settlement(
                        client_name=client_name,
                        pending_event_id=settled.event_id,
                        settled_by_event_id=event.id,
                        settled_on=event.start_time.date(),
                    )
                )
                logger.debug(
                    "%s: session %s settles pending session from %s",
                    client_name,
                    event.id,
                    settled.session_date,
                )
            else:
                status = EventStatus.COMPLETED
                amount = price
                breakdown.completed_sessions += 1

            breakdown.event_details.append(
                EventDetail(
                    event_id=event.id,
                    date=event.start_time.date(),
                    time=event.start_time.strftime("%H:%M"),
                    duration_minutes=event.duration_minutes,
                    status=status,
                    color_id=event.color_id,
                    amount=amount,
                    pending_date=pending_date,
                    settled_event_id=settled_event_id,
                )
            )

        breakdown.unresolved_pending_count = sum(1 for item in queue if item.from_prior_period)
        breakdown.carry_over = [item.session for item in queue]
        return breakdown
