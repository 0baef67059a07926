"""Tests for pending-payment resolution."""

from datetime import date
from decimal import Decimal

from session_payroll.payroll import PendingPaymentResolver
from session_payroll.schemas.payroll import EventStatus, PendingSession

PRICE = Decimal("50.00")


def _statuses(breakdown):
    return [d.status for d in breakdown.event_details]


class TestPendingPaymentResolver:
    """Chronological classification against the outstanding queue."""

    def test_all_completed(self, make_event):
        events = [
            make_event("Maria", "2024-01-08T10:00"),
            make_event("Maria", "2024-01-15T10:00"),
        ]
        breakdown = PendingPaymentResolver().resolve("Maria", PRICE, events)

        assert _statuses(breakdown) == [EventStatus.COMPLETED, EventStatus.COMPLETED]
        assert all(d.amount == PRICE for d in breakdown.event_details)
        assert breakdown.carry_over == []

    def test_pending_then_paid_in_same_period(self, make_event):
        events = [
            make_event("Maria", "2024-01-15T10:00", event_id="paid"),
            make_event("Maria", "2024-01-08T10:00", event_id="owed", pending=True),
        ]
        breakdown = PendingPaymentResolver().resolve("Maria", PRICE, events)

        assert _statuses(breakdown) == [EventStatus.PENDING_PAYMENT, EventStatus.PAID_FOR_PENDING]
        pending, paid = breakdown.event_details
        assert pending.amount == Decimal("0.00")
        assert paid.pending_date == date(2024, 1, 8)
        assert paid.settled_event_id == "owed"
        assert breakdown.carry_over == []
        assert breakdown.unresolved_pending_count == 0
        assert [s.pending_event_id for s in breakdown.settlements] == ["owed"]

    def test_unsettled_pending_carries_over(self, make_event):
        events = [make_event("Maria", "2024-01-29T10:00", event_id="owed", pending=True)]
        breakdown = PendingPaymentResolver().resolve("Maria", PRICE, events)

        assert [p.event_id for p in breakdown.carry_over] == ["owed"]
        assert breakdown.unresolved_pending_count == 0
        assert [p.event_id for p in breakdown.raised_pending] == ["owed"]

    def test_prior_sessions_settled_oldest_first(self, make_event):
        prior = [
            PendingSession("Maria", "dec", date(2023, 12, 18)),
            PendingSession("Maria", "nov", date(2023, 11, 20)),
        ]
        events = [make_event("Maria", "2024-01-08T10:00", event_id="jan")]
        breakdown = PendingPaymentResolver().resolve("Maria", PRICE, events, prior)

        assert breakdown.event_details[0].settled_event_id == "nov"
        assert [p.event_id for p in breakdown.carry_over] == ["dec"]
        assert breakdown.unresolved_pending_count == 1

    def test_prior_settled_before_current_period_pending(self, make_event):
        prior = [PendingSession("Maria", "dec", date(2023, 12, 18))]
        events = [
            make_event("Maria", "2024-01-08T10:00", event_id="jan-owed", pending=True),
            make_event("Maria", "2024-01-15T10:00", event_id="jan-paid"),
        ]
        breakdown = PendingPaymentResolver().resolve("Maria", PRICE, events, prior)

        assert breakdown.event_details[1].settled_event_id == "dec"
        assert [p.event_id for p in breakdown.carry_over] == ["jan-owed"]
        assert breakdown.unresolved_pending_count == 0

    def test_cancelled_is_zero_and_does_not_settle(self, make_event):
        prior = [PendingSession("Maria", "dec", date(2023, 12, 18))]
        events = [make_event("Maria", "2024-01-08T10:00", cancelled=True)]
        breakdown = PendingPaymentResolver().resolve("Maria", PRICE, events, prior)

        assert _statuses(breakdown) == [EventStatus.CANCELLED]
        assert breakdown.event_details[0].amount == Decimal("0.00")
        assert breakdown.unresolved_pending_count == 1

    def test_status_counts_sum_to_event_count(self, make_event):
        events = [
            make_event("Maria", "2024-01-02T10:00", pending=True),
            make_event("Maria", "2024-01-03T10:00", cancelled=True),
            make_event("Maria", "2024-01-04T10:00"),
            make_event("Maria", "2024-01-05T10:00"),
            make_event("Maria", "2024-01-06T10:00", pending=True),
        ]
        breakdown = PendingPaymentResolver().resolve("Maria", PRICE, events)

        assert breakdown.total_events == len(events)
        assert len(breakdown.event_details) == len(events)

    def test_event_detail_serialization(self, make_event):
        events = [make_event("Maria", "2024-01-08T09:30", minutes=45, pending=True)]
        detail = PendingPaymentResolver().resolve("Maria", PRICE, events).event_details[0]

        data = detail.to_dict()
        assert data["time"] == "09:30"
        assert data["duration"] == "45min"
        assert data["is_pending"] is True
        assert data["paid_for_pending"] is False
