"""Tests for the match confirmation service."""

from datetime import datetime

import pytest

from session_payroll.config import Config
from session_payroll.schemas.confirmation import Resolution
from session_payroll.schemas.roster import Client
from session_payroll.services import (
    ConfirmationStatus,
    MatchConfirmationService,
    PayrollCalculationService,
)

EMP = "emp-1"


@pytest.fixture
def service(seeded_store) -> MatchConfirmationService:
    seeded_store.create_client(Client.create("Anna Papadopoulou", EMP, "50", "25", "25"))
    return MatchConfirmationService(seeded_store)


class TestConfirmMatch:
    """Confirming uncertain matches."""

    def test_confirm_suggestion(self, service, seeded_store):
        match = service.build_match("Papadopoulou", EMP)
        assert match.suggested_match.client_name == "Maria Papadopoulou"

        outcome = service.confirm_match(match, EMP)

        assert outcome.success
        assert outcome.status == ConfirmationStatus.CONFIRMED
        assert outcome.client_name == "Maria Papadopoulou"
        assert seeded_store.get_confirmation("papadopoulou", EMP).resolution == (
            Resolution.confirmed("Maria Papadopoulou")
        )

    def test_confirm_other_candidate(self, service, seeded_store):
        match = service.build_match("Papadopoulou", EMP)
        outcome = service.confirm_match(match, EMP, client_name="Anna Papadopoulou")

        assert outcome.client_name == "Anna Papadopoulou"

    def test_confirm_without_candidates_fails(self, service):
        outcome = service.confirm_match(service.build_match("Dentist", EMP), EMP)

        assert not outcome.success
        assert outcome.status == ConfirmationStatus.ERROR

    def test_full_name_title_has_no_candidates(self, service):
        match = service.build_match("Maria Papadopoulou", EMP)

        assert match.possible_matches == []
        assert match.suggested_match is None

    def test_confirm_unknown_client_fails(self, service, seeded_store):
        match = service.build_match("Papadopoulou", EMP)
        outcome = service.confirm_match(match, EMP, client_name="Nobody Here")

        assert not outcome.success
        assert seeded_store.get_confirmation("Papadopoulou", EMP) is None

    def test_confirm_twice_overwrites(self, service, seeded_store):
        match = service.build_match("Papadopoulou", EMP)
        service.confirm_match(match, EMP)
        service.confirm_match(match, EMP, client_name="Anna Papadopoulou")

        records = seeded_store.list_confirmations(EMP)
        assert len(records) == 1
        assert records[0].resolution.client_name == "Anna Papadopoulou"


class TestRejectMatch:
    """Rejecting uncertain matches."""

    def test_reject(self, service, seeded_store):
        outcome = service.reject_match(service.build_match("Unknown Maria", EMP), EMP)

        assert outcome.status == ConfirmationStatus.REJECTED
        assert seeded_store.get_confirmation("Unknown Maria", EMP).resolution.is_rejected

    def test_reject_blank_title_fails(self, service):
        outcome = service.reject_match(service.build_match("  ", EMP), EMP)
        assert outcome.status == ConfirmationStatus.ERROR


class _StaticEvents:
    """In-memory event source returning fixed events."""

    def __init__(self, events):
        self._events = events

    def get_calendar_list(self):
        return []

    def get_events_for_period(self, calendar_id, start, end):
        return [e for e in self._events if start <= e.start_time <= end]


class TestDecisionsPersistAcrossRuns:
    """Decisions resolve later calculations."""

    PERIOD = (datetime(2024, 1, 1), datetime(2024, 1, 31, 23, 59, 59))

    def test_rejected_title_never_reappears(self, service, seeded_store, make_event):
        events = _StaticEvents([make_event("Unknown Maria", "2024-01-10T10:00")])
        payroll = PayrollCalculationService(seeded_store, events, Config())

        first = payroll.calculate(EMP, *self.PERIOD)
        assert len(first.uncertain_matches) == 1

        service.reject_match(first.uncertain_matches[0], EMP)

        for _ in range(2):
            result = payroll.calculate(EMP, *self.PERIOD)
            assert result.uncertain_matches == []
            assert result.report.entries == []
            assert len(result.report.rejected_events) == 1

    def test_confirmed_title_is_billed_idempotently(self, service, seeded_store, make_event):
        events = _StaticEvents([make_event("Papadopoulou", "2024-01-10T10:00")])
        payroll = PayrollCalculationService(seeded_store, events, Config())

        first = payroll.calculate(EMP, *self.PERIOD)
        service.confirm_match(first.uncertain_matches[0], EMP)

        totals = [payroll.calculate(EMP, *self.PERIOD).report.total_revenue for _ in range(2)]
        assert totals[0] == totals[1]
        assert str(totals[0]) == "50.00"
