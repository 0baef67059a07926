"""Tests for money helpers and schema invariants."""

from datetime import datetime
from decimal import Decimal

import pytest

from session_payroll.schemas import CalendarEvent, Client, Resolution
from session_payroll.schemas.money import add_and_round, multiply_and_round, to_decimal


class TestMoney:
    """Decimal arithmetic rounded to cents."""

    def test_multiply_and_round(self):
        assert multiply_and_round(Decimal("15.50"), 3) == Decimal("46.50")
        assert multiply_and_round(Decimal("0.125"), 1) == Decimal("0.13")

    def test_add_and_round(self):
        total = Decimal("0.00")
        for _ in range(10):
            total = add_and_round(total, Decimal("0.10"))
        assert total == Decimal("1.00")

    def test_to_decimal(self):
        assert to_decimal(None) == Decimal("0")
        assert to_decimal("22,50") == Decimal("22.50")
        assert to_decimal(0.1) == Decimal("0.1")

    @pytest.mark.parametrize("value", ["abc", float("inf"), "NaN"])
    def test_to_decimal_rejects_invalid(self, value):
        with pytest.raises(ValueError):
            to_decimal(value)


class TestResolution:
    """Confirmed and rejected decisions."""

    def test_confirmed_needs_name(self):
        with pytest.raises(ValueError):
            Resolution.confirmed("")

    def test_kinds(self):
        assert Resolution.confirmed("Maria").is_confirmed
        assert Resolution.rejected().is_rejected
        assert Resolution.rejected().to_dict() == {"kind": "rejected", "client_name": None}


class TestRosterAndEvents:
    """Client and event helpers."""

    def test_client_has_price(self):
        assert not Client.create("Maria", "e1").has_price
        assert not Client.create("Maria", "e1", None, "25").has_price
        assert Client.create("Maria", "e1", "50", "25", "25").has_price

    def test_valid_session_flags(self):
        start = datetime(2024, 1, 8, 10)
        end = datetime(2024, 1, 8, 11)
        assert CalendarEvent("a", "t", start, end).is_valid_session
        assert not CalendarEvent("b", "t", start, end, is_cancelled=True).is_valid_session
        assert CalendarEvent(
            "c", "t", start, end, is_cancelled=True, is_pending_payment=True
        ).is_valid_session
