"""Tests for configuration loading."""

from decimal import Decimal
from pathlib import Path

import pytest

from session_payroll.config import (
    Config,
    ConfigValidationError,
    create_default_config,
    load_config,
    load_validated_config,
)


class TestLoadConfig:
    """YAML loading and environment overrides."""

    def test_missing_file_gives_defaults(self, tmp_path):
        config = load_config(tmp_path / "absent.yaml")

        assert config.matching.min_partial_length == 4
        assert config.calendar.pending_color_id == "8"
        assert config.supervision.enabled is True
        assert config.validate() == []

    def test_default_config_round_trip(self, tmp_path):
        path = tmp_path / "config.yaml"
        create_default_config(path)

        config = load_validated_config(path)
        assert config.supervision.keywords == ["Εποπτεία", "Supervision"]
        assert config.supervision.entry_name == "Εποπτεία (Supervision)"
        assert config.validation.max_session_price == Decimal("1000")
        assert config.state_db_path == Path("data/payroll.db")

    def test_money_parsed_as_decimal(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "supervision:\n  price: '45.50'\n  employee_price: 20\n  company_price: 25.5\n",
            encoding="utf-8",
        )
        sup = load_config(path).supervision.to_supervision_config()

        assert sup.price == Decimal("45.50")
        assert sup.company_price == Decimal("25.5")
        assert sup.keywords == ("Εποπτεία", "Supervision")

    def test_bad_money_raises(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("supervision:\n  price: lots\n", encoding="utf-8")
        with pytest.raises(ConfigValidationError):
            load_config(path)

    def test_env_overrides(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SESSION_PAYROLL_DB", str(tmp_path / "other.db"))
        monkeypatch.setenv("SESSION_PAYROLL_EVENTS_FILE", str(tmp_path / "events.yaml"))
        monkeypatch.setenv("SESSION_PAYROLL_SUPERVISION_ENABLED", "false")

        config = load_config(tmp_path / "absent.yaml")
        assert config.state_db_path == tmp_path / "other.db"
        assert config.calendar.events_file == tmp_path / "events.yaml"
        assert config.supervision.enabled is False


class TestValidate:
    """Consistency rules."""

    def test_same_colours_rejected(self):
        config = Config()
        config.calendar.cancelled_color_id = config.calendar.pending_color_id
        assert any("differ" in e for e in config.validate())

    def test_supervision_shares_exceed_price(self):
        config = Config()
        config.supervision.price = Decimal("40")
        config.supervision.employee_price = Decimal("30")
        config.supervision.company_price = Decimal("20")
        assert config.validate()

    def test_keywords_required_when_enabled(self):
        config = Config()
        config.supervision.keywords = ["  "]
        assert config.validate()

    def test_load_validated_raises(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("matching:\n  min_partial_length: 0\n", encoding="utf-8")
        with pytest.raises(ConfigValidationError, match="min_partial_length"):
            load_validated_config(path)
