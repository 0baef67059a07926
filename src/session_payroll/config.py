"""
Configuration management (SSOT).

This module defines ALL configuration for the session payroll engine.
All config keys are defined here; no other module should invent config keys.

Key invariants:
- Money values in config are parsed to Decimal, never float
- Supervision shares can never exceed the supervision price
- Grey and red colour ids must differ (they mean opposite things)
"""

import os
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path

import yaml

from .schemas.money import to_decimal
from .schemas.payroll import (
    DEFAULT_SUPERVISION_KEYWORDS,
    SUPERVISION_ENTRY_NAME,
    SupervisionConfig,
)


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""

    pass


@dataclass
class MatchingConfig:
    """Client matching settings."""

    # Minimum length of a lone first name / surname for partial matches
    min_partial_length: int = 4


@dataclass
class CalendarConfig:
    """Calendar export settings.

    Colour ids follow the calendar provider's palette:
    - pending_color_id: cancelled, but the client still owes the session
    - cancelled_color_id: cancelled, not billed
    """

    events_file: Path = field(default_factory=lambda: Path("data/calendar.json"))
    pending_color_id: str = "8"
    cancelled_color_id: str = "11"


@dataclass
class SupervisionSettings:
    """Supervision session pricing (pooled into one payroll entry)."""

    enabled: bool = True
    price: Decimal = Decimal("0")
    employee_price: Decimal = Decimal("0")
    company_price: Decimal = Decimal("0")
    keywords: list[str] = field(default_factory=lambda: list(DEFAULT_SUPERVISION_KEYWORDS))
    entry_name: str = SUPERVISION_ENTRY_NAME

    def to_supervision_config(self) -> SupervisionConfig:
        """Build the calculation-time supervision config."""
        return SupervisionConfig(
            enabled=self.enabled,
            price=self.price,
            employee_price=self.employee_price,
            company_price=self.company_price,
            keywords=tuple(self.keywords),
            entry_name=self.entry_name,
        )


@dataclass
class ValidationConfig:
    """Roster validation limits (SSOT)."""

    # Maximum total price of one client session
    max_session_price: Decimal = Decimal("1000")
    # Maximum supervision price per employee
    max_supervision_price: Decimal = Decimal("500")
    # Allowed drift between price and employee + company shares
    price_tolerance: Decimal = Decimal("0.01")


@dataclass
class Config:
    """Application configuration (SSOT)."""

    matching: MatchingConfig = field(default_factory=MatchingConfig)
    calendar: CalendarConfig = field(default_factory=CalendarConfig)
    supervision: SupervisionSettings = field(default_factory=SupervisionSettings)
    validation: ValidationConfig = field(default_factory=ValidationConfig)
    state_db_path: Path = field(default_factory=lambda: Path("data/payroll.db"))

    def validate(self) -> list[str]:
        """Validate configuration completeness and consistency.

        Returns:
            List of validation errors (empty if valid)
        """
        errors: list[str] = []

        if self.matching.min_partial_length < 1:
            errors.append("matching.min_partial_length must be >= 1")

        if not self.calendar.pending_color_id or not self.calendar.cancelled_color_id:
            errors.append("calendar colour ids are required")
        elif self.calendar.pending_color_id == self.calendar.cancelled_color_id:
            errors.append("calendar.pending_color_id must differ from cancelled_color_id")

        sup = self.supervision
        for name in ("price", "employee_price", "company_price"):
            if getattr(sup, name) < 0:
                errors.append(f"supervision.{name} must be >= 0")
        if sup.price and sup.employee_price + sup.company_price > sup.price:
            errors.append("supervision shares must not exceed supervision.price")
        if sup.enabled and not [k for k in sup.keywords if k.strip()]:
            errors.append("supervision.keywords is required when supervision is enabled")

        if self.validation.max_session_price <= 0:
            errors.append("validation.max_session_price must be > 0")

        return errors


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name, "").lower()
    if value in ("1", "true", "yes"):
        return True
    if value in ("0", "false", "no"):
        return False
    return default


def load_config(config_path: Path) -> Config:
    """
    Load configuration from YAML file.

    Environment variables can override config values:
    - SESSION_PAYROLL_DB (state database path)
    - SESSION_PAYROLL_EVENTS_FILE (calendar export path)
    - SESSION_PAYROLL_SUPERVISION_ENABLED (true/false)
    """
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    else:
        data = {}

    # Matching config
    matching_data = data.get("matching", {})
    matching = MatchingConfig(
        min_partial_length=int(matching_data.get("min_partial_length", 4)),
    )

    # Calendar config
    calendar_data = data.get("calendar", {})
    calendar = CalendarConfig(
        events_file=Path(
            os.environ.get(
                "SESSION_PAYROLL_EVENTS_FILE",
                calendar_data.get("events_file", "data/calendar.json"),
            )
        ),
        pending_color_id=str(calendar_data.get("pending_color_id", "8")),
        cancelled_color_id=str(calendar_data.get("cancelled_color_id", "11")),
    )

    # Supervision config
    sup_data = data.get("supervision", {})
    try:
        supervision = SupervisionSettings(
            enabled=_env_bool(
                "SESSION_PAYROLL_SUPERVISION_ENABLED", bool(sup_data.get("enabled", True))
            ),
            price=to_decimal(sup_data.get("price")),
            employee_price=to_decimal(sup_data.get("employee_price")),
            company_price=to_decimal(sup_data.get("company_price")),
            keywords=[str(k) for k in sup_data.get("keywords", DEFAULT_SUPERVISION_KEYWORDS)],
            entry_name=sup_data.get("entry_name", SUPERVISION_ENTRY_NAME),
        )
    except ValueError as e:
        raise ConfigValidationError(f"supervision: {e}") from e

    # Validation limits
    limits_data = data.get("validation", {})
    try:
        validation = ValidationConfig(
            max_session_price=to_decimal(limits_data.get("max_session_price", "1000")),
            max_supervision_price=to_decimal(limits_data.get("max_supervision_price", "500")),
            price_tolerance=to_decimal(limits_data.get("price_tolerance", "0.01")),
        )
    except ValueError as e:
        raise ConfigValidationError(f"validation: {e}") from e

    # State DB
    state_db = os.environ.get("SESSION_PAYROLL_DB", data.get("state_db_path", "data/payroll.db"))

    return Config(
        matching=matching,
        calendar=calendar,
        supervision=supervision,
        validation=validation,
        state_db_path=Path(state_db),
    )


def load_validated_config(config_path: Path) -> Config:
    """Load configuration and raise if it is inconsistent.

    Raises:
        ConfigValidationError: If any validation rule fails.
    """
    config = load_config(config_path)
    errors = config.validate()
    if errors:
        raise ConfigValidationError("; ".join(errors))
    return config


def create_default_config(config_path: Path) -> None:
    """Create a default configuration file."""
    default_config = """# Session Payroll Configuration
#
# Money values are per session and use a dot as decimal separator.

# Client matching
matching:
  min_partial_length: 4          # Lone first name / surname must be at least this long

# Calendar export (JSON or YAML)
calendar:
  events_file: "data/calendar.json"
  pending_color_id: "8"          # Grey: cancelled, client still owes
  cancelled_color_id: "11"       # Red: cancelled, not billed

# Supervision sessions are pooled into one entry
supervision:
  enabled: true
  price: 0.00                    # 0 = use the employee's supervision price
  employee_price: 0.00
  company_price: 0.00
  keywords:
    - "Εποπτεία"
    - "Supervision"
  entry_name: "Εποπτεία (Supervision)"

# Roster validation limits
validation:
  max_session_price: 1000
  max_supervision_price: 500
  price_tolerance: 0.01

# State database path
state_db_path: "data/payroll.db"
"""

    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w", encoding="utf-8") as f:
        f.write(default_config)
