"""
CLI main entry point.
"""

import argparse
import json
import logging
import sys
from datetime import datetime, time
from decimal import Decimal
from pathlib import Path

from ..calendar_source import FileEventSource
from ..config import Config, ConfigValidationError, create_default_config, load_validated_config
from ..errors import PayrollError
from ..schemas.money import to_decimal
from ..services import (
    MatchConfirmationService,
    PayrollCalculationService,
    RosterService,
)
from ..state_store import StateStore

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _money(value: str) -> Decimal:
    """argparse type for prices."""
    try:
        return to_decimal(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def _day(value: str) -> datetime:
    """argparse type for YYYY-MM-DD dates."""
    try:
        return datetime.strptime(value, "%Y-%m-%d")
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Invalid date '{value}' (expected YYYY-MM-DD)") from e


def create_cli() -> argparse.ArgumentParser:
    """Create CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="session-payroll",
        description="Match calendar sessions to clients and calculate employee payroll",
    )

    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=Path("config.yaml"),
        help="Path to config file (default: config.yaml)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # init command
    subparsers.add_parser("init", help="Write a default config and create the database")

    # employee commands
    employee_parser = subparsers.add_parser("employee", help="Manage employees")
    employee_sub = employee_parser.add_subparsers(dest="action", help="Employee action")
    employee_add = employee_sub.add_parser("add", help="Add an employee")
    employee_add.add_argument("--name", required=True, help="Employee name")
    employee_add.add_argument("--email", default="", help="Employee email")
    employee_add.add_argument("--calendar-id", default="", help="Calendar id to read events from")
    employee_add.add_argument(
        "--supervision-price", type=_money, default=None, help="Supervision price per session"
    )
    employee_add.add_argument("--id", dest="employee_id", default="", help="Explicit employee id")
    employee_sub.add_parser("list", help="List employees")

    # client commands
    client_parser = subparsers.add_parser("client", help="Manage an employee's clients")
    client_sub = client_parser.add_subparsers(dest="action", help="Client action")
    client_add = client_sub.add_parser("add", help="Add a client")
    client_add.add_argument("--employee", required=True, help="Employee id")
    client_add.add_argument("--name", required=True, help="Client name")
    client_add.add_argument("--price", type=_money, required=True, help="Total session price")
    client_add.add_argument(
        "--employee-price", type=_money, required=True, help="Employee share per session"
    )
    client_add.add_argument(
        "--company-price", type=_money, required=True, help="Company share per session"
    )
    client_list = client_sub.add_parser("list", help="List clients")
    client_list.add_argument("--employee", required=True, help="Employee id")
    client_remove = client_sub.add_parser("remove", help="Remove a client")
    client_remove.add_argument("--employee", required=True, help="Employee id")
    client_remove.add_argument("--name", required=True, help="Client name (exact)")

    # calculate command
    calc_parser = subparsers.add_parser("calculate", help="Calculate payroll for a period")
    calc_parser.add_argument("--employee", required=True, help="Employee id")
    calc_parser.add_argument("--start", type=_day, required=True, help="First day (YYYY-MM-DD)")
    calc_parser.add_argument("--end", type=_day, required=True, help="Last day (YYYY-MM-DD)")
    calc_parser.add_argument("--json", action="store_true", help="Print the report as JSON")
    calc_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Do not record pending sessions or update client flags",
    )

    # confirm command
    confirm_parser = subparsers.add_parser(
        "confirm", help="Confirm which client an uncertain title belongs to"
    )
    confirm_parser.add_argument("--employee", required=True, help="Employee id")
    confirm_parser.add_argument("--title", required=True, help="Event title")
    confirm_parser.add_argument(
        "--client", default=None, help="Client name (default: the suggested match)"
    )

    # reject command
    reject_parser = subparsers.add_parser(
        "reject", help="Mark an uncertain title as not a client session"
    )
    reject_parser.add_argument("--employee", required=True, help="Employee id")
    reject_parser.add_argument("--title", required=True, help="Event title")

    # confirmations command
    confirmations_parser = subparsers.add_parser(
        "confirmations", help="List stored confirmations and rejections"
    )
    confirmations_parser.add_argument("--employee", required=True, help="Employee id")
    confirmations_parser.add_argument("--json", action="store_true", help="Print as JSON")

    # calendars command
    subparsers.add_parser("calendars", help="List calendars in the calendar export")

    return parser


def _event_source(config: Config) -> FileEventSource:
    return FileEventSource(
        config.calendar.events_file,
        pending_color_id=config.calendar.pending_color_id,
        cancelled_color_id=config.calendar.cancelled_color_id,
        supervision_keywords=config.supervision.keywords,
    )


def cmd_init(config: Config, config_path: Path) -> int:
    """Write a default config (if missing) and create the database."""
    if config_path.exists():
        print(f"⏭ Config already exists: {config_path}")
    else:
        create_default_config(config_path)
        print(f"✓ Wrote default config: {config_path}")

    StateStore(config.state_db_path)
    print(f"✓ Database ready: {config.state_db_path}")
    return 0


def cmd_employee(config: Config, parsed: argparse.Namespace) -> int:
    """Add or list employees."""
    roster = RosterService(StateStore(config.state_db_path), config.validation)

    if parsed.action == "add":
        employee = roster.add_employee(
            name=parsed.name,
            email=parsed.email,
            calendar_id=parsed.calendar_id,
            supervision_price=parsed.supervision_price,
            employee_id=parsed.employee_id,
        )
        print(f"✓ Added employee {employee.name} (id: {employee.id})")
        return 0

    if parsed.action == "list":
        employees = roster.list_employees()
        for employee in employees:
            calendar = employee.calendar_id or "no calendar"
            print(f"  👤 [{employee.id}] {employee.name} <{employee.email}> ({calendar})")
        print(f"\n✓ {len(employees)} employee(s)")
        return 0

    print("❌ Specify an employee action: add, list")
    return 1


def cmd_client(config: Config, parsed: argparse.Namespace) -> int:
    """Add, list or remove clients."""
    roster = RosterService(StateStore(config.state_db_path), config.validation)

    if parsed.action == "add":
        client = roster.add_client(
            employee_id=parsed.employee,
            name=parsed.name,
            price=parsed.price,
            employee_price=parsed.employee_price,
            company_price=parsed.company_price,
        )
        print(
            f"✓ Added client {client.name}: {client.price} "
            f"(employee {client.employee_price} / company {client.company_price})"
        )
        return 0

    if parsed.action == "list":
        clients = roster.list_clients(parsed.employee)
        for client in clients:
            flag = " ⏳ pending balance" if client.has_pending_balance else ""
            print(
                f"  👥 {client.name}: {client.price} "
                f"({client.employee_price} / {client.company_price}){flag}"
            )
        print(f"\n✓ {len(clients)} client(s)")
        return 0

    if parsed.action == "remove":
        if roster.remove_client(parsed.employee, parsed.name):
            print(f"✓ Removed client {parsed.name}")
            return 0
        print(f"❌ Client not found: {parsed.name}")
        return 1

    print("❌ Specify a client action: add, list, remove")
    return 1


def cmd_calculate(
    config: Config,
    employee_id: str,
    start: datetime,
    end: datetime,
    as_json: bool = False,
    dry_run: bool = False,
) -> int:
    """Calculate payroll for one employee and period."""
    service = PayrollCalculationService(
        StateStore(config.state_db_path), _event_source(config), config
    )
    period_end = datetime.combine(end.date(), time(23, 59, 59))
    result = service.calculate(employee_id, start, period_end, persist=not dry_run)

    if not result.success:
        print(f"❌ Calculation failed: {result.error}")
        return 1

    report = result.report
    if as_json:
        print(json.dumps(report.to_dict(), indent=2, ensure_ascii=False))
        return 0

    print(f"\n📊 Payroll: {report.employee.name}")
    print(f"   {report.period_start.date()} → {report.period_end.date()}")
    print("=" * 60)
    for entry in report.entries:
        marker = "🧭" if entry.is_supervision else "👥"
        print(
            f"  {marker} {entry.client_name}: {entry.sessions_count} × {entry.client_price}"
            f" = {entry.total_revenue}"
        )
        print(
            f"     → Employee: {entry.employee_earnings}  Company: {entry.company_earnings}"
        )
        breakdown = entry.breakdown
        if breakdown and (breakdown.pending_sessions or breakdown.paid_pending_count):
            print(
                f"     → Pending: {breakdown.pending_sessions}  "
                f"Paid for pending: {breakdown.paid_pending_count}  "
                f"Still owed from before: {breakdown.unresolved_pending_count}"
            )
    print("-" * 60)
    print(f"  Sessions:          {report.total_sessions}")
    print(f"  Revenue:           {report.total_revenue}")
    print(f"  Employee earnings: {report.total_employee_earnings}")
    print(f"  Company earnings:  {report.total_company_earnings}")

    if report.uncertain_matches:
        print(f"\n❓ {len(report.uncertain_matches)} uncertain match(es):")
        for match in report.uncertain_matches:
            options = ", ".join(
                f"{m.client_name} ({m.confidence.value})" for m in match.possible_matches
            )
            print(f"   - '{match.event_title}' → {options}")

    if report.unmatched_events:
        print(f"\n⚠️  {len(report.unmatched_events)} unmatched event(s):")
        for event in report.unmatched_events:
            print(f"   - {event.start_time:%Y-%m-%d %H:%M} '{event.title}'")

    if report.rejected_events:
        print(f"\n🚫 {len(report.rejected_events)} rejected event(s) skipped")

    for warning in report.warnings:
        print(f"⚠️  {warning}")
    print()
    return 0


def cmd_confirm(config: Config, employee_id: str, title: str, client_name: str | None) -> int:
    """Confirm an uncertain title as a client."""
    service = MatchConfirmationService(StateStore(config.state_db_path))
    match = service.build_match(title, employee_id, tuple(config.supervision.keywords))
    outcome = service.confirm_match(match, employee_id, client_name)

    if not outcome.success:
        print(f"❌ {outcome.message}")
        return 1
    print(f"✓ '{outcome.event_title}' → {outcome.client_name}")
    return 0


def cmd_reject(config: Config, employee_id: str, title: str) -> int:
    """Reject an uncertain title."""
    service = MatchConfirmationService(StateStore(config.state_db_path))
    outcome = service.reject_match(service.build_match(title, employee_id), employee_id)

    if not outcome.success:
        print(f"❌ {outcome.message}")
        return 1
    print(f"✓ '{outcome.event_title}' will be skipped from now on")
    return 0


def cmd_confirmations(config: Config, employee_id: str, as_json: bool = False) -> int:
    """List stored decisions for an employee."""
    records = StateStore(config.state_db_path).list_confirmations(employee_id)

    if as_json:
        print(json.dumps([r.to_dict() for r in records], indent=2, ensure_ascii=False))
        return 0

    for record in records:
        if record.resolution.is_confirmed:
            print(f"  ✓ '{record.event_title}' → {record.resolution.client_name}")
        else:
            print(f"  🚫 '{record.event_title}' (rejected)")
    print(f"\n✓ {len(records)} decision(s)")
    return 0


def cmd_calendars(config: Config) -> int:
    """List calendars available in the export file."""
    calendars = _event_source(config).get_calendar_list()
    for calendar in calendars:
        primary = " (primary)" if calendar.is_primary else ""
        print(f"  📅 [{calendar.id}] {calendar.name}{primary}")
    print(f"\n✓ {len(calendars)} calendar(s)")
    return 0


def main(args: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_cli()
    parsed = parser.parse_args(args)

    setup_logging(parsed.verbose)

    if not parsed.command:
        parser.print_help()
        return 1

    # Load config
    try:
        config = load_validated_config(parsed.config)
    except ConfigValidationError as e:
        print(f"❌ Invalid config: {e}")
        return 1

    # Route to command
    try:
        if parsed.command == "init":
            return cmd_init(config, parsed.config)
        elif parsed.command == "employee":
            return cmd_employee(config, parsed)
        elif parsed.command == "client":
            return cmd_client(config, parsed)
        elif parsed.command == "calculate":
            return cmd_calculate(
                config,
                parsed.employee,
                parsed.start,
                parsed.end,
                as_json=parsed.json,
                dry_run=parsed.dry_run,
            )
        elif parsed.command == "confirm":
            return cmd_confirm(config, parsed.employee, parsed.title, parsed.client)
        elif parsed.command == "reject":
            return cmd_reject(config, parsed.employee, parsed.title)
        elif parsed.command == "confirmations":
            return cmd_confirmations(config, parsed.employee, as_json=parsed.json)
        elif parsed.command == "calendars":
            return cmd_calendars(config)
        else:
            parser.print_help()
            return 1
    except PayrollError as e:
        print(f"❌ {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
