"""Tests for roster validation and the roster service."""

from decimal import Decimal

import pytest

from session_payroll.errors import EmployeeNotFoundError, ValidationFailedError
from session_payroll.schemas.roster import Client, Employee
from session_payroll.services import RosterService
from session_payroll.validation import ClientValidator, EmployeeValidator, ErrorCode

EMP = "emp-1"


class TestClientValidator:
    """Client pricing and naming rules."""

    def test_valid_client(self):
        client = Client.create("Maria Papadopoulou", EMP, "50.00", "22.50", "27.50")
        assert ClientValidator().validate(client).is_valid

    def test_blank_name(self):
        result = ClientValidator().validate(Client.create("  ", EMP, "10", "5", "5"))
        assert result.codes_for("name") == [ErrorCode.REQUIRED_FIELD]

    def test_negative_price(self):
        result = ClientValidator().validate(Client.create("A B", EMP, "-10", "0", "0"))
        assert ErrorCode.NEGATIVE_VALUE in result.codes_for("price")

    def test_price_above_maximum(self):
        result = ClientValidator().validate(Client.create("A B", EMP, "1500", "700", "800"))
        assert ErrorCode.EXCEEDS_MAXIMUM in result.codes_for("price")

    def test_share_exceeds_total(self):
        result = ClientValidator().validate(Client.create("A B", EMP, "50", "60", "0"))
        assert ErrorCode.INVALID_VALUE in result.codes_for("employee_price")

    def test_shares_must_add_up(self):
        result = ClientValidator().validate(Client.create("A B", EMP, "50", "20", "20"))
        assert result.codes_for("company_price") == [ErrorCode.PRICE_MISMATCH]

    def test_shares_within_tolerance(self):
        client = Client.create("A B", EMP, "50.00", "25.00", "24.99")
        assert ClientValidator().validate(client).is_valid

    def test_non_finite_price(self):
        client = Client(name="A B", employee_id=EMP, price=Decimal("NaN"))
        result = ClientValidator().validate(client)
        assert result.codes_for("price") == [ErrorCode.INVALID_NUMBER]

    def test_duplicate_name_case_insensitive(self):
        existing = [Client.create("Maria Papadopoulou", EMP, "50", "25", "25", id=1)]
        candidate = Client.create("MARIA papadopoulou", EMP, "50", "25", "25")

        result = ClientValidator().validate(candidate, existing)
        assert result.codes_for("name") == [ErrorCode.DUPLICATE]

    def test_same_client_is_not_duplicate(self):
        existing = [Client.create("Maria Papadopoulou", EMP, "50", "25", "25", id=1)]
        assert ClientValidator().validate(existing[0], existing).is_valid

    def test_raise_if_invalid(self):
        result = ClientValidator().validate(Client.create("", EMP, "-1", "0", "0"))
        with pytest.raises(ValidationFailedError) as exc_info:
            result.raise_if_invalid()
        assert len(exc_info.value.errors) == len(result.errors)


class TestEmployeeValidator:
    """Employee rules."""

    def test_valid_employee(self):
        employee = Employee(id=EMP, name="Eleni", email="eleni@example.com")
        assert EmployeeValidator().validate(employee).is_valid

    def test_email_optional(self):
        assert EmployeeValidator().validate(Employee(id=EMP, name="Eleni")).is_valid

    def test_invalid_email(self):
        result = EmployeeValidator().validate(Employee(id=EMP, name="Eleni", email="eleni@"))
        assert result.codes_for("email") == [ErrorCode.INVALID_FORMAT]

    def test_supervision_price_limit(self):
        employee = Employee(id=EMP, name="Eleni", supervision_price=Decimal("900"))
        result = EmployeeValidator().validate(employee)
        assert result.codes_for("supervision_price") == [ErrorCode.EXCEEDS_MAXIMUM]

    def test_duplicate_email(self):
        existing = [Employee(id="other", name="Other", email="Eleni@Example.com")]
        employee = Employee(id=EMP, name="Eleni", email="eleni@example.com")
        result = EmployeeValidator().validate(employee, existing)
        assert result.codes_for("email") == [ErrorCode.DUPLICATE]


class TestRosterService:
    """Validated writes through the store."""

    @pytest.fixture
    def roster(self, store) -> RosterService:
        return RosterService(store)

    def test_add_employee_and_client(self, roster):
        employee = roster.add_employee("Eleni Markou", email="eleni@example.com")
        client = roster.add_client(
            employee.id,
            "Maria Papadopoulou",
            Decimal("50"),
            Decimal("22.50"),
            Decimal("27.50"),
        )

        assert [c.name for c in roster.list_clients(employee.id)] == [client.name]

    def test_add_client_validates(self, roster):
        employee = roster.add_employee("Eleni Markou")
        with pytest.raises(ValidationFailedError):
            roster.add_client(employee.id, "Maria", Decimal("50"), Decimal("10"), Decimal("10"))

    def test_add_duplicate_client(self, roster):
        employee = roster.add_employee("Eleni Markou")
        roster.add_client(employee.id, "Maria", Decimal("50"), Decimal("25"), Decimal("25"))
        with pytest.raises(ValidationFailedError):
            roster.add_client(employee.id, "maria", Decimal("50"), Decimal("25"), Decimal("25"))

    def test_add_client_unknown_employee(self, roster):
        with pytest.raises(EmployeeNotFoundError):
            roster.add_client("nobody", "Maria", Decimal("50"), Decimal("25"), Decimal("25"))

    def test_add_employee_validates(self, roster):
        with pytest.raises(ValidationFailedError):
            roster.add_employee("  ")

    def test_remove_client(self, roster):
        employee = roster.add_employee("Eleni Markou")
        roster.add_client(employee.id, "Maria", Decimal("50"), Decimal("25"), Decimal("25"))

        assert roster.remove_client(employee.id, "Maria") is True
        assert roster.remove_client(employee.id, "Maria") is False
        assert roster.list_clients(employee.id) == []

    def test_update_employee(self, roster):
        employee = roster.add_employee("Eleni Markou")
        roster.update_employee(
            Employee(id=employee.id, name="Eleni Markou", calendar_id="eleni@example.com")
        )
        assert roster.get_employee(employee.id).calendar_id == "eleni@example.com"
