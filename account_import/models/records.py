"""Customer, account and link records as read from the workbook."""

from dataclasses import dataclass

from account_import.exceptions import RecordValidationError


def _require(field: str, value: str) -> None:
    if not value or not value.strip():
        raise RecordValidationError(field, "is required")


@dataclass
class Customer:
    """Customer record keyed by its customer number.

    ``client_id``, ``address``, ``name`` and ``email`` are optional and
    may be empty strings.
    """

    customer_number: str
    customer_name: str
    client_id: str = ""
    address: str = ""
    name: str = ""  # contact person
    email: str = ""

    @property
    def key(self) -> str:
        return self.customer_number

    def validate(self) -> None:
        """Raise RecordValidationError if a required field is blank."""
        _require("customer_number", self.customer_number)
        _require("customer_name", self.customer_name)


@dataclass
class Account:
    """Account record keyed by its account number."""

    account_number: str
    account_name: str

    @property
    def key(self) -> str:
        return self.account_number

    def validate(self) -> None:
        """Raise RecordValidationError if a required field is blank."""
        _require("account_number", self.account_number)
        _require("account_name", self.account_name)


@dataclass(frozen=True)
class CustomerAccountLink:
    """Association between a customer and an account, by natural keys."""

    customer_number: str
    account_number: str

    @property
    def key(self) -> str:
        return f"{self.customer_number}-{self.account_number}"

    def validate(self) -> None:
        """Raise RecordValidationError if either side is blank."""
        _require("customer_number", self.customer_number)
        _require("account_number", self.account_number)
