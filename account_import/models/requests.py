"""Wire and insert representations of the import records.

The API backend posts ``to_payload()`` dictionaries as JSON; the
PostgreSQL backend binds ``to_params()`` tuples to its upsert statements.
Optional customer fields are left out of the JSON payload when empty and
stored as SQL ``NULL``.
"""

from dataclasses import dataclass, fields
from typing import Any

from account_import.exceptions import RecordValidationError
from account_import.models.records import Account, Customer


def _empty_to_none(value: object) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


@dataclass
class CustomerRequest:
    """Body of ``POST /customers``."""

    customer_number: str
    customer_name: str
    client_id: str | None = None
    address: str | None = None
    name: str | None = None
    email: str | None = None

    OPTIONAL = ("client_id", "address", "name", "email")

    def to_payload(self) -> dict[str, Any]:
        """Convert to JSON body, omitting empty optional fields."""
        payload = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None and f.name in self.OPTIONAL:
                continue
            payload[f.name] = value
        return payload

    def to_params(self) -> tuple[Any, ...]:
        """Positional parameters for the customers upsert."""
        return (
            self.client_id,
            self.customer_number,
            self.customer_name,
            self.address,
            self.name,
            self.email,
        )

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "CustomerRequest":
        """Build a request from a decoded JSON body.

        Raises
        ------
        RecordValidationError
            If a required field is missing or blank.
        """
        request = cls(
            customer_number=str(data.get("customer_number") or "").strip(),
            customer_name=str(data.get("customer_name") or "").strip(),
            client_id=_empty_to_none(data.get("client_id")),
            address=_empty_to_none(data.get("address")),
            name=_empty_to_none(data.get("name")),
            email=_empty_to_none(data.get("email")),
        )
        Customer(request.customer_number, request.customer_name).validate()
        return request


@dataclass
class AccountRequest:
    """Body of ``POST /accounts``."""

    account_number: str
    account_name: str

    def to_payload(self) -> dict[str, Any]:
        return {"account_number": self.account_number, "account_name": self.account_name}

    def to_params(self) -> tuple[Any, ...]:
        return (self.account_number, self.account_name)

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "AccountRequest":
        request = cls(
            account_number=str(data.get("account_number") or "").strip(),
            account_name=str(data.get("account_name") or "").strip(),
        )
        Account(request.account_number, request.account_name).validate()
        return request


@dataclass
class CustomerAccountLinkRequest:
    """Body of ``POST /customer-accounts``, using surrogate IDs."""

    customer_id: int
    account_id: int

    def to_payload(self) -> dict[str, Any]:
        return {"customer_id": self.customer_id, "account_id": self.account_id}

    def to_params(self) -> tuple[Any, ...]:
        return (self.customer_id, self.account_id)

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "CustomerAccountLinkRequest":
        ids = {}
        for name in ("customer_id", "account_id"):
            value = data.get(name)
            # bool is an int subclass but never a valid id
            if isinstance(value, bool) or not isinstance(value, int):
                raise RecordValidationError(name, "must be an integer")
            ids[name] = value
        return cls(**ids)


def to_customer_request(customer: Customer) -> CustomerRequest:
    """Convert a workbook customer to its wire/insert form."""
    return CustomerRequest(
        customer_number=customer.customer_number.strip(),
        customer_name=customer.customer_name.strip(),
        client_id=_empty_to_none(customer.client_id),
        address=_empty_to_none(customer.address),
        name=_empty_to_none(customer.name),
        email=_empty_to_none(customer.email),
    )


def to_account_request(account: Account) -> AccountRequest:
    """Convert a workbook account to its wire/insert form."""
    return AccountRequest(
        account_number=account.account_number.strip(),
        account_name=account.account_name.strip(),
    )


def to_link_request(customer_id: int, account_id: int) -> CustomerAccountLinkRequest:
    """Build a link request from resolved surrogate IDs."""
    return CustomerAccountLinkRequest(customer_id=customer_id, account_id=account_id)
