"""Contract shared by every import backend."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Iterable, Sequence

from account_import.models import Account, Customer, CustomerAccountLink

logger = logging.getLogger(__name__)


class ImportBackend(ABC):
    """Bulk insert-or-update of customers and accounts, plus link insertion.

    ``insert_customers`` and ``insert_accounts`` return the surrogate ID of
    every record keyed by its natural key. ``insert_customer_accounts``
    resolves each link through those maps; links whose customer or account
    number is missing from the maps are logged and skipped.

    Backends are context managers and release their connections on exit.
    """

    name = "backend"

    @abstractmethod
    def insert_customers(self, customers: Sequence[Customer]) -> dict[str, int]:
        """Upsert customers, returning ``customer_number -> id``."""

    @abstractmethod
    def insert_accounts(self, accounts: Sequence[Account]) -> dict[str, int]:
        """Upsert accounts, returning ``account_number -> id``."""

    @abstractmethod
    def insert_customer_accounts(
        self,
        links: Sequence[CustomerAccountLink],
        customer_ids: dict[str, int],
        account_ids: dict[str, int],
    ) -> int:
        """Insert resolvable links, returning how many were written."""

    @abstractmethod
    def close(self) -> None:
        """Release connections held by the backend."""

    def __enter__(self) -> ImportBackend:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def resolve_link(
    link: CustomerAccountLink,
    customer_ids: dict[str, int],
    account_ids: dict[str, int],
) -> tuple[int, int] | None:
    """Map a link's natural keys to surrogate IDs.

    Returns None, after logging a warning, when either side is unknown.
    """
    customer_id = customer_ids.get(link.customer_number.strip())
    if customer_id is None:
        logger.warning("Customer number %s not found, skipping link", link.customer_number)
        return None

    account_id = account_ids.get(link.account_number.strip())
    if account_id is None:
        logger.warning("Account number %s not found, skipping link", link.account_number)
        return None

    return customer_id, account_id


def chunked(records: Iterable, size: int) -> Iterable[list]:
    """Yield consecutive lists of at most ``size`` records."""
    batch: list = []
    for record in records:
        batch.append(record)
        if len(batch) == size:
            yield batch
            batch = []
    if batch:
        yield batch
