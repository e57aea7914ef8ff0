"""In-memory backend for rehearsing an import without side effects."""

from __future__ import annotations

import itertools
import logging
from typing import Sequence

from account_import.backends.base import ImportBackend, resolve_link
from account_import.models import Account, Customer, CustomerAccountLink

logger = logging.getLogger(__name__)


class DryRunBackend(ImportBackend):
    """Assign sequential IDs in memory, keyed by natural key.

    Repeated natural keys get their existing ID back and link pairs are
    stored once, mirroring the upsert semantics of the real backends.
    """

    name = "dry-run"

    def __init__(self) -> None:
        self._next_id = itertools.count(1)
        self.customers: dict[str, int] = {}
        self.accounts: dict[str, int] = {}
        self.links: set[tuple[int, int]] = set()

    def insert_customers(self, customers: Sequence[Customer]) -> dict[str, int]:
        return self._assign(self.customers, (c.customer_number.strip() for c in customers))

    def insert_accounts(self, accounts: Sequence[Account]) -> dict[str, int]:
        return self._assign(self.accounts, (a.account_number.strip() for a in accounts))

    def insert_customer_accounts(
        self,
        links: Sequence[CustomerAccountLink],
        customer_ids: dict[str, int],
        account_ids: dict[str, int],
    ) -> int:
        written = 0
        for link in links:
            resolved = resolve_link(link, customer_ids, account_ids)
            if resolved is None:
                continue
            self.links.add(resolved)
            written += 1
        return written

    def close(self) -> None:
        logger.info(
            "Dry run held %d customers, %d accounts, %d links",
            len(self.customers),
            len(self.accounts),
            len(self.links),
        )

    def _assign(self, table: dict[str, int], keys) -> dict[str, int]:
        ids: dict[str, int] = {}
        for key in keys:
            if key not in table:
                table[key] = next(self._next_id)
            ids[key] = table[key]
        return ids
