"""Three-phase import of customers, accounts and links into a backend."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from account_import.backends import ImportBackend
from account_import.exceptions import ImporterError, ImportPhaseError
from account_import.logging import format_duration
from account_import.models import Account, Customer, CustomerAccountLink
from account_import.spreadsheet import read_workbook

logger = logging.getLogger(__name__)


@dataclass
class ImportSummary:
    """Counts and timing of one import run."""

    customers_read: int = 0
    customers_written: int = 0
    accounts_read: int = 0
    accounts_written: int = 0
    links_read: int = 0
    links_written: int = 0
    elapsed_seconds: float = 0.0

    @property
    def links_skipped(self) -> int:
        return self.links_read - self.links_written

    def log(self) -> None:
        """Log the summary block."""
        logger.info("=" * 60)
        logger.info("Import Complete! (%s total)", format_duration(self.elapsed_seconds))
        logger.info("=" * 60)
        logger.info("  - Customers: %d read, %d inserted/updated", self.customers_read, self.customers_written)
        logger.info("  - Accounts: %d read, %d inserted/updated", self.accounts_read, self.accounts_written)
        logger.info(
            "  - Links: %d read, %d written, %d skipped",
            self.links_read,
            self.links_written,
            self.links_skipped,
        )
        logger.info("=" * 60)


class Importer:
    """Drive a backend through customers, then accounts, then links.

    Parameters
    ----------
    backend : ImportBackend
        Destination chosen once at startup.
    """

    def __init__(self, backend: ImportBackend) -> None:
        self.backend = backend

    def import_file(self, path: str | Path) -> ImportSummary:
        """Read ``path`` and import its three sheets.

        Raises
        ------
        SpreadsheetError
            If the workbook cannot be read.
        ImportPhaseError
            If any phase fails; earlier phases are not undone.
        """
        start = time.perf_counter()
        data = read_workbook(path)
        logger.info("Read %d customers from file", len(data.customers))
        logger.info("Read %d accounts from file", len(data.accounts))
        logger.info("Read %d links from file", len(data.links))
        for sheet, dropped in data.skipped_rows.items():
            if dropped:
                logger.info("Skipped %d incomplete rows in sheet %r", dropped, sheet)

        summary = self.import_records(data.customers, data.accounts, data.links)
        summary.elapsed_seconds = time.perf_counter() - start
        return summary

    def import_records(
        self,
        customers: Sequence[Customer],
        accounts: Sequence[Account],
        links: Sequence[CustomerAccountLink],
    ) -> ImportSummary:
        """Run the three phases over already-read records."""
        start = time.perf_counter()
        summary = ImportSummary(
            customers_read=len(customers),
            accounts_read=len(accounts),
            links_read=len(links),
        )

        logger.info("Inserting customers...")
        customer_ids = self._run_phase("customers", self.backend.insert_customers, customers)
        summary.customers_written = len(customer_ids)
        logger.info("Inserted/Updated %d customers", len(customer_ids))

        logger.info("Inserting accounts...")
        account_ids = self._run_phase("accounts", self.backend.insert_accounts, accounts)
        summary.accounts_written = len(account_ids)
        logger.info("Inserted/Updated %d accounts", len(account_ids))

        logger.info("Inserting customer-account links...")
        summary.links_written = self._run_phase(
            "customer-account links",
            self.backend.insert_customer_accounts,
            links,
            customer_ids,
            account_ids,
        )
        logger.info("Inserted %d customer-account links", summary.links_written)

        summary.elapsed_seconds = time.perf_counter() - start
        logger.info("Import completed successfully in %s", format_duration(summary.elapsed_seconds))
        return summary

    @staticmethod
    def _run_phase(phase: str, operation, *args):
        try:
            return operation(*args)
        except ImporterError as e:
            raise ImportPhaseError(phase, e) from e
