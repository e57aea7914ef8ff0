"""Tests for the three-phase importer."""

import logging
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from account_import.backends import DryRunBackend, ImportBackend
from account_import.exceptions import (
    ImportPhaseError,
    RecordWriteError,
    SpreadsheetError,
)
from account_import.importer import Importer, ImportSummary
from account_import.models import Account, Customer, CustomerAccountLink
from account_import.spreadsheet import write_workbook


class TestImportSummary:
    """Tests for ImportSummary."""

    def test_links_skipped(self) -> None:
        """Test skipped links are derived from read and written."""
        summary = ImportSummary(links_read=10, links_written=7)

        assert summary.links_skipped == 3

    def test_log(self, caplog) -> None:
        """Test the closing block reports every count."""
        caplog.set_level(logging.INFO, logger="account_import")
        summary = ImportSummary(
            customers_read=2,
            customers_written=2,
            accounts_read=3,
            accounts_written=3,
            links_read=4,
            links_written=3,
            elapsed_seconds=75.0,
        )

        summary.log()

        assert "Import Complete! (00:01:15 total)" in caplog.text
        assert "Links: 4 read, 3 written, 1 skipped" in caplog.text


class TestImporter:
    """Tests for Importer."""

    def test_dry_run_import(self, customers, accounts, links) -> None:
        """Test all three phases run and IDs flow into link resolution."""
        backend = DryRunBackend()

        summary = Importer(backend).import_records(customers, accounts, links)

        assert summary.customers_written == 7
        assert summary.accounts_written == 7
        assert summary.links_written == 9
        assert summary.links_skipped == 0
        assert (backend.customers["C1"], backend.accounts["A2"]) in backend.links

    def test_phase_order(self, customers, accounts, links) -> None:
        """Test links are resolved with the maps from the first two phases."""
        backend = MagicMock(spec=ImportBackend)
        backend.insert_customers.return_value = {"C1": 1}
        backend.insert_accounts.return_value = {"A1": 2}
        backend.insert_customer_accounts.return_value = 1

        summary = Importer(backend).import_records(customers, accounts, links)

        backend.insert_customers.assert_called_once_with(customers)
        backend.insert_accounts.assert_called_once_with(accounts)
        backend.insert_customer_accounts.assert_called_once_with(links, {"C1": 1}, {"A1": 2})
        assert summary.links_written == 1
        assert summary.links_skipped == 8

    def test_skipped_links_counted(self) -> None:
        """Test links with unknown keys are reported as skipped."""
        summary = Importer(DryRunBackend()).import_records(
            [Customer("C1", "Acme")],
            [Account("A1", "Main")],
            [CustomerAccountLink("C1", "A1"), CustomerAccountLink("C1", "A404")],
        )

        assert summary.links_written == 1
        assert summary.links_skipped == 1

    def test_phase_failure_stops_import(self, customers, accounts, links) -> None:
        """Test a failing phase is named and later phases never run."""
        backend = MagicMock(spec=ImportBackend)
        backend.insert_customers.return_value = {}
        cause = RecordWriteError("account", "A3", ValueError("boom"))
        backend.insert_accounts.side_effect = cause

        with pytest.raises(ImportPhaseError) as exc_info:
            Importer(backend).import_records(customers, accounts, links)

        assert exc_info.value.phase == "accounts"
        assert exc_info.value.__cause__ is cause
        assert str(exc_info.value) == "failed to insert accounts: failed to insert account A3: boom"
        backend.insert_customer_accounts.assert_not_called()

    def test_link_phase_name(self) -> None:
        """Test link failures carry the link phase name."""
        backend = MagicMock(spec=ImportBackend)
        backend.insert_customers.return_value = {}
        backend.insert_accounts.return_value = {}
        backend.insert_customer_accounts.side_effect = RecordWriteError(
            "customer-account link", "C1-A1", ValueError("fk")
        )

        with pytest.raises(ImportPhaseError, match="failed to insert customer-account links"):
            Importer(backend).import_records([], [], [])

    def test_import_file(self, tmp_path: Path, customers, accounts, links, caplog) -> None:
        """Test importing a workbook end to end."""
        caplog.set_level(logging.INFO, logger="account_import")
        path = write_workbook(tmp_path / "data.xlsx", customers, accounts, links)

        summary = Importer(DryRunBackend()).import_file(path)

        assert summary.customers_read == 7
        assert summary.links_written == 9
        assert summary.elapsed_seconds > 0
        assert "Read 7 customers from file" in caplog.text
        assert "Inserted/Updated 7 accounts" in caplog.text

    def test_import_file_unreadable(self, tmp_path: Path) -> None:
        """Test workbook errors are raised before any phase runs."""
        backend = MagicMock(spec=ImportBackend)

        with pytest.raises(SpreadsheetError):
            Importer(backend).import_file(tmp_path / "absent.xlsx")

        backend.insert_customers.assert_not_called()
