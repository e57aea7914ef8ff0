"""Workbook reader and writer for the three import sheets.

Layout::

    Customers               Client ID | Customer Number | Customer Name | Address | Name | Email
    Account                 Account Number | Account Name
    customer account link   Customer Number | Account Number

Row 1 of each sheet is a header. Rows missing a required value are
dropped when reading; fully blank rows are ignored.
"""

from __future__ import annotations

import logging
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator, Sequence

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Font
from openpyxl.utils.exceptions import InvalidFileException

from account_import.exceptions import RecordValidationError, SpreadsheetError
from account_import.models import Account, Customer, CustomerAccountLink

logger = logging.getLogger(__name__)

CUSTOMER_SHEET = "Customers"
ACCOUNT_SHEET = "Account"
LINK_SHEET = "customer account link"

CUSTOMER_HEADERS = ["Client ID", "Customer Number", "Customer Name", "Address", "Name", "Email"]
ACCOUNT_HEADERS = ["Account Number", "Account Name"]
LINK_HEADERS = ["Customer Number", "Account Number"]

HEADER_FONT = Font(bold=True)


@dataclass
class WorkbookData:
    """Records read from one workbook."""

    customers: list[Customer] = field(default_factory=list)
    accounts: list[Account] = field(default_factory=list)
    links: list[CustomerAccountLink] = field(default_factory=list)
    skipped_rows: dict[str, int] = field(default_factory=dict)


def _cell_text(value: Any) -> str:
    """Render a cell value as the text it was written as."""
    if value is None:
        return ""
    # Numeric-looking keys come back as numbers when typed by hand
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _iter_rows(workbook: Workbook, sheet: str, width: int) -> Iterator[list[str]]:
    if sheet not in workbook.sheetnames:
        raise SpreadsheetError(f"sheet {sheet!r} not found")
    worksheet = workbook[sheet]
    # Dimensions recorded by other writers may be stale
    worksheet.reset_dimensions()
    for row in worksheet.iter_rows(min_row=2, max_col=width, values_only=True):
        cells = [_cell_text(v) for v in row]
        cells += [""] * (width - len(cells))
        yield cells


def _read_sheet(workbook: Workbook, sheet: str, width: int, build, skipped: dict[str, int]) -> list:
    records = []
    dropped = 0
    for cells in _iter_rows(workbook, sheet, width):
        if not any(cells):
            continue
        record = build(cells)
        try:
            record.validate()
        except RecordValidationError as e:
            logger.debug("Skipping incomplete row in %s: %s", sheet, e)
            dropped += 1
            continue
        records.append(record)
    skipped[sheet] = dropped
    return records


def read_workbook(path: str | Path) -> WorkbookData:
    """Read customers, accounts and links from ``path``.

    Raises
    ------
    SpreadsheetError
        If the file cannot be opened or a sheet is missing.
    """
    try:
        workbook = load_workbook(filename=path, read_only=True, data_only=True)
    except (OSError, InvalidFileException, zipfile.BadZipFile, KeyError) as e:
        raise SpreadsheetError(f"failed to open workbook {path}: {e}") from e

    data = WorkbookData()
    try:
        data.customers = _read_sheet(
            workbook,
            CUSTOMER_SHEET,
            len(CUSTOMER_HEADERS),
            lambda c: Customer(
                client_id=c[0],
                customer_number=c[1],
                customer_name=c[2],
                address=c[3],
                name=c[4],
                email=c[5],
            ),
            data.skipped_rows,
        )
        data.accounts = _read_sheet(
            workbook,
            ACCOUNT_SHEET,
            len(ACCOUNT_HEADERS),
            lambda c: Account(account_number=c[0], account_name=c[1]),
            data.skipped_rows,
        )
        data.links = _read_sheet(
            workbook,
            LINK_SHEET,
            len(LINK_HEADERS),
            lambda c: CustomerAccountLink(customer_number=c[0], account_number=c[1]),
            data.skipped_rows,
        )
    finally:
        workbook.close()

    return data


def write_workbook(
    path: str | Path,
    customers: Sequence[Customer],
    accounts: Sequence[Account],
    links: Sequence[CustomerAccountLink],
) -> Path:
    """Write the three sheets to ``path``, replacing any existing file.

    Returns
    -------
    Path
        The written file.
    """
    path = Path(path)
    workbook = Workbook()

    sheet = workbook.active
    sheet.title = CUSTOMER_SHEET
    _write_header(sheet, CUSTOMER_HEADERS)
    for c in customers:
        sheet.append([c.client_id, c.customer_number, c.customer_name, c.address, c.name, c.email])

    sheet = workbook.create_sheet(ACCOUNT_SHEET)
    _write_header(sheet, ACCOUNT_HEADERS)
    for a in accounts:
        sheet.append([a.account_number, a.account_name])

    sheet = workbook.create_sheet(LINK_SHEET)
    _write_header(sheet, LINK_HEADERS)
    for link in links:
        sheet.append([link.customer_number, link.account_number])

    try:
        workbook.save(path)
    except OSError as e:
        raise SpreadsheetError(f"failed to save workbook {path}: {e}") from e
    return path


def _write_header(sheet, headers: list[str]) -> None:
    sheet.append(headers)
    for cell in sheet[1]:
        cell.font = HEADER_FONT
