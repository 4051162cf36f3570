"""
Spreadsheet Export

Writes transactions to an .xlsx workbook with openpyxl.
One sheet, a header row of transaction fields, one row per transaction.
"""

from io import BytesIO
from pathlib import Path
from typing import Iterable, Optional, Union

from openpyxl import Workbook

from smallbiz.ledger.errors import EmptySelectionError
from smallbiz.models.transaction import TRANSACTION_COLUMNS, Transaction
from smallbiz.observability import get_logger


XLSX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

ALL_TRANSACTIONS_SHEET = "Transactions"
SELECTED_TRANSACTIONS_SHEET = "Selected Transactions"
ALL_TRANSACTIONS_FILENAME = "transactions.xlsx"
SELECTED_TRANSACTIONS_FILENAME = "selected-transactions.xlsx"

EMPTY_EXPORT_SELECTION = "Please select transactions to export"


def build_workbook(
    transactions: Iterable[Transaction],
    sheet_title: str = ALL_TRANSACTIONS_SHEET,
) -> Workbook:
    """Build an in-memory workbook holding the transactions."""
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_title
    ws.append(list(TRANSACTION_COLUMNS))
    for transaction in transactions:
        ws.append(transaction.to_row())
    return wb


def export_transactions_xlsx(
    transactions: Iterable[Transaction],
    destination: Optional[Union[str, Path]] = None,
    sheet_title: str = ALL_TRANSACTIONS_SHEET,
) -> bytes:
    """
    Export transactions as .xlsx.

    Returns the workbook bytes; also writes them to destination if given.
    """
    transactions = list(transactions)
    wb = build_workbook(transactions, sheet_title)

    bio = BytesIO()
    wb.save(bio)
    content = bio.getvalue()

    if destination is not None:
        Path(destination).write_bytes(content)

    get_logger(__name__).info(
        "export_generated",
        format="xlsx",
        sheet=sheet_title,
        rows=len(transactions),
        destination=str(destination) if destination else None,
    )
    return content


def export_selected_xlsx(
    selected: Iterable[Transaction],
    destination: Optional[Union[str, Path]] = None,
) -> bytes:
    """
    Export only the selected transactions.

    Raises:
        EmptySelectionError: Nothing was selected
    """
    selected = list(selected)
    if not selected:
        raise EmptySelectionError(EMPTY_EXPORT_SELECTION)
    return export_transactions_xlsx(
        selected,
        destination=destination,
        sheet_title=SELECTED_TRANSACTIONS_SHEET,
    )
