"""Tests for spreadsheet and PDF exports."""

import pytest
from datetime import date
from io import BytesIO

from openpyxl import load_workbook

from smallbiz.ledger import EmptySelectionError
from smallbiz.models.transaction import TRANSACTION_COLUMNS, Transaction, TransactionType
from smallbiz.services.export import (
    export_report_pdf,
    export_selected_xlsx,
    export_transactions_xlsx,
)
from smallbiz.services.export.pdf import report_filename
from smallbiz.services.export.spreadsheet import (
    EMPTY_EXPORT_SELECTION,
    SELECTED_TRANSACTIONS_SHEET,
)

from tests.factories import make_draft


@pytest.fixture
def transactions():
    return [
        Transaction.from_draft("1", make_draft(amount="10.50", notes="first")),
        Transaction.from_draft("2", make_draft(amount="3.00", kind=TransactionType.EXPENSE)),
    ]


class TestSpreadsheetExport:
    """Tests for the .xlsx export."""

    def test_header_and_rows(self, transactions):
        content = export_transactions_xlsx(transactions)
        sheet = load_workbook(BytesIO(content)).active
        rows = list(sheet.iter_rows(values_only=True))

        assert sheet.title == "Transactions"
        assert rows[0] == TRANSACTION_COLUMNS
        assert rows[1] == ("1", "2025-03-15", "income", "Sales", "Invoice", 10.5, "first")
        assert rows[2][2] == "expense"
        assert len(rows) == 3

    def test_empty_export_has_header_only(self):
        sheet = load_workbook(BytesIO(export_transactions_xlsx([]))).active
        assert list(sheet.iter_rows(values_only=True)) == [TRANSACTION_COLUMNS]

    def test_writes_destination(self, transactions, tmp_path):
        destination = tmp_path / "transactions.xlsx"
        content = export_transactions_xlsx(transactions, destination)
        assert destination.read_bytes() == content

    def test_selected_export(self, transactions):
        sheet = load_workbook(BytesIO(export_selected_xlsx(transactions[1:]))).active
        assert sheet.title == SELECTED_TRANSACTIONS_SHEET
        assert sheet.max_row == 2

    def test_selected_export_requires_selection(self):
        with pytest.raises(EmptySelectionError, match=EMPTY_EXPORT_SELECTION):
            export_selected_xlsx([])


class TestPdfExport:
    """Tests for the placeholder PDF report."""

    def test_produces_pdf(self):
        content = export_report_pdf("income-statement", generated_on=date(2025, 1, 1))
        assert content.startswith(b"%PDF")

    def test_writes_destination(self, tmp_path):
        destination = tmp_path / report_filename("cash-flow")
        content = export_report_pdf("cash-flow", destination=destination)
        assert destination.name == "cash-flow-report.pdf"
        assert destination.read_bytes() == content
