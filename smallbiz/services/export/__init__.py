"""Export services package."""

from smallbiz.services.export.pdf import (
    PDF_MIME_TYPE,
    PLACEHOLDER_NOTICE,
    export_report_pdf,
    report_filename,
)
from smallbiz.services.export.spreadsheet import (
    ALL_TRANSACTIONS_FILENAME,
    EMPTY_EXPORT_SELECTION,
    SELECTED_TRANSACTIONS_FILENAME,
    XLSX_MIME_TYPE,
    build_workbook,
    export_selected_xlsx,
    export_transactions_xlsx,
)

__all__ = [
    # PDF
    "PDF_MIME_TYPE",
    "PLACEHOLDER_NOTICE",
    "export_report_pdf",
    "report_filename",
    # Spreadsheet
    "ALL_TRANSACTIONS_FILENAME",
    "EMPTY_EXPORT_SELECTION",
    "SELECTED_TRANSACTIONS_FILENAME",
    "XLSX_MIME_TYPE",
    "build_workbook",
    "export_selected_xlsx",
    "export_transactions_xlsx",
]
