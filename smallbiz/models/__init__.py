"""
Data Models Package

This package contains all Pydantic models used in SmallBiz BookKeeping.
All data flowing through the system must conform to these schemas.
"""

from smallbiz.models.transaction import (
    CATEGORIES,
    EXPENSE_CATEGORIES,
    INCOME_CATEGORIES,
    TRANSACTION_COLUMNS,
    Transaction,
    TransactionDraft,
    TransactionFilter,
    TransactionType,
    all_categories,
    categories_for,
)
from smallbiz.models.license import (
    ALL_FEATURES,
    LICENSE_KEY_PATTERN,
    ActivationResult,
    GateState,
    LicenseInfo,
    LicenseRecord,
    LicenseType,
)
from smallbiz.models.report import (
    CategoryAnalysis,
    CategoryTotal,
    DashboardSummary,
    MonthlyPoint,
    PeriodReports,
    PeriodStatement,
    TaxSummary,
)

__all__ = [
    # Transaction models
    "CATEGORIES",
    "EXPENSE_CATEGORIES",
    "INCOME_CATEGORIES",
    "TRANSACTION_COLUMNS",
    "Transaction",
    "TransactionDraft",
    "TransactionFilter",
    "TransactionType",
    "all_categories",
    "categories_for",
    # License models
    "ALL_FEATURES",
    "LICENSE_KEY_PATTERN",
    "ActivationResult",
    "GateState",
    "LicenseInfo",
    "LicenseRecord",
    "LicenseType",
    # Report models
    "CategoryAnalysis",
    "CategoryTotal",
    "DashboardSummary",
    "MonthlyPoint",
    "PeriodReports",
    "PeriodStatement",
    "TaxSummary",
]
