"""
Transaction Models for SmallBiz BookKeeping

A transaction is one income or expense line. Categories are drawn from a
fixed list per type (the Schedule C expense lines for expenses).

DESIGN DECISION: We validate at the form seam with Pydantic.
A draft with a bad amount or a category from the wrong list is rejected
before it reaches the store, so aggregates never see non-numeric amounts.
"""

import datetime as dt
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# =============================================================================
# ENUMS AND CATEGORY LISTS
# =============================================================================

class TransactionType(str, Enum):
    """Direction of a transaction."""
    INCOME = "income"
    EXPENSE = "expense"


INCOME_CATEGORIES: tuple[str, ...] = (
    "Sales",
    "Services",
    "Consulting",
    "Products",
    "Other Income",
)

EXPENSE_CATEGORIES: tuple[str, ...] = (
    "Advertising",
    "Car & Truck",
    "Commissions",
    "Contract Labor",
    "Depreciation",
    "Employee Benefits",
    "Insurance",
    "Legal & Professional",
    "Office Expense",
    "Rent",
    "Repairs & Maintenance",
    "Supplies",
    "Travel",
    "Meals",
    "Utilities",
    "Wages",
    "Other Expenses",
)

CATEGORIES: dict[TransactionType, tuple[str, ...]] = {
    TransactionType.INCOME: INCOME_CATEGORIES,
    TransactionType.EXPENSE: EXPENSE_CATEGORIES,
}

CENT = Decimal("0.01")

# Column order for exports and persisted records
TRANSACTION_COLUMNS: tuple[str, ...] = (
    "id",
    "date",
    "type",
    "category",
    "description",
    "amount",
    "notes",
)


def categories_for(transaction_type: TransactionType) -> tuple[str, ...]:
    """Categories allowed for a transaction type."""
    return CATEGORIES[TransactionType(transaction_type)]


def all_categories() -> list[str]:
    """Income categories followed by expense categories (filter dropdown order)."""
    return [*INCOME_CATEGORIES, *EXPENSE_CATEGORIES]


# =============================================================================
# CORE TRANSACTION MODELS
# =============================================================================

class TransactionDraft(BaseModel):
    """
    Transaction fields as entered in the add/edit form.

    Everything except the id, which the store assigns.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    date: dt.date = Field(
        ...,
        description="Calendar date of the transaction"
    )
    type: TransactionType = Field(
        ...,
        description="income or expense"
    )
    category: str = Field(
        ...,
        min_length=1,
        description="Category from the fixed list for this type"
    )
    description: str = Field(
        ...,
        min_length=1,
        max_length=500,
        description="What the transaction was for"
    )
    amount: Decimal = Field(
        ...,
        ge=0,
        description="Non-negative amount, rounded half-up to cents"
    )
    notes: Optional[str] = Field(
        default=None,
        max_length=2000,
        description="Free-form notes"
    )

    @field_validator('amount')
    @classmethod
    def round_to_cents(cls, v: Decimal) -> Decimal:
        """Amounts are kept to the cent; extra places are rounded, not rejected."""
        return v.quantize(CENT, rounding=ROUND_HALF_UP)

    @model_validator(mode='after')
    def validate_category(self) -> 'TransactionDraft':
        """Category must belong to the list for the transaction type."""
        if self.category not in categories_for(self.type):
            raise ValueError(
                f"Category '{self.category}' is not a valid {self.type.value} category"
            )
        return self


class Transaction(TransactionDraft):
    """
    A stored transaction.

    The id is time-based and never changes after creation.
    """

    id: str = Field(
        ...,
        min_length=1,
        description="Opaque time-based identifier"
    )

    @classmethod
    def from_draft(cls, transaction_id: str, draft: TransactionDraft) -> 'Transaction':
        """Attach an id to a validated draft."""
        return cls(id=transaction_id, **draft.model_dump())

    @property
    def is_income(self) -> bool:
        return self.type == TransactionType.INCOME

    @property
    def is_expense(self) -> bool:
        return self.type == TransactionType.EXPENSE

    def to_record(self) -> dict:
        """
        Convert to the JSON-friendly record persisted in local storage.

        Keys follow TRANSACTION_COLUMNS; the amount is kept as a string
        so no precision is lost.
        """
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "type": self.type.value,
            "category": self.category,
            "description": self.description,
            "amount": str(self.amount),
            "notes": self.notes,
        }

    def to_row(self) -> list:
        """Convert to a spreadsheet row in TRANSACTION_COLUMNS order."""
        return [
            self.id,
            self.date.isoformat(),
            self.type.value,
            self.category,
            self.description,
            float(self.amount),
            self.notes or "",
        ]


class TransactionFilter(BaseModel):
    """
    Filter for the transaction list view.

    None for type or category means "all".
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    search_text: str = Field(
        default="",
        description="Case-insensitive match against description or notes"
    )
    type: Optional[TransactionType] = None
    category: Optional[str] = None

    def matches(self, transaction: Transaction) -> bool:
        """Check a transaction against every criterion."""
        needle = self.search_text.lower()
        if needle:
            in_description = needle in transaction.description.lower()
            in_notes = bool(transaction.notes) and needle in transaction.notes.lower()
            if not (in_description or in_notes):
                return False
        if self.type is not None and transaction.type != self.type:
            return False
        if self.category is not None and transaction.category != self.category:
            return False
        return True
