"""Transaction ledger package."""

from smallbiz.ledger.errors import EmptySelectionError
from smallbiz.ledger.store import (
    DELETE_CONFIRMATION,
    EMPTY_DELETE_SELECTION,
    TransactionStore,
)

__all__ = [
    "DELETE_CONFIRMATION",
    "EMPTY_DELETE_SELECTION",
    "EmptySelectionError",
    "TransactionStore",
]
