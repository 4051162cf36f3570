"""Builders shared by the test modules."""

from datetime import date
from decimal import Decimal

from smallbiz.models.transaction import TransactionDraft, TransactionType
from smallbiz.services.storage import MemoryStorage, StorageError


def make_draft(
    amount="100.00",
    kind=TransactionType.INCOME,
    category=None,
    when=date(2025, 3, 15),
    description="Invoice",
    notes=None,
):
    if category is None:
        category = "Sales" if kind == TransactionType.INCOME else "Supplies"
    return TransactionDraft(
        date=when,
        type=kind,
        category=category,
        description=description,
        amount=Decimal(amount),
        notes=notes,
    )


def fingerprint_provider(token: str):
    """Async provider that always reports the given device token."""
    async def provide() -> str:
        return token
    return provide


class FailingStorage(MemoryStorage):
    """In-memory storage whose writes raise StorageError while failing is set."""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.failing = False
        self.fail_keys = None

    def set_item(self, key: str, value: str) -> None:
        if self.failing and (self.fail_keys is None or key in self.fail_keys):
            raise StorageError(f"write refused for {key}")
        super().set_item(key, value)
