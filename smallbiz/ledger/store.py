"""
Transaction Store

Owns the in-memory transaction list and keeps local storage in sync
with it.

Every mutation:
1. Builds the new list
2. Re-persists the FULL list under sbkp_transactions
3. Adopts the new list in memory (only if the write succeeded)
4. Notifies subscribers (dashboard recompute, re-render)

There are no transactional guarantees. Two processes sharing one
storage file race, and the last write wins.
"""

import time
from typing import Callable, Iterable, Iterator, Optional

from pydantic import ValidationError

from smallbiz.ledger.errors import EmptySelectionError
from smallbiz.models.transaction import (
    Transaction,
    TransactionDraft,
    TransactionFilter,
)
from smallbiz.observability import get_logger
from smallbiz.services.storage import (
    TRANSACTIONS_KEY,
    CorruptDataError,
    KeyValueStorage,
)


DELETE_CONFIRMATION = "Are you sure you want to delete this transaction?"
EMPTY_DELETE_SELECTION = "Please select transactions to delete"

ConfirmCallback = Callable[[str], bool]
StoreListener = Callable[[list[Transaction]], None]


class TransactionStore:
    """
    CRUD over the transaction list.

    Usage:
        store = TransactionStore(storage)
        store.load()
        tx = store.create(draft)
        store.delete(tx.id, confirm=lambda msg: True)
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        clock: Callable[[], float] = time.time,
    ):
        self._storage = storage
        self._clock = clock
        self._transactions: list[Transaction] = []
        self._listeners: list[StoreListener] = []
        self._logger = get_logger(__name__)

    def __len__(self) -> int:
        return len(self._transactions)

    def __contains__(self, transaction_id: str) -> bool:
        return self.get(transaction_id) is not None

    # -------------------------------------------------------------------------
    # Loading and reading
    # -------------------------------------------------------------------------

    def load(self) -> list[Transaction]:
        """
        Replace the in-memory list with what local storage holds.

        Records that fail validation, or repeat an id already loaded,
        are skipped and logged.
        """
        try:
            records = self._storage.get_json(TRANSACTIONS_KEY, default=[])
        except CorruptDataError as e:
            self._logger.error("transactions_unreadable", error=str(e))
            records = []

        if not isinstance(records, list):
            self._logger.error("transactions_unreadable", error="not a list")
            records = []

        loaded: list[Transaction] = []
        seen_ids: set[str] = set()
        for index, record in enumerate(records):
            try:
                transaction = Transaction.model_validate(record)
            except ValidationError as e:
                self._logger.warning(
                    "transaction_record_skipped",
                    index=index,
                    error_count=e.error_count(),
                )
                continue
            if transaction.id in seen_ids:
                self._logger.warning(
                    "transaction_record_skipped",
                    index=index,
                    reason="duplicate_id",
                    transaction_id=transaction.id,
                )
                continue
            seen_ids.add(transaction.id)
            loaded.append(transaction)

        self._transactions = loaded
        self._logger.info("transactions_loaded", count=len(loaded))
        self._notify()
        return self.all()

    def all(self) -> list[Transaction]:
        """Snapshot of the list in insertion order."""
        return list(self._transactions)

    def get(self, transaction_id: str) -> Optional[Transaction]:
        for transaction in self._transactions:
            if transaction.id == transaction_id:
                return transaction
        return None

    def select(self, transaction_ids: Iterable[str]) -> list[Transaction]:
        """Transactions for the given ids, in the given order; unknown ids are dropped."""
        by_id = {t.id: t for t in self._transactions}
        return [by_id[i] for i in transaction_ids if i in by_id]

    def list_transactions(
        self,
        criteria: Optional[TransactionFilter] = None,
    ) -> Iterator[Transaction]:
        """
        Filtered view, newest date first.

        Evaluated lazily: nothing is scanned until the result is iterated,
        and the scan sees the list as it is at that moment.
        """
        criteria = criteria or TransactionFilter()
        matching = [t for t in self._transactions if criteria.matches(t)]
        matching.sort(key=lambda t: t.date, reverse=True)
        yield from matching

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def create(self, draft: TransactionDraft) -> Transaction:
        """Assign a fresh id, append and persist."""
        transaction = Transaction.from_draft(self._next_id(), draft)
        self._commit(
            [*self._transactions, transaction],
            "transaction_created",
            transaction_id=transaction.id,
        )
        return transaction

    def update(self, transaction_id: str, draft: TransactionDraft) -> Optional[Transaction]:
        """
        Replace the fields of an existing transaction, keeping its id.

        Returns None (and changes nothing) if the id is absent.
        """
        for index, existing in enumerate(self._transactions):
            if existing.id == transaction_id:
                updated = Transaction.from_draft(transaction_id, draft)
                transactions = list(self._transactions)
                transactions[index] = updated
                self._commit(transactions, "transaction_updated", transaction_id=transaction_id)
                return updated
        return None

    def delete(
        self,
        transaction_id: str,
        confirm: Optional[ConfirmCallback] = None,
    ) -> bool:
        """
        Delete one transaction after the user confirms.

        Returns True if a record was removed. An absent id or a declined
        confirmation leaves the list untouched.
        """
        if self.get(transaction_id) is None:
            return False
        if confirm is not None and not confirm(DELETE_CONFIRMATION):
            return False

        self._commit(
            [t for t in self._transactions if t.id != transaction_id],
            "transaction_deleted",
            transaction_id=transaction_id,
        )
        return True

    def bulk_delete(
        self,
        transaction_ids: Iterable[str],
        confirm: Optional[ConfirmCallback] = None,
    ) -> int:
        """
        Delete every selected transaction after one confirmation.

        Returns the number of records removed.

        Raises:
            EmptySelectionError: Nothing was selected
        """
        selected = set(transaction_ids)
        if not selected:
            raise EmptySelectionError(EMPTY_DELETE_SELECTION)
        if confirm is not None and not confirm(f"Delete {len(selected)} selected transaction(s)?"):
            return 0

        remaining = [t for t in self._transactions if t.id not in selected]
        removed = len(self._transactions) - len(remaining)
        self._commit(remaining, "transactions_bulk_deleted", requested=len(selected), removed=removed)
        return removed

    # -------------------------------------------------------------------------
    # Subscriptions
    # -------------------------------------------------------------------------

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        """
        Call listener with the new list after every change.

        Returns a function that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _next_id(self) -> str:
        """Milliseconds since the epoch, bumped until unique in the list."""
        candidate = int(self._clock() * 1000)
        taken = {t.id for t in self._transactions}
        while str(candidate) in taken:
            candidate += 1
        return str(candidate)

    def _persist(self, transactions: list[Transaction]) -> None:
        self._storage.set_json(
            TRANSACTIONS_KEY,
            [t.to_record() for t in transactions],
        )

    def _notify(self) -> None:
        snapshot = self.all()
        for listener in list(self._listeners):
            listener(snapshot)

    def _commit(self, transactions: list[Transaction], event: str, **context) -> None:
        """
        Persist the new list, then adopt it and notify.

        If the write fails the in-memory list is left as it was.
        """
        self._persist(transactions)
        self._transactions = transactions
        self._logger.info(event, total=len(transactions), **context)
        self._notify()
