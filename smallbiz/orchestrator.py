"""
Main Orchestrator for SmallBiz BookKeeping

This module ties together all the components for one user session:
1. License gate (verify on start, activate, logout)
2. Transaction store (CRUD with persistence)
3. Dashboard aggregates recomputed after every change
4. Reports and exports over the current transaction list

DESIGN DECISION: There is no global application state. One
BookkeepingSession is built per session by create_app_components() and
handed to the UI, which passes it wherever state is needed.
"""

from datetime import date
from pathlib import Path
from typing import Callable, Iterable, Optional, Union

from smallbiz.config import AppSettings, StorageSettings, get_settings
from smallbiz.ledger import TransactionStore
from smallbiz.models.license import ActivationResult
from smallbiz.models.report import (
    DashboardSummary,
    MonthlyPoint,
    PeriodReports,
    TaxSummary,
)
from smallbiz.models.transaction import Transaction
from smallbiz.observability import get_logger
from smallbiz.reports import (
    dashboard_summary,
    monthly_series,
    period_reports,
    tax_summary,
)
from smallbiz.services.export import (
    export_report_pdf,
    export_selected_xlsx,
    export_transactions_xlsx,
)
from smallbiz.services.licensing import (
    ClientHints,
    DeviceFingerprinter,
    LicenseGate,
    LicenseRegistry,
)
from smallbiz.services.licensing.gate import FingerprintProvider
from smallbiz.services.storage import (
    JsonFileStorage,
    KeyValueStorage,
    MemoryStorage,
)


LOGOUT_CONFIRMATION = "Are you sure you want to logout?"


class LicenseLockedError(RuntimeError):
    """An operation on the books was attempted while the gate is locked."""
    pass


class BookkeepingSession:
    """
    Everything one session needs, constructed once.

    The dashboard summary and monthly series are recomputed from scratch
    whenever the transaction store changes.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        gate: LicenseGate,
        transactions: Optional[TransactionStore] = None,
        settings: Optional[AppSettings] = None,
        today: Callable[[], date] = date.today,
    ):
        self.storage = storage
        self.gate = gate
        self.transactions = transactions if transactions is not None else TransactionStore(storage)
        self.settings = settings or get_settings().app
        self._today = today
        self._logger = get_logger(__name__)

        self._dashboard = DashboardSummary()
        self._monthly: list[MonthlyPoint] = []
        self.transactions.subscribe(self._recompute)
        self._recompute(self.transactions.all())

    # -------------------------------------------------------------------------
    # License flow
    # -------------------------------------------------------------------------

    @property
    def is_unlocked(self) -> bool:
        return self.gate.is_unlocked

    async def start(self) -> bool:
        """
        Restore a saved activation and load the books.

        Returns True if the session starts unlocked.
        """
        if not await self.gate.verify():
            return False
        self.transactions.load()
        return True

    async def activate(self, license_key: str) -> ActivationResult:
        """Activate a key; on success the books are loaded."""
        result = await self.gate.activate(license_key)
        if result.success:
            self.transactions.load()
        return result

    def logout(self, confirm: Optional[Callable[[str], bool]] = None) -> bool:
        """
        Deactivate the license after the user confirms.

        Returns True if the session is now locked.
        """
        if confirm is not None and not confirm(LOGOUT_CONFIRMATION):
            return False
        self.gate.deactivate()
        return True

    def ensure_unlocked(self) -> None:
        """
        Raises:
            LicenseLockedError: The gate is locked
        """
        if not self.gate.is_unlocked:
            raise LicenseLockedError("A valid license is required")

    # -------------------------------------------------------------------------
    # Dashboard
    # -------------------------------------------------------------------------

    @property
    def dashboard(self) -> DashboardSummary:
        return self._dashboard

    @property
    def monthly(self) -> list[MonthlyPoint]:
        return self._monthly

    def _recompute(self, transactions: list[Transaction]) -> None:
        self._dashboard = dashboard_summary(transactions)
        self._monthly = monthly_series(
            transactions,
            today=self._today(),
            months=self.settings.chart_months,
        )

    # -------------------------------------------------------------------------
    # Reports and exports
    # -------------------------------------------------------------------------

    def reports(self, start: Optional[date], end: Optional[date]) -> PeriodReports:
        self.ensure_unlocked()
        return period_reports(self.transactions.all(), start, end)

    def tax_summary(self, year: int) -> TaxSummary:
        self.ensure_unlocked()
        return tax_summary(self.transactions.all(), year)

    def export_all_xlsx(self, destination: Optional[Union[str, Path]] = None) -> bytes:
        self.ensure_unlocked()
        return export_transactions_xlsx(self.transactions.all(), destination)

    def export_selected_xlsx(
        self,
        transaction_ids: Iterable[str],
        destination: Optional[Union[str, Path]] = None,
    ) -> bytes:
        self.ensure_unlocked()
        return export_selected_xlsx(self.transactions.select(transaction_ids), destination)

    def export_report_pdf(
        self,
        report_type: str,
        destination: Optional[Union[str, Path]] = None,
    ) -> bytes:
        self.ensure_unlocked()
        return export_report_pdf(
            report_type,
            title=self.settings.company_name,
            generated_on=self._today(),
            destination=destination,
        )


def create_storage(settings: Optional[StorageSettings] = None) -> KeyValueStorage:
    """Build the configured local storage backend."""
    settings = settings or get_settings().storage
    if settings.backend == "memory":
        return MemoryStorage()
    return JsonFileStorage(settings.storage_path)


def create_app_components(
    storage: Optional[KeyValueStorage] = None,
    client_hints: Optional[ClientHints] = None,
    fingerprint_provider: Optional[FingerprintProvider] = None,
) -> BookkeepingSession:
    """
    Factory function to create a session.

    Args:
        storage: Storage backend. Defaults to the configured one.
        client_hints: Signals reported by the browser, if any.
        fingerprint_provider: Override for the device fingerprint
                              (tests, or a precomputed token).

    Returns:
        A locked BookkeepingSession; call start() or activate() next.
    """
    if storage is None:
        storage = create_storage()
    if fingerprint_provider is None:
        fingerprint_provider = DeviceFingerprinter(client_hints=client_hints).generate

    gate = LicenseGate(
        storage=storage,
        registry=LicenseRegistry(storage),
        fingerprint_provider=fingerprint_provider,
    )
    session = BookkeepingSession(storage=storage, gate=gate)
    get_logger(__name__).debug("session_created", storage=type(storage).__name__)
    return session
