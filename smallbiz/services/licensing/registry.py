"""
License Registry

The table of known license keys and their device bindings.

CRITICAL: This is a non-authoritative, local table. It ships with the
application and its bindings live in the same local storage as the
books, so anyone can read or edit it. Real access control would need a
server-side authority, which this application does not have.
"""

import secrets
import string
from datetime import datetime, timezone
from typing import Iterable, Optional

from pydantic import ValidationError

from smallbiz.models.license import (
    LICENSE_KEY_PATTERN,
    LicenseRecord,
    LicenseType,
)
from smallbiz.observability import get_logger
from smallbiz.services.storage import (
    LICENSE_BINDINGS_KEY,
    CorruptDataError,
    KeyValueStorage,
)


DEFAULT_LICENSES: tuple[LicenseRecord, ...] = (
    LicenseRecord(
        key="SBKP-2025-XXXX-TRIAL",
        type=LicenseType.TRIAL,
        features=frozenset({"basic"}),
    ),
    LicenseRecord(
        key="SBKP-2025-DEMO-00001",
        type=LicenseType.FULL,
        features=frozenset({"all"}),
    ),
    LicenseRecord(
        key="SBKP-2025-PROD-12345",
        type=LicenseType.FULL,
        features=frozenset({"all"}),
    ),
)

_KEY_ALPHABET = string.ascii_uppercase + string.digits


class LicenseError(Exception):
    """Base exception for license operations."""
    pass


class UnknownLicenseError(LicenseError):
    """Key is not in the table."""
    pass


class LicenseAlreadyBoundError(LicenseError):
    """Key is bound to a different device fingerprint."""
    pass


def validate_license_format(key: str) -> bool:
    """Check the SBKP-YYYY-XXXX-XXXXX format."""
    return bool(LICENSE_KEY_PATTERN.match(key))


def generate_license_key(year: Optional[int] = None) -> str:
    """
    Generate a new well-formed license key (admin use).

    The key still has to be added to the table before it activates.
    """
    year = year or datetime.now().year
    part1 = "".join(secrets.choice(_KEY_ALPHABET) for _ in range(4))
    part2 = "".join(secrets.choice(_KEY_ALPHABET) for _ in range(5))
    return f"SBKP-{year:04d}-{part1}-{part2}"


class LicenseRegistry:
    """
    Key table with first-write-wins device binding.

    When a storage backend is given, bindings are loaded from and
    written back to it, so a binding survives restarts. bind() and
    unbind() re-read storage first: several sessions may share one
    backend, and the stored bindings are the ones that count.
    """

    def __init__(
        self,
        storage: Optional[KeyValueStorage] = None,
        records: Optional[Iterable[LicenseRecord]] = None,
    ):
        self._storage = storage
        self._logger = get_logger(__name__)
        self._table: dict[str, LicenseRecord] = {
            record.key: record.model_copy()
            for record in (records if records is not None else DEFAULT_LICENSES)
        }
        self._records: dict[str, LicenseRecord] = dict(self._table)
        self._load_bindings()

    def __contains__(self, key: str) -> bool:
        return key in self._records

    def keys(self) -> list[str]:
        return list(self._records)

    def get(self, key: str) -> Optional[LicenseRecord]:
        """Look up a key; None if unknown."""
        return self._records.get(key)

    def bind(
        self,
        key: str,
        fingerprint: str,
        when: Optional[datetime] = None,
    ) -> LicenseRecord:
        """
        Bind a key to a device fingerprint.

        Binding again with the same fingerprint refreshes activated_at.
        The in-memory table changes only once the binding is stored.

        Raises:
            UnknownLicenseError: Key not in the table
            LicenseAlreadyBoundError: Key bound to another fingerprint
            StorageError: The binding could not be written
        """
        self._load_bindings()
        record = self._records.get(key)
        if record is None:
            raise UnknownLicenseError(key)
        if record.device_fingerprint and record.device_fingerprint != fingerprint:
            raise LicenseAlreadyBoundError(key)

        record = record.model_copy(update={
            "device_fingerprint": fingerprint,
            "activated_at": when or datetime.now(timezone.utc),
        })
        self._commit({**self._records, key: record})
        return record

    def unbind(self, key: str) -> None:
        """Release a key's binding. Unknown or unbound keys are ignored."""
        self._load_bindings()
        record = self._records.get(key)
        if record is None or not record.is_bound:
            return
        self._commit({
            **self._records,
            key: record.model_copy(update={
                "device_fingerprint": None,
                "activated_at": None,
            }),
        })

    def _load_bindings(self) -> None:
        """Rebuild the table from the shipped keys plus the stored bindings."""
        if self._storage is None:
            return
        records = dict(self._table)
        try:
            bindings = self._storage.get_json(LICENSE_BINDINGS_KEY, default={})
        except CorruptDataError as e:
            self._logger.warning("license_bindings_unreadable", error=str(e))
            bindings = {}
        if not isinstance(bindings, dict):
            self._logger.warning("license_bindings_unreadable", error="not an object")
            bindings = {}

        for key, binding in bindings.items():
            record = records.get(key)
            if record is None or not isinstance(binding, dict):
                continue
            try:
                records[key] = LicenseRecord.model_validate({
                    **record.model_dump(),
                    "device_fingerprint": binding.get("device_fingerprint"),
                    "activated_at": binding.get("activated_at"),
                })
            except ValidationError as e:
                self._logger.warning("license_binding_skipped", key=key, error=str(e))

        self._records = records

    def _commit(self, records: dict[str, LicenseRecord]) -> None:
        """Store the bindings of records, then adopt them."""
        if self._storage is not None:
            bindings = {
                key: {
                    "device_fingerprint": record.device_fingerprint,
                    "activated_at": record.activated_at.isoformat() if record.activated_at else None,
                }
                for key, record in records.items()
                if record.is_bound
            }
            self._storage.set_json(LICENSE_BINDINGS_KEY, bindings)
        self._records = records
