"""Services package."""

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
    hash_string,
)
from smallbiz.services.storage import (
    CorruptDataError,
    JsonFileStorage,
    KeyValueStorage,
    MemoryStorage,
    StorageError,
)

__all__ = [
    # Export services
    "export_report_pdf",
    "export_selected_xlsx",
    "export_transactions_xlsx",
    # Licensing services
    "ClientHints",
    "DeviceFingerprinter",
    "LicenseGate",
    "LicenseRegistry",
    "hash_string",
    # Storage services
    "CorruptDataError",
    "JsonFileStorage",
    "KeyValueStorage",
    "MemoryStorage",
    "StorageError",
]
