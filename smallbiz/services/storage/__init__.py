"""
Storage Services Package

Provides the key-value storage interface and its local implementations.
"""

from smallbiz.services.storage.interface import (
    FINGERPRINT_KEY,
    LICENSE_BINDINGS_KEY,
    LICENSE_KEY,
    TRANSACTIONS_KEY,
    CorruptDataError,
    KeyValueStorage,
    StorageError,
)
from smallbiz.services.storage.local_storage import (
    JsonFileStorage,
    MemoryStorage,
)

__all__ = [
    # Keys
    "FINGERPRINT_KEY",
    "LICENSE_BINDINGS_KEY",
    "LICENSE_KEY",
    "TRANSACTIONS_KEY",
    # Interface
    "KeyValueStorage",
    # Exceptions
    "CorruptDataError",
    "StorageError",
    # Implementations
    "JsonFileStorage",
    "MemoryStorage",
]
