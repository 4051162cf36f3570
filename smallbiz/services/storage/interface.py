"""
Abstract Storage Interface

DESIGN DECISION: Persistence is a flat string key-value store, the same
shape as browser local storage. This allows us to:
1. Keep a JSON file on disk for the desktop/Streamlit app
2. Use in-memory storage for testing
3. Keep the transaction store and license gate decoupled from the backend

There is no isolation between two processes sharing one backend.
The last write wins.
"""

import json
from abc import ABC, abstractmethod
from typing import Any, Optional


# Keys used by the application
LICENSE_KEY = "sbkp_license"
FINGERPRINT_KEY = "sbkp_fingerprint"
TRANSACTIONS_KEY = "sbkp_transactions"
LICENSE_BINDINGS_KEY = "sbkp_license_bindings"


class KeyValueStorage(ABC):
    """
    Abstract interface for local key-value storage.

    Values are strings. Structured values are stored as JSON text
    through get_json/set_json.
    """

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """
        Read a value.

        Returns:
            The stored string, or None if the key is absent
        """
        pass

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """
        Write a value, replacing any previous one.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Remove a key. Removing an absent key is a no-op."""
        pass

    @abstractmethod
    def keys(self) -> list[str]:
        """All stored keys."""
        pass

    def clear(self) -> None:
        """Remove every key."""
        for key in self.keys():
            self.remove_item(key)

    def get_json(self, key: str, default: Any = None) -> Any:
        """
        Read and decode a JSON value.

        Raises:
            CorruptDataError: If the stored text is not valid JSON
        """
        raw = self.get_item(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise CorruptDataError(f"Stored value for '{key}' is not valid JSON: {e}")

    def set_json(self, key: str, value: Any) -> None:
        """Encode a value as JSON and store it."""
        self.set_item(key, json.dumps(value, ensure_ascii=False))


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class CorruptDataError(StorageError):
    """Stored data could not be decoded."""
    pass
