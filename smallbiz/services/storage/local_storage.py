"""
Local Storage Implementations

DESIGN DECISION: The desktop app keeps its whole state in one JSON file,
a single object mapping keys to string values. This mirrors browser local
storage closely:
1. Every read sees the latest file on disk
2. Every write rewrites the whole object
3. Nothing coordinates concurrent writers (last write wins)

TRADEOFFS:
- Rewriting the file on every mutation is fine at bookkeeping volumes
- Writes go through a temp file and os.replace so a crash never leaves
  a half-written file behind
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Optional

from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from smallbiz.observability import get_logger
from smallbiz.services.storage.interface import (
    CorruptDataError,
    KeyValueStorage,
    StorageError,
)


class MemoryStorage(KeyValueStorage):
    """
    In-process storage.

    Used by tests and by sessions configured with the 'memory' backend.
    """

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = str(value)

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class JsonFileStorage(KeyValueStorage):
    """
    File-backed storage.

    The file holds one JSON object of string values. A missing file
    reads as empty storage.
    """

    def __init__(self, path: Path):
        self._path = Path(path)
        self._logger = get_logger(__name__)

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> dict[str, str]:
        """Load the whole storage object from disk."""
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as e:
            raise StorageError(f"Failed to read {self._path}: {e}")

        if not text.strip():
            return {}

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise CorruptDataError(f"Storage file {self._path} is not valid JSON: {e}")

        if not isinstance(data, dict):
            raise CorruptDataError(f"Storage file {self._path} does not hold an object")

        return {str(k): str(v) for k, v in data.items()}

    @retry(
        retry=retry_if_exception_type(OSError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.1, min=0.1, max=1),
        reraise=True,
    )
    def _write_all(self, data: dict[str, str]) -> None:
        """Atomically replace the storage file."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self._path.parent,
            prefix=f".{self._path.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _save(self, data: dict[str, str]) -> None:
        try:
            self._write_all(data)
        except OSError as e:
            self._logger.error(
                "storage_write_failed",
                path=str(self._path),
                error=str(e),
            )
            raise StorageError(f"Failed to write {self._path}: {e}")

    def get_item(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set_item(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = str(value)
        self._save(data)

    def remove_item(self, key: str) -> None:
        data = self._read_all()
        if key in data:
            del data[key]
            self._save(data)

    def keys(self) -> list[str]:
        return list(self._read_all())
