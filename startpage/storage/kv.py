"""
Key-Value Stores - Flat string-keyed persistent storage.

The engine store keeps two JSON-serialized values here:
  searchEngines        → ordered list of active engine ids
  customSearchEngines  → list of custom engine definitions

JsonFileStore keeps every key in one JSON object on disk and rewrites it
atomically (.tmp file, then rename). MemoryStore is the in-process
equivalent used by tests.
"""

import json
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from loguru import logger

from .errors import StorageError


class KeyValueStore(ABC):
    """Base class for string key-value handles."""

    @abstractmethod
    def open(self) -> None:
        ...

    @abstractmethod
    def close(self) -> None:
        ...

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored string, or None if the key is absent."""
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        ...


class MemoryStore(KeyValueStore):
    """Dict-backed store. Contents live as long as the object."""

    def __init__(self, initial: Optional[dict] = None):
        self._data = dict(initial or {})
        self._open = False

    def open(self) -> None:
        self._open = True

    def close(self) -> None:
        self._open = False

    def _check_open(self):
        if not self._open:
            raise StorageError("Key-value store is not open")

    def get(self, key: str) -> Optional[str]:
        self._check_open()
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._check_open()
        self._data[key] = value


class JsonFileStore(KeyValueStore):
    """Store backed by a single JSON object file."""

    def __init__(self, path: Path | str):
        self.path = Path(path)
        self._data: Optional[dict] = None

    def open(self) -> None:
        """
        Load the file into memory.

        A missing file is an empty store. A corrupt file is logged and
        treated as empty; it is replaced on the next set().
        """
        if self._data is not None:
            return

        self._data = {}
        if not self.path.exists():
            logger.info(f"Local storage file not found at {self.path}, starting empty")
            return

        try:
            data = json.loads(self.path.read_text())
        except (OSError, ValueError):
            logger.exception(f"Could not load local storage from {self.path}")
            return

        if not isinstance(data, dict):
            logger.warning(f"Local storage at {self.path} is not an object, starting empty")
            return

        # Values are always strings, whatever an older file held
        self._data = {
            str(key): value if isinstance(value, str) else json.dumps(value)
            for key, value in data.items()
        }

    def close(self) -> None:
        self._data = None

    def _check_open(self):
        if self._data is None:
            raise StorageError(f"Local storage at {self.path} is not open")

    def get(self, key: str) -> Optional[str]:
        self._check_open()
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._check_open()
        updated = {**self._data, key: value}
        self._write(updated)
        self._data = updated

    def _write(self, data: dict) -> None:
        """Write atomically: dump to a .tmp sibling, then rename over."""
        tmp_path = self.path.with_suffix(".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, self.path)
        except OSError as exc:
            if tmp_path.exists():
                tmp_path.unlink()
            raise StorageError(f"Could not save local storage to {self.path}") from exc
