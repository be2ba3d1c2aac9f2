"""JSON file backed key/value store standing in for the host's persistent storage."""
import json
import logging
import os
from typing import Any, Dict, Optional


class StorageError(Exception):
    """Raised when the storage file exists but cannot be decoded."""


class KeyValueStore:
    def __init__(self, path: Optional[str] = None, load: bool = True):
        self.path = path
        self._data: Dict[str, Any] = {}
        if self.path and load:
            self.load()

    def load(self) -> None:
        if not self.path or not os.path.exists(self.path):
            logging.debug("no storage file at %s, starting empty", self.path)
            self._data = {}
            return
        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise StorageError(f"corrupt storage file {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise StorageError(f"storage file {self.path} does not hold an object")
        self._data = data

    def _flush(self) -> None:
        if not self.path:
            return
        with open(self.path, "w", encoding="utf-8") as fh:
            json.dump(self._data, fh)

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value
        self._flush()

    def delete(self, key: str) -> None:
        if key in self._data:
            del self._data[key]
            self._flush()
