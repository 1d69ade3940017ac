"""Key-value persistence used by every store, the aggregator and the backup codec.

Keys and values are plain strings, mirroring browser local storage.
``MemoryStorage`` backs the tests; ``JsonFileStorage`` keeps the whole
mapping in a single JSON file on disk.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Union

logger = logging.getLogger(__name__)


class Storage(ABC):

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        pass

    @abstractmethod
    def keys(self) -> List[str]:
        pass

    @abstractmethod
    def clear(self) -> None:
        pass

    def items(self) -> Dict[str, str]:
        out = {}
        for key in self.keys():
            value = self.get(key)
            if value is not None:
                out[key] = value
        return out


def _check_value(key: str, value: str) -> None:
    if not isinstance(key, str):
        raise TypeError(f"storage keys must be strings, got {type(key).__name__}")
    if not isinstance(value, str):
        raise TypeError(f"storage value for {key!r} must be a string, got {type(value).__name__}")


class MemoryStorage(Storage):

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = {}
        for key, value in (initial or {}).items():
            self.set(key, value)

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        _check_value(key, value)
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._data.keys())

    def clear(self) -> None:
        self._data.clear()

    def __repr__(self) -> str:
        return f"MemoryStorage({len(self._data)} keys)"


class JsonFileStorage(Storage):
    """Whole-file JSON store; every mutation rewrites the file atomically."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._data: Dict[str, str] = self._load()

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (json.JSONDecodeError, UnicodeDecodeError, OSError) as exc:
            logger.warning("Storage file %s is unreadable, starting empty: %s", self.path, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Storage file %s does not hold an object, starting empty", self.path)
            return {}
        loaded = {}
        for key, value in data.items():
            if isinstance(value, str):
                loaded[key] = value
            else:
                logger.warning("Dropping non-string value for key %r in %s", key, self.path)
        return loaded

    def _flush(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=".storage-", suffix=".json", dir=str(self.path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(self._data, handle, indent=2, sort_keys=True)
            os.replace(tmp_name, self.path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        _check_value(key, value)
        self._data[key] = value
        self._flush()

    def remove(self, key: str) -> None:
        if key in self._data:
            del self._data[key]
            self._flush()

    def keys(self) -> List[str]:
        return list(self._data.keys())

    def clear(self) -> None:
        self._data.clear()
        self._flush()

    def __repr__(self) -> str:
        return f"JsonFileStorage({str(self.path)!r})"
