"""Cache capability used to keep table structure between model instances."""

import json
import logging
import os
from abc import ABC, abstractmethod
from typing import Any, Optional

logger = logging.getLogger("crudmodel")


class Cache(ABC):
    """Key/value store; get() returns None on a miss."""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        ...

    @abstractmethod
    def write(self, value: Any, key: str) -> None:
        ...


class MemoryCache(Cache):
    """Process-local cache, lost with the process."""

    def __init__(self):
        self._values: dict[str, Any] = {}

    def get(self, key: str) -> Optional[Any]:
        return self._values.get(key)

    def write(self, value: Any, key: str) -> None:
        self._values[key] = value


class FileCache(Cache):
    """One JSON document per key under directory; `/` in keys maps to sub-directories."""

    def __init__(self, directory: str):
        self.directory = directory

    def _path(self, key: str) -> str:
        parts = [part for part in key.split("/") if part not in ("", ".", "..")]
        if not parts:
            raise ValueError(f"Invalid cache key: {key!r}")
        return os.path.join(self.directory, *parts) + ".json"

    def get(self, key: str) -> Optional[Any]:
        try:
            with open(self._path(key), encoding="utf-8") as file:
                return json.load(file)
        except FileNotFoundError:
            return None
        except json.JSONDecodeError:
            logger.warning("Ignoring unreadable cache entry %s", key)
            return None

    def write(self, value: Any, key: str) -> None:
        path = self._path(key)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w", encoding="utf-8") as file:
            json.dump(value, file)
