"""Short lived key/value cache.

Metabox errors have to survive the redirect between the save request and
the next render, so they are parked here with a small time to live.  The
cache is deliberately separate from the content store.
"""

from __future__ import annotations

import hashlib
import json
import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class TransientCache(ABC):
    @abstractmethod
    def get(self, key: str) -> Any | None:
        """Return the value stored under *key* or ``None`` if missing or expired."""

    @abstractmethod
    def set(self, key: str, value: Any, ttl: float) -> None:
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        pass


class InMemoryTransientCache(TransientCache):
    """Process local cache, suitable for tests and single process hosts."""

    def __init__(self, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires, value = entry
        if self._clock() >= expires:
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value: Any, ttl: float) -> None:
        self._entries[key] = (self._clock() + ttl, value)

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)


class FileTransientCache(TransientCache):
    """Cache storing one JSON file per key below *directory*.

    Expiry uses wall clock time so entries survive across processes.
    """

    def __init__(self, directory: Path | str, *, clock: Callable[[], float] = time.time) -> None:
        self.directory = Path(directory)
        self._clock = clock

    def _path(self, key: str) -> Path:
        digest = hashlib.sha1(key.encode("utf-8")).hexdigest()
        return self.directory / f"{digest}.json"

    def get(self, key: str) -> Any | None:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            entry = json.loads(path.read_text(encoding="utf-8"))
            expires = float(entry["expires"])
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.warning("discarding unreadable transient %s: %s", path, exc)
            path.unlink(missing_ok=True)
            return None
        if self._clock() >= expires:
            path.unlink(missing_ok=True)
            return None
        return entry.get("value")

    def set(self, key: str, value: Any, ttl: float) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        tmp = path.with_suffix(".tmp")
        with tmp.open("w", encoding="utf-8") as fh:
            json.dump({"key": key, "expires": self._clock() + ttl, "value": value}, fh)
        tmp.replace(path)

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


__all__ = ["FileTransientCache", "InMemoryTransientCache", "TransientCache"]
