from __future__ import annotations

import json
import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

if os.name == "nt":  # pragma: no cover - platform specific
    import msvcrt
else:  # pragma: no cover - platform specific
    import fcntl

from ..errors import StoreLoadError
from . import register_store
from .base import ContentStore


@contextmanager
def _locked(path: Path, exclusive: bool) -> Iterator[None]:
    """Context manager acquiring an advisory lock for *path*."""

    lock_path = path.with_suffix(path.suffix + ".lock")
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    with lock_path.open("a") as fh:
        if os.name == "nt":  # pragma: no cover - platform specific
            fh.seek(0)
            mode = msvcrt.LK_LOCK if exclusive else msvcrt.LK_RLCK
            msvcrt.locking(fh.fileno(), mode, 1)
        else:  # pragma: no cover - platform specific
            fcntl.flock(fh.fileno(), fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH)
        try:
            yield
        finally:
            if os.name == "nt":  # pragma: no cover - platform specific
                msvcrt.locking(fh.fileno(), msvcrt.LK_UNLCK, 1)
            else:  # pragma: no cover - platform specific
                fcntl.flock(fh.fileno(), fcntl.LOCK_UN)


@register_store
class JsonContentStore(ContentStore):
    """Keep the metadata of all content items in one JSON document.

    The document maps content ids (as strings) to objects of
    ``key -> value``.  Every update rewrites the file atomically.
    """

    suffixes = (".json",)

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def _read(self) -> dict[str, dict[str, Any]]:
        if not self.path.exists():
            return {}
        raw = self.path.read_text(encoding="utf-8")
        if raw.strip() == "":
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise StoreLoadError(f"{self.path}: {exc}") from exc
        if not isinstance(data, dict) or not all(
            isinstance(v, dict) for v in data.values()
        ):
            raise StoreLoadError(f"{self.path}: expected an object of objects")
        return data

    def _write(self, data: dict[str, dict[str, Any]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with tmp.open("w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=2, sort_keys=True)
        tmp.replace(self.path)

    def keys(self, content_id: Any) -> list[str]:
        with _locked(self.path, exclusive=False):
            return list(self._read().get(str(content_id), {}))

    def get(self, content_id: Any, key: str, default: Any = None) -> Any:
        with _locked(self.path, exclusive=False):
            return self._read().get(str(content_id), {}).get(key, default)

    def update(self, content_id: Any, key: str, value: Any) -> None:
        with _locked(self.path, exclusive=True):
            data = self._read()
            data.setdefault(str(content_id), {})[key] = value
            self._write(data)

    def delete(self, content_id: Any, key: str) -> None:
        with _locked(self.path, exclusive=True):
            data = self._read()
            item = data.get(str(content_id))
            if item is None or key not in item:
                return
            del item[key]
            if not item:
                del data[str(content_id)]
            self._write(data)
